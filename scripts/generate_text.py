#!/usr/bin/env python3
"""
Train a Markov model on a text file and print generated samples.
Uses the built-in sample text when no input file is given.
"""

import argparse
import json
import random
import sys
from pathlib import Path

from markov_service.services.markov import (
    GenerationOptions,
    ValidationError,
    create_model,
)

SAMPLE_TEXT = (
    "The quick brown fox jumps over the lazy dog. "
    "The dog barks at the fox. "
    "The fox runs away quickly."
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate text with a fixed-order Markov chain")

    parser.add_argument("--input", type=Path, default=None,
                        help="Training text file (defaults to a built-in sample)")
    parser.add_argument("--order", type=int, default=2, help="Markov chain order (1-5)")
    parser.add_argument("--start", type=str, default=None, help="Start phrase (an n-gram from the text)")

    parser.add_argument("--min-length", type=int, default=8, help="Minimum tokens before stopping on a sentence end")
    parser.add_argument("--max-length", type=int, default=20, help="Maximum tokens")
    parser.add_argument("--temperature", type=float, default=0.8, help="Sampling temperature")
    parser.add_argument("--no-end-on-sentence", action="store_true",
                        help="Keep going past sentence boundaries")

    parser.add_argument("--samples", type=int, default=1, help="Number of samples to print")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")

    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    rng = random.Random(args.seed)

    try:
        text = args.input.read_text(encoding="utf-8") if args.input else SAMPLE_TEXT
        model = create_model(args.order, random_source=rng.random)
        model.train(text)
        print(f"Trained order-{model.order} model on {model.total_tokens} tokens")

        options = GenerationOptions(
            min_length=args.min_length,
            max_length=args.max_length,
            temperature=args.temperature,
            end_on_sentence=not args.no_end_on_sentence,
        )
        for i in range(args.samples):
            print(f"Generated text {i + 1}: {model.generate(args.start, options)}")
    except (ValidationError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Model stats:")
    print(json.dumps(model.get_stats().to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
