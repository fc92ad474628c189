"""
Markov chain text generator (CPU-only).
Fixed order (1–5), temperature-scaled weighted sampling, sentence-aware stopping.
Training is cumulative: every call extends the same transition table.
"""
from __future__ import annotations

import logging
import math
import random
import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Callable, Dict, List, Optional, Set, Union

logger = logging.getLogger(__name__)

MIN_ORDER = 1
MAX_ORDER = 5
SENTENCE_END = (".", "!", "?")

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCT_RE = re.compile(r"([.!?])\s*")

RandomSource = Callable[[], float]


class ValidationError(ValueError):
    """Raised for bad arguments, bad training text, bad options or an untrained model."""


@dataclass
class GenerationOptions:
    min_length: int = 10
    max_length: int = 50
    temperature: float = 1.0
    end_on_sentence: bool = True


# camelCase aliases accepted in option mappings
_OPTION_ALIASES = {
    "minLength": "min_length",
    "maxLength": "max_length",
    "endOnSentence": "end_on_sentence",
}


@dataclass
class ModelStats:
    """Read-only snapshot of a model's size."""
    vocabulary_size: int = 0
    total_transitions: int = 0
    start_sequences: int = 0
    end_sequences: int = 0
    total_tokens: int = 0
    average_transitions_per_state: float = 0

    def to_dict(self) -> Dict[str, Union[int, float]]:
        return {
            "vocabularySize": self.vocabulary_size,
            "totalTransitions": self.total_transitions,
            "startSequences": self.start_sequences,
            "endSequences": self.end_sequences,
            "totalTokens": self.total_tokens,
            "averageTransitionsPerState": self.average_transitions_per_state,
        }


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def ends_sentence(token: str) -> bool:
    return token.endswith(SENTENCE_END)


def validate_order(order) -> int:
    if not _is_int(order) or order < MIN_ORDER or order > MAX_ORDER:
        raise ValidationError(
            f"Order must be an integer between {MIN_ORDER} and {MAX_ORDER}"
        )
    return order


def preprocess_text(text, order: int) -> List[str]:
    """
    Normalize whitespace and split training text into tokens.

    Each sentence-terminating mark becomes a token of its own, so
    "dog." yields ["dog", "."].

    Raises:
        ValidationError: text is not a string, is blank, or yields fewer
            than order + 1 tokens.
    """
    if not isinstance(text, str):
        raise ValidationError("Input text must be a string")

    if not text.strip():
        raise ValidationError("Input text cannot be empty")

    cleaned = _WHITESPACE_RE.sub(" ", text)
    cleaned = _PUNCT_RE.sub(r" \1 ", cleaned)
    tokens = cleaned.strip().split()

    if len(tokens) < order + 1:
        raise ValidationError(
            f"Input text must contain at least {order + 1} tokens"
        )

    return tokens


def validate_options(
    options: Union[None, GenerationOptions, Mapping] = None,
) -> GenerationOptions:
    """
    Build and check generation options.

    Accepts None (all defaults), a GenerationOptions, or a mapping keyed by
    field name (snake_case or camelCase).
    """
    if options is None:
        opts = GenerationOptions()
    elif isinstance(options, GenerationOptions):
        opts = options
    elif isinstance(options, Mapping):
        known = {f.name for f in fields(GenerationOptions)}
        kwargs = {}
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ValidationError(f"Unknown generation option: {key}")
            kwargs[name] = value
        opts = GenerationOptions(**kwargs)
    else:
        raise ValidationError("options must be a mapping or GenerationOptions")

    if not _is_int(opts.min_length) or opts.min_length < 1:
        raise ValidationError("min_length must be a positive integer")

    if not _is_int(opts.max_length) or opts.max_length < opts.min_length:
        raise ValidationError("max_length must be an integer >= min_length")

    # `not x > 0` also rejects NaN
    if not _is_number(opts.temperature) or not opts.temperature > 0:
        raise ValidationError("temperature must be a positive number")

    if not isinstance(opts.end_on_sentence, bool):
        raise ValidationError("end_on_sentence must be a boolean")

    return opts


def select_next_token(
    candidates: Mapping,
    temperature: float,
    random_source: RandomSource = random.random,
) -> str:
    """
    Weighted pick over next-token counts.

    Each count c is weighted c ** (1 / temperature): below 1.0 sharpens
    toward frequent tokens, above 1.0 flattens toward uniform.
    Counts are scaled by the largest count first so the power never
    overflows; the relative weights are unchanged.
    """
    top = max(candidates.values())
    items = []
    total = 0.0
    for token, count in candidates.items():
        weight = math.pow(count / top, 1.0 / temperature)
        items.append((token, weight))
        total += weight

    r = random_source() * total
    cum = 0.0
    for token, weight in items:
        cum += weight
        if r <= cum:
            return token
    return items[-1][0]


class MarkovModel:
    def __init__(self, order: int = 1, random_source: Optional[RandomSource] = None):
        self.order = validate_order(order)
        self.transitions: Dict[str, Dict[str, int]] = {}
        # dicts keep insertion order, which start-key sampling relies on
        self._start_keys: Dict[str, None] = {}
        self.end_keys: Set[str] = set()
        self.total_tokens = 0
        self.random_source: RandomSource = random_source or random.random

    @property
    def start_keys(self) -> Set[str]:
        return set(self._start_keys)

    def _ngram(self, tokens: List[str], start: int) -> str:
        return " ".join(tokens[start : start + self.order])

    def _resolve_start(self, phrase: str) -> str:
        # Training keeps case, lookup lowercases first; the phrase as typed
        # is only tried when no lowercase key exists.
        for key in (phrase.lower(), phrase):
            if key in self.transitions:
                return key
        raise ValidationError("Start phrase not found in training data")

    def train(self, text: str) -> None:
        tokens = preprocess_text(text, self.order)
        self.total_tokens += len(tokens)

        self._start_keys.setdefault(self._ngram(tokens, 0), None)

        for i in range(len(tokens) - self.order):
            key = self._ngram(tokens, i)
            nxt = tokens[i + self.order]

            if ends_sentence(nxt):
                self.end_keys.add(key)

            counts = self.transitions.setdefault(key, {})
            counts[nxt] = counts.get(nxt, 0) + 1

        logger.debug(
            f"[Markov] Trained on {len(tokens)} tokens, {len(self.transitions)} states"
        )

    def generate(
        self,
        start_phrase: Optional[str] = None,
        options: Union[None, GenerationOptions, Mapping] = None,
    ) -> str:
        """
        Generate text by walking the transition table.

        Args:
            start_phrase: Optional seed n-gram; matched lowercased against
                trained keys. A random start key is used when omitted.
            options: Generation options (see validate_options)

        Returns:
            Generated tokens joined by single spaces

        Raises:
            ValidationError: untrained model, bad options, unknown start
                phrase, or a failure inside the sampling loop.
        """
        if not self.transitions:
            raise ValidationError("Model must be trained before generating text")

        opts = validate_options(options)

        if start_phrase is not None:
            if not isinstance(start_phrase, str):
                raise ValidationError("Start phrase must be a string")
            current = self._resolve_start(start_phrase)
        else:
            keys = list(self._start_keys)
            current = keys[int(self.random_source() * len(keys))]

        generated = current.split(" ")

        try:
            while len(generated) < opts.max_length:
                candidates = self.transitions.get(current)
                if not candidates:
                    break

                nxt = select_next_token(candidates, opts.temperature, self.random_source)
                generated.append(nxt)
                current = " ".join(generated[-self.order :])

                if (
                    opts.end_on_sentence
                    and ends_sentence(nxt)
                    and len(generated) >= opts.min_length
                ):
                    break
        except Exception as e:
            raise ValidationError(f"Error during text generation: {e}") from e

        return " ".join(generated)

    def get_stats(self) -> ModelStats:
        states = len(self.transitions)
        return ModelStats(
            vocabulary_size=states,
            total_transitions=sum(sum(c.values()) for c in self.transitions.values()),
            start_sequences=len(self._start_keys),
            end_sequences=len(self.end_keys),
            total_tokens=self.total_tokens,
            average_transitions_per_state=(
                sum(len(c) for c in self.transitions.values()) / states if states else 0
            ),
        )


# --- module-level API ---
def create_model(order: int, random_source: Optional[RandomSource] = None) -> MarkovModel:
    return MarkovModel(order, random_source=random_source)


def train(model: MarkovModel, text: str) -> None:
    model.train(text)


def generate(
    model: MarkovModel,
    start_phrase: Optional[str] = None,
    options: Union[None, GenerationOptions, Mapping] = None,
) -> str:
    return model.generate(start_phrase, options)


def get_stats(model: MarkovModel) -> ModelStats:
    return model.get_stats()


def options_to_dict(options: GenerationOptions) -> Dict[str, Union[int, float, bool]]:
    return asdict(options)
