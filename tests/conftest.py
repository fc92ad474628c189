"""
Shared pytest fixtures for Markov model tests.
"""
from typing import Callable, List

import pytest
from fastapi.testclient import TestClient

from markov_service.api.routers.markov_router import MODEL_CACHE


FOX_TEXT = (
    "The quick brown fox jumps over the lazy dog. "
    "The dog barks at the fox. "
    "The fox runs away quickly."
)

# order 1: x -> {y: 2, z: 1}, y -> {.: 2}, . -> {x: 2}, z -> {.: 1}
XYZ_TEXT = "x y. x z. x y."


def constant_source(value: float) -> Callable[[], float]:
    """Random source that always returns the same draw."""
    return lambda: value


@pytest.fixture
def fox_text() -> str:
    return FOX_TEXT


@pytest.fixture
def xyz_text() -> str:
    return XYZ_TEXT


@pytest.fixture
def fox_sentences() -> List[str]:
    """The fox text split into one training call per sentence."""
    return [
        "The quick brown fox jumps over the lazy dog.",
        "The dog barks at the fox.",
        "The fox runs away quickly.",
    ]


@pytest.fixture
def zero_source() -> Callable[[], float]:
    """Random source that always draws 0."""
    return constant_source(0.0)


@pytest.fixture
def client():
    """Test client with an empty model cache."""
    from markov_service.app import app

    MODEL_CACHE.clear()
    with TestClient(app) as c:
        yield c
    MODEL_CACHE.clear()
