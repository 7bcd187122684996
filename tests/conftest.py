"""Shared test fixtures for bayes-pool tests."""

from __future__ import annotations

import threading
from collections import Counter
from pathlib import Path

import pytest
from loguru import logger

from bayes_pool.classifier import BayesClassifier
from bayes_pool.errors import TokenizeError
from bayes_pool.tokenizer import Tokenizer


class WhitespaceTokenizer(Tokenizer):
    """Deterministic tokenizer: lower-cased whitespace-separated words."""

    def tokenize(self, text: str) -> dict[str, int]:
        return dict(Counter(text.lower().split()))


class FailingTokenizer(WhitespaceTokenizer):
    """Fails on any text containing the word ``boom``."""

    def tokenize(self, text: str) -> dict[str, int]:
        if "boom" in text.split():
            raise TokenizeError("tokenizer exploded")
        return super().tokenize(text)


class BlockingTokenizer(WhitespaceTokenizer):
    """Blocks on texts containing ``wait`` until released.

    ``entered`` is set once a blocking call has started.
    """

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()

    def tokenize(self, text: str) -> dict[str, int]:
        if "wait" in text.split():
            self.entered.set()
            assert self.release.wait(timeout=5), "tokenizer was never released"
        return super().tokenize(text)


@pytest.fixture(autouse=True)
def silence_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield
    logger.remove()


@pytest.fixture
def tokenizer() -> WhitespaceTokenizer:
    return WhitespaceTokenizer()


@pytest.fixture
def failing_tokenizer() -> FailingTokenizer:
    return FailingTokenizer()


@pytest.fixture
def blocking_tokenizer():
    tok = BlockingTokenizer()
    yield tok
    tok.release.set()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Empty directory for model files."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def news_model(tokenizer: WhitespaceTokenizer, data_dir: Path) -> BayesClassifier:
    """Classifier with the sports/politics word counts used across tests."""
    return BayesClassifier(
        tokenizer,
        data_dir / "news.bc",
        {
            "sports": {"win": 10, "lose": 5},
            "politics": {"vote": 8, "win": 1},
        },
    )
