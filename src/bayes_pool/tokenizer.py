"""Tokenizers turning raw text into normalized word counts.

Two implementations are provided:

- ``MystemTokenizer`` drives the external Yandex mystem lemmatizer
  (``mystem -n -l``) and is the production tokenizer for Russian text.
- ``RegexTokenizer`` is a pure-Python fallback that extracts words with a
  regular expression. It does no lemmatization but needs no external tools.

Both case-fold tokens and drop stop words.
"""

from __future__ import annotations

import os
import re
import subprocess
from abc import ABC, abstractmethod
from collections import Counter
from typing import Iterable, Optional

from loguru import logger
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .errors import TokenizeError
from .models import WordCounts

# ---------------------------------------------------------------------------
# Stop words
# ---------------------------------------------------------------------------

ENGLISH_STOP_WORDS: frozenset[str] = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
    "been", "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "shall", "can", "must",
    "not", "no", "nor", "so", "if", "then", "than", "that", "this",
    "these", "those", "it", "its", "he", "she", "they", "them", "their",
    "his", "her", "our", "your", "we", "you", "who", "whom", "which",
    "what", "where", "when", "how", "all", "each", "every", "both",
    "few", "more", "most", "other", "some", "such", "any", "only",
    "own", "same", "too", "very", "just", "about", "above", "after",
    "again", "also", "because", "before", "between", "during", "into",
    "through", "under", "until", "up", "out", "over", "here", "there",
})

# Lemmatized forms, as mystem emits them.
RUSSIAN_STOP_WORDS: frozenset[str] = frozenset({
    "а", "без", "более", "бы", "быть", "в", "вам", "вас", "весь", "во",
    "вот", "все", "всего", "вы", "где", "да", "даже", "для", "до", "его",
    "ее", "если", "есть", "еще", "же", "за", "здесь", "и", "из", "или",
    "им", "их", "к", "как", "какой", "когда", "который", "кто", "ли",
    "либо", "мы", "на", "над", "наш", "не", "него", "нее", "нет", "ни",
    "них", "но", "ну", "о", "об", "однако", "он", "она", "они", "оно",
    "от", "по", "под", "при", "про", "с", "свой", "себя", "со", "так",
    "также", "такой", "там", "тот", "тоже", "только", "у", "уже", "хотя",
    "чей", "чем", "через", "что", "чтобы", "это", "этот", "я",
})

DEFAULT_STOP_WORDS: frozenset[str] = ENGLISH_STOP_WORDS | RUSSIAN_STOP_WORDS


class Tokenizer(ABC):
    """Abstract base class for tokenizers.

    Implementations must be safe to call from several threads at once and
    must return an empty mapping for empty text.
    """

    @abstractmethod
    def tokenize(self, text: str) -> WordCounts:
        """Turn text into a ``word -> count`` mapping.

        Raises:
            TokenizeError: If the text could not be tokenized.
        """
        ...


# ---------------------------------------------------------------------------
# Regex tokenizer
# ---------------------------------------------------------------------------

# Runs of letters in any script, allowing inner apostrophes and hyphens.
_WORD_RE = re.compile(r"[^\W\d_]+(?:['-][^\W\d_]+)*")


class RegexTokenizer(Tokenizer):
    """Pure-Python tokenizer based on a word regex.

    Args:
        stop_words: Words to drop after case-folding. Defaults to
            ``DEFAULT_STOP_WORDS``.
    """

    def __init__(self, stop_words: Optional[Iterable[str]] = None) -> None:
        self.stop_words = (
            DEFAULT_STOP_WORDS if stop_words is None else frozenset(stop_words)
        )

    def tokenize(self, text: str) -> WordCounts:
        counts: Counter[str] = Counter()
        for match in _WORD_RE.finditer(text):
            word = match.group().casefold()
            if word not in self.stop_words:
                counts[word] += 1
        return dict(counts)


# ---------------------------------------------------------------------------
# Mystem tokenizer
# ---------------------------------------------------------------------------

_log = logger.bind(subsystem="mystem_tokenizer")


def parse_mystem_output(output: str, stop_words: frozenset[str]) -> WordCounts:
    """Count lemmas in ``mystem -n -l`` output.

    Each output line holds the lemmas of one word separated by ``|``;
    guessed lemmas of unknown words carry a trailing ``?``. Every lemma is
    counted once per line it appears on.
    """
    counts: Counter[str] = Counter()
    for line in output.splitlines():
        for lemma in line.split("|"):
            word = lemma.strip().rstrip("?").lower()
            if word and word not in stop_words:
                counts[word] += 1
    return dict(counts)


def _log_retry(retry_state: RetryCallState) -> None:
    _log.warning(
        "mystem attempt {} failed, retrying: {}",
        retry_state.attempt_number,
        retry_state.outcome.exception() if retry_state.outcome else None,
    )


class MystemTokenizer(Tokenizer):
    """Tokenizer backed by the external mystem lemmatizer.

    Args:
        bin_path: Path to the mystem executable.
        attempts: How many times to run mystem before giving up.
        timeout: Seconds to wait for one mystem run (``None`` waits forever).
        stop_words: Lemmas to drop. Defaults to ``DEFAULT_STOP_WORDS``.
    """

    def __init__(
        self,
        bin_path: str = "mystem",
        attempts: int = 1,
        timeout: Optional[float] = None,
        stop_words: Optional[Iterable[str]] = None,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.bin_path = bin_path
        self.attempts = attempts
        self.timeout = timeout
        self.stop_words = (
            DEFAULT_STOP_WORDS if stop_words is None else frozenset(stop_words)
        )

    def tokenize(self, text: str) -> WordCounts:
        if not text:
            return {}

        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=0.2, max=2),
            retry=retry_if_exception_type((OSError, subprocess.SubprocessError)),
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            output = retrying(self._run_mystem, text)
        except (OSError, subprocess.SubprocessError) as e:
            raise TokenizeError(f"failed to run mystem: {e}") from e

        return parse_mystem_output(output, self.stop_words)

    def _run_mystem(self, text: str) -> str:
        completed = subprocess.run(
            [self.bin_path, "-n", "-l"],
            input=text.encode("utf-8"),
            capture_output=True,
            check=True,
            timeout=self.timeout,
            # Keep terminal signals aimed at the parent away from mystem.
            start_new_session=os.name == "posix",
        )
        return completed.stdout.decode("utf-8", errors="replace")
