"""Multinomial Naive Bayes classifier over per-class word counts.

A ``BayesClassifier`` keeps one ``word -> count`` table per class. Training
tokenizes labeled documents and adds their word counts into the table of
their class; classification scores a text against every class with summed
log word probabilities under uniform class priors:

    score(c) = sum over distinct words w of ln(count(c, w) / total(c))

Words a class has never seen get the floor probability ``DEFAULT_WORD_PROB``
instead of zero, so one unknown word penalizes a class without ruling it
out.

Each classifier persists itself to a single JSON file. Writes go to a
temporary file that is renamed over the target, so readers never see a
half-written model.
"""

from __future__ import annotations

import json
import math
import os
import tempfile
import threading
from collections import Counter
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional

from loguru import logger

from .errors import (
    EmptyInputError,
    LoadError,
    NoTrainingDataError,
    NotFoundError,
    RemoveError,
    SaveError,
    TrainingInProgressError,
)
from .models import ClassificationResult, Document, ModelStats, WordCounts
from .tokenizer import Tokenizer

FILE_EXTENSION = "bc"
FILE_SUFFIX = "." + FILE_EXTENSION
FORMAT_VERSION = "1.0"

DEFAULT_WORD_PROB = 1e-11


class BayesClassifier:
    """A trainable word-frequency classifier bound to one model file.

    Concurrency: ``train`` is exclusive. While it runs, ``classify`` and
    every other read fail fast with ``TrainingInProgressError``, and
    ``train`` itself waits for reads already in flight to finish before
    touching the table. Any number of reads may run together.

    Example::

        clf = BayesClassifier(RegexTokenizer(), "data/news.bc")
        clf.train([Document("sports", "the team won the match")])
        clf.classify("who won the match?")  # "sports"

    Args:
        tokenizer: Tokenizer used for training documents and queries.
        path: File the model is saved to.
        class_word_counts: Initial ``class -> word -> count`` table.
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        path: str | Path,
        class_word_counts: Optional[dict[str, WordCounts]] = None,
    ) -> None:
        self._tokenizer = tokenizer
        self._path = Path(path)
        self._data: dict[str, WordCounts] = {
            class_name: dict(counts)
            for class_name, counts in (class_word_counts or {}).items()
        }

        # Guards _training, _readers and _removed.
        self._cond = threading.Condition()
        self._training = False
        self._readers = 0
        self._removed = False

        self._log = logger.bind(subsystem="bayes_classifier", path=str(self._path))

    def __repr__(self) -> str:
        return f"BayesClassifier(path={str(self._path)!r}, training={self._training})"

    @property
    def path(self) -> Path:
        """File the classifier is persisted to."""
        return self._path

    @property
    def training(self) -> bool:
        """Whether a ``train`` call is currently running."""
        return self._training

    @property
    def classes(self) -> list[str]:
        """Known class names, sorted."""
        with self._reading():
            return sorted(self._data)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train(self, docs: Iterable[Document]) -> None:
        """Add the word counts of labeled documents and save the model.

        The batch is all-or-nothing: every document is tokenized before
        any count is added, so a tokenizer failure leaves the model and its
        file untouched.

        Args:
            docs: Labeled documents.

        Raises:
            TrainingInProgressError: If another ``train`` call is running.
            NotFoundError: If the model file was removed.
            TokenizeError: If a document could not be tokenized.
            SaveError: If the model file could not be written. The new
                counts stay in memory and are saved by the next successful
                ``train`` or ``save``.
        """
        docs = list(docs)
        self._begin_training()
        try:
            self._log.info("training started on {} documents", len(docs))
            staged = self._count_batch(docs)

            with self._cond:
                self._cond.wait_for(lambda: self._readers == 0)

            self._merge(staged)
            try:
                self._write()
            except SaveError:
                self._log.exception("failed to save classifier")
                raise
            self._log.info("training finished, {} classes", len(self._data))
        finally:
            self._end_training()

    def _begin_training(self) -> None:
        with self._cond:
            if self._training:
                raise TrainingInProgressError()
            self._check_not_removed()
            self._training = True

    def _check_not_removed(self) -> None:
        # Caller holds self._cond.
        if self._removed:
            raise NotFoundError(self._path.stem)

    def _end_training(self) -> None:
        with self._cond:
            self._training = False
            self._cond.notify_all()

    def _count_batch(self, docs: list[Document]) -> dict[str, Counter[str]]:
        """Tokenize documents into per-class counts without touching the model."""
        staged: dict[str, Counter[str]] = {}
        for doc in docs:
            word_counts = self._tokenizer.tokenize(doc.text)
            staged.setdefault(doc.class_name, Counter()).update(word_counts)
        return staged

    def _merge(self, staged: dict[str, Counter[str]]) -> None:
        for class_name, counts in staged.items():
            table = self._data.setdefault(class_name, {})
            for word, count in counts.items():
                table[word] = table.get(word, 0) + count

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify(self, text: str) -> str:
        """Return the most probable class for a text.

        Ties go to the lexicographically smallest class name.

        Raises:
            TrainingInProgressError: If the classifier is training.
            TokenizeError: If the text could not be tokenized.
            NoTrainingDataError: If no class has any word counted.
            EmptyInputError: If the text produced no words.
        """
        return self.scores(text).predicted_class

    def scores(self, text: str) -> ClassificationResult:
        """Score a text against every class.

        Raises the same errors as :meth:`classify`.
        """
        if self._training:
            raise TrainingInProgressError()

        words = sorted(self._tokenizer.tokenize(text))

        with self._reading():
            totals = {
                class_name: total
                for class_name, total in self._class_totals().items()
                if total > 0
            }
            if not totals:
                raise NoTrainingDataError("classifier has no training data")
            if not words:
                raise EmptyInputError("no words extracted from text")

            scores: dict[str, float] = {}
            for class_name, total in totals.items():
                class_counts = self._data[class_name]
                score = 0.0
                for word in words:
                    word_prob = class_counts.get(word, 0) / total
                    if word_prob == 0:
                        word_prob = DEFAULT_WORD_PROB
                    score += math.log(word_prob)
                scores[class_name] = score

        # max keeps the first of equal scores, so the smallest name wins ties.
        best = max(sorted(scores), key=scores.__getitem__)
        return ClassificationResult(predicted_class=best, scores=scores)

    def _class_totals(self) -> dict[str, int]:
        return {
            class_name: sum(counts.values())
            for class_name, counts in self._data.items()
        }

    @contextmanager
    def _reading(self) -> Iterator[None]:
        """Register a reader of the table, failing fast while training."""
        with self._cond:
            if self._training:
                raise TrainingInProgressError()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                self._cond.notify_all()

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def class_word_counts(self) -> dict[str, WordCounts]:
        """Return a copy of the ``class -> word -> count`` table."""
        with self._reading():
            return {
                class_name: dict(counts)
                for class_name, counts in self._data.items()
            }

    def stats(self) -> ModelStats:
        """Summarize the classifier's size."""
        with self._reading():
            vocabulary: set[str] = set()
            for counts in self._data.values():
                vocabulary.update(counts)
            return ModelStats(
                class_totals=self._class_totals(),
                vocabulary_size=len(vocabulary),
            )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """Write the model to its file.

        Raises:
            TrainingInProgressError: If the classifier is training (the
                running ``train`` call saves on its own).
            NotFoundError: If the model file was removed.
            SaveError: If the file could not be written.
        """
        with self._cond:
            if self._training:
                raise TrainingInProgressError()
            self._check_not_removed()
            self._write()

    def _write(self) -> None:
        payload = {"version": FORMAT_VERSION, "classes": self._data}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=self._path.name + ".", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, ensure_ascii=False, sort_keys=True)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise SaveError(f"failed to save classifier to {self._path}: {e}") from e

    @classmethod
    def load(cls, tokenizer: Tokenizer, path: str | Path) -> "BayesClassifier":
        """Load a classifier from its file.

        A missing file yields an empty classifier bound to ``path``.

        Args:
            tokenizer: Tokenizer for the loaded classifier.
            path: Path to the saved model file.

        Returns:
            BayesClassifier with the saved word counts.

        Raises:
            LoadError: If the file cannot be read or is not a valid model.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return cls(tokenizer, path)
        except json.JSONDecodeError as e:
            raise LoadError(path, f"invalid JSON: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(path, f"cannot read file: {e}") from e

        return cls(tokenizer, path, _decode_table(path, data))

    def remove_file(self) -> None:
        """Delete the model file. A missing file is not an error.

        Once removed, the classifier refuses to train or save, so a stale
        reference cannot write the file back.

        Raises:
            TrainingInProgressError: If the classifier is training.
            RemoveError: If the file exists but could not be deleted.
        """
        with self._cond:
            if self._training:
                raise TrainingInProgressError("cannot remove a training classifier")
            try:
                self._path.unlink(missing_ok=True)
            except OSError as e:
                raise RemoveError(
                    f"failed to remove classifier file {self._path}: {e}"
                ) from e
            self._removed = True


def _decode_table(path: Path, data: object) -> dict[str, WordCounts]:
    """Validate a decoded model file and return its word-count table."""
    if not isinstance(data, dict):
        raise LoadError(path, "model file must contain a JSON object")

    version = data.get("version")
    if version != FORMAT_VERSION:
        raise LoadError(
            path, f"unsupported format version {version!r}, expected {FORMAT_VERSION!r}"
        )

    classes = data.get("classes")
    if not isinstance(classes, dict):
        raise LoadError(path, "'classes' must be an object")

    table: dict[str, WordCounts] = {}
    for class_name, counts in classes.items():
        if not isinstance(counts, dict):
            raise LoadError(path, f"word counts of class {class_name!r} must be an object")
        for word, count in counts.items():
            # bool is an int subclass and must not pass as a count.
            if isinstance(count, bool) or not isinstance(count, int) or count < 0:
                raise LoadError(
                    path,
                    f"count of {word!r} in class {class_name!r} must be a "
                    f"non-negative integer, got {count!r}",
                )
        table[class_name] = dict(counts)
    return table
