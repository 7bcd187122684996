"""Exception hierarchy for classifiers and the classifier pool.

Every error derives from :class:`ClassifierError` so callers (a web layer,
the CLI) can catch the whole family and map each subclass to their own
status codes.
"""

from __future__ import annotations

from pathlib import Path


class ClassifierError(Exception):
    """Base class for all classifier errors."""


class TokenizeError(ClassifierError):
    """The tokenizer failed to turn text into word counts."""


class SaveError(ClassifierError):
    """A classifier could not be written to its file."""


class LoadError(ClassifierError):
    """A classifier file could not be read or decoded."""

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


class TrainingInProgressError(ClassifierError):
    """The classifier is training; retry later."""

    def __init__(self, message: str = "classifier is training") -> None:
        super().__init__(message)


class NotFoundError(ClassifierError):
    """No classifier is registered under the given id."""

    def __init__(self, classifier_id: str) -> None:
        self.classifier_id = classifier_id
        super().__init__(f"classifier {classifier_id!r} not found")


class RemoveError(ClassifierError):
    """A classifier file could not be deleted."""


class EmptyInputError(ClassifierError):
    """The text to classify produced no words."""


class NoTrainingDataError(ClassifierError):
    """The classifier has no training data to score against."""
