"""Hold-out evaluation of a trained classifier.

Classifies labeled documents the classifier was not trained on and reports
how often each class is missed.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from loguru import logger

from .classifier import BayesClassifier
from .errors import EmptyInputError
from .models import Document


@dataclass
class ClassStats:
    """Evaluation counts for one true class."""

    total: int = 0
    errors: int = 0

    @property
    def fail_rate(self) -> float:
        """Percentage of documents of this class classified wrongly."""
        return self.errors / self.total * 100 if self.total else 0.0


@dataclass
class EvaluationReport:
    """Per-class and overall evaluation results.

    Attributes:
        per_class: Counts keyed by true class.
        confusion: ``{true class: {predicted class: count}}``. Documents
            that produced no words are predicted as ``""``.
    """

    per_class: dict[str, ClassStats] = field(default_factory=dict)
    confusion: dict[str, dict[str, int]] = field(default_factory=dict)

    @property
    def total_docs(self) -> int:
        return sum(s.total for s in self.per_class.values())

    @property
    def total_errors(self) -> int:
        return sum(s.errors for s in self.per_class.values())

    @property
    def fail_rate(self) -> float:
        total = self.total_docs
        return self.total_errors / total * 100 if total else 0.0

    @property
    def accuracy(self) -> float:
        total = self.total_docs
        return (total - self.total_errors) / total if total else 0.0

    def to_dict(self) -> dict:
        return {
            "total_docs": self.total_docs,
            "total_errors": self.total_errors,
            "fail_rate": round(self.fail_rate, 2),
            "per_class": {
                cls: {
                    "total": s.total,
                    "errors": s.errors,
                    "fail_rate": round(s.fail_rate, 2),
                }
                for cls, s in sorted(self.per_class.items())
            },
            "confusion": self.confusion,
        }

    def summary(self) -> str:
        """Human-readable summary of the report."""
        lines = [
            f"Accuracy: {self.accuracy:.2%}",
            f"Fail rate: {self.fail_rate:.2f}%",
            "",
            f"{'Class':<20} {'Total':>8} {'Errors':>8} {'Fail %':>8}",
            "-" * 47,
        ]
        for cls in sorted(self.per_class):
            s = self.per_class[cls]
            lines.append(f"{cls:<20} {s.total:>8} {s.errors:>8} {s.fail_rate:>8.2f}")
        return "\n".join(lines)


def evaluate(classifier: BayesClassifier, docs: Iterable[Document]) -> EvaluationReport:
    """Classify labeled documents and compare with their classes.

    Args:
        classifier: A trained classifier.
        docs: Labeled documents, ideally not seen during training.

    Returns:
        EvaluationReport with per-class totals and errors.

    Raises:
        TrainingInProgressError: If the classifier starts training midway.
        NoTrainingDataError: If the classifier has no training data.
        TokenizeError: If a document could not be tokenized.
    """
    report = EvaluationReport()
    confusion: dict[str, Counter[str]] = {}

    for doc in docs:
        try:
            predicted = classifier.classify(doc.text)
        except EmptyInputError:
            predicted = ""

        stats = report.per_class.setdefault(doc.class_name, ClassStats())
        stats.total += 1
        if predicted != doc.class_name:
            stats.errors += 1
        confusion.setdefault(doc.class_name, Counter())[predicted] += 1

    report.confusion = {
        true_class: dict(sorted(predicted.items()))
        for true_class, predicted in sorted(confusion.items())
    }

    logger.bind(subsystem="evaluation").info(
        "evaluated {} documents, {} errors", report.total_docs, report.total_errors
    )
    return report
