"""Data models for word-frequency text classification."""

from __future__ import annotations

from dataclasses import dataclass, field

# Normalized token -> occurrence count.
WordCounts = dict[str, int]


@dataclass(frozen=True)
class Document:
    """A labeled training document."""

    class_name: str
    text: str

    @classmethod
    def from_dict(cls, data: dict) -> "Document":
        """Build a document from a JSON object.

        Keys are matched case-insensitively, so both ``{"class": ..., "text": ...}``
        and ``{"Class": ..., "Text": ...}`` are accepted.

        Raises:
            ValueError: If the object is not a dict or a field is missing
                or not a string.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Document must be a JSON object, got {type(data).__name__}")

        lowered = {str(k).lower(): v for k, v in data.items()}
        class_name = lowered.get("class")
        text = lowered.get("text")

        if not isinstance(class_name, str):
            raise ValueError("Document field 'class' must be a string")
        if not isinstance(text, str):
            raise ValueError("Document field 'text' must be a string")

        return cls(class_name=class_name, text=text)

    def to_dict(self) -> dict:
        return {"class": self.class_name, "text": self.text}


@dataclass
class ClassificationResult:
    """Result of scoring a single text against every known class."""

    predicted_class: str
    scores: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "predicted_class": self.predicted_class,
            "scores": {
                k: round(v, 4) for k, v in sorted(
                    self.scores.items(),
                    key=lambda x: (-x[1], x[0]),
                )
            },
        }


@dataclass
class ModelStats:
    """Size summary of a trained model."""

    class_totals: dict[str, int] = field(default_factory=dict)
    vocabulary_size: int = 0

    @property
    def class_count(self) -> int:
        return len(self.class_totals)

    @property
    def total_words(self) -> int:
        return sum(self.class_totals.values())

    def to_dict(self) -> dict:
        return {
            "classes": dict(sorted(self.class_totals.items())),
            "class_count": self.class_count,
            "total_words": self.total_words,
            "vocabulary_size": self.vocabulary_size,
        }
