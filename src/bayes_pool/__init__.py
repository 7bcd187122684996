"""bayes-pool -- a pool of Naive Bayes word-frequency text classifiers."""

__version__ = "0.1.0"

from .classifier import DEFAULT_WORD_PROB, BayesClassifier
from .errors import (
    ClassifierError,
    EmptyInputError,
    LoadError,
    NoTrainingDataError,
    NotFoundError,
    RemoveError,
    SaveError,
    TokenizeError,
    TrainingInProgressError,
)
from .evaluation import ClassStats, EvaluationReport, evaluate
from .models import ClassificationResult, Document, ModelStats, WordCounts
from .pool import ClassifierPool
from .tokenizer import MystemTokenizer, RegexTokenizer, Tokenizer

__all__ = [
    # Core
    "BayesClassifier",
    "ClassifierPool",
    "DEFAULT_WORD_PROB",
    # Data models
    "Document",
    "WordCounts",
    "ClassificationResult",
    "ModelStats",
    # Tokenizers
    "Tokenizer",
    "MystemTokenizer",
    "RegexTokenizer",
    # Evaluation
    "evaluate",
    "EvaluationReport",
    "ClassStats",
    # Errors
    "ClassifierError",
    "TokenizeError",
    "SaveError",
    "LoadError",
    "TrainingInProgressError",
    "NotFoundError",
    "RemoveError",
    "EmptyInputError",
    "NoTrainingDataError",
]
