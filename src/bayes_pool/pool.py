"""Pool of independent classifiers keyed by id.

The pool maps an opaque classifier id to a ``BayesClassifier`` whose model
lives in ``<data_dir>/<id>.bc``. Classifiers are created lazily on first
use and found again after a restart by scanning the data directory.

The pool lock only guards the id map. Classifiers handed out by the pool
are used outside of it and enforce their own training exclusion.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Optional

from loguru import logger

from .classifier import FILE_SUFFIX, BayesClassifier
from .errors import LoadError, NotFoundError
from .tokenizer import Tokenizer

_log = logger.bind(subsystem="classifier_pool")


def validate_classifier_id(classifier_id: str) -> None:
    """Reject ids that cannot be used as a model file name.

    Raises:
        ValueError: If the id is empty, ``.``/``..``, or contains a path
            separator.
    """
    if not classifier_id or classifier_id in (".", ".."):
        raise ValueError(f"invalid classifier id {classifier_id!r}")
    separators = {"/", os.sep} | ({os.altsep} if os.altsep else set())
    if any(sep in classifier_id for sep in separators):
        raise ValueError(
            f"invalid classifier id {classifier_id!r}: must not contain a path separator"
        )


class ClassifierPool:
    """Thread-safe registry of classifiers stored in one directory.

    Example::

        pool = ClassifierPool(MystemTokenizer("/usr/bin/mystem"), "data")
        clf, existed = pool.classifier("news", create=True)
        clf.train(docs)
        pool.remove("news")

    Args:
        tokenizer: Tokenizer shared by every classifier in the pool.
        data_dir: Directory holding the ``*.bc`` model files. Created if
            missing.
        strict: Raise the first ``LoadError`` met during discovery instead
            of skipping the broken file.

    Raises:
        LoadError: In strict mode, if a model file fails to load.
        OSError: If the data directory cannot be created or listed.
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        data_dir: str | Path,
        strict: bool = False,
    ) -> None:
        self._tokenizer = tokenizer
        self._data_dir = Path(data_dir)
        self._classifiers: dict[str, BayesClassifier] = {}
        self._lock = threading.Lock()

        self.load_errors: list[LoadError] = []

        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._discover(strict)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def __len__(self) -> int:
        with self._lock:
            return len(self._classifiers)

    def __contains__(self, classifier_id: object) -> bool:
        with self._lock:
            return classifier_id in self._classifiers

    def ids(self) -> list[str]:
        """Return the registered classifier ids, sorted."""
        with self._lock:
            return sorted(self._classifiers)

    def path_for(self, classifier_id: str) -> Path:
        """Model file path for a classifier id."""
        return self._data_dir / (classifier_id + FILE_SUFFIX)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classifier(
        self,
        classifier_id: str,
        create: bool = False,
    ) -> tuple[Optional[BayesClassifier], bool]:
        """Look up a classifier, optionally creating it.

        Args:
            classifier_id: Classifier id.
            create: Create an empty classifier when the id is unknown.

        Returns:
            ``(classifier, existed)``. ``existed`` tells whether the id was
            registered before this call. The classifier is ``None`` only
            when the id is unknown and ``create`` is false.

        Raises:
            ValueError: If the id is not a valid file name.
        """
        validate_classifier_id(classifier_id)

        with self._lock:
            clf = self._classifiers.get(classifier_id)
            if clf is not None:
                return clf, True
            if not create:
                return None, False

            clf = BayesClassifier(self._tokenizer, self.path_for(classifier_id))
            self._classifiers[classifier_id] = clf

        _log.info("created classifier {!r}", classifier_id)
        return clf, False

    def remove(self, classifier_id: str) -> None:
        """Delete a classifier and its model file.

        The entry stays registered if the file cannot be deleted.

        Raises:
            NotFoundError: If no classifier is registered under the id.
            TrainingInProgressError: If the classifier is training.
            RemoveError: If the model file could not be deleted.
        """
        with self._lock:
            clf = self._classifiers.get(classifier_id)
            if clf is None:
                raise NotFoundError(classifier_id)

            clf.remove_file()
            del self._classifiers[classifier_id]

        _log.info("removed classifier {!r}", classifier_id)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def _discover(self, strict: bool) -> None:
        """Register every ``<id>.bc`` file found directly in the data directory."""
        for entry in sorted(self._data_dir.iterdir()):
            if not entry.name.endswith(FILE_SUFFIX) or not entry.is_file():
                continue

            classifier_id = entry.name[: -len(FILE_SUFFIX)]
            if not classifier_id:
                continue

            try:
                clf = BayesClassifier.load(self._tokenizer, entry)
            except LoadError as e:
                if strict:
                    raise
                _log.opt(exception=e).error(
                    "failed to load classifier {!r}, skipping", classifier_id
                )
                self.load_errors.append(e)
                continue

            self._classifiers[classifier_id] = clf
            _log.debug("loaded classifier {!r} from {}", classifier_id, entry)

        _log.info(
            "discovered {} classifiers in {}, {} failed to load",
            len(self._classifiers),
            self._data_dir,
            len(self.load_errors),
        )
