"""Environment-based settings for the command-line tools.

The library itself takes everything as constructor arguments; only the CLI
reads the environment. Variables may also come from a ``.env`` file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .tokenizer import MystemTokenizer, RegexTokenizer, Tokenizer

TOKENIZERS = ("regex", "mystem")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings.

    Attributes:
        data_dir: Directory holding the classifier model files.
        tokenizer: Tokenizer name, ``regex`` or ``mystem``.
        mystem_bin: Path to the mystem executable.
        mystem_attempts: Runs of mystem before a tokenize call fails.
        log_level: Minimum log level.
        strict_load: Fail startup on the first model file that cannot load.
    """

    data_dir: Path = Path("data")
    tokenizer: str = "regex"
    mystem_bin: str = "mystem"
    mystem_attempts: int = 1
    log_level: str = "INFO"
    strict_load: bool = False

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from environment variables.

        Args:
            dotenv: Load a ``.env`` file first (existing variables win).
        """
        if dotenv:
            load_dotenv()

        return cls(
            data_dir=Path(os.getenv("BAYES_POOL_DATA_DIR", "data")),
            tokenizer=os.getenv("BAYES_POOL_TOKENIZER", "regex").strip().lower(),
            mystem_bin=os.getenv("MYSTEM_BIN_PATH", "mystem"),
            mystem_attempts=int(os.getenv("MYSTEM_ATTEMPTS", "1")),
            log_level=os.getenv("BAYES_POOL_LOG_LEVEL", "INFO"),
            strict_load=_env_bool("BAYES_POOL_STRICT_LOAD"),
        )

    def build_tokenizer(self) -> Tokenizer:
        """Instantiate the configured tokenizer.

        Raises:
            ValueError: If the tokenizer name is unknown.
        """
        if self.tokenizer == "regex":
            return RegexTokenizer()
        if self.tokenizer == "mystem":
            return MystemTokenizer(self.mystem_bin, attempts=self.mystem_attempts)
        raise ValueError(
            f"unknown tokenizer {self.tokenizer!r}, expected one of {TOKENIZERS}"
        )
