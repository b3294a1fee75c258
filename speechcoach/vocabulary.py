"""
Canonical filler vocabulary.

This is the single list of filler expressions used for detection,
highlighting, and any natural-language evaluation prompt sent to an external
judge. Export it with as_prompt_text() instead of redefining it elsewhere.
"""

import re
from pathlib import Path
from typing import Iterable, Tuple, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from speechcoach.errors import ConfigError
from speechcoach.logger import get_logger
from speechcoach.schemas import FillerWord

logger = get_logger(__name__)

VOCABULARY_VERSION = "1.0.0"

FILLER_PHRASES: Tuple[str, ...] = (
    # Single-word fillers
    "um",
    "uh",
    "like",
    "so",
    "basically",
    "actually",
    "literally",
    "right",
    "okay",
    "well",

    # Multi-word fillers
    "you know",
    "I mean",
    "kind of",
    "sort of",
    "you see",
    "I guess",
)

_NON_ID_CHARS = re.compile(r"[^\w]+")


def filler_id(surface_form: str) -> str:
    """
    Derive a stable id from a surface form.

    Example:
        >>> filler_id("You know")
        'you_know'
    """
    return _NON_ID_CHARS.sub("_", surface_form.strip().casefold()).strip("_")


def make_filler(surface_form: str) -> FillerWord:
    """Build a FillerWord, deriving id and word count from the text."""
    return FillerWord(
        id=filler_id(surface_form),
        surface_form=surface_form,
        word_count=len(surface_form.split()),
    )


class FillerVocabulary(BaseModel):
    """
    Versioned, immutable list of filler expressions.

    Attributes:
        version: Vocabulary version, reported with every analysis
        entries: Filler entries in declaration order
    """
    model_config = ConfigDict(frozen=True)

    version: str
    entries: Tuple[FillerWord, ...]

    def surface_forms(self) -> Tuple[str, ...]:
        return tuple(entry.surface_form for entry in self.entries)

    def as_prompt_text(self, separator: str = ", ") -> str:
        """
        Render the vocabulary as plain text for an evaluation prompt.

        Example:
            >>> build_vocabulary(["um", "you know"]).as_prompt_text()
            '"um", "you know"'
        """
        return separator.join(f'"{surface}"' for surface in self.surface_forms())

    def __len__(self) -> int:
        return len(self.entries)


def build_vocabulary(phrases: Iterable[str], version: str = VOCABULARY_VERSION) -> FillerVocabulary:
    """
    Build a vocabulary from raw phrases.

    Phrase-level checks (empty text, duplicates) happen when the vocabulary is
    compiled; this only rejects entries that cannot form a FillerWord at all.

    Raises:
        ConfigError: If a phrase has more than three words
    """
    try:
        entries = tuple(make_filler(phrase) for phrase in phrases)
        return FillerVocabulary(version=version, entries=entries)
    except ValidationError as e:
        raise ConfigError(f"Invalid filler vocabulary: {e}") from e


def load_vocabulary(path: Union[str, Path], version: str = VOCABULARY_VERSION) -> FillerVocabulary:
    """
    Load a vocabulary from a plain-text file, one phrase per line.

    Blank lines and lines starting with '#' are ignored.

    Raises:
        ConfigError: If the file cannot be read or holds an invalid phrase
    """
    vocabulary_file = Path(path)
    try:
        lines = vocabulary_file.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise ConfigError(f"Cannot read filler vocabulary {vocabulary_file}: {e}") from e

    phrases = [line.strip() for line in lines if line.strip() and not line.lstrip().startswith("#")]
    vocabulary = build_vocabulary(phrases, version=version)
    logger.info(f"Loaded {len(vocabulary)} filler phrases from {vocabulary_file}")
    return vocabulary


DEFAULT_VOCABULARY = build_vocabulary(FILLER_PHRASES)
