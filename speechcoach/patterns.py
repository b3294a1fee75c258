"""
Compile a filler vocabulary into a single matcher.

All entries become one alternation regex. Python's regex engine tries the
alternatives left to right at each position and commits to the first that
matches, and finditer resumes after the end of each match, so ordering the
alternatives longest-first gives exactly the detection policy we need:
leftmost position wins, then the longest entry at that position, and no
match ever starts inside an already-consumed span.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Mapping, Pattern, Sequence, Tuple

from speechcoach.errors import ConfigError
from speechcoach.logger import get_logger
from speechcoach.schemas import FillerWord

logger = get_logger(__name__)

# Entries match whole words only; lookarounds instead of \b so that entries
# starting or ending with punctuation still behave.
WORD_START = r"(?<!\w)"
WORD_END = r"(?!\w)"


@dataclass(frozen=True)
class Matcher:
    """
    Immutable compiled form of a vocabulary.

    Attributes:
        pattern: Case-insensitive alternation of every entry
        entries: Entries in match-priority order
        group_ids: Regex group name -> filler id
    """
    pattern: Pattern[str]
    entries: Tuple[FillerWord, ...]
    group_ids: Mapping[str, str]

    def iter_matches(self, text: str) -> Iterator[Tuple[str, int, int]]:
        """
        Yield (filler_id, start, end) for each non-overlapping match.

        start/end are Python string indices (code points), ascending.
        """
        for match in self.pattern.finditer(text):
            yield self.group_ids[match.lastgroup], match.start(), match.end()

    def priority(self) -> Tuple[str, ...]:
        """Surface forms in the order they are attempted at a position."""
        return tuple(entry.surface_form for entry in self.entries)


def _priority_key(entry: FillerWord) -> Tuple[int, int, str]:
    surface = entry.surface_form.strip()
    return (-entry.word_count, -len(surface), surface.casefold())


def _entry_regex(surface_form: str) -> str:
    # Words are escaped individually and joined by \s+ so a phrase split by a
    # line break or double space in the transcript still matches.
    return r"\s+".join(re.escape(word) for word in surface_form.split())


def validate_vocabulary(entries: Sequence[FillerWord]) -> None:
    """
    Check that a vocabulary can be compiled.

    Raises:
        ConfigError: If the vocabulary is empty, an entry is blank, an entry's
            word_count disagrees with its text, or two entries share a surface
            form (case-insensitive) or an id.
    """
    if not entries:
        raise ConfigError("Filler vocabulary is empty")

    seen_surfaces = {}
    seen_ids = set()
    for entry in entries:
        words = entry.surface_form.split()
        if not words:
            raise ConfigError(f"Filler '{entry.id}' has an empty surface form")

        if len(words) != entry.word_count:
            raise ConfigError(
                f"Filler '{entry.surface_form}' has {len(words)} words "
                f"but declares word_count={entry.word_count}"
            )

        folded = " ".join(words).casefold()
        if folded in seen_surfaces:
            raise ConfigError(
                f"Duplicate filler surface form '{entry.surface_form}' "
                f"(already declared as '{seen_surfaces[folded]}')"
            )
        if entry.id in seen_ids:
            raise ConfigError(f"Duplicate filler id '{entry.id}'")

        seen_surfaces[folded] = entry.surface_form
        seen_ids.add(entry.id)


def compile_vocabulary(entries: Sequence[FillerWord]) -> Matcher:
    """
    Compile vocabulary entries into a Matcher.

    Entries are ordered by word count (descending), then surface length
    (descending), then case-folded text, so "you know" is attempted before
    "you" at the same offset and the order is fully deterministic.

    Args:
        entries: Filler entries, e.g. FillerVocabulary.entries

    Returns:
        Matcher: Immutable matcher, safe to share between threads

    Raises:
        ConfigError: If the vocabulary fails validate_vocabulary()

    Example:
        >>> from speechcoach.vocabulary import build_vocabulary
        >>> matcher = compile_vocabulary(build_vocabulary(["um", "you know"]).entries)
        >>> list(matcher.iter_matches("Um, you know"))
        [('um', 0, 2), ('you_know', 4, 12)]
    """
    validate_vocabulary(entries)

    ordered = tuple(sorted(entries, key=_priority_key))
    group_ids = {}
    alternatives = []
    for index, entry in enumerate(ordered):
        group = f"f{index}"
        group_ids[group] = entry.id
        alternatives.append(f"(?P<{group}>{_entry_regex(entry.surface_form)})")

    source = WORD_START + "(?:" + "|".join(alternatives) + ")" + WORD_END
    pattern = re.compile(source, re.IGNORECASE)
    matcher = Matcher(pattern=pattern, entries=ordered, group_ids=MappingProxyType(group_ids))
    logger.debug(f"Compiled {len(ordered)} filler patterns in priority order: {matcher.priority()}")

    return matcher
