"""
Text feature extraction for transcript analysis.

This module provides the feature extraction functions used in the analysis
pipeline:
- Filler detection against a compiled vocabulary (positions for highlighting)
- Word counting and speaking rate (WPM)
- Sentence statistics
- Hesitation and hedging proxies
- Lexical variety

NOTE: This module focuses purely on feature extraction. Criterion scoring and
weights are handled in criteria.py and scoring.py. Every function here is pure
and total: no transcript content can make it fail.
"""

import math
import re
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence, Tuple

from speechcoach.patterns import Matcher, compile_vocabulary
from speechcoach.schemas import FillerOccurrence
from speechcoach.vocabulary import build_vocabulary

# Phrases that soften a claim. Detected with the same matcher machinery as
# fillers but kept out of the filler vocabulary: they are not fillers.
HEDGE_PHRASES: Tuple[str, ...] = (
    "maybe",
    "perhaps",
    "probably",
    "possibly",
    "might",
    "hopefully",
    "I think",
    "I believe",
    "I suppose",
    "I feel like",
)

_HEDGE_MATCHER = compile_vocabulary(build_vocabulary(HEDGE_PHRASES, version="hedges").entries)

_WORD_RE = re.compile(r"\w+(?:'\w+)?")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_PAUSE_MARKER_RE = re.compile(r"\.{3,}|…|-{2,}|—")


def _utf16_length(text: str) -> int:
    # Characters outside the BMP take two UTF-16 code units
    return len(text) + sum(1 for ch in text if ord(ch) > 0xFFFF)


def detect_fillers(transcript: str, matcher: Matcher) -> List[FillerOccurrence]:
    """
    Detect filler occurrences in a transcript.

    Scans left to right; at each unconsumed offset the vocabulary entries are
    tried in compiler order (longest first) and the first success is taken.
    Matching ignores case; matched_text keeps the original casing so the UI
    can highlight exactly what was said.

    Args:
        transcript: Transcript text (may be empty)
        matcher: Compiled vocabulary from compile_vocabulary()

    Returns:
        List[FillerOccurrence]: Non-overlapping occurrences ordered by
            start_offset. Offsets are UTF-16 code-unit indices.

    Example:
        >>> occurrences = detect_fillers("Um, I was like, you know, kind of nervous.", matcher)
        >>> [(o.filler_id, o.start_offset) for o in occurrences]
        [('um', 0), ('like', 10), ('you_know', 16), ('kind_of', 26)]
    """
    if not transcript:
        return []

    occurrences: List[FillerOccurrence] = []
    cursor = 0
    cursor_utf16 = 0

    for filler, start, end in matcher.iter_matches(transcript):
        start_utf16 = cursor_utf16 + _utf16_length(transcript[cursor:start])
        matched_text = transcript[start:end]
        end_utf16 = start_utf16 + _utf16_length(matched_text)

        occurrences.append(FillerOccurrence(
            filler_id=filler,
            start_offset=start_utf16,
            end_offset=end_utf16,
            matched_text=matched_text
        ))
        cursor, cursor_utf16 = end, end_utf16

    return occurrences


def filler_breakdown(occurrences: Sequence[FillerOccurrence]) -> Dict[str, int]:
    """
    Count occurrences per filler id.

    Example:
        >>> filler_breakdown(detect_fillers("um, like, um", matcher))
        {'um': 2, 'like': 1}
    """
    return dict(Counter(occurrence.filler_id for occurrence in occurrences))


def count_words(text: str) -> int:
    """
    Count whitespace-delimited tokens.

    Punctuation-only tokens count as words; runs of whitespace never create
    empty tokens.

    Example:
        >>> count_words("  Hello  world\\ttest\\n")
        3
    """
    if not text:
        return 0
    return len(text.split())


def words_per_minute(word_count: int, duration_sec: Optional[float]) -> Optional[float]:
    """
    Calculate speaking rate in words per minute (WPM).

    Conversational speech typically runs 120-160 WPM; below ~80 reads as
    hesitant, above ~200 as rushed.

    Args:
        word_count: Number of words spoken
        duration_sec: Recording duration in seconds, None when unknown

    Returns:
        float: Words per minute, rounded to 2 decimals
        None: If duration is missing, non-finite, zero, or negative (rate unknown)

    Example:
        >>> words_per_minute(word_count=10, duration_sec=6.0)
        100.0
    """
    if duration_sec is None or not math.isfinite(duration_sec) or duration_sec <= 0:
        return None

    if word_count < 0:
        return None

    wpm = word_count / (duration_sec / 60.0)

    return round(wpm, 2)


def sentence_stats(text: str) -> Dict[str, Any]:
    """
    Calculate basic sentence-level statistics.

    Sentences are split on terminal punctuation (. ! ?); an unpunctuated
    transcript counts as a single sentence.

    Args:
        text: Input text to analyze

    Returns:
        dict: Sentence statistics with keys:
            - sentence_count (int): Total number of sentences
            - avg_sentence_length (float): Average words per sentence
            - min_sentence_length (int): Shortest sentence in words
            - max_sentence_length (int): Longest sentence in words

    Example:
        >>> stats = sentence_stats("Hello. This is a test. It works well.")
        >>> stats["sentence_count"]
        3
        >>> stats["avg_sentence_length"]
        2.67
    """
    empty = {
        "sentence_count": 0,
        "avg_sentence_length": 0.0,
        "min_sentence_length": 0,
        "max_sentence_length": 0
    }
    if not text or not text.strip():
        return empty

    sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]
    if not sentences:
        return empty

    sentence_lengths = [len(s.split()) for s in sentences]

    return {
        "sentence_count": len(sentences),
        "avg_sentence_length": round(sum(sentence_lengths) / len(sentence_lengths), 2),
        "min_sentence_length": min(sentence_lengths),
        "max_sentence_length": max(sentence_lengths)
    }


def tokenize_words(text: str) -> List[str]:
    """Lowercased word tokens, punctuation stripped."""
    return [w.lower() for w in _WORD_RE.findall(text or "")]


def count_hesitations(text: str) -> int:
    """
    Count hesitation markers: written pauses plus stuttered repeats.

    Transcripts carry no timing, so pauses are approximated by the markers a
    transcription service writes for them ('...', '…', '--', '—'), and
    hesitation by immediate word repetition ('I I think').

    Example:
        >>> count_hesitations("I I think... the the plan -- works")
        4
    """
    if not text:
        return 0

    pauses = len(_PAUSE_MARKER_RE.findall(text))
    words = tokenize_words(text)
    repeats = sum(1 for prev, word in zip(words, words[1:]) if prev == word)

    return pauses + repeats


def count_hedges(text: str, matcher: Optional[Matcher] = None) -> int:
    """
    Count hedging phrases ('maybe', 'I think', ...).

    Args:
        text: Input text to analyze
        matcher: Hedge matcher; defaults to one compiled from HEDGE_PHRASES
    """
    if not text:
        return 0
    hedge_matcher = matcher or _HEDGE_MATCHER
    return sum(1 for _ in hedge_matcher.iter_matches(text))


def type_token_ratio(text: str) -> float:
    """
    Share of distinct words among all words, 0.0 for empty text.

    Example:
        >>> type_token_ratio("the cat and the hat")
        0.8
    """
    words = tokenize_words(text)
    if not words:
        return 0.0
    return round(len(set(words)) / len(words), 4)
