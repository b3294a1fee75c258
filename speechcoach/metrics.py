"""
Session metrics: the quantitative facts of one transcript.

compute_metrics() combines the text features with the detected filler
occurrences and evaluates every criterion rule, producing the immutable
SessionMetrics consumed by the rubric engine.
"""

import math
from typing import Optional, Sequence

from speechcoach.criteria import TranscriptFeatures, derive_criterion_scores
from speechcoach.schemas import FillerOccurrence, SessionMetrics
from speechcoach.text_features import (
    count_hedges,
    count_hesitations,
    count_words,
    filler_breakdown,
    sentence_stats,
    type_token_ratio,
    words_per_minute,
)


def filler_rate(filler_count: int, word_count: int) -> float:
    """
    Fillers per whitespace token, in [0, 1].

    The denominator is max(word_count, 1) so an empty transcript has rate 0.
    Capped at 1.0: a single token such as 'um,um' can hold two fillers.

    Example:
        >>> filler_rate(3, 12)
        0.25
        >>> filler_rate(0, 0)
        0.0
    """
    return min(1.0, filler_count / max(word_count, 1))


def _known_duration(duration_sec: Optional[float]) -> Optional[float]:
    if duration_sec is None or not math.isfinite(duration_sec) or duration_sec < 0:
        return None
    return duration_sec


def compute_metrics(
    transcript: str,
    occurrences: Sequence[FillerOccurrence],
    duration_sec: Optional[float] = None
) -> SessionMetrics:
    """
    Derive session metrics from a transcript and its filler occurrences.

    Args:
        transcript: Transcript text (may be empty)
        occurrences: Output of detect_fillers() for the same transcript
        duration_sec: Recording duration; words_per_minute is only computed
            when this is supplied and positive, otherwise it stays None
            ("unknown" rather than a zero rate)

    Returns:
        SessionMetrics: Immutable metrics including every criterion score

    Example:
        >>> metrics = compute_metrics("Um, I was like, you know, nervous.", occurrences, 6.0)
        >>> metrics.filler_count, metrics.word_count, metrics.words_per_minute
        (3, 7, 70.0)
    """
    word_count = count_words(transcript)
    filler_count = len(occurrences)
    wpm = words_per_minute(word_count, duration_sec)
    stats = sentence_stats(transcript)
    hesitations = count_hesitations(transcript)
    hedges = count_hedges(transcript)

    features = TranscriptFeatures(
        word_count=word_count,
        filler_count=filler_count,
        words_per_minute=wpm,
        sentence_count=stats["sentence_count"],
        avg_sentence_length=stats["avg_sentence_length"],
        hesitation_count=hesitations,
        hedge_count=hedges,
        type_token_ratio=type_token_ratio(transcript)
    )

    return SessionMetrics(
        filler_count=filler_count,
        filler_rate=round(filler_rate(filler_count, word_count), 4),
        word_count=word_count,
        duration_sec=_known_duration(duration_sec),
        words_per_minute=wpm,
        filler_breakdown=filler_breakdown(occurrences),
        sentence_count=stats["sentence_count"],
        avg_sentence_length=stats["avg_sentence_length"],
        hesitation_count=hesitations,
        hedge_count=hedges,
        scores_by_criterion=derive_criterion_scores(features)
    )


def pacing_feedback(wpm: Optional[float]) -> Optional[str]:
    """Human-readable pacing feedback; None when the rate is unknown."""
    if wpm is None:
        return None
    if wpm < 80:
        return "Very slow - try speaking more energetically"
    if wpm < 110:
        return "Slow pace - consider speeding up slightly"
    if wpm < 140:
        return "Good pace with emphasis on clarity"
    if wpm < 160:
        return "Excellent natural conversational pace"
    if wpm < 180:
        return "Good pace with high energy"
    if wpm < 200:
        return "Fast pace - ensure clarity isn't compromised"
    return "Very fast - slow down for better comprehension"


def filler_feedback(filler_count: int, rate: float) -> str:
    """
    Human-readable filler feedback.

    Args:
        filler_count: Number of fillers detected
        rate: Filler rate as a fraction of words (SessionMetrics.filler_rate)

    Example:
        >>> filler_feedback(2, 0.02)
        'Good control with 2 filler words (2.0% of speech).'
    """
    percent = round(rate * 100, 1)
    plural = "" if filler_count == 1 else "s"

    if percent < 1:
        return f"Excellent! Only {filler_count} filler word{plural} - very polished delivery."
    if percent < 3:
        return f"Good control with {filler_count} filler word{plural} ({percent}% of speech)."
    if percent < 7:
        return f"Moderate filler usage: {filler_count} instances ({percent}%). Try pausing instead."
    return f"High filler usage: {filler_count} instances ({percent}%). Practice silent pauses."
