"""
Derivation rules for rubric criteria.

Every criterion a rubric may name has one rule here that maps transcript
features to a score in [0, 10]. Rubrics only choose criteria and weights; the
arithmetic of each criterion is shared by all goals.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from speechcoach.scoring import (
    band_penalty,
    clamp_01,
    linear_penalty,
    score_from_penalty,
)

# Filler rate (per 100 words) at which filler_control reaches 0
MAX_FILLERS_PER_100 = 8.0

# Speaking rate thresholds (WPM) for pacing
IDEAL_WPM_MIN = 140.0
IDEAL_WPM_MAX = 160.0
VERY_SLOW_WPM = 60.0
VERY_FAST_WPM = 240.0
UNKNOWN_PACING_SCORE = 5.0  # duration not supplied

# Hesitations / hedges (per 100 words) at which fluency / assertiveness reach 0
MAX_HESITATIONS_PER_100 = 6.0
MAX_HEDGES_PER_100 = 6.0

# Average sentence length (words) thresholds for sentence_structure
IDEAL_SENTENCE_MIN = 8.0
IDEAL_SENTENCE_MAX = 20.0
VERY_SHORT_SENTENCE = 3.0
VERY_LONG_SENTENCE = 40.0

# Type-token ratio mapped linearly onto the vocabulary score
LOW_TYPE_TOKEN_RATIO = 0.30
HIGH_TYPE_TOKEN_RATIO = 0.60

# Word count of a fully developed response
TARGET_RESPONSE_WORDS = 120


@dataclass(frozen=True)
class TranscriptFeatures:
    """Raw features every criterion rule reads from."""
    word_count: int
    filler_count: int
    words_per_minute: Optional[float]
    sentence_count: int
    avg_sentence_length: float
    hesitation_count: int
    hedge_count: int
    type_token_ratio: float

    def per_100_words(self, count: int) -> float:
        if self.word_count <= 0:
            return 0.0
        return (count / self.word_count) * 100.0


CriterionRule = Callable[[TranscriptFeatures], float]


def filler_control(features: TranscriptFeatures) -> float:
    """10 with no fillers, 0 at MAX_FILLERS_PER_100 and beyond."""
    rate = features.per_100_words(features.filler_count)
    return score_from_penalty(linear_penalty(rate, MAX_FILLERS_PER_100))


def pacing(features: TranscriptFeatures) -> float:
    """Proximity of the speaking rate to the ideal WPM band."""
    if features.words_per_minute is None:
        return UNKNOWN_PACING_SCORE
    penalty = band_penalty(
        features.words_per_minute,
        IDEAL_WPM_MIN,
        IDEAL_WPM_MAX,
        floor=VERY_SLOW_WPM,
        ceiling=VERY_FAST_WPM
    )
    return score_from_penalty(penalty)


def fluency(features: TranscriptFeatures) -> float:
    rate = features.per_100_words(features.hesitation_count)
    return score_from_penalty(linear_penalty(rate, MAX_HESITATIONS_PER_100))


def sentence_structure(features: TranscriptFeatures) -> float:
    if features.sentence_count == 0:
        return score_from_penalty(1.0)
    penalty = band_penalty(
        features.avg_sentence_length,
        IDEAL_SENTENCE_MIN,
        IDEAL_SENTENCE_MAX,
        floor=VERY_SHORT_SENTENCE,
        ceiling=VERY_LONG_SENTENCE
    )
    return score_from_penalty(penalty)


def vocabulary(features: TranscriptFeatures) -> float:
    span = HIGH_TYPE_TOKEN_RATIO - LOW_TYPE_TOKEN_RATIO
    variety = clamp_01((features.type_token_ratio - LOW_TYPE_TOKEN_RATIO) / span)
    return score_from_penalty(1.0 - variety)


def assertiveness(features: TranscriptFeatures) -> float:
    rate = features.per_100_words(features.hedge_count)
    return score_from_penalty(linear_penalty(rate, MAX_HEDGES_PER_100))


def elaboration(features: TranscriptFeatures) -> float:
    developed = clamp_01(features.word_count / TARGET_RESPONSE_WORDS)
    return score_from_penalty(1.0 - developed)


CRITERION_RULES: Mapping[str, CriterionRule] = MappingProxyType({
    "filler_control": filler_control,
    "pacing": pacing,
    "fluency": fluency,
    "sentence_structure": sentence_structure,
    "vocabulary": vocabulary,
    "assertiveness": assertiveness,
    "elaboration": elaboration,
})


def derive_criterion_scores(features: TranscriptFeatures) -> Dict[str, float]:
    """Score every registered criterion; each value lies in [0, 10]."""
    return {name: rule(features) for name, rule in CRITERION_RULES.items()}
