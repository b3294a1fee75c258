"""

This module turns per-criterion scores into one goal-weighted session score.

NORMALIZATION APPROACH:
Each raw transcript feature is first converted to a penalty value [0, 1]:
- 0.0 = ideal (no penalty)
- 1.0 = maximum penalty
and a criterion score is 10 x (1 - penalty), so every criterion lives on the
same 0-10 scale regardless of the feature it measures. Two penalty shapes
cover all criteria:
- linear_penalty: grows with a rate until a saturation threshold
  (fillers, hesitations, hedges per 100 words)
- band_penalty: zero inside an ideal band, growing linearly to 1.0 at a hard
  floor/ceiling (speaking rate, sentence length)

RUBRIC AGGREGATION:
overall = sum(criterion.weight x criterion_score), clamped to [0, 10].
Weights come from the goal's ScoreRubric and always sum to 1.0, so the same
arithmetic applies whichever goal is active.
"""

from typing import Dict, Optional

from speechcoach.errors import ConfigError
from speechcoach.schemas import Goal, ScoreRubric, SessionMetrics, SessionScore

MIN_SCORE = 0.0
MAX_SCORE = 10.0

# Score every criterion takes when the transcript holds no speech
NO_SPEECH_FLOOR_SCORE = 1.0

# Decimal places of reported scores
SCORE_PRECISION = 2


def clamp_01(x: float) -> float:
    """
    Clamp a value to the range [0, 1].

    Example:
        >>> clamp_01(-0.5)
        0.0
        >>> clamp_01(0.7)
        0.7
        >>> clamp_01(1.5)
        1.0
    """
    return max(0.0, min(1.0, x))


def clamp_score(x: float) -> float:
    """Clamp a value to the score range [0, 10]."""
    return max(MIN_SCORE, min(MAX_SCORE, x))


def linear_penalty(value: float, saturation: float) -> float:
    """
    Penalty growing linearly from 0 at value 0 to 1 at saturation.

    Args:
        value: Non-negative feature value (e.g. fillers per 100 words)
        saturation: Value at which the penalty is maximal

    Returns:
        float: Penalty [0, 1]; negative values are not penalized

    Example:
        >>> linear_penalty(4.0, saturation=8.0)
        0.5
        >>> linear_penalty(12.0, saturation=8.0)
        1.0
    """
    if value <= 0 or saturation <= 0:
        return 0.0
    return clamp_01(value / saturation)


def band_penalty(
    value: float,
    ideal_min: float,
    ideal_max: float,
    floor: float,
    ceiling: float
) -> float:
    """
    Penalty that is zero inside [ideal_min, ideal_max].

    Below the band the penalty grows linearly to 1.0 at floor; above it, to
    1.0 at ceiling.

    Example:
        >>> band_penalty(150.0, 140.0, 160.0, floor=60.0, ceiling=240.0)
        0.0
        >>> band_penalty(100.0, 140.0, 160.0, floor=60.0, ceiling=240.0)
        0.5
        >>> band_penalty(250.0, 140.0, 160.0, floor=60.0, ceiling=240.0)
        1.0
    """
    if ideal_min <= value <= ideal_max:
        return 0.0

    if value < ideal_min:
        distance = ideal_min - value
        max_distance = ideal_min - floor
    else:
        distance = value - ideal_max
        max_distance = ceiling - ideal_max

    if max_distance <= 0:
        return 1.0
    return clamp_01(distance / max_distance)


def score_from_penalty(penalty: float) -> float:
    """Map a penalty [0, 1] to a criterion score [0, 10]."""
    return round(MAX_SCORE * (1.0 - clamp_01(penalty)), SCORE_PRECISION)


def score_session(
    goal: Goal,
    metrics: SessionMetrics,
    rubric: ScoreRubric,
    previous_score: Optional[float] = None
) -> SessionScore:
    """
    Compute the goal-weighted score of one session.

    Each rubric criterion reads its score from metrics.scores_by_criterion;
    overall = sum(weight x score), clamped to [0, 10] and rounded to 2
    decimals.

    When metrics.word_count is 0 every criterion takes NO_SPEECH_FLOOR_SCORE
    and the result is flagged no_speech_detected, so no improvement is
    reported for a session without speech.

    Args:
        goal: Goal selected for the session
        metrics: Output of compute_metrics()
        rubric: Rubric for the goal
        previous_score: Prior overall score, carried through unchanged

    Returns:
        SessionScore: Overall score and per-criterion breakdown

    Raises:
        ConfigError: If the rubric belongs to another goal, or a rubric
            criterion has no score in metrics

    Example:
        >>> score = score_session(Goal.FILLERS, metrics, rubrics[Goal.FILLERS])
        >>> 0.0 <= score.overall <= 10.0
        True
    """
    if rubric.goal != goal:
        raise ConfigError(
            f"Rubric for goal '{rubric.goal.value}' cannot score a '{goal.value}' session"
        )

    no_speech = metrics.word_count == 0
    breakdown: Dict[str, float] = {}

    for criterion in rubric.criteria:
        if no_speech:
            breakdown[criterion.name] = NO_SPEECH_FLOOR_SCORE
            continue

        if criterion.name not in metrics.scores_by_criterion:
            raise ConfigError(
                f"Criterion '{criterion.name}' of the {goal.value} rubric has no derivation rule"
            )
        breakdown[criterion.name] = round(
            clamp_score(metrics.scores_by_criterion[criterion.name]), SCORE_PRECISION
        )

    # Weighted sum of criterion scores
    total = sum(criterion.weight * breakdown[criterion.name] for criterion in rubric.criteria)
    overall = round(clamp_score(total), SCORE_PRECISION)

    return SessionScore(
        goal=goal,
        overall=overall,
        criterion_breakdown=breakdown,
        previous_score=previous_score,
        no_speech_detected=no_speech
    )


def generate_score_explanation(score: SessionScore, rubric: ScoreRubric) -> str:
    """
    Generate a human-readable breakdown of a session score.

    Example:
        >>> print(generate_score_explanation(score, rubric))
        Score: 7.4/10 (fillers) | filler_control: 6.3 x 0.70 | fluency: 10.0 x 0.30
    """
    if score.no_speech_detected:
        return f"No speech detected ({score.goal.value}) | record a new response to get a score"

    parts = [f"Score: {score.overall}/10 ({score.goal.value})"]
    for criterion in rubric.criteria:
        value = score.criterion_breakdown.get(criterion.name, MIN_SCORE)
        parts.append(f"{criterion.name}: {round(value, 1)} x {criterion.weight:.2f}")

    if score.improvement is not None:
        sign = "+" if score.improvement >= 0 else ""
        parts.append(f"Change: {sign}{score.improvement}")

    return " | ".join(parts)
