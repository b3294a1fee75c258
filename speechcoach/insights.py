"""
Weekly progress report.

aggregate_weekly() summarizes the scored sessions of the trailing 7 days and
generates a short, rule-based list of insights for the progress screen. The
caller passes `now` explicitly; nothing here reads the clock.
"""

from datetime import date, datetime, timedelta
from statistics import mean
from typing import Dict, List, Optional, Sequence

from speechcoach.schemas import SessionScore, TimestampedScore, WeeklyReport

WEEK = timedelta(days=7)

# Upper bound on insights shown in the weekly report
MAX_WEEKLY_INSIGHTS = 4

# Change of weekly mean (points) reported as a trend
TREND_THRESHOLD = 0.5

FREQUENT_PRACTICE_SESSIONS = 5
STREAK_INSIGHT_DAYS = 3

# Consistency nudge: under this many sessions this week with a longer history
CONSISTENCY_MIN_RECENT_SESSIONS = 2
CONSISTENCY_MIN_HISTORY_SESSIONS = 5

# Latest sessions compared with the block of sessions before them
IMPROVEMENT_BLOCK_SESSIONS = 5
IMPROVEMENT_THRESHOLD_PERCENT = 20


def _in_window(record: TimestampedScore, start: datetime, end: datetime) -> bool:
    return start < record.recorded_at <= end


def _local_date(moment: datetime, now: datetime) -> date:
    if moment.tzinfo is not None and now.tzinfo is not None:
        return moment.astimezone(now.tzinfo).date()
    return moment.date()


def _label(criterion: str) -> str:
    return criterion.replace("_", " ").capitalize()


def _mean_overall(scores: Sequence[SessionScore]) -> Optional[float]:
    if not scores:
        return None
    return mean(score.overall for score in scores)


def criterion_averages(scores: Sequence[SessionScore]) -> Dict[str, float]:
    """
    Mean score of each criterion over the sessions that include it.

    Sessions scored under different goals carry different criteria; a
    criterion is averaged only over the sessions whose rubric used it.
    """
    values: Dict[str, List[float]] = {}
    for score in scores:
        for name, value in score.criterion_breakdown.items():
            values.setdefault(name, []).append(value)
    return {name: round(mean(vals), 2) for name, vals in values.items()}


def practice_streak(records: Sequence[TimestampedScore], now: datetime) -> int:
    """
    Consecutive practice days ending today or yesterday.

    A streak stays alive through the day after the last session, so a user
    who practiced yesterday but not yet today keeps it.

    Example:
        >>> practice_streak(records_on_last_three_days, now)
        3
    """
    days = {_local_date(r.recorded_at, now) for r in records if r.recorded_at <= now}
    today = _local_date(now, now)

    if today in days:
        day = today
    elif today - timedelta(days=1) in days:
        day = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def improvement_insights(records: Sequence[TimestampedScore], now: datetime) -> List[str]:
    """
    Criteria that improved markedly over the latest sessions.

    The last IMPROVEMENT_BLOCK_SESSIONS spoken sessions are compared with
    the block before them; a criterion whose mean rose by at least
    IMPROVEMENT_THRESHOLD_PERCENT is reported, followed by a personal-best
    message when the latest block beats the all-time mean. Both blocks
    must be complete, otherwise nothing is reported.

    Example:
        >>> improvement_insights(ten_sessions, now)
        ['25% improvement in Filler control over your last 10 sessions!', 'New personal best average score!']
    """
    history = sorted(
        (r for r in records if r.recorded_at <= now and not r.score.no_speech_detected),
        key=lambda r: r.recorded_at,
        reverse=True
    )
    latest = [r.score for r in history[:IMPROVEMENT_BLOCK_SESSIONS]]
    before = [r.score for r in history[IMPROVEMENT_BLOCK_SESSIONS:2 * IMPROVEMENT_BLOCK_SESSIONS]]
    if len(before) < IMPROVEMENT_BLOCK_SESSIONS:
        return []

    latest_averages = criterion_averages(latest)
    before_averages = criterion_averages(before)
    window = 2 * IMPROVEMENT_BLOCK_SESSIONS

    messages: List[str] = []
    for name in sorted(latest_averages):
        baseline = before_averages.get(name)
        if not baseline:
            continue
        change = round((latest_averages[name] - baseline) / baseline * 100)
        if change >= IMPROVEMENT_THRESHOLD_PERCENT:
            messages.append(f"{change}% improvement in {_label(name)} over your last {window} sessions!")

    if _mean_overall(latest) > _mean_overall([r.score for r in history]):
        messages.append("New personal best average score!")

    return messages


def _trend_insight(current_mean: float, prior_mean: float) -> str:
    delta = current_mean - prior_mean
    if delta >= TREND_THRESHOLD:
        return f"Your average score rose by {delta:.1f} points compared with the previous week."
    if delta <= -TREND_THRESHOLD:
        return f"Your average score dropped by {abs(delta):.1f} points compared with the previous week."
    return "Your average score held steady compared with the previous week."


def aggregate_weekly(
    records: Sequence[TimestampedScore],
    now: datetime,
    max_insights: int = MAX_WEEKLY_INSIGHTS
) -> WeeklyReport:
    """
    Build the weekly report for the 7 days ending at `now`.

    Sessions flagged no_speech_detected count towards sessions_this_week but
    not towards the average or criterion insights, since their floor score
    says nothing about performance.

    Insights come in priority order before the cap is applied: missing
    sessions or data, trend against the prior week, weakest and strongest
    criterion, improvements over the last sessions, practice frequency or
    a consistency nudge, practice streak.

    Args:
        records: Scored sessions with their timestamps, any order
        now: End of the reporting window
        max_insights: Maximum number of insights returned

    Returns:
        WeeklyReport: Session count, average score and ordered insights

    Example:
        >>> report = aggregate_weekly(records, now)
        >>> report.sessions_this_week, report.average_score_this_week
        (3, 7.0)
    """
    current = [r.score for r in records if _in_window(r, now - WEEK, now)]
    prior = [r.score for r in records if _in_window(r, now - 2 * WEEK, now - WEEK)]

    spoken = [score for score in current if not score.no_speech_detected]
    prior_spoken = [score for score in prior if not score.no_speech_detected]

    current_mean = _mean_overall(spoken)
    prior_mean = _mean_overall(prior_spoken)

    insights: List[str] = []

    if not current:
        insights.append("No practice sessions in the last 7 days. A short session today restarts your progress.")

    if current_mean is None:
        insights.append("Not enough data for a weekly average yet. Complete a spoken session to see your score.")
    else:
        if prior_mean is not None:
            insights.append(_trend_insight(current_mean, prior_mean))

        averages = criterion_averages(spoken)
        if averages:
            weakest, weakest_value = min(averages.items(), key=lambda item: (item[1], item[0]))
            insights.append(
                f"Focus area: {_label(weakest)} averaged {weakest_value:.1f}/10 this week, "
                f"your lowest criterion."
            )
            strongest, strongest_value = min(averages.items(), key=lambda item: (-item[1], item[0]))
            if strongest != weakest:
                insights.append(f"Strength: {_label(strongest)} led the week at {strongest_value:.1f}/10.")

    insights.extend(improvement_insights(records, now))

    if len(current) >= FREQUENT_PRACTICE_SESSIONS:
        insights.append("Excellent practice frequency! You're building strong communication habits.")
    elif (
        len(current) < CONSISTENCY_MIN_RECENT_SESSIONS
        and sum(1 for r in records if r.recorded_at <= now) > CONSISTENCY_MIN_HISTORY_SESSIONS
    ):
        insights.append("Try to practice more consistently. Even 90 seconds daily makes a difference!")

    streak = practice_streak(records, now)
    if streak >= STREAK_INSIGHT_DAYS:
        insights.append(f"You're on a {streak}-day streak! Consistency is key to improvement.")

    return WeeklyReport(
        sessions_this_week=len(current),
        average_score_this_week=round(current_mean, 2) if current_mean is not None else 0.0,
        insights=tuple(insights[:max(max_insights, 0)])
    )
