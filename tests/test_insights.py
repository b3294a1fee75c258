"""
Unit tests for the weekly progress report.

Run with: pytest tests/test_insights.py -v
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from speechcoach.insights import (
    MAX_WEEKLY_INSIGHTS,
    aggregate_weekly,
    criterion_averages,
    improvement_insights,
    practice_streak,
)
from speechcoach.schemas import Goal, SessionScore, TimestampedScore

NOW = datetime(2026, 3, 12, 18, 0, tzinfo=timezone.utc)


def make_score(overall, breakdown=None, no_speech=False, goal=Goal.FILLERS):
    if breakdown is None:
        breakdown = {"filler_control": overall, "fluency": overall}
    return SessionScore(
        goal=goal,
        overall=overall,
        criterion_breakdown=breakdown,
        no_speech_detected=no_speech
    )


def record(overall, days_ago, **kwargs):
    return TimestampedScore(score=make_score(overall, **kwargs), recorded_at=NOW - timedelta(days=days_ago))


class TestWeeklyAggregation:
    """Test session count and average of the trailing week."""

    def test_three_sessions_average(self):
        """Scores 6, 8, 7 in the window average to 7.0."""
        records = [record(6.0, 1), record(8.0, 2), record(7.0, 3)]
        report = aggregate_weekly(records, NOW)

        assert report.sessions_this_week == 3
        assert report.average_score_this_week == 7.0

    def test_no_sessions(self):
        """An empty week reports zero and says so."""
        report = aggregate_weekly([], NOW)

        assert report.sessions_this_week == 0
        assert report.average_score_this_week == 0.0
        assert report.insights[0].startswith("No practice sessions in the last 7 days")
        assert report.insights[1].startswith("Not enough data for a weekly average yet")

    def test_window_boundaries(self):
        """Exactly 7 days ago is outside; exactly now is inside; the future is ignored."""
        records = [
            TimestampedScore(score=make_score(4.0), recorded_at=NOW),
            TimestampedScore(score=make_score(10.0), recorded_at=NOW - timedelta(days=7)),
            TimestampedScore(score=make_score(10.0), recorded_at=NOW + timedelta(minutes=1)),
        ]
        report = aggregate_weekly(records, NOW)

        assert report.sessions_this_week == 1
        assert report.average_score_this_week == 4.0

    def test_input_order_irrelevant(self):
        """Records may arrive in any order."""
        records = [record(6.0, 1), record(8.0, 2), record(7.0, 3)]

        assert aggregate_weekly(records, NOW) == aggregate_weekly(list(reversed(records)), NOW)

    def test_no_speech_counted_but_not_averaged(self):
        """Floor scores of empty sessions do not drag the average down."""
        records = [record(7.0, 1), record(1.0, 2, no_speech=True)]
        report = aggregate_weekly(records, NOW)

        assert report.sessions_this_week == 2
        assert report.average_score_this_week == 7.0

    def test_only_no_speech_sessions(self):
        """Sessions without speech give no average."""
        report = aggregate_weekly([record(1.0, 1, no_speech=True)], NOW)

        assert report.sessions_this_week == 1
        assert report.average_score_this_week == 0.0
        assert report.insights[0].startswith("Not enough data")


class TestWeeklyInsights:
    """Test rule-based insight generation."""

    def test_trend_against_previous_week(self):
        """A two-point rise over last week is reported."""
        records = [record(7.0, 1), record(5.0, 9)]
        report = aggregate_weekly(records, NOW)

        assert report.insights[0] == "Your average score rose by 2.0 points compared with the previous week."

    def test_downward_and_steady_trends(self):
        """Drops and small changes are phrased accordingly."""
        dropped = aggregate_weekly([record(5.0, 1), record(8.0, 10)], NOW)
        steady = aggregate_weekly([record(7.2, 1), record(7.0, 10)], NOW)

        assert "dropped by 3.0 points" in dropped.insights[0]
        assert "held steady" in steady.insights[0]

    def test_weakest_and_strongest_criteria(self):
        """The lowest and highest criterion averages are called out."""
        records = [
            record(7.0, 1, breakdown={"filler_control": 4.0, "fluency": 9.0}),
            record(7.0, 2, breakdown={"filler_control": 6.0, "fluency": 9.0}),
        ]
        report = aggregate_weekly(records, NOW)

        assert "Focus area: Filler control averaged 5.0/10 this week, your lowest criterion." in report.insights
        assert "Strength: Fluency led the week at 9.0/10." in report.insights

    def test_frequency_insight(self):
        """Five sessions in a week earn the practice frequency insight."""
        records = [record(7.0, 1 + day * 0.1) for day in range(5)]
        report = aggregate_weekly(records, NOW, max_insights=10)

        assert any(i.startswith("Excellent practice frequency!") for i in report.insights)

    def test_streak_insight(self):
        """Three consecutive days earn the streak insight."""
        records = [record(7.0, 0), record(7.0, 1), record(7.0, 2)]
        report = aggregate_weekly(records, NOW)

        assert "You're on a 3-day streak! Consistency is key to improvement." in report.insights

    def test_insights_are_capped_and_ordered(self):
        """At most max_insights are returned, highest priority first."""
        records = [record(8.0, day, breakdown={"filler_control": 6.0, "fluency": 10.0}) for day in range(6)]
        records.append(record(5.0, 9))
        report = aggregate_weekly(records, NOW)

        assert len(report.insights) == MAX_WEEKLY_INSIGHTS
        assert report.insights[0].startswith("Your average score rose")
        assert report.insights[1].startswith("Focus area: Filler control")
        assert report.insights[2].startswith("Strength: Fluency")
        assert report.insights[3].startswith("Excellent practice frequency!")

    @pytest.mark.parametrize("limit", [1, 2])
    def test_custom_cap(self, limit):
        """The cap is configurable."""
        report = aggregate_weekly([], NOW, max_insights=limit)

        assert len(report.insights) == limit


def improving_history():
    latest = [
        record(7.0, day, breakdown={"filler_control": 6.0, "fluency": 8.0})
        for day in range(5)
    ]
    earlier = [
        record(6.0, day, breakdown={"filler_control": 4.0, "fluency": 8.0})
        for day in range(20, 25)
    ]
    return latest + earlier


class TestImprovementInsights:
    """Test improvements across the last ten sessions."""

    def test_criterion_improvement_and_personal_best(self):
        """A 50% rise in one criterion and a best-ever block are reported."""
        assert improvement_insights(improving_history(), NOW) == [
            "50% improvement in Filler control over your last 10 sessions!",
            "New personal best average score!",
        ]

    def test_small_changes_not_reported(self):
        """Flat history yields no improvement insights."""
        records = [record(7.0, day) for day in range(10)]

        assert improvement_insights(records, NOW) == []

    def test_requires_two_full_blocks(self):
        """Nine spoken sessions are not enough to compare."""
        assert improvement_insights(improving_history()[:9], NOW) == []

    def test_no_speech_sessions_ignored(self):
        """Sessions without speech do not fill the comparison blocks."""
        records = improving_history()[:9] + [record(1.0, 30, no_speech=True)]

        assert improvement_insights(records, NOW) == []

    def test_future_sessions_ignored(self):
        """Only sessions up to now are compared."""
        records = improving_history()[1:] + [record(9.0, -1)]

        assert improvement_insights(records, NOW) == []

    def test_improvements_follow_criterion_insights(self):
        """Improvements rank after strengths and before practice habits."""
        report = aggregate_weekly(improving_history(), NOW, max_insights=10)

        assert list(report.insights) == [
            "Focus area: Filler control averaged 6.0/10 this week, your lowest criterion.",
            "Strength: Fluency led the week at 8.0/10.",
            "50% improvement in Filler control over your last 10 sessions!",
            "New personal best average score!",
            "Excellent practice frequency! You're building strong communication habits.",
            "You're on a 5-day streak! Consistency is key to improvement.",
        ]


class TestConsistencyInsight:
    """Test the nudge for users whose practice has lapsed."""

    NUDGE = "Try to practice more consistently. Even 90 seconds daily makes a difference!"

    def test_lapsed_user_is_nudged(self):
        """One session this week after a longer history earns the nudge."""
        records = [record(7.0, day) for day in range(10, 16)] + [record(7.0, 1)]
        report = aggregate_weekly(records, NOW, max_insights=10)

        assert self.NUDGE in report.insights

    def test_short_history_not_nudged(self):
        """New users are not told to practice more."""
        records = [record(7.0, day) for day in range(10, 15)]
        report = aggregate_weekly(records, NOW, max_insights=10)

        assert self.NUDGE not in report.insights

    def test_regular_practice_not_nudged(self):
        """Two sessions this week are enough."""
        records = [record(7.0, day) for day in range(10, 16)] + [record(7.0, 1), record(7.0, 2)]
        report = aggregate_weekly(records, NOW, max_insights=10)

        assert self.NUDGE not in report.insights


class TestPracticeStreak:
    """Test consecutive practice day counting."""

    def test_consecutive_days_ending_today(self):
        """Today, yesterday and the day before make three."""
        records = [record(7.0, 0), record(7.0, 1), record(7.0, 2)]

        assert practice_streak(records, NOW) == 3

    def test_gap_breaks_streak(self):
        """A missing day ends the streak."""
        records = [record(7.0, 0), record(7.0, 1), record(7.0, 3)]

        assert practice_streak(records, NOW) == 2

    def test_streak_survives_until_end_of_next_day(self):
        """Practicing yesterday keeps the streak alive today."""
        records = [record(7.0, 1), record(7.0, 2)]

        assert practice_streak(records, NOW) == 2

    def test_multiple_sessions_one_day(self):
        """Several sessions on one day count once."""
        records = [
            TimestampedScore(score=make_score(7.0), recorded_at=NOW - timedelta(hours=1)),
            TimestampedScore(score=make_score(7.0), recorded_at=NOW - timedelta(hours=2)),
        ]

        assert practice_streak(records, NOW) == 1

    def test_stale_history_has_no_streak(self):
        """The last session two days ago leaves no streak."""
        assert practice_streak([record(7.0, 2), record(7.0, 3)], NOW) == 0
        assert practice_streak([], NOW) == 0


class TestCriterionAverages:
    """Test criterion averaging across goals."""

    def test_criteria_averaged_over_sessions_that_use_them(self):
        """A criterion is averaged only where the rubric scored it."""
        scores = [
            make_score(6.0, breakdown={"pacing": 6.0, "fluency": 4.0}, goal=Goal.QUICK_THINKING),
            make_score(8.0, breakdown={"pacing": 8.0}, goal=Goal.CONFIDENCE),
        ]

        assert criterion_averages(scores) == {"pacing": 7.0, "fluency": 4.0}
