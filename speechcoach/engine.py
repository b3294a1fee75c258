"""
Analysis engine: one object wiring vocabulary, matcher and rubrics together.

The engine receives its configuration explicitly instead of reaching for
globals, so tests and services can run several differently configured
engines side by side. All state is built in __init__ and never mutated
afterwards; one engine can serve concurrent requests without locking.
"""

from datetime import datetime
from typing import Mapping, Optional, Sequence

from speechcoach.config import Settings
from speechcoach.insights import MAX_WEEKLY_INSIGHTS, aggregate_weekly
from speechcoach.logger import get_logger
from speechcoach.metrics import compute_metrics
from speechcoach.patterns import compile_vocabulary
from speechcoach.rubrics import DEFAULT_RUBRICS, load_rubrics, validate_rubric_set
from speechcoach.schemas import (
    FillerOccurrence,
    Goal,
    ScoreRubric,
    SessionAnalysis,
    TimestampedScore,
    WeeklyReport,
)
from speechcoach.scoring import score_session
from speechcoach.text_features import detect_fillers
from speechcoach.vocabulary import DEFAULT_VOCABULARY, FillerVocabulary, load_vocabulary

logger = get_logger(__name__)


class AnalysisEngine:
    """
    Transcript analysis pipeline: detect -> compute -> score.

    Args:
        vocabulary: Filler vocabulary; compiled once here
        rubrics: One rubric per goal
        max_insights: Cap on weekly report insights

    Raises:
        ConfigError: If the vocabulary or rubric set is invalid
    """

    def __init__(
        self,
        vocabulary: FillerVocabulary = DEFAULT_VOCABULARY,
        rubrics: Mapping[Goal, ScoreRubric] = DEFAULT_RUBRICS,
        max_insights: int = MAX_WEEKLY_INSIGHTS
    ):
        self.vocabulary = vocabulary
        self.matcher = compile_vocabulary(vocabulary.entries)
        self.rubrics = validate_rubric_set(rubrics)
        self.max_insights = max_insights

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnalysisEngine":
        vocabulary = DEFAULT_VOCABULARY
        if settings.vocabulary_path:
            vocabulary = load_vocabulary(settings.vocabulary_path)

        rubrics = DEFAULT_RUBRICS
        if settings.rubrics_path:
            rubrics = load_rubrics(settings.rubrics_path)

        engine = cls(vocabulary=vocabulary, rubrics=rubrics, max_insights=settings.max_insights)
        logger.info(
            f"Analysis engine ready: vocabulary v{vocabulary.version} "
            f"({len(vocabulary)} fillers), rubrics from "
            f"{settings.rubrics_path or 'built-in defaults'}"
        )
        return engine

    def rubric_for(self, goal: Goal) -> ScoreRubric:
        return self.rubrics[goal]

    def detect(self, transcript: str) -> Sequence[FillerOccurrence]:
        return detect_fillers(transcript, self.matcher)

    def analyze(
        self,
        transcript: str,
        goal: Goal,
        duration_sec: Optional[float] = None,
        previous_score: Optional[float] = None
    ) -> SessionAnalysis:
        """
        Run the full pipeline on one transcript.

        Args:
            transcript: Transcript text from the transcription service
            goal: Goal selected for the session
            duration_sec: Recording duration, enables words-per-minute
            previous_score: Prior overall score for improvement display

        Returns:
            SessionAnalysis: Occurrences, metrics and score of the session
        """
        occurrences = self.detect(transcript)
        metrics = compute_metrics(transcript, occurrences, duration_sec)
        score = score_session(goal, metrics, self.rubric_for(goal), previous_score)

        return SessionAnalysis(occurrences=tuple(occurrences), metrics=metrics, score=score)

    def weekly_report(self, records: Sequence[TimestampedScore], now: datetime) -> WeeklyReport:
        return aggregate_weekly(records, now, max_insights=self.max_insights)
