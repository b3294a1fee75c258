"""
Pydantic schemas for the transcript analysis engine.

This module defines the value objects passed through the pipeline
(transcript -> occurrences -> metrics -> score -> weekly report) and the
request/response models of the HTTP surface. The pipeline models are frozen:
once produced they are never mutated.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, computed_field, model_validator

# Allowed deviation of a rubric's weight sum from 1.0
WEIGHT_SUM_TOLERANCE = 1e-6


class Goal(str, Enum):
    """Coaching objective selected for a session; picks the rubric."""
    CLARITY = "clarity"
    CONFIDENCE = "confidence"
    PERSUASION = "persuasion"
    FILLERS = "fillers"
    QUICK_THINKING = "quick_thinking"


class FillerWord(BaseModel):
    """
    One entry of the filler vocabulary.

    Attributes:
        id: Stable identifier derived from the surface form (e.g. 'you_know')
        surface_form: Literal text to detect (e.g. 'you know')
        word_count: Number of words in the surface form (1-3)
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Canonical filler identifier", examples=["you_know"])
    surface_form: str = Field(..., description="Literal filler text", examples=["you know"])
    word_count: int = Field(..., ge=1, le=3, description="Words in the surface form", examples=[2])


class FillerOccurrence(BaseModel):
    """
    A detected filler in a transcript.

    Offsets are UTF-16 code-unit indices into the original transcript, the
    indexing used by the highlighting UI. end_offset is exclusive.

    Attributes:
        filler_id: Canonical id of the matched vocabulary entry
        start_offset: Start index (inclusive)
        end_offset: End index (exclusive)
        matched_text: Transcript text as spoken, original casing preserved
    """
    model_config = ConfigDict(frozen=True)

    filler_id: str = Field(..., examples=["you_know"])
    start_offset: int = Field(..., ge=0, examples=[18])
    end_offset: int = Field(..., ge=0, examples=[26])
    matched_text: str = Field(..., examples=["you know"])


class RubricCriterion(BaseModel):
    """A named, weighted scoring criterion of a rubric."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, examples=["filler_control"])
    description: str = Field(default="", examples=["Keeps filler words to a minimum"])
    weight: float = Field(..., ge=0.0, le=1.0, examples=[0.7])


class ScoreRubric(BaseModel):
    """
    Weighted set of scoring criteria tied to one goal.

    Invariants: at least one criterion, non-negative weights summing to 1.0
    (within WEIGHT_SUM_TOLERANCE), unique criterion names.

    Attributes:
        goal: Goal this rubric scores
        criteria: Weighted criteria
        focus_areas: Short coaching themes shown alongside the score
    """
    model_config = ConfigDict(frozen=True)

    goal: Goal
    criteria: Tuple[RubricCriterion, ...] = Field(..., min_length=1)
    focus_areas: Tuple[str, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _check_weights(self) -> "ScoreRubric":
        names = [criterion.name for criterion in self.criteria]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate criterion names in {self.goal.value} rubric: {names}")

        total = sum(criterion.weight for criterion in self.criteria)
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(
                f"Criterion weights of {self.goal.value} rubric sum to {total}, expected 1.0"
            )
        return self

    def criterion_names(self) -> List[str]:
        return [criterion.name for criterion in self.criteria]


class SessionMetrics(BaseModel):
    """
    Quantitative features of one analyzed transcript.

    Attributes:
        filler_count: Number of filler occurrences
        filler_rate: Fillers per whitespace token, in [0, 1]
        word_count: Whitespace-delimited tokens
        duration_sec: Recording duration, None when not supplied
        words_per_minute: Speaking rate, None when duration is unknown
        filler_breakdown: Occurrences per filler id
        sentence_count: Sentences split on terminal punctuation
        avg_sentence_length: Mean words per sentence
        hesitation_count: Pause markers plus immediate word repetitions
        hedge_count: Hedging phrases ('maybe', 'I think', ...)
        scores_by_criterion: Every registered criterion scored in [0, 10]
    """
    model_config = ConfigDict(frozen=True)

    filler_count: int = Field(..., ge=0, examples=[3])
    filler_rate: float = Field(..., ge=0.0, le=1.0, examples=[0.33])
    word_count: int = Field(..., ge=0, examples=[9])
    duration_sec: Optional[float] = Field(None, ge=0.0, examples=[4.5])
    words_per_minute: Optional[float] = Field(None, ge=0.0, examples=[120.0])
    filler_breakdown: Dict[str, int] = Field(default_factory=dict, examples=[{"um": 1, "like": 1}])
    sentence_count: int = Field(default=0, ge=0)
    avg_sentence_length: float = Field(default=0.0, ge=0.0)
    hesitation_count: int = Field(default=0, ge=0)
    hedge_count: int = Field(default=0, ge=0)
    scores_by_criterion: Dict[str, float] = Field(default_factory=dict)


class SessionScore(BaseModel):
    """
    Goal-weighted score of one session.

    When no speech was detected every criterion sits at the floor score and
    no_speech_detected is set; callers must handle that case explicitly
    instead of presenting the floor as real performance.

    Attributes:
        goal: Goal whose rubric produced the score
        overall: Weighted score in [0, 10]
        criterion_breakdown: Score of each rubric criterion
        previous_score: Caller-supplied prior score, carried through unchanged
        no_speech_detected: True when the transcript had no words
    """
    model_config = ConfigDict(frozen=True)

    goal: Goal
    overall: float = Field(..., ge=0.0, le=10.0, examples=[7.4])
    criterion_breakdown: Dict[str, float] = Field(default_factory=dict)
    previous_score: Optional[float] = Field(None, ge=0.0, le=10.0)
    no_speech_detected: bool = False

    @computed_field  # type: ignore[misc]
    @property
    def improvement(self) -> Optional[float]:
        """Change against previous_score; None without a baseline or speech."""
        if self.previous_score is None or self.no_speech_detected:
            return None
        return round(self.overall - self.previous_score, 2)


class TimestampedScore(BaseModel):
    """A persisted session score with the timezone-aware time it was recorded."""
    model_config = ConfigDict(frozen=True)

    score: SessionScore
    recorded_at: AwareDatetime


class WeeklyReport(BaseModel):
    """
    Rolling 7-day summary for the progress report.

    Attributes:
        sessions_this_week: Sessions recorded in the trailing 7 days
        average_score_this_week: Mean overall score of sessions that detected
            speech (no-speech sessions are excluded), 0.0 when undefined
        insights: Ordered, capped list of human-readable insights
    """
    model_config = ConfigDict(frozen=True)

    sessions_this_week: int = Field(..., ge=0, examples=[3])
    average_score_this_week: float = Field(..., ge=0.0, le=10.0, examples=[7.0])
    insights: Tuple[str, ...] = Field(default_factory=tuple)


class SessionAnalysis(BaseModel):
    """Everything produced for one transcript: detect -> compute -> score."""
    model_config = ConfigDict(frozen=True)

    occurrences: Tuple[FillerOccurrence, ...]
    metrics: SessionMetrics
    score: SessionScore


class AnalyzeRequest(BaseModel):
    """Request body of POST /analyze."""
    transcript: str = Field(
        ...,
        max_length=50000,
        description="Transcript text from the transcription service",
        examples=["Um, I was like, you know, kind of nervous."]
    )
    goal: Goal = Field(..., examples=["fillers"])
    duration_sec: Optional[float] = Field(
        None,
        ge=0.0,
        description="Recording duration in seconds; enables words-per-minute",
        examples=[4.5]
    )
    previous_score: Optional[float] = Field(
        None,
        ge=0.0,
        le=10.0,
        description="Overall score of the user's previous session",
        examples=[6.2]
    )


class AnalyzeResponse(BaseModel):
    """
    Response of POST /analyze.

    Attributes:
        occurrences: Filler occurrences for transcript highlighting
        metrics: Quantitative transcript features
        score: Goal-weighted score
        explanation: One-line breakdown of the score
        pacing_feedback: Speaking-rate feedback, None when duration unknown
        filler_feedback: Filler usage feedback
        vocabulary_version: Version of the filler vocabulary used
        generated_at: Timestamp when the analysis was produced
    """
    occurrences: List[FillerOccurrence] = Field(default_factory=list)
    metrics: SessionMetrics
    score: SessionScore
    explanation: str = Field(
        ...,
        examples=["Score: 7.4/10 (fillers) | filler_control: 6.3 x 0.70 | fluency: 10.0 x 0.30"]
    )
    pacing_feedback: Optional[str] = None
    filler_feedback: str
    vocabulary_version: str
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class WeeklyReportRequest(BaseModel):
    """Request body of POST /weekly-report."""
    sessions: List[TimestampedScore] = Field(default_factory=list)
    now: Optional[AwareDatetime] = Field(
        None,
        description="Anchor of the 7-day window; defaults to the current UTC time"
    )


class HealthResponse(BaseModel):
    """
    Health check response.

    Attributes:
        status: Service health status
        vocabulary_version: Filler vocabulary version in use
        timestamp: Current server timestamp
    """
    status: str = Field(default="ok", examples=["ok"])
    vocabulary_version: str = Field(..., examples=["1.0.0"])
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
