"""
FastAPI application for the speech-coaching analysis engine.

This module provides REST API endpoints for:
- Health check
- Transcript analysis (filler detection + metrics + goal-weighted score)
- Weekly progress report
- Filler vocabulary export and rubric lookup

Transcription happens upstream; this service only receives text.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, AsyncIterator, Dict

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import PlainTextResponse

from speechcoach.config import get_settings
from speechcoach.engine import AnalysisEngine
from speechcoach.errors import ConfigError
from speechcoach.logger import configure_logging, get_logger
from speechcoach.metrics import filler_feedback, pacing_feedback
from speechcoach.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    Goal,
    HealthResponse,
    ScoreRubric,
    WeeklyReport,
    WeeklyReportRequest,
)
from speechcoach.scoring import generate_score_explanation

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_engine() -> AnalysisEngine:
    """
    Build the process-wide engine once.

    Raises ConfigError on a bad vocabulary or rubric file, which stops the
    service at startup.
    """
    return AnalysisEngine.from_settings(get_settings())


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging(get_settings().log_level)
    get_engine()
    yield


app = FastAPI(
    title="Speech Coach Scoring Engine",
    description="Filler detection, goal-weighted scoring and weekly insights for spoken responses",
    version="1.0.0",
    lifespan=lifespan
)


@app.get("/health", response_model=HealthResponse)
async def health_check(engine: AnalysisEngine = Depends(get_engine)) -> HealthResponse:
    """
    Health check endpoint to verify API is running.

    Returns:
        HealthResponse: Status and the filler vocabulary version in use
    """
    return HealthResponse(vocabulary_version=engine.vocabulary.version)


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze_transcript(
    request: AnalyzeRequest,
    engine: AnalysisEngine = Depends(get_engine)
) -> AnalyzeResponse:
    """
    Analyze a transcript for the selected coaching goal.

    This endpoint:
    1. Detects filler occurrences (UTF-16 offsets for highlighting)
    2. Computes transcript metrics (rates, WPM when duration is given)
    3. Scores the session with the goal's rubric
    4. Returns feedback strings and a one-line score explanation

    A transcript without words is not an error: the score comes back with
    no_speech_detected set so the client can prompt for a retake.

    Raises:
        HTTPException: 500 if the engine configuration is inconsistent
    """
    try:
        analysis = engine.analyze(
            request.transcript,
            request.goal,
            duration_sec=request.duration_sec,
            previous_score=request.previous_score
        )
    except ConfigError as e:
        logger.error(f"Scoring configuration error for goal {request.goal.value}: {e}")
        raise HTTPException(status_code=500, detail=f"Scoring configuration error: {e}")

    metrics = analysis.metrics

    return AnalyzeResponse(
        occurrences=list(analysis.occurrences),
        metrics=metrics,
        score=analysis.score,
        explanation=generate_score_explanation(analysis.score, engine.rubric_for(request.goal)),
        pacing_feedback=pacing_feedback(metrics.words_per_minute),
        filler_feedback=filler_feedback(metrics.filler_count, metrics.filler_rate),
        vocabulary_version=engine.vocabulary.version
    )


@app.post("/weekly-report", response_model=WeeklyReport)
async def weekly_report(
    request: WeeklyReportRequest,
    engine: AnalysisEngine = Depends(get_engine)
) -> WeeklyReport:
    """
    Summarize the sessions of the 7 days ending at `now`.

    `now` defaults to the current UTC time. Session timestamps and `now`
    must carry a timezone; naive timestamps fail request validation.
    """
    now = request.now or datetime.now(timezone.utc)
    return engine.weekly_report(request.sessions, now)


@app.get("/vocabulary", response_class=PlainTextResponse)
async def vocabulary(engine: AnalysisEngine = Depends(get_engine)) -> str:
    """Filler vocabulary as plain text, one phrase per line."""
    return "\n".join(engine.vocabulary.surface_forms())


@app.get("/rubrics/{goal}", response_model=ScoreRubric)
async def rubric(goal: Goal, engine: AnalysisEngine = Depends(get_engine)) -> ScoreRubric:
    """Rubric applied to sessions of the given goal."""
    return engine.rubric_for(goal)


@app.get("/")
async def root() -> Dict[str, Any]:
    """
    Root endpoint with API information.

    Returns:
        dict: Welcome message and available endpoints
    """
    return {
        "message": "Speech Coach Scoring Engine API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "analyze": "/analyze (POST)",
            "weekly_report": "/weekly-report (POST)",
            "vocabulary": "/vocabulary",
            "rubrics": "/rubrics/{goal}",
            "docs": "/docs"
        }
    }


def run() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    get_engine()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
