"""
Per-goal scoring rubrics.

Rubrics are static configuration: a weighted choice of criteria from
criteria.CRITERION_RULES for each goal. The defaults below are validated when
this module is imported, so a malformed rubric stops the service at startup
instead of mis-scoring sessions.
"""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Union

from pydantic import ValidationError

from speechcoach.criteria import CRITERION_RULES
from speechcoach.errors import ConfigError
from speechcoach.logger import get_logger
from speechcoach.schemas import Goal, ScoreRubric

logger = get_logger(__name__)

RubricSet = Mapping[Goal, ScoreRubric]

DEFAULT_RUBRIC_DATA: Dict[str, Dict[str, Any]] = {
    "clarity": {
        "criteria": [
            {"name": "sentence_structure", "weight": 0.35,
             "description": "Sentences of a length listeners can follow"},
            {"name": "vocabulary", "weight": 0.25,
             "description": "Varied, precise word choice"},
            {"name": "filler_control", "weight": 0.20,
             "description": "Few filler words cluttering the message"},
            {"name": "pacing", "weight": 0.20,
             "description": "Speaking rate within the conversational band"},
        ],
        "focus_areas": ["structure", "word choice", "articulation"],
    },
    "confidence": {
        "criteria": [
            {"name": "assertiveness", "weight": 0.35,
             "description": "Direct statements instead of hedges"},
            {"name": "pacing", "weight": 0.30,
             "description": "Steady rate close to the target band"},
            {"name": "filler_control", "weight": 0.20,
             "description": "Silence instead of verbal fillers"},
            {"name": "fluency", "weight": 0.15,
             "description": "Few stutters and broken-off pauses"},
        ],
        "focus_areas": ["tone", "conviction", "steady pace"],
    },
    "persuasion": {
        "criteria": [
            {"name": "elaboration", "weight": 0.30,
             "description": "Points developed with enough supporting detail"},
            {"name": "assertiveness", "weight": 0.25,
             "description": "Claims stated with conviction"},
            {"name": "vocabulary", "weight": 0.25,
             "description": "Varied, vivid language"},
            {"name": "sentence_structure", "weight": 0.20,
             "description": "Well-formed, followable sentences"},
        ],
        "focus_areas": ["argument structure", "evidence", "call to action"],
    },
    "fillers": {
        "criteria": [
            {"name": "filler_control", "weight": 0.70,
             "description": "Filler words per 100 words"},
            {"name": "fluency", "weight": 0.30,
             "description": "Pauses and repeats replacing fillers"},
        ],
        "focus_areas": ["silent pauses", "filler awareness"],
    },
    "quick_thinking": {
        "criteria": [
            {"name": "fluency", "weight": 0.35,
             "description": "Answer flows without stalls"},
            {"name": "elaboration", "weight": 0.30,
             "description": "Enough content produced on the spot"},
            {"name": "pacing", "weight": 0.20,
             "description": "Rate holds up under time pressure"},
            {"name": "filler_control", "weight": 0.15,
             "description": "Fillers kept out while thinking"},
        ],
        "focus_areas": ["speaking on the fly", "structure under pressure"],
    },
}


def build_rubric(goal: Union[Goal, str], data: Mapping[str, Any]) -> ScoreRubric:
    """
    Build and validate one rubric.

    Raises:
        ConfigError: If the goal is unknown, the rubric breaks a rubric
            invariant, or names a criterion without a derivation rule
    """
    try:
        rubric = ScoreRubric.model_validate({**data, "goal": goal})
    except ValidationError as e:
        raise ConfigError(f"Invalid rubric for goal '{goal}': {e}") from e

    unknown = [name for name in rubric.criterion_names() if name not in CRITERION_RULES]
    if unknown:
        raise ConfigError(
            f"Rubric for goal '{rubric.goal.value}' uses unknown criteria {unknown}; "
            f"known criteria: {sorted(CRITERION_RULES)}"
        )
    return rubric


def validate_rubric_set(rubrics: Mapping[Goal, ScoreRubric]) -> RubricSet:
    """
    Check a full rubric set: one rubric per goal, each filed under its own goal.

    Returns:
        RubricSet: Read-only view of the rubrics

    Raises:
        ConfigError: If a goal is missing or a rubric is filed under another goal
    """
    missing = [goal.value for goal in Goal if goal not in rubrics]
    if missing:
        raise ConfigError(f"No rubric configured for goals: {missing}")

    for goal, rubric in rubrics.items():
        if rubric.goal != goal:
            raise ConfigError(
                f"Rubric for goal '{rubric.goal.value}' is registered under '{Goal(goal).value}'"
            )

    return MappingProxyType({goal: rubrics[goal] for goal in Goal})


def build_rubric_set(data: Mapping[str, Mapping[str, Any]]) -> RubricSet:
    rubrics = {}
    for goal, rubric_data in data.items():
        rubric = build_rubric(goal, rubric_data)
        rubrics[rubric.goal] = rubric
    return validate_rubric_set(rubrics)


def load_rubrics(path: Union[str, Path]) -> RubricSet:
    """
    Load rubric overrides from a JSON file and merge them over the defaults.

    The file holds an object keyed by goal value, each entry with
    "criteria" and optional "focus_areas":

        {"fillers": {"criteria": [{"name": "filler_control", "weight": 1.0}]}}

    Raises:
        ConfigError: If the file is unreadable, not a JSON object, or any
            rubric is invalid
    """
    rubric_file = Path(path)
    try:
        overrides = json.loads(rubric_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot load rubrics from {rubric_file}: {e}") from e

    if not isinstance(overrides, dict):
        raise ConfigError(f"Rubric file {rubric_file} must contain a JSON object keyed by goal")

    merged = {**DEFAULT_RUBRIC_DATA, **overrides}
    rubrics = build_rubric_set(merged)
    logger.info(f"Loaded rubric overrides for {sorted(overrides)} from {rubric_file}")
    return rubrics


DEFAULT_RUBRICS: RubricSet = build_rubric_set(DEFAULT_RUBRIC_DATA)
