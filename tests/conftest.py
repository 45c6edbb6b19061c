"""Shared fixtures: exercise builders, candidate pools, a scripted LLM and a fixed clock."""
import json
from datetime import datetime, timedelta, timezone

import pytest

from fitplan.config.fitting_config_loader import PoolConfig
from fitplan.llm.base import LLMConfig, LLMProvider, LLMResponse, Message
from fitplan.models import (
    Block,
    BlockType,
    ExerciseRef,
    LoadType,
    PrescribedExercise,
    Priority,
    Session,
)
from fitplan.services.candidate_pool import CandidatePools

BUCKETS = {
    "legs_squat": [
        "back_squat", "front_squat", "goblet_squat", "leg_press",
        "split_squat", "hack_squat", "box_squat", "pistol_squat",
    ],
    "upper_push": [
        "bench_press", "incline_press", "dip", "push_up",
        "overhead_press", "landmine_press", "cable_fly", "pec_deck",
    ],
    "hinge_pull": [
        "deadlift", "romanian_deadlift", "barbell_row", "pull_up",
        "lat_pulldown", "face_pull", "good_morning", "hip_thrust",
    ],
}

CATALOG = [
    ExerciseRef(
        exercise_id="back_squat",
        category="strength",
        required_equipment=frozenset({"barbell", "rack"}),
        primary_muscles=frozenset({"quadriceps", "glutes"}),
        secondary_muscles=frozenset({"core"}),
        difficulty="intermediate",
    ),
    ExerciseRef(
        exercise_id="goblet_squat",
        category="strength",
        required_equipment=frozenset({"kettlebell"}),
        primary_muscles=frozenset({"quadriceps"}),
        difficulty="beginner",
    ),
    ExerciseRef(
        exercise_id="cable_fly",
        category="hypertrophy",
        required_equipment=frozenset({"cable"}),
        primary_muscles=frozenset({"chest"}),
        difficulty="beginner",
    ),
]


def build_exercise(
    exercise_id: str = "back_squat",
    sets: int = 3,
    reps: str = "10",
    priority: Priority = Priority.ADJUSTABLE,
    rest_seconds: int | None = None,
    load_type: LoadType = LoadType.RPE,
    load_value: float = 8,
    **overrides,
) -> PrescribedExercise:
    fields = {
        "category": "strength",
        "required_equipment": ["barbell"],
        "primary_muscles": ["quadriceps"],
        "difficulty": "intermediate",
    }
    fields.update(overrides)
    return PrescribedExercise(
        exercise_id=exercise_id,
        sets=sets,
        reps=reps,
        load_type=load_type,
        load_value=load_value,
        priority=priority,
        rest_seconds=rest_seconds,
        **fields,
    )


def build_session(*blocks: tuple[BlockType, list[PrescribedExercise]], index: int = 1, weekday: str = "Mon") -> Session:
    return Session(
        session_index=index,
        weekday=weekday,
        name=f"Session {index}",
        blocks=[Block(type=block_type, exercises=list(exercises)) for block_type, exercises in blocks],
    )


def exercise_json(exercise_id: str, sets: int, reps: str, priority: int, **overrides) -> dict:
    data = {
        "exercise_id": exercise_id,
        "exercise_name": exercise_id.replace("_", " ").title(),
        "sets": sets,
        "reps": reps,
        "rest_seconds": 60,
        "load_type": "rpe",
        "load_value": 8,
        "priority": priority,
        "notes": None,
        "category": "strength",
        "required_equipment": ["barbell"],
        "primary_muscles": ["quadriceps"],
        "secondary_muscles": [],
        "difficulty": "intermediate",
    }
    data.update(overrides)
    return data


def session_json(index: int, weekday: str, main_id: str = "back_squat") -> dict:
    """A session of about 28 minutes under the default time model."""
    return {
        "session_index": index,
        "weekday": weekday,
        "name": f"Full body {index}",
        "blocks": [
            {"type": "warmup", "exercises": [
                exercise_json("goblet_squat", 1, "10", 2, load_type="bodyweight", load_value=0),
            ]},
            {"type": "main", "exercises": [
                exercise_json(main_id, 4, "5", 1, rest_seconds=150,
                              load_type="percentage_1rm", load_value=75),
            ]},
            {"type": "accessory", "exercises": [
                exercise_json("split_squat", 3, "10", 2),
                exercise_json("cable_fly", 3, "12", 3, primary_muscles=["chest"]),
            ]},
        ],
    }


def cycle_json(weekdays=("Mon", "Wed", "Fri"), weeks: int = 4) -> list[dict]:
    """Week-labelled sessions covering a whole mesocycle, indexed from 1."""
    sessions = []
    for week in range(1, weeks + 1):
        for day in weekdays:
            sessions.append(session_json(len(sessions) + 1, f"{day} (Week {week})"))
    return sessions


def blueprint_json(*sessions: dict, name: str = "Base Strength") -> str:
    return json.dumps({"program_name": name, "duration_weeks": 4, "sessions": list(sessions)})


def analysis_json(strength=40, hypertrophy=40, endurance=10, cardio=10) -> str:
    return json.dumps({
        "analysis_summary": "Intermediate lifter aiming for muscle gain.",
        "focus_distribution": {
            "strength": strength,
            "hypertrophy": hypertrophy,
            "endurance": endurance,
            "cardio": cardio,
        },
        "recommendations": {
            "sets_per_session_min": 12,
            "sets_per_session_max": 20,
            "weekly_volume_sets_min": 40,
            "weekly_volume_sets_max": 60,
        },
    })


class ScriptedLLM(LLMProvider):
    """Returns canned replies in order and records every call."""

    name = "scripted"

    def __init__(self, replies, on_call=None):
        self.replies = list(replies)
        self.calls: list[tuple[list[Message], LLMConfig]] = []
        self.on_call = on_call

    async def chat(self, messages, config):
        self.calls.append((list(messages), config))
        if self.on_call is not None:
            self.on_call(len(self.calls), config)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(content=reply, provider=self.name)

    async def health_check(self):
        return True

    @property
    def stages(self) -> list[str]:
        return [config.stage for _, config in self.calls]


class FixedClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def exercise():
    """Factory for PrescribedExercise with complete metadata."""
    return build_exercise


@pytest.fixture
def session():
    """Factory for Session from (block_type, exercises) pairs."""
    return build_session


@pytest.fixture
def pools() -> CandidatePools:
    return CandidatePools(BUCKETS, catalog=CATALOG, pool_config=PoolConfig())


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def scripted_llm():
    """Factory: scripted_llm([reply, ...], on_call=None) -> ScriptedLLM."""
    return ScriptedLLM


@pytest.fixture
def llm_json():
    """Builders for model replies."""
    return type("LLMJson", (), {
        "analysis": staticmethod(analysis_json),
        "blueprint": staticmethod(blueprint_json),
        "session": staticmethod(session_json),
        "cycle": staticmethod(cycle_json),
        "exercise": staticmethod(exercise_json),
    })
