"""
Prompt builders for the two model stages.

Analysis turns a user profile into a focus distribution and volume
recommendations. Blueprint turns schedule, focus, time model and candidate
pools into a structured program that references pool ids only. Low-frequency
schedules get the mesocycle variant: a rotating four-week cycle whose
weekdays carry week tags such as "Mon (Week 2)".

User prompts are compact JSON documents; all heavy logic lives in the
deterministic stages after the model.
"""
from __future__ import annotations

import json
from typing import Any

from fitplan.llm.base import Message

MESOCYCLE_MAX_SESSIONS_PER_WEEK = 3
MESOCYCLE_WEEKS = 4


def _dump(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def build_analysis_system_prompt() -> str:
    return "\n".join([
        "Role: You are a Sports Physiologist and Strength & Conditioning coach for a fitness app.",
        "",
        "Task: Analyze the user profile and return a conservative training analysis in STRICT JSON.",
        "",
        "Hard rules:",
        "- Output MUST be valid JSON only (no markdown, no explanations).",
        "- focus_distribution values must be non-negative integers that sum to exactly 100.",
        "- Be conservative and practical. Avoid extreme training volumes.",
        "- If a sport is provided, bias focus toward its demands (still summing to 100).",
    ])


def build_analysis_user_prompt(user: dict[str, Any]) -> str:
    return _dump({
        "user": {
            "age": user.get("age"),
            "sex": user.get("sex"),
            "weight_kg": user.get("weight_kg"),
            "height_cm": user.get("height_cm"),
            "training_level": user.get("training_level"),
            "primary_goal": user["primary_goal"],
            "sport": user.get("sport"),
        },
        "output_schema": {
            "analysis_summary": "string",
            "focus_distribution": {"strength": 0, "hypertrophy": 0, "endurance": 0, "cardio": 0},
            "recommendations": {
                "sets_per_session_min": 0,
                "sets_per_session_max": 0,
                "weekly_volume_sets_min": 0,
                "weekly_volume_sets_max": 0,
            },
        },
    })


_BLUEPRINT_HARD_RULES = [
    "- You may ONLY use exercise_id values present in candidate_pools buckets.",
    "- Return exercise_id for matching and a readable exercise_name for presentation.",
    "- Provide priority per exercise: 1=protect, 2=adjustable, 3=remove first.",
    "- For EVERY exercise provide complete metadata: category, required_equipment, "
    "primary_muscles, secondary_muscles, difficulty.",
    "- load_value must match load_type: percentage_1rm in (0, 100], rpe in [1, 10], "
    "bodyweight >= 0, fixed > 0.",
    "- reps is a string: a count (\"10\"), a range (\"8-12\") or a duration (\"30-45s\", \"6 min\").",
]


def is_mesocycle(sessions_per_week: int) -> bool:
    return sessions_per_week <= MESOCYCLE_MAX_SESSIONS_PER_WEEK


def expected_session_count(sessions_per_week: int) -> int:
    """Sessions a blueprint must contain: one week, or the whole mesocycle."""
    if is_mesocycle(sessions_per_week):
        return sessions_per_week * MESOCYCLE_WEEKS
    return sessions_per_week


def build_blueprint_system_prompt(sessions_per_week: int) -> str:
    if is_mesocycle(sessions_per_week):
        return "\n".join([
            "Role: You are an elite Strength & Conditioning coach designing a PERIODIZED MESOCYCLE.",
            "",
            "You must output STRICT JSON only (no markdown, no commentary).",
            "",
            "Objective:",
            f"Create a training cycle that spans {MESOCYCLE_WEEKS} weeks, not a single repeated week.",
            "Low-frequency users need a rotation of unique sessions that covers the whole body "
            "across the cycle.",
            "",
            "Hard rules:",
            *_BLUEPRINT_HARD_RULES,
            "",
            "Cycle structure:",
            "- Provide sessions_per_week unique sessions for every week of the cycle.",
            "- Assign days from the provided weekdays and tag them with the week, "
            "e.g. \"Mon (Week 1)\", \"Mon (Week 2)\".",
            "- Do NOT repeat the same sessions every week; vary exercises and progress volume.",
            "",
            "Volume and sets:",
            "- Aim for 5-8 exercises per 60-minute session.",
            "- Sets: 2-4 per exercise. Never more than 6.",
        ])

    return "\n".join([
        "Role: You are an elite Strength & Conditioning coach.",
        "",
        "You must output STRICT JSON only (no markdown, no commentary).",
        "",
        "Hard rules:",
        *_BLUEPRINT_HARD_RULES,
        "- Keep sessions balanced across the week (~48h recovery for the same primary muscle "
        "groups where possible).",
        "- Respect the time_model. Try to land within allowed_duration_minutes; the server "
        "enforces the final fit.",
        "- Volume: aim for 5-8 exercises per 60-minute session. Prefer more exercises over more sets.",
        "- Sets: standard strength/hypertrophy exercises use 2-4 sets. Never more than 6.",
        "- Give every session a descriptive name.",
    ])


def build_blueprint_user_prompt(
    schedule: dict[str, Any],
    focus_distribution: dict[str, int],
    time_model: dict[str, Any],
    candidate_pools: dict[str, list[str]],
    candidate_pool_hash: str | None = None,
    sport: str | None = None,
) -> str:
    sessions_per_week = schedule["sessions_per_week"]
    mesocycle = is_mesocycle(sessions_per_week)

    payload: dict[str, Any] = {}
    if mesocycle:
        payload["objective"] = f"Create a {MESOCYCLE_WEEKS}-week mesocycle with unique rotating sessions."
        payload["total_sessions_required"] = expected_session_count(sessions_per_week)

    payload.update({
        "schedule": schedule,
        "focus_distribution": focus_distribution,
        "sport": sport,
        "time_model": time_model,
        "candidate_pool_hash": candidate_pool_hash,
        "candidate_pools": candidate_pools,
        "output_schema": {
            "program_name": "string",
            "duration_weeks": MESOCYCLE_WEEKS if mesocycle else 1,
            "sessions": [
                {
                    "session_index": 1,
                    "weekday": "Mon (Week 1)" if mesocycle else "Mon",
                    "name": "string",
                    "blocks": [
                        {
                            "type": "warmup|main|accessory|cardio|cooldown",
                            "exercises": [
                                {
                                    "exercise_id": "string",
                                    "exercise_name": "string",
                                    "sets": 3,
                                    "reps": "8-12|30-45s|6 min",
                                    "rest_seconds": 90,
                                    "load_type": "percentage_1rm|rpe|bodyweight|fixed",
                                    "load_value": 8,
                                    "priority": 2,
                                    "notes": None,
                                    "category": "string",
                                    "required_equipment": ["string"],
                                    "primary_muscles": ["string"],
                                    "secondary_muscles": ["string"],
                                    "difficulty": "beginner|intermediate|advanced",
                                }
                            ],
                        }
                    ],
                }
            ],
        },
        "constraints": {
            "ids_only": True,
            "must_use_candidate_pool_only": True,
            "generate_full_cycle": mesocycle,
        },
    })
    return _dump(payload)


def build_corrective_message(violations: list[dict[str, Any]]) -> Message:
    """Follow-up turn asking the model to fix a rejected blueprint."""
    return Message(
        role="user",
        content=_dump({
            "error": "The previous blueprint was rejected. Return a corrected blueprint "
                     "as STRICT JSON that fixes every violation below.",
            "violations": violations,
        }),
    )


def build_format_repair_message(error: str) -> Message:
    """Follow-up turn after a reply that could not be parsed."""
    return Message(
        role="user",
        content=(
            f"Your previous reply could not be parsed as JSON ({error}). "
            "Reply again with the complete answer as a single JSON object, "
            "with no markdown and no commentary."
        ),
    )
