"""LLM response schemas for structured output."""

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "analysis_summary": {"type": "string"},
        "focus_distribution": {
            "type": "object",
            "properties": {
                "strength": {"type": "integer"},
                "hypertrophy": {"type": "integer"},
                "endurance": {"type": "integer"},
                "cardio": {"type": "integer"}
            },
            "required": ["strength", "hypertrophy", "endurance", "cardio"]
        },
        "recommendations": {
            "type": "object",
            "properties": {
                "sets_per_session_min": {"type": "integer"},
                "sets_per_session_max": {"type": "integer"},
                "weekly_volume_sets_min": {"type": "integer"},
                "weekly_volume_sets_max": {"type": "integer"}
            },
            "required": [
                "sets_per_session_min",
                "sets_per_session_max",
                "weekly_volume_sets_min",
                "weekly_volume_sets_max"
            ]
        }
    },
    "required": ["analysis_summary", "focus_distribution", "recommendations"]
}


PRESCRIBED_EXERCISE_SCHEMA = {
    "type": "object",
    "properties": {
        "exercise_id": {"type": "string"},
        "exercise_name": {"type": "string"},
        "sets": {"type": "integer"},
        "reps": {"type": "string"},
        "rest_seconds": {"type": "integer"},
        "load_type": {"type": "string", "enum": ["percentage_1rm", "rpe", "bodyweight", "fixed"]},
        "load_value": {"type": "number"},
        "priority": {"type": "integer", "enum": [1, 2, 3]},
        "notes": {"type": ["string", "null"]},
        "category": {"type": "string"},
        "required_equipment": {"type": "array", "items": {"type": "string"}},
        "primary_muscles": {"type": "array", "items": {"type": "string"}},
        "secondary_muscles": {"type": "array", "items": {"type": "string"}},
        "difficulty": {"type": "string"}
    },
    "required": ["exercise_id", "sets", "reps", "load_type", "load_value", "priority"]
}


BLUEPRINT_SCHEMA = {
    "type": "object",
    "properties": {
        "program_name": {"type": "string"},
        "duration_weeks": {"type": "integer"},
        "sessions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "session_index": {"type": "integer"},
                    "weekday": {"type": "string"},
                    "name": {"type": "string"},
                    "blocks": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "type": {
                                    "type": "string",
                                    "enum": ["warmup", "main", "accessory", "cardio", "cooldown"]
                                },
                                "exercises": {"type": "array", "items": PRESCRIBED_EXERCISE_SCHEMA}
                            },
                            "required": ["type", "exercises"]
                        }
                    }
                },
                "required": ["session_index", "weekday", "name", "blocks"]
            }
        }
    },
    "required": ["program_name", "duration_weeks", "sessions"]
}
