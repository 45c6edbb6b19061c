"""Tests for blueprint validation."""
import pytest

from fitplan.models import (
    BlockType,
    Blueprint,
    FocusDistribution,
    LoadType,
    ScheduleConstraints,
    ViolationCode,
)
from fitplan.services.blueprint_validator import (
    check_load,
    validate_blueprint,
    validate_focus_distribution,
)


@pytest.fixture
def blueprint(exercise, session):
    def build(*exercises, weekday="Mon", focus=None):
        s = session((BlockType.MAIN, list(exercises)), weekday=weekday)
        return Blueprint("Test", 4, [s], focus_distribution=focus)
    return build


def two_day_cycle(exercise, session, weeks=4):
    """Mon/Thu sessions labelled by week, as a mesocycle reply would be."""
    sessions = []
    for week in range(1, weeks + 1):
        for day in ("Mon", "Thu"):
            sessions.append(session(
                (BlockType.MAIN, [exercise()]), index=len(sessions) + 1, weekday=f"{day} (Week {week})",
            ))
    return Blueprint("Cycle", weeks, sessions)


class TestFocusDistribution:
    """Tests for the focus sum check."""

    def test_valid_distribution(self):
        assert validate_focus_distribution(FocusDistribution(40, 40, 10, 10)) == []

    def test_sum_of_99_rejected(self):
        """40/40/10/9 is one short of 100."""
        violations = validate_focus_distribution(FocusDistribution(40, 40, 10, 9))
        assert [v.code for v in violations] == [ViolationCode.INVALID_FOCUS_SUM]
        assert violations[0].details["total"] == 99

    def test_negative_share_rejected(self):
        violations = validate_focus_distribution(FocusDistribution(110, -10, 0, 0))
        assert violations[0].code == ViolationCode.INVALID_FOCUS_SUM

    def test_blueprint_focus_is_checked(self, exercise, blueprint, pools):
        result = validate_blueprint(
            blueprint(exercise(), focus=FocusDistribution(40, 40, 10, 9)), pools
        )
        assert result.codes() == {ViolationCode.INVALID_FOCUS_SUM}


class TestCheckLoad:
    """Tests for load_type/load_value consistency."""

    @pytest.mark.parametrize(
        "load_type, value",
        [
            (LoadType.PERCENTAGE_1RM, 75),
            (LoadType.PERCENTAGE_1RM, 100),
            (LoadType.RPE, 1),
            (LoadType.RPE, 8.5),
            (LoadType.BODYWEIGHT, 0),
            (LoadType.FIXED, 20),
        ],
    )
    def test_consistent_loads(self, load_type, value):
        assert check_load(load_type, value) is None

    @pytest.mark.parametrize(
        "load_type, value",
        [
            (LoadType.PERCENTAGE_1RM, 0),
            (LoadType.PERCENTAGE_1RM, 120),
            (LoadType.RPE, 11),
            (LoadType.RPE, 0.5),
            (LoadType.BODYWEIGHT, -5),
            (LoadType.FIXED, 0),
            (LoadType.RPE, float("nan")),
            (LoadType.FIXED, float("inf")),
            (LoadType.RPE, "heavy"),
        ],
    )
    def test_inconsistent_loads(self, load_type, value):
        assert check_load(load_type, value) is not None


class TestValidateBlueprint:
    """Tests for validate_blueprint."""

    def test_valid_blueprint(self, exercise, blueprint, pools):
        result = validate_blueprint(
            blueprint(exercise("back_squat"), exercise("split_squat")), pools
        )
        assert result.ok
        assert result.to_list() == []

    def test_unknown_exercise_id(self, exercise, blueprint, pools):
        """An id outside every bucket is reported with its id."""
        result = validate_blueprint(blueprint(exercise("squat_999")), pools)
        assert not result.ok
        [violation] = result.by_code(ViolationCode.UNKNOWN_EXERCISE_ID)
        assert violation.exercise_id == "squat_999"
        assert violation.session_index == 1
        assert violation.to_dict()["code"] == "UnknownExerciseId"

    def test_incomplete_metadata(self, exercise, blueprint, pools):
        ex = exercise("back_squat", category="", primary_muscles=[])
        result = validate_blueprint(blueprint(ex), pools)
        [violation] = result.by_code(ViolationCode.INCOMPLETE_METADATA)
        assert violation.details["missing"] == ["category", "primary_muscles"]

    def test_invalid_load(self, exercise, blueprint, pools):
        ex = exercise("back_squat", load_type=LoadType.PERCENTAGE_1RM, load_value=120)
        result = validate_blueprint(blueprint(ex), pools)
        assert result.codes() == {ViolationCode.INVALID_LOAD}

    def test_malformed_reps(self, exercise, blueprint, pools):
        result = validate_blueprint(blueprint(exercise("back_squat", reps="lots")), pools)
        [violation] = result.by_code(ViolationCode.MALFORMED_REPS)
        assert violation.details["reps"] == "lots"

    def test_non_positive_sets(self, exercise, blueprint, pools):
        result = validate_blueprint(blueprint(exercise("back_squat", sets=0)), pools)
        assert result.codes() == {ViolationCode.INVALID_STRUCTURE}

    def test_all_violations_are_collected(self, exercise, blueprint, pools):
        """Validation does not stop at the first problem."""
        bp = blueprint(
            exercise("squat_999"),
            exercise("back_squat", reps="??", load_type=LoadType.RPE, load_value=12),
        )
        result = validate_blueprint(bp, pools)
        assert result.codes() == {
            ViolationCode.UNKNOWN_EXERCISE_ID,
            ViolationCode.MALFORMED_REPS,
            ViolationCode.INVALID_LOAD,
        }

    def test_empty_blueprint(self, pools):
        result = validate_blueprint(Blueprint("Empty", 4, []), pools)
        assert result.codes() == {ViolationCode.INVALID_STRUCTURE}

    def test_session_without_exercises(self, session, pools):
        bp = Blueprint("Test", 4, [session((BlockType.MAIN, []))])
        result = validate_blueprint(bp, pools)
        assert result.codes() == {ViolationCode.INVALID_STRUCTURE}

    def test_duplicate_session_index(self, exercise, session, pools):
        sessions = [
            session((BlockType.MAIN, [exercise()]), index=1, weekday="Mon"),
            session((BlockType.MAIN, [exercise()]), index=1, weekday="Wed"),
        ]
        result = validate_blueprint(Blueprint("Test", 4, sessions), pools)
        assert result.codes() == {ViolationCode.INVALID_STRUCTURE}

    def test_unrecognized_weekday(self, exercise, blueprint, pools):
        result = validate_blueprint(blueprint(exercise(), weekday="Someday"), pools)
        assert result.codes() == {ViolationCode.INVALID_STRUCTURE}

    def test_weekday_outside_schedule(self, exercise, blueprint, pools):
        schedule = ScheduleConstraints(2, 45, 40, 50, ("Mon", "Thu"))
        result = validate_blueprint(blueprint(exercise(), weekday="Tuesday"), pools, schedule=schedule)
        assert result.codes() == {ViolationCode.INVALID_SCHEDULE}

    def test_week_tagged_weekdays_match_schedule(self, exercise, session, pools):
        """Mesocycle labels such as "Thu (Week 3)" match the scheduled Thursday."""
        schedule = ScheduleConstraints(2, 45, 40, 50, ("Mon", "Thu"))
        result = validate_blueprint(two_day_cycle(exercise, session), pools, schedule=schedule)
        assert result.ok


class TestSessionCount:
    """Tests for the session count against the requested schedule."""

    def test_short_cycle_rejected(self, exercise, session, pools):
        """Two sessions a week asks for a four week cycle of eight sessions."""
        schedule = ScheduleConstraints(2, 45, 40, 50, ("Mon", "Thu"))
        result = validate_blueprint(two_day_cycle(exercise, session, weeks=1), pools, schedule=schedule)
        [violation] = result.by_code(ViolationCode.INVALID_SCHEDULE)
        assert violation.session_index is None
        assert "expected 8" in violation.message

    def test_weekly_count_above_mesocycle_threshold(self, exercise, session, pools):
        schedule = ScheduleConstraints(4, 45, 40, 50, ("Mon", "Tue", "Thu", "Fri"))
        sessions = [
            session((BlockType.MAIN, [exercise()]), index=index, weekday=day)
            for index, day in enumerate(("Mon", "Tue", "Thu", "Fri"), start=1)
        ]
        assert validate_blueprint(Blueprint("Week", 1, sessions), pools, schedule=schedule).ok

        too_many = sessions + [session((BlockType.MAIN, [exercise()]), index=5, weekday="Mon")]
        result = validate_blueprint(Blueprint("Week", 1, too_many), pools, schedule=schedule)
        assert result.codes() == {ViolationCode.INVALID_SCHEDULE}

    def test_count_not_checked_without_schedule(self, exercise, blueprint, pools):
        assert validate_blueprint(blueprint(exercise()), pools).ok
