"""
Recovery Scheduler

Advisory check that sessions stressing the same primary muscles are spaced
far enough apart within the week. Nothing is moved or rewritten here; the
pipeline reports the conflicts alongside the fitted program.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from itertools import combinations
from typing import Any, Iterable, Sequence

from fitplan.models.enums import BlockType
from fitplan.models.program import Session

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7

_WEEKDAY_ALIASES = {
    "mon": 0, "monday": 0,
    "tue": 1, "tues": 1, "tuesday": 1,
    "wed": 2, "weds": 2, "wednesday": 2,
    "thu": 3, "thur": 3, "thurs": 3, "thursday": 3,
    "fri": 4, "friday": 4,
    "sat": 5, "saturday": 5,
    "sun": 6, "sunday": 6,
}

# "Mon", "Monday", "Mon (Week 2)", "Mon Week 2"
_WEEKDAY_RE = re.compile(r"^([a-z]+)\.?\s*(?:\(?\s*week\s*(\d+)\s*\)?)?$")

DEFAULT_SPACED_BLOCKS = (BlockType.MAIN, BlockType.ACCESSORY)


def parse_weekday(text: str) -> tuple[int, int | None]:
    """Parse a weekday label into (day_of_week, week_number).

    Monday is 0. ``week_number`` is None for plain labels.

    Raises:
        ValueError: If the label is not a recognizable weekday.
    """
    match = _WEEKDAY_RE.match((text or "").strip().lower())
    if not match or match.group(1) not in _WEEKDAY_ALIASES:
        raise ValueError(f"Unrecognized weekday: {text!r}")
    week = int(match.group(2)) if match.group(2) else None
    if week is not None and week < 1:
        raise ValueError(f"Week number must be >= 1: {text!r}")
    return _WEEKDAY_ALIASES[match.group(1)], week


def days_between(weekday_a: str, weekday_b: str) -> int:
    """Days separating two labels.

    Plain labels repeat every week, so the distance wraps around
    (Sun -> Mon is one day). Week-tagged labels are placed on an absolute
    day line; an untagged label counts as week 1.
    """
    day_a, week_a = parse_weekday(weekday_a)
    day_b, week_b = parse_weekday(weekday_b)
    if week_a is None and week_b is None:
        d = abs(day_a - day_b)
        return min(d, DAYS_PER_WEEK - d)
    pos_a = ((week_a or 1) - 1) * DAYS_PER_WEEK + day_a
    pos_b = ((week_b or 1) - 1) * DAYS_PER_WEEK + day_b
    return abs(pos_a - pos_b)


def normalize_muscle(name: str) -> str:
    return re.sub(r"[\s\-]+", "_", name.strip().lower())


def stressed_muscles(
    session: Session,
    block_types: Iterable[BlockType] = DEFAULT_SPACED_BLOCKS,
) -> frozenset[str]:
    spaced = set(block_types)
    return frozenset(
        normalize_muscle(muscle)
        for _, _, block, exercise in session.iter_exercises()
        if block.type in spaced
        for muscle in exercise.primary_muscles
        if muscle and muscle.strip()
    )


@dataclass(frozen=True)
class SpacingConflict:
    session_a: int
    session_b: int
    overlapping_muscles: tuple[str, ...]
    days_apart: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_a": self.session_a,
            "session_b": self.session_b,
            "overlapping_muscles": list(self.overlapping_muscles),
            "days_apart": self.days_apart,
        }


@dataclass
class SpacingReport:
    conflicts: list[SpacingConflict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.conflicts

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "conflicts": [c.to_dict() for c in self.conflicts]}


def check_spacing(
    sessions: Sequence[Session],
    min_recovery_hours: float,
    block_types: Iterable[BlockType] = DEFAULT_SPACED_BLOCKS,
) -> SpacingReport:
    """Report session pairs closer than ``min_recovery_hours`` that share primary muscles.

    Args:
        sessions: Sessions of one week (or one mesocycle when week-tagged).
        min_recovery_hours: Required gap between sessions hitting the same muscle.
        block_types: Blocks whose exercises count as stressing a muscle.

    Raises:
        ValueError: If a session carries an unrecognizable weekday.
    """
    block_types = tuple(block_types)
    muscles = {id(s): stressed_muscles(s, block_types) for s in sessions}
    report = SpacingReport()

    for a, b in combinations(sessions, 2):
        days_apart = days_between(a.weekday, b.weekday)
        if days_apart * 24 >= min_recovery_hours:
            continue
        overlap = muscles[id(a)] & muscles[id(b)]
        if overlap:
            report.conflicts.append(
                SpacingConflict(
                    session_a=a.session_index,
                    session_b=b.session_index,
                    overlapping_muscles=tuple(sorted(overlap)),
                    days_apart=days_apart,
                )
            )

    if report.conflicts:
        logger.info(
            f"Recovery spacing: {len(report.conflicts)} conflicts under {min_recovery_hours}h"
        )
    return report
