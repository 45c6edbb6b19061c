"""
Candidate Pool

Bucketed registry of the exercise identifiers a blueprint may reference.
Buckets are small ordered lists (movement pattern or equipment category)
so the planning prompt stays compact and selection stays constrained.
An optional catalog of ExerciseRef entries backs the ids with metadata.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from fitplan.config.fitting_config_loader import PoolConfig, get_fitting_config
from fitplan.core.exceptions import ValidationError
from fitplan.models.program import Blueprint, ExerciseRef

logger = logging.getLogger(__name__)


class CandidatePools:
    """Immutable bucket -> exercise_id registry.

    Every id lives in exactly one bucket; building a pool that repeats an id
    raises ValidationError.

    Example:
        >>> pools = CandidatePools({"legs_squat": ["back_squat", "goblet_squat"]})
        >>> "back_squat" in pools
        True
        >>> pools.bucket_of("goblet_squat")
        'legs_squat'
    """

    def __init__(
        self,
        buckets: Mapping[str, Sequence[str]],
        catalog: Iterable[ExerciseRef] | None = None,
        pool_config: PoolConfig | None = None,
    ):
        config = pool_config or get_fitting_config().pools
        self._buckets: dict[str, tuple[str, ...]] = {}
        self._bucket_by_id: dict[str, str] = {}

        for name, ids in buckets.items():
            if not name:
                raise ValidationError("candidate_pools", "bucket names must be non-empty")
            if not ids:
                raise ValidationError("candidate_pools", f"bucket {name!r} is empty")
            for exercise_id in ids:
                owner = self._bucket_by_id.get(exercise_id)
                if owner is not None:
                    raise ValidationError(
                        "candidate_pools",
                        f"exercise_id {exercise_id!r} appears in buckets {owner!r} and {name!r}",
                        {"exercise_id": exercise_id, "buckets": [owner, name]},
                    )
                self._bucket_by_id[exercise_id] = name
            self._buckets[name] = tuple(ids)

            if not config.min_bucket_size <= len(ids) <= config.max_bucket_size:
                logger.warning(
                    f"Bucket {name!r} has {len(ids)} entries, expected "
                    f"{config.min_bucket_size}-{config.max_bucket_size}"
                )

        self._catalog: dict[str, ExerciseRef] = {ref.exercise_id: ref for ref in catalog or ()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CandidatePools:
        """Build from ``{"buckets": {...}, "exercises": [...]}``."""
        catalog = [ExerciseRef.from_dict(item) for item in data.get("exercises", [])]
        return cls(data["buckets"], catalog=catalog)

    @classmethod
    def from_file(cls, path: str | Path) -> CandidatePools:
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def __contains__(self, exercise_id: object) -> bool:
        return exercise_id in self._bucket_by_id

    def __len__(self) -> int:
        return len(self._bucket_by_id)

    @property
    def buckets(self) -> dict[str, tuple[str, ...]]:
        return dict(self._buckets)

    def bucket_of(self, exercise_id: str) -> str | None:
        return self._bucket_by_id.get(exercise_id)

    def all_ids(self) -> frozenset[str]:
        return frozenset(self._bucket_by_id)

    def ref(self, exercise_id: str) -> ExerciseRef | None:
        return self._catalog.get(exercise_id)

    @property
    def pool_hash(self) -> str:
        """Stable short hash of the bucket contents, for tracing which pool a blueprint used."""
        canonical = json.dumps(
            {name: list(ids) for name, ids in self._buckets.items()},
            sort_keys=True,
            separators=(",", ":"),
        )
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]

    def to_prompt(self) -> dict[str, list[str]]:
        return {name: list(ids) for name, ids in self._buckets.items()}

    def filter_by_equipment(self, available_equipment: set[str]) -> CandidatePools:
        """Drop catalogued exercises whose equipment is not all available.

        Ids without a catalog entry are kept; buckets left empty are dropped.
        """
        available = {e.lower() for e in available_equipment}
        kept: dict[str, list[str]] = {}
        for name, ids in self._buckets.items():
            remaining = []
            for exercise_id in ids:
                ref = self._catalog.get(exercise_id)
                if ref is None or {e.lower() for e in ref.required_equipment} <= available:
                    remaining.append(exercise_id)
            if remaining:
                kept[name] = remaining
        return CandidatePools(kept, catalog=self._catalog.values())

    def enrich_blueprint(self, blueprint: Blueprint) -> int:
        """Fill missing exercise metadata from the catalog, in place.

        Returns:
            Number of exercises that received at least one field.
        """
        enriched = 0
        for session in blueprint.sessions:
            for _, _, _, exercise in session.iter_exercises():
                ref = self._catalog.get(exercise.exercise_id)
                if ref is None:
                    continue
                touched = False
                if not exercise.category and ref.category:
                    exercise.category = ref.category
                    touched = True
                if not exercise.required_equipment and ref.required_equipment:
                    exercise.required_equipment = sorted(ref.required_equipment)
                    touched = True
                if not exercise.primary_muscles and ref.primary_muscles:
                    exercise.primary_muscles = sorted(ref.primary_muscles)
                    touched = True
                if not exercise.secondary_muscles and ref.secondary_muscles:
                    exercise.secondary_muscles = sorted(ref.secondary_muscles)
                    touched = True
                if not exercise.difficulty and ref.difficulty:
                    exercise.difficulty = ref.difficulty
                    touched = True
                enriched += int(touched)

        if enriched:
            logger.debug(f"Enriched metadata for {enriched} exercises from the pool catalog")
        return enriched
