"""
Fitting Configuration Loader

Centralized, type-safe loader for the deterministic fitting, pipeline and
recovery settings. Configuration is loaded from fitting_config.yaml and
validated by frozen dataclasses. Supports explicit reloads so production
constants can be adjusted without a restart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from threading import RLock
from typing import Any, Callable

import yaml

from fitplan.models.enums import BlockType


class FittingConfigLoadError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}


class FittingConfigValidationError(FittingConfigLoadError):
    """Raised when configuration fails validation."""


@dataclass(frozen=True)
class FitterConfig:
    """Duration fitter limits."""

    max_adjustments: int = 50
    min_sets: int = 1
    max_sets: int = 6
    extension_step_seconds: int = 60
    max_extension_minutes: int = 10
    allow_remove_from_main: bool = True

    def __post_init__(self):
        if self.max_adjustments <= 0:
            raise FittingConfigValidationError(
                f"max_adjustments ({self.max_adjustments}) must be > 0"
            )
        if not 0 < self.min_sets <= self.max_sets:
            raise FittingConfigValidationError(
                f"min_sets ({self.min_sets}) must be <= max_sets ({self.max_sets})"
            )
        if self.extension_step_seconds <= 0:
            raise FittingConfigValidationError(
                f"extension_step_seconds ({self.extension_step_seconds}) must be > 0"
            )
        if self.max_extension_minutes < 0:
            raise FittingConfigValidationError(
                f"max_extension_minutes ({self.max_extension_minutes}) must be >= 0"
            )


@dataclass(frozen=True)
class ProgressCheckpoints:
    """Job progress reported after each pipeline stage."""

    started: int = 5
    analysis_done: int = 30
    blueprint_done: int = 60
    fitting_done: int = 90

    def __post_init__(self):
        values = [self.started, self.analysis_done, self.blueprint_done, self.fitting_done]
        if values != sorted(values) or not all(0 <= v < 100 for v in values):
            raise FittingConfigValidationError(
                f"progress checkpoints must be increasing and within [0, 100), got {values}"
            )


@dataclass(frozen=True)
class PipelineConfig:
    """Retry bounds for the generation pipeline."""

    analysis_max_attempts: int = 2
    blueprint_max_attempts: int = 2
    format_repair_attempts: int = 2
    progress: ProgressCheckpoints = field(default_factory=ProgressCheckpoints)

    def __post_init__(self):
        for name in ("analysis_max_attempts", "blueprint_max_attempts"):
            if getattr(self, name) < 1:
                raise FittingConfigValidationError(f"{name} must be >= 1")
        if not 0 <= self.format_repair_attempts <= 2:
            raise FittingConfigValidationError(
                f"format_repair_attempts ({self.format_repair_attempts}) must be between 0 and 2"
            )


@dataclass(frozen=True)
class RecoveryConfig:
    """Weekly recovery spacing settings."""

    min_recovery_hours: int = 48
    spaced_block_types: tuple[BlockType, ...] = (BlockType.MAIN, BlockType.ACCESSORY)

    def __post_init__(self):
        if self.min_recovery_hours < 0:
            raise FittingConfigValidationError(
                f"min_recovery_hours ({self.min_recovery_hours}) must be >= 0"
            )


@dataclass(frozen=True)
class PoolConfig:
    """Expected candidate pool bucket sizes."""

    min_bucket_size: int = 8
    max_bucket_size: int = 25

    def __post_init__(self):
        if not 0 < self.min_bucket_size <= self.max_bucket_size:
            raise FittingConfigValidationError(
                f"min_bucket_size ({self.min_bucket_size}) must be <= max_bucket_size ({self.max_bucket_size})"
            )


@dataclass(frozen=True)
class FittingConfig:
    """Complete fitting configuration."""

    version: str
    fitter: FitterConfig
    pipeline: PipelineConfig
    recovery: RecoveryConfig
    pools: PoolConfig


DEFAULT_FITTING_CONFIG_PATH = Path(__file__).parent / "fitting_config.yaml"


class FittingConfigLoader:
    """Thread-safe loader for fitting configuration with reload support."""

    def __init__(self, config_path: Path | None = None):
        self._lock = RLock()
        self._config: FittingConfig | None = None
        self._config_path = config_path or DEFAULT_FITTING_CONFIG_PATH
        self._reload_callbacks: list[Callable[[FittingConfig], None]] = []
        self._reload_count = 0

        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            with open(self._config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise FittingConfigLoadError(
                f"Configuration file not found: {self._config_path}"
            )
        except yaml.YAMLError as e:
            raise FittingConfigLoadError(
                f"Failed to parse YAML configuration: {e}",
                details={"file_path": str(self._config_path)},
            )

        try:
            self._config = self._parse_config(data)
        except FittingConfigValidationError:
            raise
        except (TypeError, ValueError) as e:
            raise FittingConfigLoadError(
                f"Failed to parse configuration: {e}",
                details={"file_path": str(self._config_path)},
            )
        self._reload_count += 1
        self._notify_callbacks()

    def _parse_config(self, data: dict[str, Any]) -> FittingConfig:
        """Parse raw YAML data into FittingConfig.

        Raises:
            FittingConfigValidationError: If validation fails.
        """
        fitter = FitterConfig(**data.get("fitter", {}))

        pipeline_data = dict(data.get("pipeline", {}))
        progress = ProgressCheckpoints(**pipeline_data.pop("progress", {}))
        pipeline = PipelineConfig(progress=progress, **pipeline_data)

        recovery_data = dict(data.get("recovery", {}))
        block_types = recovery_data.pop("spaced_block_types", None)
        if block_types is not None:
            recovery_data["spaced_block_types"] = tuple(BlockType(b) for b in block_types)
        recovery = RecoveryConfig(**recovery_data)

        pools = PoolConfig(**data.get("pools", {}))

        return FittingConfig(
            version=str(data.get("version", "1.0.0")),
            fitter=fitter,
            pipeline=pipeline,
            recovery=recovery,
            pools=pools,
        )

    @property
    def config(self) -> FittingConfig:
        """Get current configuration (thread-safe)."""
        with self._lock:
            if self._config is None:
                self._load_config()
            return self._config

    def reload(self) -> None:
        """Force reload configuration from file."""
        with self._lock:
            self._load_config()

    def register_reload_callback(self, callback: Callable[[FittingConfig], None]) -> None:
        """Register a callback to be called with the new configuration on reload."""
        self._reload_callbacks.append(callback)

    def _notify_callbacks(self) -> None:
        if self._config is None:
            return
        for callback in self._reload_callbacks:
            callback(self._config)

    @property
    def reload_count(self) -> int:
        """Get number of times configuration has been loaded."""
        return self._reload_count


_loader_instance: FittingConfigLoader | None = None
_loader_lock = RLock()


def get_fitting_config_loader(config_path: Path | None = None) -> FittingConfigLoader:
    """Get or create the singleton FittingConfigLoader instance.

    Example:
        >>> loader = get_fitting_config_loader()
        >>> loader.config.fitter.max_adjustments
        50
    """
    global _loader_instance
    with _loader_lock:
        if _loader_instance is None:
            _loader_instance = FittingConfigLoader(config_path)
        return _loader_instance


def get_fitting_config() -> FittingConfig:
    """Get current fitting configuration."""
    return get_fitting_config_loader().config


def reload_fitting_config() -> None:
    """Force reload fitting configuration from file."""
    get_fitting_config_loader().reload()
