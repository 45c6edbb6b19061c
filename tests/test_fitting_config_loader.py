"""Tests for the fitting configuration loader."""
import pytest

from fitplan.config import fitting_config_loader
from fitplan.config.fitting_config_loader import (
    FitterConfig,
    FittingConfigLoader,
    FittingConfigLoadError,
    FittingConfigValidationError,
    PipelineConfig,
    ProgressCheckpoints,
    get_fitting_config,
    get_fitting_config_loader,
    reload_fitting_config,
)
from fitplan.models import BlockType


def write_config(tmp_path, text):
    path = tmp_path / "fitting_config.yaml"
    path.write_text(text)
    return path


class TestBundledConfig:
    """Tests for the packaged fitting_config.yaml."""

    def test_defaults(self):
        config = get_fitting_config()
        assert config.fitter.max_adjustments == 50
        assert config.fitter.max_sets == 6
        assert config.pipeline.blueprint_max_attempts == 2
        assert config.pipeline.format_repair_attempts == 2
        assert config.pipeline.progress == ProgressCheckpoints(5, 30, 60, 90)
        assert config.recovery.min_recovery_hours == 48
        assert config.recovery.spaced_block_types == (BlockType.MAIN, BlockType.ACCESSORY)
        assert (config.pools.min_bucket_size, config.pools.max_bucket_size) == (8, 25)


class TestFittingConfigLoader:
    """Tests for loading custom files."""

    def test_partial_file_keeps_defaults(self, tmp_path):
        path = write_config(tmp_path, "fitter:\n  max_adjustments: 10\n")
        config = FittingConfigLoader(path).config
        assert config.fitter.max_adjustments == 10
        assert config.fitter.min_sets == 1
        assert config.pipeline == PipelineConfig()

    def test_empty_file_is_all_defaults(self, tmp_path):
        config = FittingConfigLoader(write_config(tmp_path, "")).config
        assert config.fitter == FitterConfig()
        assert config.version == "1.0.0"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FittingConfigLoadError, match="not found"):
            FittingConfigLoader(tmp_path / "absent.yaml")

    def test_malformed_yaml(self, tmp_path):
        with pytest.raises(FittingConfigLoadError):
            FittingConfigLoader(write_config(tmp_path, "fitter: [unclosed"))

    def test_unknown_key(self, tmp_path):
        with pytest.raises(FittingConfigLoadError):
            FittingConfigLoader(write_config(tmp_path, "fitter:\n  max_iterations: 5\n"))

    def test_unknown_block_type(self, tmp_path):
        text = "recovery:\n  spaced_block_types: [main, core]\n"
        with pytest.raises(FittingConfigLoadError):
            FittingConfigLoader(write_config(tmp_path, text))

    @pytest.mark.parametrize(
        "text",
        [
            "fitter:\n  max_adjustments: 0\n",
            "fitter:\n  min_sets: 4\n  max_sets: 3\n",
            "pipeline:\n  format_repair_attempts: 3\n",
            "pipeline:\n  progress:\n    analysis_done: 70\n",
            "recovery:\n  min_recovery_hours: -1\n",
            "pools:\n  min_bucket_size: 30\n",
        ],
    )
    def test_invalid_values(self, tmp_path, text):
        with pytest.raises(FittingConfigValidationError):
            FittingConfigLoader(write_config(tmp_path, text))

    def test_reload_notifies_callbacks(self, tmp_path):
        path = write_config(tmp_path, "fitter:\n  max_sets: 5\n")
        loader = FittingConfigLoader(path)
        seen = []
        loader.register_reload_callback(lambda config: seen.append(config.fitter.max_sets))

        path.write_text("fitter:\n  max_sets: 4\n")
        loader.reload()

        assert seen == [4]
        assert loader.config.fitter.max_sets == 4
        assert loader.reload_count == 2

    def test_reload_fitting_config_refreshes_the_shared_loader(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, "pipeline:\n  blueprint_max_attempts: 3\n")
        monkeypatch.setattr(fitting_config_loader, "_loader_instance", FittingConfigLoader(path))
        assert get_fitting_config().pipeline.blueprint_max_attempts == 3

        path.write_text("pipeline:\n  blueprint_max_attempts: 1\n")
        reload_fitting_config()

        assert get_fitting_config().pipeline.blueprint_max_attempts == 1
        assert get_fitting_config_loader().reload_count == 2
