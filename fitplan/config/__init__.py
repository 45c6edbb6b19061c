"""Application configuration module.

- **settings.py**: Environment-based settings (Pydantic BaseSettings)
  - LLM providers and priority, job retention, time-model defaults
  - Loaded from .env file via pydantic-settings

- **fitting_config.yaml**: Deterministic fitting configuration
  - Loaded via FittingConfigLoader (frozen dataclasses, validated on load)
  - Fitter limits, pipeline retry bounds, recovery spacing, pool sizes
"""
from fitplan.config.settings import Settings, get_settings

# Fitting config loader: from fitplan.config.fitting_config_loader import get_fitting_config

__all__ = ["Settings", "get_settings"]
