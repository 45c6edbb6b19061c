"""Application configuration settings."""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "fitplan"
    debug: bool = True

    # Default user settings (for MVP without auth)
    default_user_id: str = "local-user"

    # LLM providers, tried in this order (comma-separated)
    llm_provider_priority: str = "gemini,deepseek,openai"
    llm_timeout_seconds: float = 45.0
    llm_temperature: float = 0.4

    openai_api_key: str = ""  # Set via environment variable OPENAI_API_KEY
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"

    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com/v1"
    deepseek_model: str = "deepseek-chat"

    gemini_api_key: str = ""
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai"
    gemini_model: str = "gemini-2.0-flash-exp"

    # Generation jobs (in-memory, lost on restart)
    job_max_age_ms: int = 24 * 60 * 60 * 1000
    job_cleanup_interval_seconds: float = 600.0

    # Time model defaults (used when the caller supplies none)
    default_work_seconds_per_10_reps: int = 30
    default_rest_between_sets_seconds: int = 90
    default_rest_between_exercises_seconds: int = 120
    default_warmup_minutes: int = 8
    default_cooldown_minutes: int = 5

    # Schedule defaults
    default_target_minutes: int = 60
    allowed_duration_slack_minutes: int = 5  # allowed window is target +/- slack

    # Candidate pool file (JSON: {"buckets": {...}, "exercises": [...]})
    candidate_pool_path: str | None = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def provider_priority(self) -> list[str]:
        """Provider names in fallback order, normalized."""
        return [p.strip().lower() for p in self.llm_provider_priority.split(",") if p.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
