from functools import lru_cache

from pydantic_settings import BaseSettings

from studylens.exceptions import ConfigurationError


class Settings(BaseSettings):
    host: str = "127.0.0.1"
    port: int = 9000
    log_level: str = "INFO"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    request_timeout_ms: int = 120_000
    download_timeout: int = 30
    max_sessions: int = 100

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()


def validate_settings(settings: Settings) -> Settings:
    """Fail fast on configuration the service cannot run without."""
    if not settings.gemini_api_key:
        raise ConfigurationError(
            "GEMINI_API_KEY is not set. Get one at "
            "https://aistudio.google.com/apikey and set GEMINI_API_KEY in .env"
        )
    if settings.request_timeout_ms <= 0:
        raise ConfigurationError("REQUEST_TIMEOUT_MS must be positive")
    if settings.max_sessions <= 0:
        raise ConfigurationError("MAX_SESSIONS must be positive")
    return settings
