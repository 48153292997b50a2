import os
from dataclasses import dataclass

DEFAULT_TIMEOUT_SECONDS = 120.0
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _optional_env(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    fal_key: str | None = None
    openai_api_key: str | None = None
    provider_timeout: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        timeout_raw = _optional_env("PROVIDER_TIMEOUT_SECONDS")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_SECONDS
        except ValueError:
            raise ValueError(f"PROVIDER_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}") from None
        if timeout <= 0:
            raise ValueError("PROVIDER_TIMEOUT_SECONDS must be positive")

        log_level = (_optional_env("LOG_LEVEL") or "INFO").upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

        return cls(
            fal_key=_optional_env("FAL_KEY"),
            openai_api_key=_optional_env("OPENAI_API_KEY"),
            provider_timeout=timeout,
            log_level=log_level,
        )
