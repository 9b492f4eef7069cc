# trackr/config.py
"""Environment-driven settings for the trackr API."""

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_DB_PATH = Path(__file__).parent / "data.db"
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


def _parse_tokens(raw: str) -> dict[str, str]:
    """Parse ``token=username`` pairs separated by commas."""
    tokens: dict[str, str] = {}
    for pair in raw.split(","):
        token, sep, username = pair.strip().partition("=")
        if sep and token.strip() and username.strip():
            tokens[token.strip()] = username.strip()
    return tokens


@dataclass(frozen=True)
class Settings:
    database_url: str = f"sqlite:///{DEFAULT_DB_PATH}"
    cors_origins: list[str] = field(
        default_factory=lambda: DEFAULT_CORS_ORIGINS.split(",")
    )
    # IANA zone used for streak/trend day boundaries; empty means server local time.
    timezone: str = ""
    api_tokens: dict[str, str] = field(default_factory=dict)
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build settings from the process environment."""
    return Settings(
        database_url=os.getenv("DATABASE_URL", f"sqlite:///{DEFAULT_DB_PATH}"),
        cors_origins=[
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
            if origin.strip()
        ],
        timezone=os.getenv("TRACKR_TIMEZONE", ""),
        api_tokens=_parse_tokens(os.getenv("TRACKR_API_TOKENS", "")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
