"""
API configuration loaded from environment or defaults.
"""

import os
from pathlib import Path
from typing import Optional


def get_database_path() -> str:
    """Get database file path from env or default."""
    return os.getenv("DATABASE_URL", "sqlite:///").replace("sqlite:///", "") or str(
        Path(__file__).resolve().parents[2] / "data" / "cinemate.db"
    )


def get_log_level() -> str:
    """Get log level from env or default."""
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_log_file() -> Optional[str]:
    """Log file name under logs/ (console only when unset)."""
    return os.getenv("LOG_FILE") or None


def get_api_host() -> str:
    """Get API host for binding."""
    return os.getenv("API_HOST", "0.0.0.0")


def get_api_port() -> int:
    """Get API port."""
    return int(os.getenv("API_PORT", "8000"))


def get_jwt_secret() -> str:
    """Secret used to sign access tokens."""
    return os.getenv("JWT_SECRET", "cinemate-development-secret-change-me-in-production")


def get_jwt_expire_minutes() -> int:
    return int(os.getenv("JWT_EXPIRE_MINUTES", str(60 * 24 * 7)))


def get_openai_api_key() -> Optional[str]:
    return os.getenv("OPENAI_API_KEY") or None


def get_openai_model() -> str:
    """Generation model used for schema enforcement."""
    return os.getenv("OPENAI_MODEL", "gpt-5-nano")


def get_perplexity_api_key() -> Optional[str]:
    return os.getenv("PERPLEXITY_API_KEY") or None


def get_perplexity_model() -> str:
    """Search model used for candidate sourcing."""
    return os.getenv("PERPLEXITY_MODEL", "sonar-pro")


def get_perplexity_base_url() -> str:
    return os.getenv("PERPLEXITY_BASE_URL", "https://api.perplexity.ai")


def get_ai_timeout_seconds() -> float:
    """Timeout applied to each AI stage."""
    return float(os.getenv("AI_TIMEOUT_SECONDS", "30"))


def get_tmdb_api_key() -> Optional[str]:
    return os.getenv("TMDB_API_KEY") or None


def get_tmdb_base_url() -> str:
    return os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3")


def get_tmdb_timeout_seconds() -> float:
    return float(os.getenv("TMDB_TIMEOUT_SECONDS", "10"))


def get_tmdb_max_requests() -> int:
    """TMDB requests admitted per window."""
    return int(os.getenv("TMDB_MAX_REQUESTS", "40"))


def get_tmdb_window_seconds() -> float:
    return float(os.getenv("TMDB_WINDOW_SECONDS", "1"))


def get_dedup_window_hours() -> float:
    """How far back unrated recommendations count as duplicates."""
    return float(os.getenv("DEDUP_WINDOW_HOURS", "24"))
