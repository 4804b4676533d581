"""Configuration management."""

import os
from typing import List
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from project root
# This ensures dotenv works regardless of where the script is run from
project_root = Path(__file__).parent.parent.parent
env_file = project_root / ".env"

# override=False means existing environment variables take precedence
load_dotenv(dotenv_path=env_file, override=False)


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Config:
    """Application configuration."""
    # Database (one JSON document per workspace lives here)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./mcp_workspace.db")

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Upstream calls made by the execution engine
    UPSTREAM_TIMEOUT_SECONDS: float = _get_float("UPSTREAM_TIMEOUT_SECONDS", 30.0)

    # Inbound requests
    REQUEST_TIMEOUT_SECONDS: float = _get_float("REQUEST_TIMEOUT_SECONDS", 60.0)
    MAX_REQUEST_SIZE: int = int(_get_float("MAX_REQUEST_SIZE", 1024 * 1024))

    # Comma separated list, empty means "use environment default"
    CORS_ORIGINS: List[str] = [
        origin.strip() for origin in os.getenv("CORS_ORIGINS", "").split(",") if origin.strip()
    ]


config = Config()
