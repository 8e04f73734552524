from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

def _resolve_project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


PROJECT_ROOT = _resolve_project_root()


def load_env() -> None:
    env_name = os.getenv("APP_ENV", "development")
    candidates = [Path.cwd(), PROJECT_ROOT]
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str = "INFO"
    log_dir: str = "logs"
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    token_ttl_minutes: int = 24 * 60


load_env()

SETTINGS = Settings(
    database_url=os.getenv("DATABASE_URL", "").strip() or "sqlite:///taskportal.db",
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_dir=os.getenv("LOG_DIR", "logs"),
    jwt_secret=os.getenv("JWT_SECRET", "").strip(),
    jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
    token_ttl_minutes=int(os.getenv("TOKEN_TTL_MINUTES", "1440")),
)
