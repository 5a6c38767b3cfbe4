"""Runtime configuration loaded from the environment."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    """Settings shared by the CLI and sync jobs."""

    db_path: Optional[str]
    log_level: str
    verbose: bool
    preview_limit: int


def load_settings() -> Settings:
    """Load settings from ``.env``, ``.env.local`` and the process environment.

    Values already present in the environment win over both files.
    """
    load_dotenv()
    load_dotenv(".env.local")

    try:
        preview_limit = int(os.environ.get("SYNC_PREVIEW_LIMIT", "5"))
    except ValueError:
        preview_limit = 5

    return Settings(
        db_path=os.environ.get("BANKER_DB_PATH") or None,
        log_level=os.environ.get("BANKER_LOG_LEVEL", "INFO").upper(),
        verbose=_env_flag("SYNC_VERBOSE"),
        preview_limit=max(preview_limit, 0),
    )
