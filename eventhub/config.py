"""Runtime configuration, read from the environment (and a local .env file)."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from eventhub.storage import default_data_path

BACKENDS = ("file", "http", "memory")


@dataclass
class Settings:
    backend: str = "file"
    data_path: Path = default_data_path()
    api_url: str = "http://localhost:8000/api/v1"
    api_token: Optional[str] = None
    notify_seconds: float = 3.0
    http_timeout: float = 30.0
    debug: bool = False


def load_settings() -> Settings:
    """Build Settings from EVENTHUB_* environment variables."""
    load_dotenv()

    backend = os.getenv("EVENTHUB_BACKEND", "file").strip().lower()
    if backend not in BACKENDS:
        raise ValueError(f"EVENTHUB_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}")

    data_path = os.getenv("EVENTHUB_DATA_PATH")
    return Settings(
        backend=backend,
        data_path=Path(data_path) if data_path else default_data_path(),
        api_url=os.getenv("EVENTHUB_API_URL", "http://localhost:8000/api/v1").rstrip("/"),
        api_token=os.getenv("EVENTHUB_API_TOKEN") or None,
        notify_seconds=float(os.getenv("EVENTHUB_NOTIFY_SECONDS", "3")),
        http_timeout=float(os.getenv("EVENTHUB_HTTP_TIMEOUT", "30")),
        debug=bool(os.getenv("EVENTHUB_DEBUG")),
    )


def configure_logging(settings: Settings) -> None:
    if settings.debug:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
