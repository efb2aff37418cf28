"""Configuration helpers for the Receipts web application."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass(slots=True)
class AppConfig:
    """Settings loaded from environment variables."""

    database_url: str
    uploads_dir: Path
    secret_key: str
    max_content_length: int
    review_webhook_url: Optional[str] = None
    review_timeout: float = 10.0


def load_config() -> AppConfig:
    """Create an :class:`AppConfig` instance from environment variables.

    Values from a local ``.env`` file are loaded first without overriding
    variables already present in the environment.
    """

    load_dotenv()
    uploads_dir = Path(os.getenv("RECEIPTS_UPLOADS", "instance/intake"))
    uploads_dir.mkdir(parents=True, exist_ok=True)
    database = os.getenv(
        "RECEIPTS_DATABASE", "sqlite:///" + str(Path("instance/receipts.db"))
    )
    max_content_length = int(os.getenv("RECEIPTS_MAX_CONTENT_LENGTH", "16777216"))
    secret_key = os.getenv("RECEIPTS_SECRET_KEY", "development")
    review_webhook_url = os.getenv("RECEIPTS_REVIEW_WEBHOOK_URL") or None
    review_timeout = float(os.getenv("RECEIPTS_REVIEW_TIMEOUT", "10"))
    return AppConfig(
        database_url=database,
        uploads_dir=uploads_dir,
        secret_key=secret_key,
        max_content_length=max_content_length,
        review_webhook_url=review_webhook_url,
        review_timeout=review_timeout,
    )
