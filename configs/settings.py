from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


class Settings:
    """
    Central configuration for Briefdesk.

    Values are loaded once from environment variables (with sensible defaults)
    and then exposed via typed properties.
    """

    def __init__(self) -> None:
        # OpenAI / model configuration
        self._openai_api_key = os.getenv("OPENAI_API_KEY")
        self._openai_base_url = os.getenv("OPENAI_BASE_URL") or None
        self._openai_model = os.getenv("BRIEFDESK_OPENAI_MODEL", "gpt-4o-mini")

        # Extraction model (defaults to OpenAI model)
        self._extraction_model = os.getenv(
            "BRIEFDESK_EXTRACTION_MODEL",
            self._openai_model,
        )

        # Runtime data paths. An empty data dir keeps everything in memory.
        data_dir = os.getenv("BRIEFDESK_RUNTIME_DATA_DIR", "runtime/data")
        self._runtime_data_dir = Path(data_dir) if data_dir.strip() else None
        log_dir = os.getenv("BRIEFDESK_LOG_DIR") or None
        self._log_dir = Path(log_dir) if log_dir else None
        self._log_level = os.getenv("BRIEFDESK_LOG_LEVEL", "INFO").upper()

        # Scheduler credential for maintenance triggers
        self._cron_secret = os.getenv("BRIEFDESK_CRON_SECRET") or None

        # Briefing + maintenance thresholds
        self._briefing_inactivity_hours = _int_env(
            "BRIEFDESK_BRIEFING_INACTIVITY_HOURS", 24
        )
        self._stale_job_days = _int_env("BRIEFDESK_STALE_JOB_DAYS", 7)
        self._context_max_items = _int_env("BRIEFDESK_CONTEXT_MAX_ITEMS", 3)
        self._max_message_chars = _int_env("BRIEFDESK_MAX_MESSAGE_CHARS", 4000)
        self._maintenance_interval_seconds = _int_env(
            "BRIEFDESK_MAINTENANCE_INTERVAL_SECONDS", 3600
        )

    # ------------------------------------------------------------------
    # OpenAI / model settings
    # ------------------------------------------------------------------

    @property
    def openai_api_key(self) -> str:
        if not self._openai_api_key:
            raise RuntimeError(
                "OPENAI_API_KEY is not set. Please export it in your environment "
                "or define it in a .env file."
            )
        return self._openai_api_key

    @property
    def openai_base_url(self) -> Optional[str]:
        return self._openai_base_url

    @property
    def openai_model(self) -> str:
        return self._openai_model

    @property
    def extraction_model(self) -> str:
        return self._extraction_model

    # ------------------------------------------------------------------
    # Paths + logging
    # ------------------------------------------------------------------

    @property
    def runtime_data_dir(self) -> Optional[Path]:
        return self._runtime_data_dir

    @property
    def log_dir(self) -> Optional[Path]:
        return self._log_dir

    @property
    def log_level(self) -> str:
        return self._log_level

    # ------------------------------------------------------------------
    # Briefing + maintenance
    # ------------------------------------------------------------------

    @property
    def cron_secret(self) -> Optional[str]:
        return self._cron_secret

    @property
    def briefing_inactivity_hours(self) -> int:
        return self._briefing_inactivity_hours

    @property
    def stale_job_days(self) -> int:
        return self._stale_job_days

    @property
    def context_max_items(self) -> int:
        return self._context_max_items

    @property
    def max_message_chars(self) -> int:
        return self._max_message_chars

    @property
    def maintenance_interval_seconds(self) -> int:
        return self._maintenance_interval_seconds


settings = Settings()
