from __future__ import annotations

import importlib
import importlib.util
import logging
import os
from dataclasses import dataclass

from .api_client import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)


def _load_dotenv() -> None:
    if importlib.util.find_spec("dotenv") is None:
        return
    dotenv = importlib.import_module("dotenv")
    dotenv.load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r, expected a number", name, raw)
        return default


@dataclass
class Settings:
    api_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    debounce_seconds: float = 0.3

    @classmethod
    def from_env(cls) -> Settings:
        _load_dotenv()
        return cls(
            api_url=os.getenv("TODOVIEW_API_URL") or DEFAULT_BASE_URL,
            timeout=_env_float("TODOVIEW_TIMEOUT", 30.0),
            debounce_seconds=_env_float("TODOVIEW_DEBOUNCE_MS", 300.0) / 1000,
        )
