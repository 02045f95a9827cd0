"""Configuration constants, model metadata, and .env loading.

WHY: Centralizes every tunable value (API endpoint, timeouts, polling
cadence, model sample rates, input limits) so they are easy to find and
override. They are plain module-level data, read once at import time and
never mutated afterwards.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level values, optionally overridden by environment variables.
The load_api_key() function provides a clear error when the key is missing.

RULES:
- API key is loaded from .env via python-dotenv, never hardcoded or logged
- POLL_MAX_DURATION_S is None unless CAMB_POLL_MAX_DURATION is set
  (polling is unbounded by default)
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return float(raw)


# ---------------------------------------------------------------------------
# API configuration defaults
# ---------------------------------------------------------------------------

CAMB_BASE_URL = os.getenv("CAMB_BASE_URL", "https://client.camb.ai/apis")
API_KEY_HEADER = "x-api-key"

DEFAULT_TIMEOUT_S = _env_float("CAMB_TIMEOUT", 30.0)
TTS_TIMEOUT_S = 60.0

POLL_INTERVAL_S = _env_float("CAMB_POLL_INTERVAL", 3.0)
POLL_MAX_DURATION_S = _env_float("CAMB_POLL_MAX_DURATION", None)

# ---------------------------------------------------------------------------
# Text-to-speech models and audio metadata
# ---------------------------------------------------------------------------

TTS_MODELS: tuple[str, ...] = ("mars-8", "mars-8-flash", "mars-8-instruct")
DEFAULT_TTS_MODEL = "mars-8-flash"

DEFAULT_SAMPLE_RATE = 22050
"""Fallback sample rate for raw PCM when the model's rate is unknown."""

MODEL_SAMPLE_RATES: dict[str, int] = {
    "mars-8": 24000,
    "mars-8-flash": 24000,
    "mars-8-instruct": 24000,
}

# ---------------------------------------------------------------------------
# Input limits
# ---------------------------------------------------------------------------

TEXT_MIN_CHARS = 3
TEXT_MAX_CHARS = 3000
VOICE_DESCRIPTION_MIN_CHARS = 100
SPEED_RANGE = (0.5, 2.0)
SOUND_MAX_DURATION_S = 10.0


def sample_rate_for_model(model: str) -> int:
    """Return the PCM sample rate a TTS model streams at."""
    return MODEL_SAMPLE_RATES.get(model, DEFAULT_SAMPLE_RATE)


def load_api_key() -> str:
    """Load the Camb.ai API key from the environment.

    WHY: The API key is required for every call against the base endpoint.
    Loading it from the environment (via .env) keeps it out of source code.

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("CAMB_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "Camb.ai API key not configured. "
            "Add CAMB_API_KEY to the .env file in the app folder."
        )
    return key
