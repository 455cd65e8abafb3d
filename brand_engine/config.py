"""
config.py — Engine configuration from environment variables.

Reads .env (python-dotenv) then the process environment:

  GEMINI_API_KEY / GOOGLE_API_KEY   credential (required for any request)
  BRAND_ENGINE_ANALYSIS_MODEL       vision model for style analysis
  BRAND_ENGINE_IMAGE_MODEL          image model for mockups and refinement
  BRAND_ENGINE_VIDEO_MODEL          Veo model for video spots
  BRAND_ENGINE_IMAGE_SIZE           1K | 2K | 4K
  BRAND_ENGINE_VIDEO_DURATION       seconds per video spot
  BRAND_ENGINE_VIDEO_RESOLUTION     720p | 1080p
  BRAND_ENGINE_POLL_INTERVAL        seconds between video job polls
  BRAND_ENGINE_MAX_POLLS            poll ceiling per video job (0 = unbounded)
  BRAND_ENGINE_FETCH_TIMEOUT        seconds for the video download
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv


DEFAULT_ANALYSIS_MODEL = "gemini-3-pro-preview"
DEFAULT_IMAGE_MODEL = "gemini-3-pro-image-preview"
DEFAULT_VIDEO_MODEL = "veo-3.1-generate-preview"


@dataclass(frozen=True)
class EngineConfig:
    api_key: Optional[str] = None
    analysis_model: str = DEFAULT_ANALYSIS_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    video_model: str = DEFAULT_VIDEO_MODEL
    image_size: str = "4K"
    video_duration_seconds: int = 8
    video_resolution: str = "720p"
    poll_interval: float = 5.0
    max_polls: Optional[int] = None     # None = poll until the service says done
    fetch_timeout: float = 120.0

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
    ) -> "EngineConfig":
        """Build a config from the environment. Pass `environ` to read from a dict instead."""
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        max_polls = _int(environ, "BRAND_ENGINE_MAX_POLLS", 0)

        return cls(
            api_key=environ.get("GEMINI_API_KEY") or environ.get("GOOGLE_API_KEY") or None,
            analysis_model=environ.get("BRAND_ENGINE_ANALYSIS_MODEL", DEFAULT_ANALYSIS_MODEL),
            image_model=environ.get("BRAND_ENGINE_IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
            video_model=environ.get("BRAND_ENGINE_VIDEO_MODEL", DEFAULT_VIDEO_MODEL),
            image_size=environ.get("BRAND_ENGINE_IMAGE_SIZE", "4K"),
            video_duration_seconds=_int(environ, "BRAND_ENGINE_VIDEO_DURATION", 8),
            video_resolution=environ.get("BRAND_ENGINE_VIDEO_RESOLUTION", "720p"),
            poll_interval=_float(environ, "BRAND_ENGINE_POLL_INTERVAL", 5.0),
            max_polls=max_polls if max_polls > 0 else None,
            fetch_timeout=_float(environ, "BRAND_ENGINE_FETCH_TIMEOUT", 120.0),
        )


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value
