"""
gateway.py — The single network boundary: Gemini for analysis, images and
masked edits, Veo for video spots.

  analyze()             reference image → StyleProfile
  generate_image()      one image-class category → MediaRef
  submit_video_job()    one video-class category → VideoJobHandle
  poll_video_job()      refresh a handle (no-op once done)
  fetch_video_payload() download a finished video
  refine()              current image + mask + instruction → MediaRef

Every call checks the credential first and raises CredentialMissing before
a client is built. Instruction text comes from prompts.py.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Optional

import requests
from google import genai
from google.genai import types
from pydantic import ValidationError

from .config import EngineConfig
from .errors import (
    AnalysisError,
    CredentialMissing,
    FetchError,
    GenerationError,
    RefinementError,
    RefinementRejected,
)
from .media import MediaRef, decode_inline
from .models import GenerationRequest, StyleProfile, VideoJobHandle
from .prompts import (
    build_analysis_prompt,
    build_image_prompt,
    build_refinement_prompt,
    build_video_prompt,
)

logger = logging.getLogger(__name__)


class GenerationGateway:
    """Thin async wrapper over google-genai. One instance per session."""

    def __init__(self, config: EngineConfig, client: Optional[Any] = None) -> None:
        self.config = config
        self._client = client

    # ── Credential ────────────────────────────────────────────────────────────

    def ensure_credential(self) -> None:
        if not self.config.has_credential:
            raise CredentialMissing()

    def _client_or_raise(self) -> Any:
        self.ensure_credential()
        if self._client is None:
            self._client = genai.Client(api_key=self.config.api_key)
        return self._client

    # ── Analysis ──────────────────────────────────────────────────────────────

    async def analyze(self, image_bytes: bytes, mime_type: str = "image/png") -> StyleProfile:
        client = self._client_or_raise()
        if not image_bytes:
            raise AnalysisError("Reference image is empty")

        try:
            response = await client.aio.models.generate_content(
                model=self.config.analysis_model,
                contents=[
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                    types.Part.from_text(text=build_analysis_prompt()),
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=StyleProfile,
                ),
            )
        except Exception as e:
            raise AnalysisError(f"Failed to analyze brand style: {e}") from e

        text = (response.text or "").strip()
        if not text:
            raise AnalysisError("Failed to analyze brand style: empty response")
        try:
            profile = StyleProfile.model_validate_json(_strip_fences(text))
        except ValidationError as e:
            raise AnalysisError(f"Style analysis returned malformed data: {e}") from e

        logger.info(
            f"Style profile: {profile.style} — palette={', '.join(profile.palette)} "
            f"keywords={len(profile.keywords)}"
        )
        return profile

    # ── Images ────────────────────────────────────────────────────────────────

    async def generate_image(self, request: GenerationRequest) -> MediaRef:
        client = self._client_or_raise()
        if request.category.is_video:
            raise GenerationError(f"{request.category.value} is a video category")

        try:
            response = await client.aio.models.generate_content(
                model=self.config.image_model,
                contents=[types.Part.from_text(text=build_image_prompt(request))],
                config=self._image_config(request.category.aspect_ratio),
            )
        except Exception as e:
            raise GenerationError(f"{request.category.value} generation failed: {e}") from e

        media = _first_inline_media(response)
        if media is None:
            raise GenerationError("no media returned")
        logger.info(f"✓ {request.category.value} ({len(media.data) // 1024} KB)")
        return media

    def _image_config(self, aspect_ratio: Optional[str] = None) -> types.GenerateContentConfig:
        if aspect_ratio:
            image_config = types.ImageConfig(aspect_ratio=aspect_ratio, image_size=self.config.image_size)
        else:
            image_config = types.ImageConfig(image_size=self.config.image_size)
        return types.GenerateContentConfig(
            response_modalities=["IMAGE", "TEXT"],
            image_config=image_config,
        )

    # ── Video ─────────────────────────────────────────────────────────────────

    async def submit_video_job(self, request: GenerationRequest) -> VideoJobHandle:
        client = self._client_or_raise()
        if not request.category.is_video:
            raise GenerationError(f"{request.category.value} is not a video category")

        try:
            operation = await client.aio.models.generate_videos(
                model=self.config.video_model,
                prompt=build_video_prompt(request),
                config=types.GenerateVideosConfig(
                    aspect_ratio=request.category.aspect_ratio,
                    number_of_videos=1,
                    duration_seconds=self.config.video_duration_seconds,
                    resolution=self.config.video_resolution,
                ),
            )
        except Exception as e:
            raise GenerationError(f"{request.category.value} video submit failed: {e}") from e

        logger.info(f"Video job submitted for {request.category.value}")
        return _handle_from_operation(operation)

    async def poll_video_job(self, handle: VideoJobHandle) -> VideoJobHandle:
        """Refresh a job handle. A handle that is already done is returned as is."""
        client = self._client_or_raise()
        if handle.done:
            return handle

        try:
            operation = await client.aio.operations.get(handle.operation)
        except Exception as e:
            raise GenerationError(f"Video job poll failed: {e}") from e
        return _handle_from_operation(operation)

    async def fetch_video_payload(self, uri: str) -> bytes:
        self.ensure_credential()
        loop = asyncio.get_event_loop()
        try:
            response = await loop.run_in_executor(
                None,
                functools.partial(
                    requests.get,
                    uri,
                    headers={"x-goog-api-key": self.config.api_key},
                    timeout=self.config.fetch_timeout,
                ),
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Video download failed: {e}") from e

        if not response.content:
            raise FetchError("Video download returned no data")
        return response.content

    # ── Refinement ────────────────────────────────────────────────────────────

    async def refine(self, current: MediaRef, mask_png: bytes, instruction: str) -> MediaRef:
        client = self._client_or_raise()
        if not instruction.strip():
            raise RefinementRejected("Describe the change before refining")

        parts = [
            types.Part.from_text(text=build_refinement_prompt(instruction)),
            types.Part.from_bytes(data=current.data, mime_type=current.mime_type),
            types.Part.from_bytes(data=mask_png, mime_type="image/png"),
        ]
        try:
            response = await client.aio.models.generate_content(
                model=self.config.image_model,
                contents=parts,
                config=self._image_config(),
            )
        except Exception as e:
            raise RefinementError(f"Refinement failed: {e}") from e

        media = _first_inline_media(response)
        if media is None:
            raise RefinementError("no media returned")
        logger.info(f"✓ refinement ({len(media.data) // 1024} KB)")
        return media


# ── Response helpers ──────────────────────────────────────────────────────────

def _first_inline_media(response: Any) -> Optional[MediaRef]:
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline and inline.data:
                return MediaRef(
                    data=decode_inline(inline.data),
                    mime_type=inline.mime_type or "image/png",
                )
    return None


def _handle_from_operation(operation: Any) -> VideoJobHandle:
    done = bool(getattr(operation, "done", False))
    uri = None
    error = None
    if done:
        err = getattr(operation, "error", None)
        if err:
            error = err.get("message", str(err)) if isinstance(err, dict) else str(err)
        result = getattr(operation, "response", None) or getattr(operation, "result", None)
        videos = getattr(result, "generated_videos", None) or []
        if videos and getattr(videos[0], "video", None) is not None:
            uri = videos[0].video.uri
    return VideoJobHandle(operation=operation, done=done, uri=uri, error=error)


def _strip_fences(text: str) -> str:
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text
