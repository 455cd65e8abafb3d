"""Shared fixtures: a style profile, tiny PNGs, and an in-memory gateway."""

import asyncio
import io
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from brand_engine.config import EngineConfig
from brand_engine.errors import CredentialMissing, FetchError, GenerationError
from brand_engine.media import MediaRef
from brand_engine.models import StyleProfile, VideoJobHandle


def png_bytes(color=(200, 30, 30), size=(32, 24)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def png_media(color=(200, 30, 30), size=(32, 24)) -> MediaRef:
    return MediaRef(data=png_bytes(color, size), mime_type="image/png")


class FakeGateway:
    """
    Stands in for GenerationGateway. Categories listed in `fail` raise
    GenerationError; video jobs report done after `video_polls` polls.
    """

    def __init__(self, fail=(), video_polls=0, credential=True, fetch_error=False):
        self.fail = set(fail)
        self.video_polls = video_polls
        self.credential = credential
        self.fetch_error = fetch_error
        self.image_calls = []
        self.submitted = []
        self.poll_calls = 0
        self.fetch_calls = []
        self.refine_calls = []
        self.refine_results = []
        self._refine_count = 0

    def ensure_credential(self):
        if not self.credential:
            raise CredentialMissing()

    async def generate_image(self, request):
        self.ensure_credential()
        self.image_calls.append(request.category)
        await asyncio.sleep(0)
        if request.category in self.fail:
            raise GenerationError(f"{request.category.value} generation failed: boom")
        return png_media()

    async def submit_video_job(self, request):
        self.ensure_credential()
        self.submitted.append(request.category)
        await asyncio.sleep(0)
        if request.category in self.fail:
            raise GenerationError("submit failed")
        state = {"remaining": self.video_polls, "category": request.category}
        return self._handle(state)

    def _handle(self, state):
        done = state["remaining"] <= 0
        uri = f"https://media.example/{state['category'].name.lower()}.mp4" if done else None
        return VideoJobHandle(operation=state, done=done, uri=uri)

    async def poll_video_job(self, handle):
        if handle.done:
            return handle
        self.poll_calls += 1
        await asyncio.sleep(0)
        state = dict(handle.operation)
        state["remaining"] -= 1
        return self._handle(state)

    async def fetch_video_payload(self, uri):
        self.fetch_calls.append(uri)
        await asyncio.sleep(0)
        if self.fetch_error:
            raise FetchError("Video download failed: 404")
        return b"\x00\x00\x00\x18ftypmp42" + uri.encode()

    async def refine(self, current, mask_png, instruction):
        self.ensure_credential()
        self.refine_calls.append((current, mask_png, instruction))
        await asyncio.sleep(0)
        if self.refine_results:
            result = self.refine_results.pop(0)
            if isinstance(result, BaseException):
                raise result
            return result
        self._refine_count += 1
        return png_media(color=(10 * self._refine_count, 100, 200))


async def no_sleep(_seconds):
    await asyncio.sleep(0)


@pytest.fixture
def profile():
    return StyleProfile(
        palette=["#0B0F17", "#6366F1", "#F8FAFC"],
        style="Minimalist",
        fonts="Geometric sans-serif, bold",
        keywords=["clean", "tech", "confident"],
        description="A bold indigo hexagon monogram with the letter N cut in negative space",
    )


@pytest.fixture
def config():
    return EngineConfig(api_key="test-key", poll_interval=5.0)


@pytest.fixture
def gateway():
    return FakeGateway()


def genai_client(generate_content=None, generate_videos=None, operations_get=None):
    """A stand-in for google.genai.Client exposing only the async surface used."""
    return SimpleNamespace(
        aio=SimpleNamespace(
            models=SimpleNamespace(
                generate_content=generate_content or AsyncMock(),
                generate_videos=generate_videos or AsyncMock(),
            ),
            operations=SimpleNamespace(get=operations_get or AsyncMock()),
        )
    )


def inline_response(data=b"\x89PNG fake", mime_type="image/png"):
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type), text=None)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def text_only_response(text="I cannot draw that."):
    part = SimpleNamespace(inline_data=None, text=text)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])
