"""BrandSession: upload replaces everything, close stops background polling."""

import asyncio
import zipfile

import pytest

from brand_engine.errors import (
    AnalysisError,
    DispatchError,
    RefinementError,
    RefinementRejected,
    SessionClosed,
)
from brand_engine.models import Category, StyleProfile
from brand_engine.session import BrandSession
from conftest import FakeGateway, no_sleep, png_bytes, png_media


class AnalyzingGateway(FakeGateway):
    def __init__(self, profiles=(), **kwargs):
        super().__init__(**kwargs)
        self.profiles = list(profiles)

    async def analyze(self, image_bytes, mime_type="image/png"):
        self.ensure_credential()
        result = self.profiles.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def other_profile():
    return StyleProfile(
        palette=["#C9A227", "#1A1A1A"],
        style="Luxury",
        fonts="High-contrast didone serif",
        keywords=["gold", "heritage"],
        description="A gold crest with a lion rampant",
    )


async def test_generate_before_upload_is_rejected(config):
    session = BrandSession(config, gateway=AnalyzingGateway(), sleep=no_sleep)
    with pytest.raises(DispatchError):
        await session.generate([Category.T_SHIRT])


async def test_successful_upload_replaces_profile_and_clears_gallery(config, profile, other_profile):
    gw = AnalyzingGateway([profile, other_profile])
    session = BrandSession(config, gateway=gw, sleep=no_sleep)

    await session.analyze(png_bytes())
    await session.generate(["T-Shirt", "cap"])
    assert len(session.gallery) == 2

    new_profile = await session.analyze(png_bytes(color=(0, 0, 0)), "image/png")

    assert new_profile is other_profile
    assert session.profile is other_profile
    assert len(session.gallery) == 0
    assert session.master.data == png_bytes(color=(0, 0, 0))


async def test_failed_upload_keeps_previous_state(config, profile):
    gw = AnalyzingGateway([profile, AnalysisError("Model returned unparseable style profile")])
    session = BrandSession(config, gateway=gw, sleep=no_sleep)
    await session.analyze(png_bytes())
    await session.generate([Category.MUG])
    before = session.gallery.snapshot

    with pytest.raises(AnalysisError):
        await session.analyze(b"garbage")

    assert session.profile is profile
    assert session.gallery.snapshot == before


async def test_theme_reaches_the_prompt(config, profile):
    session = BrandSession(config, gateway=AnalyzingGateway([profile]), sleep=no_sleep)
    await session.analyze(png_bytes())
    report = await session.generate([Category.POSTER], theme="Lunar New Year")
    assert "Lunar New Year" in report.assets[0].prompt


async def test_close_stops_polling_video_job(config, profile):
    holder = {}
    sleeps = []

    async def closing_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) == 2:
            holder["session"].close()

    gw = AnalyzingGateway([profile], video_polls=1000)
    session = BrandSession(config, gateway=gw, sleep=closing_sleep)
    holder["session"] = session
    await session.analyze(png_bytes())

    report = await session.generate([Category.VERTICAL_VIDEO])

    assert Category.VERTICAL_VIDEO in report.failures
    assert gw.poll_calls == 1
    assert gw.fetch_calls == []
    assert len(session.gallery) == 0


async def test_new_upload_stops_previous_video_job(config, profile, other_profile):
    holder = {}

    async def reuploading_sleep(seconds):
        if "reuploaded" not in holder:
            holder["reuploaded"] = True
            await holder["session"].analyze(png_bytes(color=(1, 2, 3)))

    gw = AnalyzingGateway([profile, other_profile], video_polls=5)
    session = BrandSession(config, gateway=gw, sleep=reuploading_sleep)
    holder["session"] = session
    await session.analyze(png_bytes())

    report = await session.generate([Category.HORIZONTAL_VIDEO])

    assert Category.HORIZONTAL_VIDEO in report.failures
    assert session.profile is other_profile
    assert len(session.gallery) == 0


async def test_closed_session_refuses_work(config, profile):
    session = BrandSession(config, gateway=AnalyzingGateway([profile]), sleep=no_sleep)
    session.close()
    with pytest.raises(SessionClosed):
        await session.analyze(png_bytes())
    with pytest.raises(SessionClosed):
        await session.generate([Category.CAP])


async def test_context_manager_closes(config):
    async with BrandSession(config, gateway=AnalyzingGateway()) as session:
        assert not session.closed
    assert session.closed


async def test_open_editor_closes_previous(config, profile):
    session = BrandSession(config, gateway=AnalyzingGateway([profile]), sleep=no_sleep)
    await session.analyze(png_bytes())
    await session.generate([Category.T_SHIRT, Category.CAP])
    first_asset, second_asset = session.gallery.snapshot

    first = session.open_editor(first_asset.id)
    first.draw([(2, 2), (10, 10)])
    second = session.open_editor(second_asset.id)

    assert first.closed
    assert first.canvas.is_empty
    assert session.editor is second


async def test_refine_and_undo_through_session(config, profile):
    gw = AnalyzingGateway([profile])
    session = BrandSession(config, gateway=gw, sleep=no_sleep)
    await session.analyze(png_bytes())
    await session.generate([Category.BILLBOARD])
    original = session.gallery.snapshot[0]

    updated = await session.refine(original.id, [[(1, 1), (20, 20)]], "add a sunset sky")

    assert updated.history == (original.media,)
    assert session.gallery.require(original.id).media == updated.media
    assert session.editor.undo().media == original.media


async def test_export_zip_contains_current_media(config, profile, tmp_path):
    session = BrandSession(config, gateway=AnalyzingGateway([profile]), sleep=no_sleep)
    await session.analyze(png_bytes())
    await session.generate([Category.T_SHIRT, Category.VERTICAL_VIDEO])

    zip_path = session.export_zip(tmp_path, kit_name="Acme Kit")

    with zipfile.ZipFile(zip_path) as zf:
        names = sorted(zf.namelist())
    assert zip_path.name == "Acme_Kit.zip"
    assert len(names) == 2
    assert all(n.startswith("Acme_Kit/") for n in names)
    assert any(n.endswith(".mp4") for n in names)
    assert any(n.endswith(".png") for n in names)


class GatedRefineGateway(AnalyzingGateway):
    def __init__(self, profiles=(), **kwargs):
        super().__init__(profiles, **kwargs)
        self.release = asyncio.Event()

    async def refine(self, current, mask_png, instruction):
        self.refine_calls.append((current, mask_png, instruction))
        await self.release.wait()
        return png_media(color=(len(self.refine_calls), 9, 9))


async def test_reopened_editor_cannot_start_a_second_refinement(config, profile):
    gw = GatedRefineGateway([profile])
    session = BrandSession(config, gateway=gw, sleep=no_sleep)
    await session.analyze(png_bytes())
    await session.generate([Category.T_SHIRT])
    asset = session.gallery.snapshot[0]

    first = session.open_editor(asset.id)
    first.instruction = "navy"
    pending = asyncio.ensure_future(first.submit())
    await asyncio.sleep(0)

    second = session.open_editor(asset.id)
    second.instruction = "red"
    assert first.closed
    assert second.processing
    with pytest.raises(RefinementRejected):
        await second.submit()

    gw.release.set()
    with pytest.raises(RefinementError):
        await pending
    assert len(gw.refine_calls) == 1
    assert session.gallery.require(asset.id).history == ()

    updated = await second.submit()
    assert updated.history == (asset.media,)
    assert gw.refine_calls[1][0] == asset.media


async def test_new_upload_during_refinement_rejects_cleanly(config, profile, other_profile):
    gw = GatedRefineGateway([profile, other_profile])
    session = BrandSession(config, gateway=gw, sleep=no_sleep)
    await session.analyze(png_bytes())
    await session.generate([Category.MUG])
    asset = session.gallery.snapshot[0]

    editor = session.open_editor(asset.id)
    editor.instruction = "matte finish"
    pending = asyncio.ensure_future(editor.submit())
    await asyncio.sleep(0)

    await session.analyze(png_bytes(color=(5, 5, 5)))
    gw.release.set()

    with pytest.raises(RefinementError):
        await pending
    assert len(session.gallery) == 0
    assert session.editor is None
