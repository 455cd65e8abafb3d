"""
session.py — One user's working session: upload → profile → gallery → edits.

BrandSession ties the pieces together. It holds the current StyleProfile
(replaced wholesale on each successful upload), the gallery, at most one
open RefinementSession, the ids of assets with a refinement in flight
(shared by every editor it opens) and the Liveness flag that every video
poll loop of the session checks. close() flips that flag so no poll
outlives the session.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence, Set, Tuple, Union

from .config import EngineConfig
from .dispatcher import DispatchReport, GenerationDispatcher
from .errors import SessionClosed
from .gallery import Gallery
from .gateway import GenerationGateway
from .media import MediaRef, load_image_file
from .models import Category, StyleProfile
from .refinement import RefinementSession
from .video_job import Liveness, Sleep
from .zip_exporter import DEFAULT_KIT_NAME, create_brand_kit_zip

logger = logging.getLogger(__name__)


class BrandSession:
    def __init__(
        self,
        config: EngineConfig,
        gateway: Optional[GenerationGateway] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.config = config
        self.gateway = gateway or GenerationGateway(config)
        self.gallery = Gallery()
        self.dispatcher = GenerationDispatcher(
            self.gateway,
            self.gallery,
            poll_interval=config.poll_interval,
            max_polls=config.max_polls,
            sleep=sleep,
        )
        self.profile: Optional[StyleProfile] = None
        self.master: Optional[MediaRef] = None
        self.editor: Optional[RefinementSession] = None
        self._refining: Set[str] = set()
        self._liveness = Liveness()
        self.closed = False

    async def __aenter__(self) -> "BrandSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    def _check_open(self) -> None:
        if self.closed:
            raise SessionClosed("Session is closed")

    # ── Upload / analysis ─────────────────────────────────────────────────────

    async def analyze(self, image_bytes: bytes, mime_type: str = "image/png") -> StyleProfile:
        """
        Derive a StyleProfile from one reference image.

        On success the profile, master image and gallery are replaced and any
        video jobs still polling for the previous upload are stopped. On
        failure (AnalysisError) nothing in the session changes.
        """
        self._check_open()
        profile = await self.gateway.analyze(image_bytes, mime_type)

        self.close_editor()
        self._liveness.close()
        self._liveness = Liveness()
        self.master = MediaRef(data=image_bytes, mime_type=mime_type)
        self.profile = profile
        self.gallery.clear()
        return profile

    async def analyze_file(self, path: Union[str, Path]) -> StyleProfile:
        image_bytes, mime_type = load_image_file(path)
        return await self.analyze(image_bytes, mime_type)

    # ── Generation ────────────────────────────────────────────────────────────

    async def generate(
        self,
        categories: Iterable[Union[Category, str]],
        theme: Optional[str] = None,
    ) -> DispatchReport:
        self._check_open()
        selected = [c if isinstance(c, Category) else Category.parse(c) for c in categories]
        return await self.dispatcher.dispatch(selected, self.profile, theme, liveness=self._liveness)

    # ── Editing ───────────────────────────────────────────────────────────────

    def open_editor(
        self,
        asset_id: str,
        max_size: Optional[Tuple[int, int]] = None,
    ) -> RefinementSession:
        """Open the refinement editor on one asset, closing any other."""
        self._check_open()
        self.close_editor()
        self.editor = RefinementSession(
            asset_id, self.gallery, self.gateway, max_size=max_size, in_flight=self._refining
        )
        return self.editor

    def close_editor(self) -> None:
        if self.editor is not None:
            self.editor.close()
            self.editor = None

    async def refine(
        self,
        asset_id: str,
        strokes: Sequence[Sequence[Tuple[float, float]]],
        instruction: str,
        brush_size: float = 20,
    ):
        """Open the editor on `asset_id`, paint `strokes` and submit in one go."""
        editor = self.editor
        if editor is None or editor.asset_id != asset_id:
            editor = self.open_editor(asset_id)
        for stroke in strokes:
            editor.draw(stroke, brush_size)
        editor.instruction = instruction
        return await editor.submit()

    # ── Export / teardown ─────────────────────────────────────────────────────

    def export_zip(self, output_dir: Path, kit_name: str = DEFAULT_KIT_NAME) -> Optional[Path]:
        return create_brand_kit_zip(self.gallery.snapshot, output_dir, kit_name=kit_name)

    def close(self) -> None:
        if self.closed:
            return
        self._liveness.close()
        self.close_editor()
        self.closed = True
        logger.info("Session closed")
