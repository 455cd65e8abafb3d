"""
refinement.py — Paint-to-edit session for one gallery asset.

A RefinementSession owns the two-layer canvas for the asset being edited
and the pending instruction. submit() sends the asset's current image, the
rasterized mask and the instruction to the gateway; on success the old
image goes onto the asset's history and the new one becomes current.
undo() pops the history back. Whenever the current image changes the
stroke layer is cleared, so strokes are never sent against an image they
were not drawn on.

The in-flight marker is kept per asset id in a set that can be shared by
every editor of one BrandSession, so reopening the editor on an asset
whose refinement is still pending does not allow a second one to start.
A result that arrives after the editor was closed, or after the asset
left the gallery, is discarded.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Set, Tuple

from .errors import BrandEngineError, RefinementError, RefinementRejected
from .gallery import Gallery
from .mask import EditCanvas, Point
from .models import Asset

logger = logging.getLogger(__name__)


class RefinementSession:
    def __init__(
        self,
        asset_id: str,
        gallery: Gallery,
        gateway,
        max_size: Optional[Tuple[int, int]] = None,
        in_flight: Optional[Set[str]] = None,
    ) -> None:
        asset = gallery.require(asset_id)
        if asset.category.is_video:
            raise RefinementRejected(f"{asset.label} is a video — only images can be refined")

        self.asset_id = asset_id
        self.gallery = gallery
        self.gateway = gateway
        self.canvas = EditCanvas.from_media(asset.media, max_size=max_size)
        self.instruction = ""
        self.closed = False
        self._in_flight = in_flight if in_flight is not None else set()

    @property
    def asset(self) -> Asset:
        return self.gallery.require(self.asset_id)

    @property
    def processing(self) -> bool:
        return self.asset_id in self._in_flight

    @property
    def can_submit(self) -> bool:
        return bool(self.instruction.strip()) and not self.processing and not self.closed

    @property
    def can_undo(self) -> bool:
        asset = self.gallery.get(self.asset_id)
        return asset is not None and asset.can_undo and not self.processing and not self.closed

    # ── Strokes ───────────────────────────────────────────────────────────────

    def draw(self, points: Sequence[Point], brush_size: float = 20) -> None:
        if self.closed:
            raise RefinementRejected("Editor is closed")
        self.canvas.draw_stroke(points, brush_size)

    def clear_strokes(self) -> None:
        self.canvas.clear_strokes()

    # ── Submit / undo ─────────────────────────────────────────────────────────

    async def submit(self) -> Asset:
        """
        Apply the instruction inside the painted region.

        Raises RefinementRejected (no request sent) when the instruction is
        blank, a refinement of this asset is already running, the asset is
        gone or the editor is closed. Raises RefinementError when the edit
        fails or its result can no longer be applied; the asset, its history,
        the strokes and the instruction are all kept so the user can retry.
        """
        if self.closed:
            raise RefinementRejected("Editor is closed")
        if not self.instruction.strip():
            raise RefinementRejected("Describe the change before refining")
        if self.processing:
            raise RefinementRejected("A refinement is already in progress for this asset")
        before = self.gallery.get(self.asset_id)
        if before is None:
            raise RefinementRejected("Asset is no longer in the gallery")

        self._in_flight.add(self.asset_id)
        try:
            mask_png = self.canvas.export_mask_png()
            try:
                new_media = await self.gateway.refine(before.media, mask_png, self.instruction)
            except BrandEngineError:
                raise
            except Exception as e:
                raise RefinementError(f"Refinement failed: {e}") from e

            current = self.gallery.get(self.asset_id)
            if self.closed or current is None:
                logger.info(f"Discarded refinement of {before.label}: editor closed")
                raise RefinementError("editor closed before the edit finished")

            updated = current.refined(new_media)
            self.gallery.replace(updated)
            self.instruction = ""
            self.canvas.rebase(new_media)
            logger.info(f"✓ refined {updated.label} ({len(updated.history)} step(s) of history)")
            return updated
        finally:
            self._in_flight.discard(self.asset_id)

    def undo(self) -> Asset:
        """Restore the previous image. Does nothing when there is no history."""
        asset = self.asset
        if self.closed or self.processing or not asset.can_undo:
            return asset
        restored = asset.undone()
        self.gallery.replace(restored)
        self.canvas.rebase(restored.media)
        return restored

    def close(self) -> None:
        self.closed = True
        self.canvas.clear_strokes()
