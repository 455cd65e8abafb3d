"""
mask.py — Two-layer edit canvas and binary mask rasterization.

The canvas keeps the base image and the user's strokes in separate buffers.
Strokes are painted translucent white onto a transparent RGBA layer; the
base image is never drawn on. rasterize_mask() turns the stroke layer into
a strict black/white mask: any pixel with alpha > 0 becomes white.
"""

from __future__ import annotations

import io
from typing import Iterable, Optional, Sequence, Tuple, Union

import numpy as np
from PIL import Image, ImageDraw

from .media import MediaRef

Point = Tuple[float, float]

WHITE = (255, 255, 255)


def rasterize_mask(stroke_layer: Union[Image.Image, np.ndarray]) -> Image.Image:
    """
    Threshold the stroke layer's alpha channel at zero.

    Returns an RGB image of the same size: pure white where alpha > 0,
    pure black everywhere else. The input is not modified.
    """
    alpha = _alpha_channel(stroke_layer)
    painted = alpha > 0
    mask = np.zeros(alpha.shape + (3,), dtype=np.uint8)
    mask[painted] = WHITE
    return Image.fromarray(mask)


def mask_to_png(mask: Image.Image) -> bytes:
    buf = io.BytesIO()
    mask.save(buf, format="PNG")
    return buf.getvalue()


def _alpha_channel(layer: Union[Image.Image, np.ndarray]) -> np.ndarray:
    if isinstance(layer, Image.Image):
        if layer.mode != "RGBA":
            layer = layer.convert("RGBA")
        return np.asarray(layer.getchannel("A"))
    arr = np.asarray(layer)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise ValueError(f"Stroke layer must be H×W×4 RGBA, got shape {arr.shape}")
    return arr[:, :, 3]


def fit_within(size: Tuple[int, int], max_size: Optional[Tuple[int, int]]) -> Tuple[int, int]:
    """Scale (w, h) to fit inside max_size, keeping aspect ratio."""
    w, h = size
    if not max_size:
        return w, h
    ratio = min(max_size[0] / w, max_size[1] / h)
    return max(1, round(w * ratio)), max(1, round(h * ratio))


class EditCanvas:
    """Immutable base image + mutable stroke layer at one working resolution."""

    def __init__(self, base: Image.Image, max_size: Optional[Tuple[int, int]] = None) -> None:
        self.max_size = max_size
        self._set_base(base)

    @classmethod
    def from_media(cls, media: MediaRef, max_size: Optional[Tuple[int, int]] = None) -> "EditCanvas":
        return cls(_decode_image(media), max_size=max_size)

    def _set_base(self, base: Image.Image) -> None:
        size = fit_within(base.size, self.max_size)
        base = base.convert("RGBA")
        if size != base.size:
            base = base.resize(size, Image.LANCZOS)
        self._base = base
        self._strokes = Image.new("RGBA", size, (0, 0, 0, 0))

    @property
    def size(self) -> Tuple[int, int]:
        return self._base.size

    @property
    def base(self) -> Image.Image:
        return self._base.copy()

    @property
    def stroke_layer(self) -> Image.Image:
        return self._strokes.copy()

    @property
    def is_empty(self) -> bool:
        return self._strokes.getchannel("A").getbbox() is None

    def draw_stroke(
        self,
        points: Sequence[Point],
        brush_size: float = 20,
        opacity: float = 0.5,
    ) -> None:
        """Paint one freehand stroke with round caps and joins."""
        if not points:
            return
        alpha = max(1, min(255, round(255 * opacity)))
        fill = WHITE + (alpha,)
        width = max(1, round(brush_size))
        radius = width / 2
        draw = ImageDraw.Draw(self._strokes)
        if len(points) > 1:
            draw.line([tuple(p) for p in points], fill=fill, width=width, joint="curve")
        for x, y in points:
            draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=fill)

    def draw_strokes(self, strokes: Iterable[Sequence[Point]], brush_size: float = 20) -> None:
        for stroke in strokes:
            self.draw_stroke(stroke, brush_size)

    def clear_strokes(self) -> None:
        self._strokes = Image.new("RGBA", self.size, (0, 0, 0, 0))

    def export_mask(self) -> Image.Image:
        return rasterize_mask(self._strokes)

    def export_mask_png(self) -> bytes:
        return mask_to_png(self.export_mask())

    def preview(self) -> Image.Image:
        """Strokes over the base, for display only."""
        return Image.alpha_composite(self._base, self._strokes)

    def rebase(self, media: MediaRef) -> None:
        """New underlying image: strokes drawn for the old one are dropped."""
        self._set_base(_decode_image(media))


def _decode_image(media: MediaRef) -> Image.Image:
    img = Image.open(io.BytesIO(media.data))
    img.load()
    return img
