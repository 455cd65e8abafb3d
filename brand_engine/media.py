"""
media.py — Media references and file-input helpers.

A MediaRef is the unit the gallery, history stack and exporter work with:
inline bytes plus a MIME type, and the service URI when one exists
(finished Veo videos). MediaRefs compare by value, so an undo can be
checked byte-for-byte against the state it restores.
"""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".webp"}

_EXT_BY_MIME = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "video/mp4": "mp4",
}

_DATA_URL_PREFIX = re.compile(r"^data:[\w/+.-]+;base64,")


@dataclass(frozen=True)
class MediaRef:
    data: bytes
    mime_type: str = "image/png"
    uri: Optional[str] = None

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")

    @property
    def extension(self) -> str:
        return _EXT_BY_MIME.get(self.mime_type, self.mime_type.rsplit("/", 1)[-1] or "bin")

    def __repr__(self) -> str:
        where = f", uri={self.uri!r}" if self.uri else ""
        return f"MediaRef({self.mime_type}, {len(self.data)} bytes{where})"


def mime_for_path(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    return f"image/{'jpeg' if ext in ('jpg', 'jpeg') else ext or 'png'}"


def load_image_file(path: Union[str, Path]) -> Tuple[bytes, str]:
    """Read one uploaded image. Returns (bytes, mime_type)."""
    path = Path(path)
    if path.suffix.lower() not in IMAGE_EXTS:
        raise ValueError(f"Unsupported image type: {path.name} (expected one of {sorted(IMAGE_EXTS)})")
    return path.read_bytes(), mime_for_path(path)


def decode_inline(data: Union[bytes, str]) -> bytes:
    """Inline data can come back as raw bytes or as base64 text (optionally a data URL)."""
    if isinstance(data, str):
        return base64.b64decode(_DATA_URL_PREFIX.sub("", data))
    return data
