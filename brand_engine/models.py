"""
models.py — Core data model for the brand engine.

  StyleProfile       structured palette/style summary of one reference image
  Category           the fixed set of output types a user can select
  GenerationRequest  one category + profile + optional theme
  Asset              one generated piece of media plus its undo history
  VideoJobHandle     a pollable Veo job reference
"""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .media import MediaRef


# ── Style profile (also the analysis call's response schema) ─────────────────

class StyleProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    palette: List[str] = Field(
        description="Brand color palette as hex codes, most dominant first, e.g. '#1A2B3C'"
    )
    style: str = Field(
        description="Visual style label, e.g. 'Minimalist', 'Grunge', 'Luxury'"
    )
    fonts: str = Field(
        description="Approximate font styles detected, e.g. 'Sans-serif bold', 'Script'"
    )
    keywords: List[str] = Field(
        description="Key visual keywords describing the brand",
    )
    description: str = Field(
        description="Concise description of the logo/graphic, precise enough to reproduce it"
    )

    @field_validator("palette", "keywords")
    @classmethod
    def _dedupe(cls, values: List[str]) -> List[str]:
        seen = set()
        out = []
        for v in values:
            v = v.strip()
            if v and v.lower() not in seen:
                seen.add(v.lower())
                out.append(v)
        return out


# ── Categories ────────────────────────────────────────────────────────────────

class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class _CategorySpec(NamedTuple):
    group: str
    label: str
    kind: MediaKind
    aspect_ratio: str
    product: str


class Category(str, Enum):
    T_SHIRT = "T-Shirt"
    CAP = "Cap"
    BILLBOARD = "Billboard"
    POSTER = "Poster"
    MUG = "Mug"
    TOTE = "Tote"
    VERTICAL_VIDEO = "Vertical Video"
    HORIZONTAL_VIDEO = "Horizontal Video"
    INFLUENCER_POST = "Influencer Post"
    SQUARE_LOGO = "Square Logo"

    @property
    def spec(self) -> _CategorySpec:
        return _CATEGORY_SPECS[self]

    @property
    def group(self) -> str:
        return self.spec.group

    @property
    def label(self) -> str:
        return self.spec.label

    @property
    def kind(self) -> MediaKind:
        return self.spec.kind

    @property
    def is_video(self) -> bool:
        return self.spec.kind is MediaKind.VIDEO

    @property
    def aspect_ratio(self) -> str:
        return self.spec.aspect_ratio

    @property
    def product(self) -> str:
        return self.spec.product

    @property
    def slug(self) -> str:
        return re.sub(r"[^a-z0-9]+", "-", self.value.lower()).strip("-")

    @classmethod
    def parse(cls, text: str) -> "Category":
        """Accept 'T-Shirt', 'T_SHIRT', 't-shirt', 'tshirt' and the like."""
        key = re.sub(r"[^a-z0-9]", "", text.lower())
        for cat in cls:
            if key in (re.sub(r"[^a-z0-9]", "", cat.value.lower()), cat.name.lower().replace("_", "")):
                return cat
        valid = ", ".join(c.value for c in cls)
        raise ValueError(f"Unknown category {text!r} (expected one of: {valid})")


_CATEGORY_SPECS: Dict[Category, _CategorySpec] = {
    Category.T_SHIRT: _CategorySpec(
        "Apparel", "T-Shirt", MediaKind.IMAGE, "1:1",
        "A high-quality cotton t-shirt presented flat-lay or on a ghost mannequin",
    ),
    Category.CAP: _CategorySpec(
        "Apparel", "Cap", MediaKind.IMAGE, "1:1",
        "A structured baseball cap or dad hat with embroidery details",
    ),
    Category.BILLBOARD: _CategorySpec(
        "Large Format Signage", "Billboard", MediaKind.IMAGE, "16:9",
        "A massive outdoor billboard mockup in a busy city environment",
    ),
    Category.POSTER: _CategorySpec(
        "Large Format Signage", "Poster", MediaKind.IMAGE, "3:4",
        "A sleek vertical poster framed in a modern subway station or gallery wall",
    ),
    Category.MUG: _CategorySpec(
        "Hard Goods", "Mug", MediaKind.IMAGE, "1:1",
        "A ceramic coffee mug with a matte finish on a wooden table",
    ),
    Category.TOTE: _CategorySpec(
        "Hard Goods", "Tote Bag", MediaKind.IMAGE, "1:1",
        "A natural canvas tote bag hanging on a hook or placed on a bench",
    ),
    Category.VERTICAL_VIDEO: _CategorySpec(
        "Video Spots", "Vertical Video (9:16)", MediaKind.VIDEO, "9:16",
        "A short vertical brand spot for stories and reels",
    ),
    Category.HORIZONTAL_VIDEO: _CategorySpec(
        "Video Spots", "Horizontal Video (16:9)", MediaKind.VIDEO, "16:9",
        "A short widescreen brand commercial",
    ),
    Category.INFLUENCER_POST: _CategorySpec(
        "Social", "Influencer Post", MediaKind.IMAGE, "4:5",
        "A candid lifestyle social media post of a creator using the branded product",
    ),
    Category.SQUARE_LOGO: _CategorySpec(
        "Social", "Square Logo", MediaKind.IMAGE, "1:1",
        "A clean square profile-picture version of the logo on a brand-colored background",
    ),
}


def category_groups() -> Dict[str, List[Category]]:
    """Categories grouped for display, in declaration order."""
    groups: Dict[str, List[Category]] = {}
    for cat in Category:
        groups.setdefault(cat.group, []).append(cat)
    return groups


# ── Requests and assets ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class GenerationRequest:
    category: Category
    profile: StyleProfile
    theme: Optional[str] = None


@dataclass(frozen=True)
class Asset:
    category: Category
    media: MediaRef
    prompt: str = ""
    history: Tuple[MediaRef, ...] = ()                      # prior media, most recent last
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: float = field(default_factory=time.time)

    @property
    def kind(self) -> MediaKind:
        return self.category.kind

    @property
    def label(self) -> str:
        return self.category.label

    @property
    def can_undo(self) -> bool:
        return bool(self.history)

    @property
    def timeline(self) -> Tuple[MediaRef, ...]:
        return self.history + (self.media,)

    @property
    def short_id(self) -> str:
        return self.id[:4]

    def refined(self, new_media: MediaRef) -> "Asset":
        return replace(self, media=new_media, history=self.history + (self.media,))

    def undone(self) -> "Asset":
        if not self.history:
            return self
        return replace(self, media=self.history[-1], history=self.history[:-1])


@dataclass(frozen=True)
class VideoJobHandle:
    operation: Any                      # opaque service operation
    done: bool = False
    uri: Optional[str] = None
    error: Optional[str] = None
