"""Categories, style profiles and the asset history law."""

import pytest

from brand_engine.models import Asset, Category, MediaKind, StyleProfile, category_groups
from conftest import png_media


@pytest.mark.parametrize(
    "text, expected",
    [
        ("T-Shirt", Category.T_SHIRT),
        ("t-shirt", Category.T_SHIRT),
        ("T_SHIRT", Category.T_SHIRT),
        ("tshirt", Category.T_SHIRT),
        ("vertical video", Category.VERTICAL_VIDEO),
        ("Square-Logo", Category.SQUARE_LOGO),
    ],
)
def test_category_parse(text, expected):
    assert Category.parse(text) is expected


def test_category_parse_rejects_unknown():
    with pytest.raises(ValueError, match="Unknown category"):
        Category.parse("hoodie")


def test_only_video_categories_are_video():
    videos = {c for c in Category if c.is_video}
    assert videos == {Category.VERTICAL_VIDEO, Category.HORIZONTAL_VIDEO}
    assert Category.VERTICAL_VIDEO.kind is MediaKind.VIDEO
    assert Category.VERTICAL_VIDEO.aspect_ratio == "9:16"
    assert Category.T_SHIRT.kind is MediaKind.IMAGE


def test_category_groups_cover_every_category():
    groups = category_groups()
    assert groups["Apparel"] == [Category.T_SHIRT, Category.CAP]
    assert sum(len(v) for v in groups.values()) == len(Category)


def test_slug():
    assert Category.T_SHIRT.slug == "t-shirt"
    assert Category.HORIZONTAL_VIDEO.slug == "horizontal-video"


def test_style_profile_dedupes_and_is_frozen():
    profile = StyleProfile(
        palette=["#FFFFFF", "#ffffff", "#000000"],
        style="Luxury",
        fonts="Serif",
        keywords=["gold", " Gold ", "", "serif"],
        description="A crest",
    )
    assert profile.palette == ["#FFFFFF", "#000000"]
    assert profile.keywords == ["gold", "serif"]
    with pytest.raises(Exception):
        profile.style = "Grunge"


def test_new_asset_has_empty_history():
    asset = Asset(Category.CAP, png_media())
    assert asset.history == ()
    assert not asset.can_undo
    assert len(asset.id) == 32


def test_history_law():
    media = [png_media(color=(i * 20, 0, 0)) for i in range(5)]
    asset = Asset(Category.POSTER, media[0])
    for m in media[1:]:
        asset = asset.refined(m)

    assert len(asset.history) == 4
    assert asset.timeline == tuple(media)

    undone = asset.undone()
    assert undone.media == media[3]
    assert len(undone.history) == 3
    assert undone.id == asset.id


def test_undo_on_empty_history_is_noop():
    asset = Asset(Category.MUG, png_media())
    assert asset.undone() is asset
