"""ZIP packaging and single-file saves."""

import zipfile

from brand_engine.media import MediaRef
from brand_engine.models import Asset, Category
from brand_engine.zip_exporter import DEFAULT_KIT_NAME, asset_filename, create_brand_kit_zip, save_asset
from conftest import png_media


def test_empty_gallery_makes_no_zip(tmp_path):
    assert create_brand_kit_zip([], tmp_path) is None
    assert list(tmp_path.iterdir()) == []


def test_zip_holds_current_media_only(tmp_path):
    original = Asset(category=Category.T_SHIRT, media=png_media(color=(1, 1, 1)))
    refined = original.refined(png_media(color=(2, 2, 2)))
    video = Asset(category=Category.VERTICAL_VIDEO, media=MediaRef(b"mp4data", "video/mp4"))

    zip_path = create_brand_kit_zip([refined, video], tmp_path)

    assert zip_path == tmp_path / f"{DEFAULT_KIT_NAME}.zip"
    with zipfile.ZipFile(zip_path) as zf:
        names = zf.namelist()
        assert f"{DEFAULT_KIT_NAME}/{asset_filename(refined)}" in names
        assert zf.read(f"{DEFAULT_KIT_NAME}/{asset_filename(refined)}") == refined.media.data
        assert zf.read(f"{DEFAULT_KIT_NAME}/{asset_filename(video)}") == b"mp4data"
    assert len(names) == 2


def test_kit_name_is_sanitised(tmp_path):
    asset = Asset(category=Category.CAP, media=png_media())
    zip_path = create_brand_kit_zip([asset], tmp_path, kit_name="Spring / Summer 26!")
    assert zip_path.name == "Spring___Summer_26_.zip"


def test_asset_filename_uses_slug_and_short_id():
    asset = Asset(category=Category.INFLUENCER_POST, media=png_media())
    assert asset_filename(asset) == f"influencer-post-{asset.id[:4]}.png"


def test_save_asset_writes_bytes(tmp_path):
    asset = Asset(category=Category.MUG, media=png_media())
    path = save_asset(asset, tmp_path / "out")
    assert path.name.startswith("brand-kit-mug-")
    assert path.read_bytes() == asset.media.data
