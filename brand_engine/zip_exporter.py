"""
zip_exporter.py — Bundle the gallery's current media into a ZIP file.

Creates one archive with a single folder:
  <kit_name>/
      t-shirt-1a2b.png
      cap-3c4d.png
      vertical-video-5e6f.mp4
      ...

Only each asset's *current* media is exported; undo history is not.
"""

from __future__ import annotations

import logging
import re
import zipfile
from pathlib import Path
from typing import Iterable, Optional

from .models import Asset

logger = logging.getLogger(__name__)

DEFAULT_KIT_NAME = "Global_Brand_Expansion_Kit"


def asset_filename(asset: Asset, prefix: str = "") -> str:
    return f"{prefix}{asset.category.slug}-{asset.short_id}.{asset.media.extension}"


def create_brand_kit_zip(
    assets: Iterable[Asset],
    output_dir: Path,
    kit_name: str = DEFAULT_KIT_NAME,
) -> Optional[Path]:
    """
    Bundle every asset's current media into one ZIP.

    Args:
        assets:      Gallery snapshot (or any iterable of Assets)
        output_dir:  Directory to write the ZIP file
        kit_name:    Archive name and top-level folder inside it

    Returns:
        Path to created ZIP file, or None when there was nothing to export
        or the archive could not be written.
    """
    assets = [a for a in assets if a.media.data]
    if not assets:
        logger.info("ZIP skipped: gallery is empty")
        return None

    safe_name = re.sub(r"[^a-zA-Z0-9_-]", "_", kit_name.strip())[:60] or DEFAULT_KIT_NAME
    output_dir = Path(output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        zip_path = output_dir / f"{safe_name}.zip"

        with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zf:
            for asset in assets:
                zf.writestr(f"{safe_name}/{asset_filename(asset)}", asset.media.data)

        logger.info(f"ZIP created: {zip_path.name} ({len(assets)} files, {zip_path.stat().st_size // 1024} KB)")
        return zip_path

    except OSError as e:
        logger.warning(f"ZIP creation failed: {e}")

    return None


def save_asset(asset: Asset, output_dir: Path) -> Path:
    """Write one asset's current media as brand-kit-<category>-<id>.<ext>."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / asset_filename(asset, prefix="brand-kit-")
    path.write_bytes(asset.media.data)
    return path
