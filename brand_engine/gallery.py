"""
gallery.py — The ordered asset collection, published as immutable snapshots.

Every mutation builds a new tuple and swaps it in whole, then notifies
observers with the new snapshot. An observer never sees half a batch.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Tuple

from .models import Asset

logger = logging.getLogger(__name__)

Snapshot = Tuple[Asset, ...]
Observer = Callable[[Snapshot], None]


class Gallery:
    def __init__(self, assets: Iterable[Asset] = ()) -> None:
        self._snapshot: Snapshot = tuple(assets)
        self._version = 0
        self._observers: List[Observer] = []

    # ── Reads ─────────────────────────────────────────────────────────────────

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._snapshot)

    def __iter__(self):
        return iter(self._snapshot)

    def get(self, asset_id: str) -> Optional[Asset]:
        for asset in self._snapshot:
            if asset.id == asset_id:
                return asset
        return None

    def require(self, asset_id: str) -> Asset:
        asset = self.get(asset_id)
        if asset is None:
            raise KeyError(f"No asset with id {asset_id!r} in the gallery")
        return asset

    # ── Observers ─────────────────────────────────────────────────────────────

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer. Returns a function that unsubscribes it."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    # ── Writes ────────────────────────────────────────────────────────────────

    def extend(self, assets: Iterable[Asset]) -> Snapshot:
        """Append a whole batch in one swap. An empty batch publishes nothing."""
        batch = tuple(assets)
        if batch:
            self._publish(self._snapshot + batch)
        return self._snapshot

    def replace(self, asset: Asset) -> Snapshot:
        """Swap in a new version of one asset, keeping its position."""
        if self.get(asset.id) is None:
            raise KeyError(f"No asset with id {asset.id!r} in the gallery")
        self._publish(tuple(asset if a.id == asset.id else a for a in self._snapshot))
        return self._snapshot

    def clear(self) -> Snapshot:
        if self._snapshot:
            self._publish(())
        return self._snapshot

    def _publish(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        self._version += 1
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception as e:
                logger.warning(f"Gallery observer failed: {e}")
