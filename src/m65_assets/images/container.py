"""Container of unique tiles."""

import logging
from enum import Enum

from pydantic import BaseModel, PrivateAttr

from .tiles import IndexedTile

logger = logging.getLogger(__name__)


class TransparencyOptions(str, Enum):
    """What to do with fully transparent tiles."""

    OPAQUE_ONLY = "OPAQUE_ONLY"
    KEEP_ALL = "KEEP_ALL"


class DuplicatesOptions(str, Enum):
    """What to do with duplicate tiles."""

    UNIQUE_ONLY = "UNIQUE_ONLY"
    KEEP_ALL = "KEEP_ALL"


class TransparentTileRule(str, Enum):
    """How to add explicitly requested transparent tiles."""

    REUSE_FIRST = "REUSE_FIRST"  # first transparent tile in the container
    REUSE_PREVIOUS = "REUSE_PREVIOUS"  # only if the last tile is transparent
    ALWAYS_ADD = "ALWAYS_ADD"


class AddResult(BaseModel):
    """Result of adding a tile.

    `index` is None only when a transparent tile was dropped and the container
    has no transparent tile to point to.
    """

    was_added: bool
    index: int | None


class TileContainer(BaseModel):
    """Ordered tiles; the position of a tile is its final char index."""

    tiles: list[IndexedTile] = []
    transparent_index: int | None = None

    _restore_point: tuple[int, int | None] | None = PrivateAttr(default=None)

    def __len__(self) -> int:
        return len(self.tiles)

    def add(
        self,
        tile: IndexedTile,
        transparency: TransparencyOptions = TransparencyOptions.KEEP_ALL,
        duplicates: DuplicatesOptions = DuplicatesOptions.UNIQUE_ONLY,
    ) -> AddResult:
        """Add tile, honoring the given policies."""
        opaque_only = transparency == TransparencyOptions.OPAQUE_ONLY
        if opaque_only and tile.is_fully_transparent:
            return AddResult(was_added=False, index=self.transparent_index)

        if duplicates == DuplicatesOptions.UNIQUE_ONLY:
            for i, existing in enumerate(self.tiles):
                if existing.is_duplicate(tile):
                    return AddResult(was_added=False, index=i)

        return AddResult(was_added=True, index=self._append(tile))

    def add_transparent_tile(
        self,
        width: int,
        height: int,
        rule: TransparentTileRule = TransparentTileRule.REUSE_FIRST,
    ) -> AddResult:
        """Add a fully transparent tile, or reuse one according to the rule."""
        reuse = rule == TransparentTileRule.REUSE_FIRST
        if reuse and self.transparent_index is not None:
            return AddResult(was_added=False, index=self.transparent_index)

        if rule == TransparentTileRule.REUSE_PREVIOUS and len(self.tiles) > 0:
            last = self.tiles[-1]
            if last.is_fully_transparent and last.size == (width, height):
                return AddResult(was_added=False, index=len(self.tiles) - 1)

        tile = IndexedTile.transparent(width, height)
        return AddResult(was_added=True, index=self._append(tile))

    def set_restore_point(self) -> None:
        """Remember the current contents."""
        self._restore_point = (len(self.tiles), self.transparent_index)

    def reset_to_restore_point(self) -> None:
        """Drop all tiles added since the restore point."""
        if self._restore_point is None:
            raise RuntimeError("No restore point was set.")
        count, transparent_index = self._restore_point
        if len(self.tiles) > count:
            dropped = len(self.tiles) - count
            logger.debug(f"Dropping {dropped} tiles after restore point")
        del self.tiles[count:]
        self.transparent_index = transparent_index

    def _append(self, tile: IndexedTile) -> int:
        index = len(self.tiles)
        self.tiles.append(tile)
        if tile.is_fully_transparent and self.transparent_index is None:
            self.transparent_index = index
        return index
