"""Splitting images into indexed tiles."""

import logging
from enum import Enum
from typing import Iterator

from PIL.Image import Image
from pydantic import BaseModel

from m65_assets.errors import CapacityError

from .container import (
    AddResult,
    DuplicatesOptions,
    TileContainer,
    TransparencyOptions,
    TransparentTileRule,
)
from .tiles import IndexedTile

logger = logging.getLogger(__name__)


class ParsingOrder(str, Enum):
    """Order in which tiles are scanned."""

    ROW_BY_ROW = "ROW_BY_ROW"
    COLUMN_BY_COLUMN = "COLUMN_BY_COLUMN"


class TransparentInsertion(str, Enum):
    """Where to insert extra transparent tiles around each row or column."""

    NONE = "NONE"
    BEFORE = "BEFORE"
    AFTER = "AFTER"
    BEFORE_AND_AFTER = "BEFORE_AND_AFTER"


class IndexedGrid(BaseModel):
    """Tile indices of an image, as rows of cells."""

    rows: list[list[int | None]] = []

    @classmethod
    def filled(cls, width: int, height: int, value: int | None = None) -> "IndexedGrid":
        """Grid of the given size with every cell set to value."""
        return cls(rows=[[value] * width for _ in range(height)])

    @property
    def width(self) -> int:
        """Number of columns."""
        return len(self.rows[0]) if self.rows else 0

    @property
    def height(self) -> int:
        """Number of rows."""
        return len(self.rows)

    def __getitem__(self, xy: tuple[int, int]) -> int | None:
        x, y = xy
        return self.rows[y][x]

    def __setitem__(self, xy: tuple[int, int], value: int | None) -> None:
        x, y = xy
        self.rows[y][x] = value

    def insert_column(self, index: int, values: list[int | None]) -> None:
        """Insert a column before the given column index."""
        for row, value in zip(self.rows, values, strict=True):
            row.insert(index, value)

    def add_column(self, values: list[int | None]) -> None:
        """Append a column."""
        self.insert_column(self.width, values)

    def insert_row(self, index: int, values: list[int | None]) -> None:
        """Insert a row before the given row index."""
        if self.rows and len(values) != self.width:
            raise ValueError(f"Row needs {self.width} values, got {len(values)}")
        self.rows.insert(index, list(values))

    def add_row(self, values: list[int | None]) -> None:
        """Append a row."""
        self.insert_row(self.height, values)

    def cells(self) -> Iterator[tuple[int, int, int | None]]:
        """All cells as (x, y, value), row by row."""
        for y, row in enumerate(self.rows):
            for x, value in enumerate(row):
                yield x, y, value


class SplitResult(BaseModel):
    """Result of splitting one image."""

    grid: IndexedGrid
    added: list[IndexedTile] = []
    parsed_count: int = 0

    @property
    def added_count(self) -> int:
        """Number of tiles newly added to the container."""
        return len(self.added)


class TileIndexer(BaseModel):
    """Splits images into tiles, feeding them into a container."""

    tile_width: int
    tile_height: int
    colours_per_tile: int | None = None
    order: ParsingOrder = ParsingOrder.ROW_BY_ROW
    transparency: TransparencyOptions = TransparencyOptions.OPAQUE_ONLY
    duplicates: DuplicatesOptions = DuplicatesOptions.UNIQUE_ONLY
    insertion: TransparentInsertion = TransparentInsertion.NONE
    insertion_rule: TransparentTileRule = TransparentTileRule.REUSE_FIRST

    def split(self, image: Image, container: TileContainer) -> SplitResult:
        """Split the image into the container.

        Partial tiles at the right and bottom edges are ignored.
        """
        tw, th = self.tile_width, self.tile_height
        cols, rows = image.width // tw, image.height // th
        res = SplitResult(grid=IndexedGrid.filled(cols, rows))

        if self.order == ParsingOrder.ROW_BY_ROW:
            groups = [[(x, y) for x in range(cols)] for y in range(rows)]
        elif self.order == ParsingOrder.COLUMN_BY_COLUMN:
            groups = [[(x, y) for y in range(rows)] for x in range(cols)]
        else:
            raise ValueError(f"Unsupported parsing order: {self.order!r}")

        insert_before = self.insertion in (
            TransparentInsertion.BEFORE,
            TransparentInsertion.BEFORE_AND_AFTER,
        )
        insert_after = self.insertion in (
            TransparentInsertion.AFTER,
            TransparentInsertion.BEFORE_AND_AFTER,
        )
        starting: list[int | None] = []
        ending: list[int | None] = []

        for group in groups:
            if insert_before:
                starting.append(self._add_transparent(container, res))
            for x, y in group:
                tile = IndexedTile.from_image(image, x * tw, y * th, tw, th)
                self._check_colours(tile, x, y)
                added = container.add(tile, self.transparency, self.duplicates)
                res.grid[x, y] = added.index
                if added.was_added:
                    res.added.append(tile)
                res.parsed_count += 1
            if insert_after:
                ending.append(self._add_transparent(container, res))

        if self.order == ParsingOrder.ROW_BY_ROW:
            if starting:
                res.grid.insert_column(0, starting)
            if ending:
                res.grid.add_column(ending)
        else:
            if starting:
                res.grid.insert_row(0, starting)
            if ending:
                res.grid.add_row(ending)

        logger.debug(
            f"Split {cols}x{rows} tiles:"
            f" parsed {res.parsed_count}, added {res.added_count}"
        )
        return res

    def _add_transparent(
        self, container: TileContainer, res: SplitResult
    ) -> int | None:
        added: AddResult = container.add_transparent_tile(
            self.tile_width, self.tile_height, self.insertion_rule
        )
        if added.was_added and added.index is not None:
            res.added.append(container.tiles[added.index])
        return added.index

    def _check_colours(self, tile: IndexedTile, x: int, y: int) -> None:
        if self.colours_per_tile is None:
            return
        if len(tile.palette) > self.colours_per_tile:
            raise CapacityError(
                f"Colours in tile at column {x}, row {y}",
                len(tile.palette),
                self.colours_per_tile,
            )
