"""RRB sprites stage."""

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, PrivateAttr

from m65_assets.assets.sprite import Sprite, load_sprite
from m65_assets.data.models import Point, Size
from m65_assets.errors import InputError
from m65_assets.export.bundle import expand_template
from m65_assets.export.screen import rrb_y_components
from m65_assets.export.sprite import (
    SpriteChar,
    SpriteData,
    SpriteFrameData,
    encode_sprite_frames,
    encode_sprite_lookup,
)
from m65_assets.images.container import (
    DuplicatesOptions,
    TransparencyOptions,
    TransparentTileRule,
)
from m65_assets.images.splitter import (
    IndexedGrid,
    ParsingOrder,
    TileIndexer,
    TransparentInsertion,
)

from .base import BuildState, Runner

logger = logging.getLogger(__name__)


class IndexedSprite(BaseModel):
    """Sprite with a char grid per frame."""

    sprite: Sprite
    grids: list[IndexedGrid]


class RRBSpritesRunner(Runner):
    """Converts sprite images into RRB sprite frames.

    Frame chars are stored column by column, each column framed by its own
    transparent chars, so the hardware can shift the sprite vertically by
    pixels. Optionally the first frame of each sprite is appended to all
    screens of the build.
    """

    kind: Literal["rrb-sprites"] = "rrb-sprites"
    frame_size: Size | None = None
    duration_ms: int = Field(default=0, ge=0)
    output_frames: str | None = None
    output_lookup: str | None = None
    append_screens: bool = False
    positions: list[Point] = []

    _sprites: list[IndexedSprite] = PrivateAttr(default_factory=list)
    _data: list[SpriteData] = PrivateAttr(default_factory=list)

    def parse_inputs(self, state: BuildState) -> None:
        """Load sprites and add chars of all frames."""
        char_info = state.char_info
        indexer = TileIndexer(
            tile_width=char_info.width,
            tile_height=char_info.height,
            colours_per_tile=char_info.colours_per_char,
            order=ParsingOrder.COLUMN_BY_COLUMN,
            transparency=TransparencyOptions.KEEP_ALL,
            duplicates=DuplicatesOptions.KEEP_ALL,
            insertion=TransparentInsertion.BEFORE_AND_AFTER,
            insertion_rule=TransparentTileRule.ALWAYS_ADD,
        )
        for path in self.inputs:
            sprite = load_sprite(path, self.frame_size, self.duration_ms)
            if sprite.width < char_info.width or sprite.height < char_info.height:
                raise InputError(
                    f"Frames of {sprite.width}x{sprite.height} are smaller than a"
                    f" {char_info.width}x{char_info.height} char",
                    path,
                )
            grids = []
            for i, frame in enumerate(sprite.frames):
                res = indexer.split(frame.image, state.chars)
                logger.debug(f"{sprite.name} frame {i}: added {res.added_count} chars")
                grids.append(res.grid)
            self._sprites.append(IndexedSprite(sprite=sprite, grids=grids))
            logger.info(f"Sprite {sprite.name}: {len(sprite.frames)} frames")

    def prepare_export(self, state: BuildState) -> None:
        """Prepare frames data and append sprites to screens if requested."""
        for indexed in self._sprites:
            data = self._sprite_data(indexed, state)
            self._data.append(data)
            state.sprites.append(data)
        if self.append_screens:
            self._append_to_screens(state)

    def _sprite_data(self, indexed: IndexedSprite, state: BuildState) -> SpriteData:
        first = indexed.grids[0] if indexed.grids else IndexedGrid()
        data = SpriteData(
            name=indexed.sprite.name,
            path=indexed.sprite.path,
            chars_width=first.width,
            chars_height=max(first.height - 2, 0),
        )
        for frame, grid in zip(indexed.sprite.frames, indexed.grids):
            rows = [
                [SpriteChar(address=state.char_address(i)) for i in row]
                for row in grid.rows
            ]
            data.frames.append(
                SpriteFrameData(
                    duration_ms=frame.duration_ms,
                    starting=rows[0],
                    rows=rows[1:-1],
                    ending=rows[-1],
                )
            )
        return data

    def _position(self, sprite_index: int, state: BuildState) -> Point:
        if not self.positions:
            # Just outside the right edge of the screen
            return (self.options.screen_size[0] * state.char_info.width, 0)
        return self.positions[min(sprite_index, len(self.positions) - 1)]

    def _append_to_screens(self, state: BuildState) -> None:
        char_info = state.char_info
        base = state.options.chars_address
        for sprite_index, indexed in enumerate(self._sprites):
            if not indexed.grids:
                continue
            x, y = self._position(sprite_index, state)
            top_row, y_offset = rrb_y_components(y, char_info.height)
            grid = indexed.grids[0]
            bottom_row = top_row + grid.height - 3
            logger.debug(
                f"{indexed.sprite.name} at ({x}, {y}):"
                f" row {top_row}, Y offset {y_offset}"
            )

            for screen in state.screens:
                rows = list(zip(screen.screen.rows, screen.colour.rows))
                for screen_row, colour_row in rows:
                    screen_row.add_screen_gotox(x, y_offset)
                    colour_row.add_colour_gotox()
                for cx in range(grid.width):
                    for row_index, (screen_row, colour_row) in enumerate(rows):
                        if row_index < top_row:
                            index = grid[cx, 0]
                        elif row_index <= bottom_row:
                            index = grid[cx, row_index - top_row + 1]
                        else:
                            index = grid[cx, grid.height - 1]
                        screen_row.add_screen_data(char_info, base, index)
                        colour_row.add_colour_data(char_info)

        logger.debug(
            f"Appended {len(self._sprites)} sprites to {len(state.screens)} screens"
        )

    def finalize_export(self, state: BuildState) -> None:
        """End every screen row with a GOTOX past the right edge of the screen."""
        if not self.append_screens or state.screens_terminated:
            return
        state.screens_terminated = True

        char_info = state.char_info
        x = self.options.screen_size[0] * char_info.width
        for screen in state.screens:
            rows = zip(screen.screen.rows, screen.colour.rows)
            for screen_row, colour_row in rows:
                screen_row.add_screen_gotox(x)
                screen_row.add_screen_data(char_info, 0, 0)
                colour_row.add_colour_gotox()
                colour_row.add_colour_data(char_info)

    def export(self, state: BuildState) -> None:
        """Add frames and lookup data of my sprites."""
        for data in self._data:
            if self.output_frames is not None:
                frames = encode_sprite_frames(data)
                state.output.add(
                    self._path(self.output_frames, data), frames, "sprite frames"
                )
            if self.output_lookup is not None:
                lookup = encode_sprite_lookup(data, state.char_info)
                state.output.add(
                    self._path(self.output_lookup, data), lookup, "sprite lookup"
                )

    @staticmethod
    def _path(template: str, data: SpriteData) -> Path:
        return Path(expand_template(template, name=data.name))
