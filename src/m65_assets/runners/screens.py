"""Screens stage: levels to screen and colour RAM data."""

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, PrivateAttr

from m65_assets.assets.level import Level, load_level
from m65_assets.errors import CapacityError
from m65_assets.export.bundle import expand_template
from m65_assets.export.screen import ScreenData, ScreenLayer, encode_screen_lookup
from m65_assets.images.container import DuplicatesOptions, TransparencyOptions
from m65_assets.images.layers import Composite, merge_layers, strategy_for
from m65_assets.images.splitter import IndexedGrid, TileIndexer

from .base import BuildState, Runner

logger = logging.getLogger(__name__)


class IndexedLevel(BaseModel):
    """Merged level with a char grid per layer."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    level: Level
    grids: list[IndexedGrid]


class ScreensRunner(Runner):
    """Converts levels into screen, colour and lookup data.

    Chars not yet in the build are added, skipping transparent and duplicate
    chars. In RRB mode each layer becomes its own run of columns, separated by
    GOTOX attributes; otherwise layers are merged first.
    """

    kind: Literal["screens"] = "screens"
    output_screen: str | None = None
    output_colour: str | None = None
    output_lookup: str | None = None
    use_composite: bool = True

    _levels: list[IndexedLevel] = PrivateAttr(default_factory=list)
    _screens: list[ScreenData] = PrivateAttr(default_factory=list)

    def parse_inputs(self, state: BuildState) -> None:
        """Load, merge and index all levels."""
        for path in self.inputs:
            level = load_level(path)
            logger.info(
                f"Level {level.name}: {len(level.layers)} layers,"
                f" {level.width}x{level.height}"
            )
            self._levels.append(self._index_level(level, state))
            logger.info(f"{len(state.chars)} chars in build")

    def _index_level(self, level: Level, state: BuildState) -> IndexedLevel:
        strategy = strategy_for(self.options.rrb, self.use_composite)
        if not (isinstance(strategy, Composite) and level.composite is not None):
            return self._index_layers(merge_layers(level, strategy), state)

        state.chars.set_restore_point()
        try:
            return self._index_layers(merge_layers(level, strategy), state)
        except CapacityError as e:
            logger.warning(
                f"{level.name}: can't use composite image ({e}),"
                " merging layers instead"
            )
            state.chars.reset_to_restore_point()
            manual = Composite(use_composite=False)
            return self._index_layers(merge_layers(level, manual), state)

    def _index_layers(self, level: Level, state: BuildState) -> IndexedLevel:
        char_info = state.char_info
        indexer = TileIndexer(
            tile_width=char_info.width,
            tile_height=char_info.height,
            colours_per_tile=char_info.colours_per_char,
            transparency=TransparencyOptions.OPAQUE_ONLY,
            duplicates=DuplicatesOptions.UNIQUE_ONLY,
        )
        grids = []
        for layer in level.layers:
            # Transparent cells need a char to point to
            added = state.chars.add_transparent_tile(char_info.width, char_info.height)
            if added.was_added:
                logger.debug("Added transparent char")
            res = indexer.split(layer.image, state.chars)
            logger.debug(
                f"Layer {layer.name}: found {res.parsed_count},"
                f" added {res.added_count} chars"
            )
            grids.append(res.grid)
        return IndexedLevel(level=level, grids=grids)

    def prepare_export(self, state: BuildState) -> None:
        """Build screen and colour rows for every level."""
        for indexed in self._levels:
            screen = self._screen_data(indexed, state)
            self._screens.append(screen)
            state.screens.append(screen)

    def _screen_data(self, indexed: IndexedLevel, state: BuildState) -> ScreenData:
        char_info = state.char_info
        base = state.options.chars_address
        level = indexed.level
        screen = ScreenLayer(name=level.layers[0].name if level.layers else level.name)
        colour = ScreenLayer(name=screen.name)

        for i, (layer, grid) in enumerate(zip(level.layers, indexed.grids)):
            for y, cells in enumerate(grid.rows):
                screen_row = screen.row(y)
                colour_row = colour.row(y)
                if i > 0:
                    screen_row.add_screen_gotox()
                    colour_row.add_colour_gotox()
                for x, index in enumerate(cells):
                    if index is None:
                        raise RuntimeError(
                            f"{level.name}: no char at ({x}, {y}) of {layer.name}"
                        )
                    screen_row.add_screen_data(char_info, base, index)
                    colour_row.add_colour_data(char_info)

        row_bytes = screen.width * char_info.bytes_per_char_index
        logger.debug(
            f"{level.name}: {row_bytes}x{screen.height} bytes of screen and colour data"
        )
        return ScreenData(
            level_name=level.name,
            root_folder=level.root_folder,
            screen=screen,
            colour=colour,
        )

    def export(self, state: BuildState) -> None:
        """Add screen, colour and lookup data of my levels."""
        options = state.options
        logger.info(
            f"Screen RAM at ${options.screen_address:X},"
            f" chars at ${options.chars_address:X}"
        )
        for screen in self._screens:
            if self.output_screen is not None:
                path = self._path(self.output_screen, screen)
                state.output.add(path, screen.screen.to_bytes(), "screen")
            if self.output_colour is not None:
                path = self._path(self.output_colour, screen)
                state.output.add(path, screen.colour.to_bytes(), "colour")
            if self.output_lookup is not None:
                data = encode_screen_lookup(screen, state.char_info)
                path = self._path(self.output_lookup, screen)
                state.output.add(path, data, "screen lookup")

    @staticmethod
    def _path(template: str, screen: ScreenData) -> Path:
        root = str(screen.root_folder)
        return Path(expand_template(template, level=screen.level_name, root=root))
