"""Chars stage: base charset and palette."""

import logging
from pathlib import Path
from typing import Literal

from m65_assets.assets.level import open_rgba
from m65_assets.export.codec import encode_palette, encode_tiles
from m65_assets.images.container import DuplicatesOptions, TransparencyOptions
from m65_assets.images.splitter import TileIndexer

from .base import BuildState, Runner

logger = logging.getLogger(__name__)


class CharsRunner(Runner):
    """Adds base chars in image order and exports chars and palette.

    Base chars are kept as they are, including duplicates and transparent
    chars, so their indices match the source image.
    """

    kind: Literal["chars"] = "chars"
    output_chars: Path | None = None
    output_palette: Path | None = None

    def parse_inputs(self, state: BuildState) -> None:
        """Add all chars of the input images."""
        char_info = state.char_info
        indexer = TileIndexer(
            tile_width=char_info.width,
            tile_height=char_info.height,
            colours_per_tile=char_info.colours_per_char,
            transparency=TransparencyOptions.KEEP_ALL,
            duplicates=DuplicatesOptions.KEEP_ALL,
        )
        for path in self.inputs:
            res = indexer.split(open_rgba(path), state.chars)
            logger.info(f"{path.name}: {res.added_count} base chars")

    def export(self, state: BuildState) -> None:
        """Export chars and palette of the whole build."""
        if self.output_chars is not None:
            data = encode_tiles(state.chars.tiles, state.char_info)
            state.output.add(self.output_chars, data, "chars")
        if self.output_palette is not None:
            data = encode_palette(state.palette)
            state.output.add(self.output_palette, data, "palette")
