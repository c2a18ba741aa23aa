"""Global palette merging."""

import logging
from typing import Sequence

from pydantic import BaseModel

from m65_assets.errors import CapacityError

from .container import TileContainer
from .tiles import Rgba

logger = logging.getLogger(__name__)

Remap = dict[int, int]
"""Mapping of local palette index -> global palette index."""


class PaletteMergeResult(BaseModel):
    """Merged palette, with remaps per container and tile."""

    palette: list[Rgba]
    remaps: list[list[Remap]]


def merge_palettes(
    containers: Sequence[TileContainer], max_colours: int
) -> PaletteMergeResult:
    """Merge local palettes of all tiles into a single global palette.

    Containers, tiles and local colours are processed strictly in order and
    colours are looked up linearly, so the same input always produces the
    same palette. Tile indices are rewritten in place to the global palette.
    """
    palette: list[Rgba] = []
    remaps: list[list[Remap]] = []

    for container in containers:
        container_remaps: list[Remap] = []
        for tile in container.tiles:
            remap: Remap = {}
            for local_index, colour in enumerate(tile.palette):
                try:
                    global_index = palette.index(colour)
                except ValueError:
                    if len(palette) >= max_colours:
                        raise CapacityError(
                            "Global palette colours", len(palette) + 1, max_colours
                        )
                    palette.append(colour)
                    global_index = len(palette) - 1
                remap[local_index] = global_index
            tile.indices = [remap[i] for i in tile.indices]
            container_remaps.append(remap)
        remaps.append(container_remaps)

    logger.info(f"Merged palette has {len(palette)} colours")
    return PaletteMergeResult(palette=palette, remaps=remaps)
