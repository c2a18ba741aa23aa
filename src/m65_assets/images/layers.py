"""Layer merging strategies."""

import logging
from typing import Literal

from PIL.Image import new as img_new
from pydantic import BaseModel

from m65_assets.assets.level import Level, LevelLayer

logger = logging.getLogger(__name__)

MERGED_LAYER_NAME = "MergedLayer"


class Passthrough(BaseModel):
    """Keep all layers, for RRB mode where the hardware draws layers itself."""

    kind: Literal["passthrough"] = "passthrough"


class Composite(BaseModel):
    """Reduce all layers to one.

    If `use_composite` is set and the level carries a composite image, it is
    used as-is. Otherwise opaque pixels of each layer are painted over the
    previous ones, bottom to top.
    """

    kind: Literal["composite"] = "composite"
    use_composite: bool = True


LayerMergeStrategy = Passthrough | Composite


def strategy_for(rrb: bool, use_composite: bool = True) -> LayerMergeStrategy:
    """Strategy for the build mode."""
    if rrb:
        return Passthrough()
    return Composite(use_composite=use_composite)


def merge_layers(level: Level, strategy: LayerMergeStrategy) -> Level:
    """Merge level layers according to the strategy."""
    if isinstance(strategy, Passthrough):
        return level
    if isinstance(strategy, Composite):
        if strategy.use_composite and level.composite is not None:
            logger.debug(f"{level.name}: using composite image")
            merged = level.composite.copy()
        else:
            merged = _paint_layers(level)
        return level.model_copy(
            update={"layers": [LevelLayer(name=MERGED_LAYER_NAME, image=merged)]}
        )
    raise TypeError(f"Unknown layer merge strategy: {strategy!r}")


def _paint_layers(level: Level):
    logger.debug(f"{level.name}: merging {len(level.layers)} layers")
    canvas = img_new(mode="RGBA", size=level.size, color=(0, 0, 0, 0))
    for layer in level.layers:
        img = layer.image.convert("RGBA")
        # Any non-zero alpha replaces the pixel; no blending
        mask = img.getchannel("A").point(lambda a: 255 if a else 0)
        canvas.paste(img, (0, 0), mask)
    return canvas
