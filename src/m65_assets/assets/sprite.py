"""Sprite assets."""

import logging
from pathlib import Path

from PIL.Image import Image
from pydantic import BaseModel, ConfigDict

from m65_assets.data.models import Size
from m65_assets.errors import InputError

from .level import open_rgba

logger = logging.getLogger(__name__)


class SpriteFrame(BaseModel):
    """Single animation frame."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    image: Image
    duration_ms: int = 0


class Sprite(BaseModel):
    """Animated sprite; all frames share the same size."""

    name: str
    path: Path
    width: int
    height: int
    frames: list[SpriteFrame]


def load_sprite(
    path: Path, frame_size: Size | None = None, duration_ms: int = 0
) -> Sprite:
    """Load sprite from an image.

    Without a frame size the whole image is a single frame. Otherwise the image
    is cut into frames row by row; every frame is kept, even empty ones.
    """
    img = open_rgba(path)
    if frame_size is None:
        frame_size = img.size
    fw, fh = frame_size
    if fw <= 0 or fh <= 0 or fw > img.width or fh > img.height:
        raise InputError(
            f"Frame size {fw}x{fh} doesn't fit image {img.width}x{img.height}", path
        )

    frames: list[SpriteFrame] = []
    for y in range(0, img.height - fh + 1, fh):
        for x in range(0, img.width - fw + 1, fw):
            frame = img.crop((x, y, x + fw, y + fh))
            frames.append(SpriteFrame(image=frame, duration_ms=duration_ms))
    logger.debug(f"{path.name}: {len(frames)} frames of {fw}x{fh}")

    return Sprite(name=path.stem, path=path, width=fw, height=fh, frames=frames)
