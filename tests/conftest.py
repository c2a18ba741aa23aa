"""Shared fixtures."""

from pathlib import Path

import pytest
from PIL.Image import Image
from PIL.Image import new as img_new

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
CLEAR = (0, 0, 0, 0)


def tiles_image(rows: list[list[tuple]], tile_size: tuple[int, int] = (8, 8)) -> Image:
    """Image made of solid tiles, one colour per tile."""
    tw, th = tile_size
    img = img_new("RGBA", (len(rows[0]) * tw, len(rows) * th), CLEAR)
    for y, row in enumerate(rows):
        for x, colour in enumerate(row):
            img.paste(colour, (x * tw, y * th, (x + 1) * tw, (y + 1) * th))
    return img


@pytest.fixture
def make_image():
    """Factory for solid-tile images."""
    return tiles_image


@pytest.fixture
def save_image(tmp_path: Path):
    """Factory saving solid-tile images as PNG under tmp_path."""

    def _save(
        name: str, rows: list[list[tuple]], tile_size: tuple[int, int] = (8, 8)
    ) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        tiles_image(rows, tile_size).save(path)
        return path

    return _save
