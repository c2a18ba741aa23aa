"""Indexed tiles."""

from PIL.Image import Image
from pydantic import BaseModel, model_validator

Rgba = tuple[int, int, int, int]
"""Colour: (red, green, blue, alpha)."""

TRANSPARENT: Rgba = (0, 0, 0, 0)


def pixels_match(a: Rgba, b: Rgba) -> bool:
    """Whether two pixels count as equal for deduplication.

    Fully transparent pixels match regardless of their RGB values.
    """
    if a[3] == 0 and b[3] == 0:
        return True
    return a == b


class IndexedTile(BaseModel):
    """Fixed-size tile of palette indices.

    `indices` is row-major. Until the global palette merge it refers to the
    tile's own `palette`; afterwards it refers to the global palette.
    """

    width: int
    height: int
    pixels: list[Rgba]
    palette: list[Rgba]
    indices: list[int]
    is_fully_transparent: bool

    @model_validator(mode="after")
    def _check_sizes(self) -> "IndexedTile":
        count = self.width * self.height
        if len(self.pixels) != count or len(self.indices) != count:
            raise ValueError(
                f"Tile {self.width}x{self.height} needs {count} pixels,"
                f" got {len(self.pixels)} pixels and {len(self.indices)} indices"
            )
        return self

    @classmethod
    def from_pixels(cls, pixels: list[Rgba], width: int, height: int) -> "IndexedTile":
        """Build a tile, collecting its palette in first-seen order."""
        palette: list[Rgba] = []
        indices: list[int] = []
        for pixel in pixels:
            colour = TRANSPARENT if pixel[3] == 0 else pixel
            try:
                idx = palette.index(colour)
            except ValueError:
                palette.append(colour)
                idx = len(palette) - 1
            indices.append(idx)
        return cls(
            width=width,
            height=height,
            pixels=list(pixels),
            palette=palette,
            indices=indices,
            is_fully_transparent=all(p[3] == 0 for p in pixels),
        )

    @classmethod
    def from_image(
        cls, image: Image, left: int, top: int, width: int, height: int
    ) -> "IndexedTile":
        """Build a tile from a region of an RGBA image."""
        px = image.load()
        pixels: list[Rgba] = [
            tuple(px[left + x, top + y])  # type: ignore[misc]
            for y in range(height)
            for x in range(width)
        ]
        return cls.from_pixels(pixels, width, height)

    @classmethod
    def transparent(cls, width: int, height: int) -> "IndexedTile":
        """Fully transparent tile."""
        count = width * height
        return cls(
            width=width,
            height=height,
            pixels=[TRANSPARENT] * count,
            palette=[TRANSPARENT],
            indices=[0] * count,
            is_fully_transparent=True,
        )

    @property
    def size(self) -> tuple[int, int]:
        """Size in pixels."""
        return (self.width, self.height)

    def is_duplicate(self, other: "IndexedTile") -> bool:
        """Whether the other tile is the same, pixel by pixel."""
        if self.size != other.size:
            return False
        return all(pixels_match(a, b) for a, b in zip(self.pixels, other.pixels))
