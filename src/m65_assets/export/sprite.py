"""RRB sprite frames and lookup data."""

from pathlib import Path

from pydantic import BaseModel, Field

from m65_assets.data.models import CharInfo
from m65_assets.errors import CapacityError

from .codec import u8, u16

FRAMES_PER_SECOND = 50
MAX_DURATION_FRAMES = 0xFF
MAX_WORD = 0xFFFF


class SpriteChar(BaseModel):
    """Char of a sprite frame."""

    address: int

    def to_bytes(self) -> bytes:
        """Char address, little-endian."""
        return u16(self.address)


class SpriteFrameData(BaseModel):
    """Chars of a frame: top transparent row, data rows, bottom transparent row."""

    duration_ms: int = Field(default=0, ge=0)
    starting: list[SpriteChar] = []
    rows: list[list[SpriteChar]] = []
    ending: list[SpriteChar] = []

    @property
    def duration_frames(self) -> int:
        """Duration in video frames."""
        return self.duration_ms * FRAMES_PER_SECOND // 1000

    def all_rows(self) -> list[list[SpriteChar]]:
        """All rows in export order."""
        return [self.starting, *self.rows, self.ending]

    def to_bytes(self) -> bytes:
        """Frame bytes."""
        return b"".join(ch.to_bytes() for row in self.all_rows() for ch in row)


class SpriteData(BaseModel):
    """Export data of a sprite."""

    name: str
    path: Path
    chars_width: int
    chars_height: int
    frames: list[SpriteFrameData] = []

    def frame_size(self, char_info: CharInfo) -> int:
        """Bytes per frame, including both transparent rows."""
        rows = self.chars_height + 2
        return self.chars_width * rows * char_info.bytes_per_char_index


def encode_sprite_frames(sprite: SpriteData) -> bytes:
    """All frames, one after another."""
    return b"".join(frame.to_bytes() for frame in sprite.frames)


def encode_sprite_lookup(sprite: SpriteData, char_info: CharInfo) -> bytes:
    """Frame count, frame size and per-frame durations."""
    count = len(sprite.frames)
    if count > MAX_WORD:
        raise CapacityError(f"{sprite.name} frames", count, MAX_WORD)
    size = sprite.frame_size(char_info)
    if size > MAX_WORD:
        raise CapacityError(f"{sprite.name} frame bytes", size, MAX_WORD)

    out = bytearray()
    out += u16(count)
    out += u16(size)
    for i, frame in enumerate(sprite.frames):
        ticks = frame.duration_frames
        if ticks > MAX_DURATION_FRAMES:
            raise CapacityError(
                f"{sprite.name} frame {i} duration ticks", ticks, MAX_DURATION_FRAMES
            )
        out += u8(ticks)
    return bytes(out)
