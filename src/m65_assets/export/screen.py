"""Screen and colour RAM data."""

import logging
from pathlib import Path

from pydantic import BaseModel

from m65_assets.data.models import CharInfo

from .codec import swap_nibbles, u8, u16, u32

logger = logging.getLogger(__name__)

NCM_COLOUR_FLAG = 0b00001000
RRB_COLOUR_GOTOX = 0b10010000
SCREEN_COLUMN_MODES = (40, 80)


class ScreenColumn(BaseModel):
    """Single 2-byte entry of screen or colour RAM."""

    values: tuple[int, int]


class ScreenRow(BaseModel):
    """Row of screen or colour RAM."""

    columns: list[ScreenColumn] = []

    def add_screen_data(
        self, char_info: CharInfo, base_address: int, index: int
    ) -> ScreenColumn:
        """Add char address for the given char index."""
        address = char_info.char_index_in_ram(base_address, index)
        column = ScreenColumn(values=(address & 0xFF, address >> 8))
        self.columns.append(column)
        return column

    def add_colour_data(
        self, char_info: CharInfo, palette_bank: int = 0
    ) -> ScreenColumn:
        """Add colour RAM entry for a char."""
        if char_info.bits_per_pixel == 4:
            values = (NCM_COLOUR_FLAG, swap_nibbles(palette_bank & 0x0F))
        else:
            values = (0x00, 0x00)
        column = ScreenColumn(values=values)
        self.columns.append(column)
        return column

    def add_screen_gotox(self, x: int = 0, y_offset: int = 0) -> ScreenColumn:
        """Add RRB GOTOX position: low X bits, then Y offset and high X bits."""
        values = (x & 0xFF, ((y_offset & 0x07) << 5) | ((x >> 8) & 0xFF))
        column = ScreenColumn(values=values)
        self.columns.append(column)
        return column

    def add_colour_gotox(self) -> ScreenColumn:
        """Add RRB GOTOX marker with transparency enabled."""
        column = ScreenColumn(values=(RRB_COLOUR_GOTOX, 0x00))
        self.columns.append(column)
        return column

    def to_bytes(self) -> bytes:
        """Row bytes."""
        return bytes(v for col in self.columns for v in col.values)


class ScreenLayer(BaseModel):
    """Rows of screen or colour RAM."""

    name: str = ""
    rows: list[ScreenRow] = []

    @property
    def width(self) -> int:
        """Columns per row."""
        return len(self.rows[0].columns) if self.rows else 0

    @property
    def height(self) -> int:
        """Number of rows."""
        return len(self.rows)

    def row(self, y: int) -> ScreenRow:
        """Get row, creating missing rows."""
        while len(self.rows) <= y:
            self.rows.append(ScreenRow())
        return self.rows[y]

    def to_bytes(self) -> bytes:
        """All rows, top to bottom."""
        return b"".join(row.to_bytes() for row in self.rows)


class ScreenData(BaseModel):
    """Screen and colour RAM of a single level."""

    level_name: str
    root_folder: Path
    screen: ScreenLayer
    colour: ScreenLayer


def rrb_y_components(y: int, char_height: int = 8) -> tuple[int, int]:
    """Row and GOTOX Y offset for an RRB layer drawn at pixel y.

    The hardware shifts the layer up by the offset, so positive coordinates
    use the reversed offset and start one row lower.
    """
    row = int(y / char_height)
    offset = abs(y) % char_height
    if y >= 0:
        offset = 7 - offset
        if offset > 0:
            row += 1
    return row, offset


def encode_screen_lookup(screen: ScreenData, char_info: CharInfo) -> bytes:
    """Lookup table with layer and screen sizes for a level."""
    char_size = char_info.bytes_per_char_index
    width = screen.screen.width
    height = screen.screen.height
    size_chars = width * height

    out = bytearray()
    out += u8(char_size)
    out += u8(0xFF)
    out += u16(width)
    out += u16(height)
    out += u16(width * char_size)
    out += u32(size_chars)
    out += u32(size_chars * char_size)

    screen_widths = (
        char_info.chars_per_screen_width_40_columns,
        char_info.chars_per_screen_width_80_columns,
    )
    for columns, chars_wide in zip(SCREEN_COLUMN_MODES, screen_widths):
        chars_high = char_info.chars_per_screen_height
        logger.debug(f"{columns} columns mode: {chars_wide}x{chars_high} chars")
        out += u8(chars_wide)
        out += u8(chars_high)
        out += u16(chars_wide * char_size)
        out += u16(chars_wide * chars_high)
        out += u16(chars_wide * chars_high * char_size)
    return bytes(out)
