"""Data models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

Size = tuple[int, int]
"""Size: (width, height)."""

Point = tuple[int, int]
"""Point: (x, y)."""

MAX_CHAR_INDEX = 0xFFFF
"""Highest absolute char index a 2-byte screen entry can hold."""


def parse_int(value: str | int) -> int:
    """Parse an integer given as decimal, `$hex` or `0xhex`."""
    if isinstance(value, int):
        return value
    txt = value.strip()
    try:
        if txt.startswith("$"):
            return int(txt[1:], 16)
        if txt.lower().startswith("0x"):
            return int(txt[2:], 16)
        return int(txt)
    except ValueError as e:
        raise ValueError(f"Not a valid number: {value!r}") from e


def _parse_pair(value: str, sep: str) -> tuple[int, int]:
    parts = value.lower().split(sep)
    if len(parts) != 2:
        raise ValueError(f"Expected two values separated by {sep!r}, got {value!r}")
    return parse_int(parts[0]), parse_int(parts[1])


def parse_size(value: str | Size) -> Size:
    """Parse size given as `WxH`."""
    if isinstance(value, str):
        return _parse_pair(value, "x")
    return value


def parse_point(value: str | Point) -> Point:
    """Parse point given as `X,Y`."""
    if isinstance(value, str):
        return _parse_pair(value, ",")
    return value


class ColourMode(str, Enum):
    """VIC-IV colour mode."""

    FCM = "fcm"  # full colour, 8x8 chars, 256 colours
    NCM = "ncm"  # nibble colour, 16x8 chars, 16 colours


class Verbosity(str, Enum):
    """Logging verbosity."""

    QUIET = "quiet"
    INFO = "info"
    DEBUG = "debug"


class CharInfo(BaseModel):
    """Char geometry and sizes for a colour mode.

    Every artifact of a build is derived from the same instance, so tile size,
    index width and colour budget always change together.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    width: int
    height: int
    bits_per_pixel: int
    bytes_per_char_index: int
    bytes_per_char_data: int
    colours_per_char: int
    colours_per_palette: int
    chars_per_screen_width_80_columns: int
    chars_per_screen_height: int

    @model_validator(mode="after")
    def _check_data_size(self) -> "CharInfo":
        expected = self.width * self.height * self.bits_per_pixel // 8
        if expected != self.bytes_per_char_data:
            raise ValueError(
                f"{self.name}: {self.width}x{self.height} chars at"
                f" {self.bits_per_pixel}bpp need {expected} bytes,"
                f" not {self.bytes_per_char_data}"
            )
        return self

    @property
    def size(self) -> Size:
        """Char size in pixels."""
        return (self.width, self.height)

    @property
    def chars_per_screen_width_40_columns(self) -> int:
        """Chars per row in 40 column mode."""
        return self.chars_per_screen_width_80_columns // 2

    def char_index_in_ram(self, base_address: int, index: int) -> int:
        """Absolute char index for the char at the given relative index."""
        size = self.bytes_per_char_data
        return (base_address + index * size) // size


class ColourModeTable(BaseModel):
    """All supported colour modes."""

    fcm: CharInfo
    ncm: CharInfo

    def get(self, mode: ColourMode) -> CharInfo:
        """Get char info for the given mode."""
        if mode == ColourMode.FCM:
            return self.fcm
        if mode == ColourMode.NCM:
            return self.ncm
        raise ValueError(f"Unknown colour mode: {mode!r}")


class GlobalOptions(BaseModel):
    """Options shared by all stages of a build.

    Also the schema for `--config` YAML files.
    """

    model_config = ConfigDict(extra="forbid")

    verbosity: Verbosity = Verbosity.INFO
    colour: ColourMode = ColourMode.FCM
    rrb: bool = False
    screen_size: Size = (40, 25)
    screen_address: int = 0x0800
    chars_address: int = 0x10000
    dry_run: bool = False

    @field_validator("screen_address", "chars_address", mode="before")
    @classmethod
    def _parse_address(cls, v):
        return parse_int(v)

    @field_validator("screen_size", mode="before")
    @classmethod
    def _parse_screen_size(cls, v):
        return parse_size(v)

    @field_validator("screen_size")
    @classmethod
    def _check_screen_size(cls, v: Size) -> Size:
        if v[0] <= 0 or v[1] <= 0:
            raise ValueError(f"Screen size must be positive, got {v}")
        return v
