"""Byte-level encoding of chars and palettes."""

import struct
from typing import Iterable

from m65_assets.data.models import CharInfo
from m65_assets.images.tiles import IndexedTile, Rgba


def swap_nibbles(value: int) -> int:
    """Swap high and low nibble of a byte."""
    value &= 0xFF
    return ((value & 0x0F) << 4) | (value >> 4)


def u8(value: int) -> bytes:
    """Unsigned byte."""
    return struct.pack("<B", value)


def u16(value: int) -> bytes:
    """Little-endian unsigned 16 bit word."""
    return struct.pack("<H", value)


def u32(value: int) -> bytes:
    """Little-endian unsigned 32 bit word."""
    return struct.pack("<I", value)


def encode_palette(palette: list[Rgba]) -> bytes:
    """Encode palette as red, green and blue planes of nibble-swapped bytes."""
    out = bytearray()
    for channel in range(3):
        out.extend(swap_nibbles(colour[channel]) for colour in palette)
    return bytes(out)


def decode_palette(data: bytes) -> list[tuple[int, int, int]]:
    """Decode palette stream back to RGB colours."""
    if len(data) % 3 != 0:
        raise ValueError(f"Palette data size must be a multiple of 3, got {len(data)}")
    count = len(data) // 3
    reds, greens, blues = (
        [swap_nibbles(b) for b in data[i * count : (i + 1) * count]] for i in range(3)
    )
    return list(zip(reds, greens, blues))


def encode_tile(tile: IndexedTile, char_info: CharInfo) -> bytes:
    """Encode pixel data of a single char.

    FCM uses one byte per pixel. NCM packs two pixels per byte, the left
    pixel in the low nibble and the right one in the high nibble.
    """
    if tile.size != char_info.size:
        raise ValueError(
            f"Tile is {tile.width}x{tile.height}, but {char_info.name}"
            f" chars are {char_info.width}x{char_info.height}"
        )

    if char_info.bits_per_pixel == 8:
        out = bytes(i & 0xFF for i in tile.indices)
    elif char_info.bits_per_pixel == 4:
        res = bytearray()
        for pos in range(0, len(tile.indices), 2):
            left, right = tile.indices[pos], tile.indices[pos + 1]
            res.append(swap_nibbles(((left & 0x0F) << 4) | (right & 0x0F)))
        out = bytes(res)
    else:
        raise ValueError(f"Unsupported bits per pixel: {char_info.bits_per_pixel}")

    if len(out) != char_info.bytes_per_char_data:
        raise ValueError(
            f"Char data is {len(out)} bytes, expected {char_info.bytes_per_char_data}"
        )
    return out


def encode_tiles(tiles: Iterable[IndexedTile], char_info: CharInfo) -> bytes:
    """Encode all chars in order."""
    return b"".join(encode_tile(tile, char_info) for tile in tiles)
