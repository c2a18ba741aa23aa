import struct

import pytest

from m65_assets.data import char_info_for
from m65_assets.data.models import ColourMode
from m65_assets.export.codec import (
    decode_palette,
    encode_palette,
    encode_tile,
    encode_tiles,
    swap_nibbles,
    u8,
    u16,
    u32,
)
from m65_assets.images.tiles import IndexedTile

FCM = char_info_for(ColourMode.FCM)
NCM = char_info_for(ColourMode.NCM)


def indexed_tile(width: int, height: int, indices: list[int]) -> IndexedTile:
    tile = IndexedTile.transparent(width, height)
    tile.indices = indices
    return tile


def test_swap_nibbles():
    assert swap_nibbles(0x12) == 0x21
    assert swap_nibbles(0xF0) == 0x0F
    assert swap_nibbles(0x00) == 0x00
    assert swap_nibbles(0x1AB) == 0xBA


def test_little_endian():
    assert u16(0x1234) == b"\x34\x12"
    assert u32(0x12345678) == b"\x78\x56\x34\x12"


@pytest.mark.parametrize(
    "write, value", [(u8, 256), (u16, 0x10000), (u16, -1), (u32, 1 << 32)]
)
def test_out_of_range_values_are_rejected(write, value):
    with pytest.raises(struct.error):
        write(value)


def test_palette_planes():
    palette = [(0x12, 0x34, 0x56, 255), (0xAB, 0xCD, 0xEF, 0)]
    assert encode_palette(palette) == bytes([0x21, 0xBA, 0x43, 0xDC, 0x65, 0xFE])


def test_palette_round_trip():
    palette = [(r, (r * 7) & 0xFF, 255 - r, 255) for r in range(0, 256, 5)]
    decoded = decode_palette(encode_palette(palette))
    assert decoded == [c[:3] for c in palette]


def test_decode_bad_palette_size():
    with pytest.raises(ValueError):
        decode_palette(b"\x00\x01")


def test_fcm_one_byte_per_pixel():
    tile = indexed_tile(8, 8, list(range(64)))
    assert encode_tile(tile, FCM) == bytes(range(64))


def test_ncm_left_pixel_in_low_nibble():
    tile = indexed_tile(16, 8, [1, 2, 3, 15] + [0] * 124)
    data = encode_tile(tile, NCM)
    assert len(data) == 64
    assert data[:3] == bytes([0x21, 0xF3, 0x00])


def test_tile_geometry_must_match_mode():
    with pytest.raises(ValueError):
        encode_tile(indexed_tile(8, 8, [0] * 64), NCM)
    with pytest.raises(ValueError):
        encode_tile(indexed_tile(16, 8, [0] * 128), FCM)


def test_tiles_in_order():
    tiles = [indexed_tile(8, 8, [i] * 64) for i in (3, 1)]
    assert encode_tiles(tiles, FCM) == bytes([3] * 64 + [1] * 64)


def test_modes_are_consistent():
    for info in (FCM, NCM):
        assert info.bytes_per_char_data == 64
        assert info.bytes_per_char_index == 2
    assert (FCM.width, FCM.height, FCM.colours_per_palette) == (8, 8, 256)
    assert (NCM.width, NCM.height, NCM.colours_per_palette) == (16, 8, 16)


def test_char_index_in_ram():
    assert FCM.char_index_in_ram(0x10000, 0) == 0x400
    assert FCM.char_index_in_ram(0x10000, 5) == 0x405
    assert NCM.char_index_in_ram(0x40, 1) == 2
