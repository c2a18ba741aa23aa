import pytest

from m65_assets.images.container import (
    DuplicatesOptions,
    TileContainer,
    TransparencyOptions,
    TransparentTileRule,
)
from m65_assets.images.tiles import IndexedTile, pixels_match

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


def tile(*pixels, width=2, height=1) -> IndexedTile:
    return IndexedTile.from_pixels(list(pixels), width, height)


def test_palette_in_first_seen_order():
    t = tile(GREEN, RED, GREEN, BLUE, width=4)
    assert t.palette == [GREEN, RED, BLUE]
    assert t.indices == [0, 1, 0, 2]
    assert not t.is_fully_transparent


def test_transparent_pixels_share_one_colour():
    t = tile((10, 20, 30, 0), RED, (1, 2, 3, 0), width=3)
    assert t.palette == [(0, 0, 0, 0), RED]
    assert t.indices == [0, 1, 0]


def test_fully_transparent():
    assert tile((1, 1, 1, 0), (0, 0, 0, 0)).is_fully_transparent
    assert IndexedTile.transparent(8, 8).is_fully_transparent
    assert IndexedTile.transparent(8, 8).palette == [(0, 0, 0, 0)]


def test_pixels_match():
    assert pixels_match((1, 2, 3, 0), (9, 9, 9, 0))
    assert pixels_match(RED, RED)
    assert not pixels_match(RED, (255, 0, 0, 254))
    assert not pixels_match((0, 0, 0, 0), (0, 0, 0, 1))


def test_duplicate_ignores_rgb_of_transparent_pixels():
    a = tile(RED, (5, 5, 5, 0))
    b = tile(RED, (200, 0, 0, 0))
    assert a.is_duplicate(b)
    assert not a.is_duplicate(tile(RED, GREEN))
    assert not a.is_duplicate(tile(RED, (5, 5, 5, 0), RED, RED, width=2, height=2))


def test_size_mismatch_rejected():
    with pytest.raises(ValueError):
        IndexedTile(
            width=2,
            height=2,
            pixels=[RED],
            palette=[RED],
            indices=[0],
            is_fully_transparent=False,
        )


def test_unique_tiles_reuse_index():
    container = TileContainer()
    a, b = tile(RED, GREEN), tile(GREEN, RED)
    results = [container.add(t) for t in (a, b, tile(RED, GREEN))]
    assert [r.index for r in results] == [0, 1, 0]
    assert [r.was_added for r in results] == [True, True, False]
    assert len(container) == 2


def test_reinsertion_is_idempotent():
    container = TileContainer()
    a = tile(RED, (1, 1, 1, 0))
    first = container.add(a)
    for _ in range(3):
        again = container.add(tile(RED, (7, 7, 7, 0)))
        assert again.index == first.index
        assert not again.was_added
    assert len(container) == 1


def test_keep_all_duplicates():
    container = TileContainer()
    for _ in range(3):
        container.add(tile(RED, RED), duplicates=DuplicatesOptions.KEEP_ALL)
    assert len(container) == 3


def test_opaque_only_drops_transparent():
    container = TileContainer()
    clear = tile((0, 0, 0, 0), (0, 0, 0, 0))
    res = container.add(clear, transparency=TransparencyOptions.OPAQUE_ONLY)
    assert not res.was_added
    assert res.index is None
    assert len(container) == 0

    container.add_transparent_tile(2, 1)
    res = container.add(clear, transparency=TransparencyOptions.OPAQUE_ONLY)
    assert res.index == 0
    assert len(container) == 1


def test_keep_all_tracks_first_transparent():
    container = TileContainer()
    container.add(tile(RED, RED))
    clear = tile((0, 0, 0, 0), (0, 0, 0, 0))
    container.add(clear, transparency=TransparencyOptions.KEEP_ALL)
    assert container.transparent_index == 1


def test_transparent_tile_rules():
    container = TileContainer()
    assert container.add_transparent_tile(2, 1).index == 0
    first = container.add_transparent_tile(2, 1, TransparentTileRule.REUSE_FIRST)
    assert first.index == 0
    previous = container.add_transparent_tile(2, 1, TransparentTileRule.REUSE_PREVIOUS)
    assert previous.index == 0

    container.add(tile(RED, RED))
    res = container.add_transparent_tile(2, 1, TransparentTileRule.REUSE_PREVIOUS)
    assert res.was_added
    assert res.index == 2

    res = container.add_transparent_tile(2, 1, TransparentTileRule.ALWAYS_ADD)
    assert res.was_added
    assert res.index == 3
    assert container.transparent_index == 0


def test_restore_point():
    container = TileContainer()
    container.add(tile(RED, RED))
    container.set_restore_point()
    container.add_transparent_tile(2, 1)
    container.add(tile(GREEN, GREEN))
    assert len(container) == 3

    container.reset_to_restore_point()
    assert len(container) == 1
    assert container.transparent_index is None


def test_reset_without_restore_point():
    with pytest.raises(RuntimeError):
        TileContainer().reset_to_restore_point()
