import json
from pathlib import Path

import pytest

from m65_assets.assets.level import load_level
from m65_assets.assets.sprite import load_sprite
from m65_assets.errors import InputError

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
CLEAR = (0, 0, 0, 0)


def make_ldtk_level(tmp_path: Path, save_image, composite: bool = True) -> Path:
    folder = tmp_path / "project" / "Level_1" / "simplified" / "AutoLayer"
    prefix = "project/Level_1/simplified/AutoLayer"
    save_image(f"{prefix}/Back.png", [[RED, RED]])
    save_image(f"{prefix}/Front.png", [[CLEAR, GREEN]])
    if composite:
        save_image(f"{prefix}/_composite.png", [[RED, GREEN]])
    data = {
        "identifier": "Level_1",
        "width": 16,
        "height": 8,
        "layers": ["Back.png", "Front.png"],
    }
    (folder / "data.json").write_text(json.dumps(data))
    return folder


def test_ldtk_folder(tmp_path: Path, save_image):
    folder = make_ldtk_level(tmp_path, save_image)
    level = load_level(folder)

    assert level.name == "Level_1"
    assert level.root_folder == tmp_path / "project"
    assert level.size == (16, 8)
    assert [layer.name for layer in level.layers] == ["Back", "Front"]
    assert level.layers[1].image.getpixel((12, 4)) == GREEN
    assert level.composite is not None


def test_ldtk_data_file_without_composite(tmp_path: Path, save_image):
    folder = make_ldtk_level(tmp_path, save_image, composite=False)
    level = load_level(folder / "data.json")
    assert level.composite is None
    assert len(level.layers) == 2


def test_ldtk_missing_layer(tmp_path: Path, save_image):
    folder = make_ldtk_level(tmp_path, save_image)
    (folder / "Front.png").unlink()
    with pytest.raises(InputError) as e:
        load_level(folder)
    assert "Front.png" in str(e.value)


def test_ldtk_invalid_data(tmp_path: Path):
    path = tmp_path / "data.json"
    path.write_text('{"width": "wide"}')
    with pytest.raises(InputError):
        load_level(path)


def test_image_level(save_image):
    path = save_image("levels/intro.png", [[RED, GREEN]])
    level = load_level(path)
    assert level.name == "intro"
    assert level.root_folder == path.parent
    assert len(level.layers) == 1
    assert level.layers[0].image.mode == "RGBA"


def test_missing_image(tmp_path: Path):
    with pytest.raises(InputError) as e:
        load_level(tmp_path / "nope.png")
    assert e.value.path == tmp_path / "nope.png"


def test_not_an_image(tmp_path: Path):
    path = tmp_path / "bad.png"
    path.write_text("not a png")
    with pytest.raises(InputError):
        load_level(path)


def test_aseprite_rejected(tmp_path: Path):
    with pytest.raises(InputError):
        load_level(tmp_path / "level.aseprite")


def test_sprite_single_frame(save_image):
    path = save_image("hero.png", [[RED, GREEN]])
    sprite = load_sprite(path, duration_ms=80)
    assert sprite.name == "hero"
    assert (sprite.width, sprite.height) == (16, 8)
    assert len(sprite.frames) == 1
    assert sprite.frames[0].duration_ms == 80


def test_sprite_frames_keep_empty_ones(save_image):
    path = save_image("anim.png", [[RED, CLEAR], [GREEN, RED]])
    sprite = load_sprite(path, frame_size=(8, 8))
    assert len(sprite.frames) == 4
    assert sprite.frames[1].image.getpixel((0, 0)) == CLEAR
    assert sprite.frames[2].image.getpixel((0, 0)) == GREEN


def test_sprite_frame_too_big(save_image):
    path = save_image("small.png", [[RED]])
    with pytest.raises(InputError):
        load_sprite(path, frame_size=(16, 8))


def test_ldtk_unreadable_data(tmp_path: Path):
    folder = tmp_path / "Level_0" / "simplified" / "AutoLayer"
    (folder / "data.json").mkdir(parents=True)
    with pytest.raises(InputError) as e:
        load_level(folder)
    assert e.value.path == folder / "data.json"
