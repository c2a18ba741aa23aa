"""Level assets and their loaders."""

import logging
from pathlib import Path

from PIL import UnidentifiedImageError
from PIL.Image import Image
from PIL.Image import open as open_img
from pydantic import BaseModel, ConfigDict, ValidationError

from m65_assets.errors import InputError

logger = logging.getLogger(__name__)

LDTK_DATA_NAME = "data.json"
LDTK_COMPOSITE_NAME = "_composite.png"


def open_rgba(path: Path) -> Image:
    """Load an image file as RGBA."""
    try:
        with open_img(path) as img:
            return img.convert("RGBA")
    except FileNotFoundError as e:
        raise InputError("File not found", path) from e
    except (UnidentifiedImageError, OSError) as e:
        raise InputError(f"Can't read image: {e}", path) from e


class LevelLayer(BaseModel):
    """Single named layer of a level."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    image: Image
    path: Path | None = None


class Level(BaseModel):
    """Level with its layers, bottom to top."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    root_folder: Path
    width: int
    height: int
    layers: list[LevelLayer]
    composite: Image | None = None

    @property
    def size(self) -> tuple[int, int]:
        """Size in pixels."""
        return (self.width, self.height)


class LDtkSimplifiedData(BaseModel):
    """Contents of LDtk simplified export `data.json` (the parts we use)."""

    model_config = ConfigDict(extra="ignore")

    width: int
    height: int
    layers: list[str] = []


def _ldtk_level_and_root(data_path: Path) -> tuple[str, Path]:
    # data.json lives in "{root}/{level}/simplified/{sublevel}/"
    level_folder = data_path.parent
    root = level_folder
    for _ in range(3):
        level_folder = root
        if root.parent == root:
            break
        root = root.parent
    return level_folder.name, root


def load_ldtk_simplified(path: Path) -> Level:
    """Load level from LDtk simplified export (folder or its `data.json`)."""
    if path.is_dir():
        path = path / LDTK_DATA_NAME
    logger.debug(f"Parsing {path}")
    try:
        data = LDtkSimplifiedData.model_validate_json(path.read_bytes())
    except FileNotFoundError as e:
        raise InputError("LDtk data file not found", path) from e
    except OSError as e:
        raise InputError(f"Can't read LDtk data: {e}", path) from e
    except ValidationError as e:
        raise InputError(f"Invalid LDtk data: {e}", path) from e

    folder = path.parent
    layers = []
    for filename in data.layers:
        layer_path = folder / filename
        logger.debug(f"Loading layer {layer_path.name}")
        image = open_rgba(layer_path)
        layers.append(LevelLayer(name=layer_path.stem, image=image, path=layer_path))

    composite_path = folder / LDTK_COMPOSITE_NAME
    composite = open_rgba(composite_path) if composite_path.exists() else None

    name, root = _ldtk_level_and_root(path)
    return Level(
        name=name,
        root_folder=root,
        width=data.width,
        height=data.height,
        layers=layers,
        composite=composite,
    )


def load_image_level(path: Path) -> Level:
    """Load single image as a one-layer level."""
    img = open_rgba(path)
    return Level(
        name=path.stem,
        root_folder=path.parent,
        width=img.width,
        height=img.height,
        layers=[LevelLayer(name=path.stem, image=img, path=path)],
    )


def load_level(path: Path) -> Level:
    """Load level, choosing the loader by path."""
    if path.is_dir() or path.suffix.lower() == ".json":
        return load_ldtk_simplified(path)
    if path.suffix.lower() in (".aseprite", ".ase"):
        raise InputError("Aseprite files are not supported, export layers to PNG", path)
    return load_image_level(path)
