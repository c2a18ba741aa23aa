"""Set up the data."""

from pathlib import Path

from pydantic_yaml import parse_yaml_file_as

from .models import CharInfo, ColourMode, ColourModeTable, GlobalOptions

__all__ = ["data_path", "colour_modes", "char_info_for", "load_config"]

data_path = Path(__file__).parent

colour_modes = parse_yaml_file_as(ColourModeTable, data_path / "colour_modes.yaml")


def char_info_for(mode: ColourMode) -> CharInfo:
    """Char info of the given colour mode."""
    return colour_modes.get(mode)


def load_config(path: Path) -> GlobalOptions:
    """Load global options from a YAML build config."""
    return parse_yaml_file_as(GlobalOptions, path)
