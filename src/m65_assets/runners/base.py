"""Build state and the common stage interface."""

from abc import abstractmethod
from pathlib import Path

from pydantic import BaseModel, Field

from m65_assets.data import char_info_for
from m65_assets.data.models import CharInfo, GlobalOptions
from m65_assets.export.bundle import OutputBundle
from m65_assets.export.screen import ScreenData
from m65_assets.export.sprite import SpriteData
from m65_assets.images.container import TileContainer
from m65_assets.images.tiles import Rgba


class BuildState(BaseModel):
    """Everything a build accumulates, owned by the pipeline.

    Stages read and extend it in register order.
    """

    options: GlobalOptions
    chars: TileContainer = Field(default_factory=TileContainer)
    palette: list[Rgba] = []
    screens: list[ScreenData] = []
    sprites: list[SpriteData] = []
    screens_terminated: bool = False
    output: OutputBundle = Field(default_factory=OutputBundle)

    @property
    def char_info(self) -> CharInfo:
        """Char info of the build's colour mode."""
        return char_info_for(self.options.colour)

    def char_address(self, index: int) -> int:
        """Absolute char index in RAM for a char of the build."""
        return self.char_info.char_index_in_ram(self.options.chars_address, index)


class Runner(BaseModel):
    """Single pipeline stage."""

    options: GlobalOptions
    inputs: list[Path]

    @property
    def char_info(self) -> CharInfo:
        """Char info of the stage's colour mode."""
        return char_info_for(self.options.colour)

    @abstractmethod
    def parse_inputs(self, state: BuildState) -> None:
        """Load inputs and add their chars to the build."""

    def prepare_export(self, state: BuildState) -> None:
        """Prepare export data, after the palette is merged."""

    def finalize_export(self, state: BuildState) -> None:
        """Adjust export data once all stages prepared theirs."""

    def export(self, state: BuildState) -> None:
        """Add output files to the build."""
