"""Registered stages and their structural validation."""

import logging

from pydantic import BaseModel, Field
from typing_extensions import Annotated

from m65_assets.data import char_info_for
from m65_assets.data.models import MAX_CHAR_INDEX
from m65_assets.errors import CapacityError, StructureError

from .chars import CharsRunner
from .screens import ScreensRunner
from .sprites import RRBSpritesRunner

logger = logging.getLogger(__name__)

AnyRunner = Annotated[
    CharsRunner | ScreensRunner | RRBSpritesRunner, Field(discriminator="kind")
]


class RunnersRegister(BaseModel):
    """Stages of one build, in command line order."""

    runners: list[AnyRunner] = []

    def __len__(self) -> int:
        return len(self.runners)

    def register(self, runner: AnyRunner) -> None:
        """Append a stage."""
        logger.debug(f"Registered {runner.kind} at position {len(self.runners)}")
        self.runners.append(runner)

    def positions(self, kind: type) -> list[int]:
        """Positions of all stages of the given type."""
        return [i for i, r in enumerate(self.runners) if isinstance(r, kind)]

    def validate_structure(self) -> None:
        """Check stage counts, order and shared options before anything runs."""
        if not self.runners:
            raise StructureError("No stages to run.")

        chars = self.positions(CharsRunner)
        screens = self.positions(ScreensRunner)

        for i, runner in enumerate(self.runners):
            if isinstance(runner, CharsRunner):
                if i != chars[0]:
                    raise StructureError(
                        "Only one chars stage is allowed.", runner.kind, i
                    )
                if i != 0:
                    raise StructureError(
                        "Chars stage must be the first stage.", runner.kind, i
                    )
            elif isinstance(runner, ScreensRunner):
                if chars and i < max(chars):
                    raise StructureError(
                        "Screens stage must come after the chars stage"
                        f" at position {max(chars)}.",
                        runner.kind,
                        i,
                    )
            elif isinstance(runner, RRBSpritesRunner):
                if runner.append_screens and not any(s < i for s in screens):
                    raise StructureError(
                        "Sprites appended to screens must come after a screens stage.",
                        runner.kind,
                        i,
                    )
            else:
                raise TypeError(f"Unknown stage: {runner!r}")

        self._validate_options()

    def _validate_options(self) -> None:
        first = self.runners[0]
        for i, runner in enumerate(self.runners):
            if runner.options.colour != first.options.colour:
                raise StructureError(
                    f"Colour mode {runner.options.colour.value} differs from"
                    f" {first.options.colour.value} used by {first.kind}.",
                    runner.kind,
                    i,
                )
            if runner.options.chars_address != first.options.chars_address:
                raise StructureError(
                    f"Chars address ${runner.options.chars_address:X} differs from"
                    f" ${first.options.chars_address:X} used by {first.kind}.",
                    runner.kind,
                    i,
                )

        address = first.options.chars_address
        char_info = char_info_for(first.options.colour)
        size = char_info.bytes_per_char_data
        if address % size != 0:
            prev = address - address % size
            raise StructureError(
                f"Chars address ${address:X} must be a multiple of {size};"
                f" use ${prev:X} or ${prev + size:X}.",
                first.kind,
                0,
            )

        first_index = char_info.char_index_in_ram(address, 0)
        if first_index > MAX_CHAR_INDEX:
            raise CapacityError(
                f"Char index at chars address ${address:X}", first_index, MAX_CHAR_INDEX
            )
