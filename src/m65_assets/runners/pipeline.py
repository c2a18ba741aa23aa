"""Running a whole build."""

import logging
import time
from contextlib import contextmanager
from typing import Iterator

from m65_assets.data.models import MAX_CHAR_INDEX
from m65_assets.errors import CapacityError
from m65_assets.images.palette import merge_palettes

from .base import BuildState
from .register import RunnersRegister

logger = logging.getLogger(__name__)

MAX_CHARS = 8192


@contextmanager
def timed(what: str) -> Iterator[None]:
    """Log how long the block took."""
    start = time.perf_counter()
    yield
    logger.debug(f"{what} took {time.perf_counter() - start:.3f}s")


def validate_export(state: BuildState) -> None:
    """Check the build fits the hardware before anything is exported."""
    if len(state.chars) > MAX_CHARS:
        raise CapacityError("Chars", len(state.chars), MAX_CHARS)
    if state.chars.tiles:
        last_index = state.char_address(len(state.chars) - 1)
        if last_index > MAX_CHAR_INDEX:
            raise CapacityError("Char index of last char", last_index, MAX_CHAR_INDEX)
    limit = state.char_info.colours_per_palette
    if len(state.palette) > limit:
        raise CapacityError("Global palette colours", len(state.palette), limit)


def run_build(register: RunnersRegister) -> BuildState:
    """Validate and run all stages, then export.

    Nothing is written unless every stage succeeds; with `dry_run` nothing is
    written at all.
    """
    register.validate_structure()

    # Colour mode and chars address are the same for all stages
    state = BuildState(options=register.runners[-1].options)
    char_info = state.char_info
    logger.info(f"Building {len(register)} stages in {char_info.name} mode")

    with timed("Parsing"):
        for runner in register.runners:
            logger.info(f"Running {runner.kind}")
            runner.parse_inputs(state)

    with timed("Palette merge"):
        result = merge_palettes([state.chars], char_info.colours_per_palette)
        state.palette = result.palette

    with timed("Preparing export data"):
        for runner in register.runners:
            runner.prepare_export(state)
        for runner in register.runners:
            runner.finalize_export(state)
        validate_export(state)

    with timed("Exporting"):
        for runner in register.runners:
            runner.export(state)
        if state.options.dry_run:
            logger.info(f"Dry run, skipping {len(state.output.files)} output files")
        else:
            state.output.write()

    logger.info(f"{len(state.chars)} chars, {len(state.palette)} colours")
    return state
