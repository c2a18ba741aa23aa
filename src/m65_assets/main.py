"""Command line entry point.

Several commands can be chained in one run, for example::

    m65-assets --colour ncm chars --input base.png --output-chars chars.bin \\
        screens --input level1 --output-screen "{level}-screen.bin"

Global options given before the first command apply to all commands.
"""

import logging
import sys
from argparse import SUPPRESS, ArgumentParser, Namespace
from pathlib import Path

from pydantic import ValidationError

from m65_assets.data import load_config
from m65_assets.data.models import (
    ColourMode,
    GlobalOptions,
    Verbosity,
    parse_int,
    parse_point,
    parse_size,
)
from m65_assets.errors import ConverterError
from m65_assets.runners.chars import CharsRunner
from m65_assets.runners.pipeline import run_build
from m65_assets.runners.register import AnyRunner, RunnersRegister
from m65_assets.runners.screens import ScreensRunner
from m65_assets.runners.sprites import RRBSpritesRunner

logger = logging.getLogger(__name__)

COMMANDS = ("chars", "screens", "rrb-sprites")
GLOBAL_OPTIONS = (
    "verbosity",
    "colour",
    "rrb",
    "screen_size",
    "screen_address",
    "chars_address",
    "dry_run",
)

LOG_LEVELS = {
    Verbosity.QUIET: logging.WARNING,
    Verbosity.INFO: logging.INFO,
    Verbosity.DEBUG: logging.DEBUG,
}


def _add_global_options(parser: ArgumentParser) -> None:
    # Suppressed defaults let options given in a command slice override,
    # and missing ones fall back to the config
    g = parser.add_argument_group("global options")
    g.add_argument(
        "--config", type=Path, default=SUPPRESS, help="YAML file with global options"
    )
    g.add_argument(
        "--verbosity", type=Verbosity, choices=list(Verbosity), default=SUPPRESS
    )
    g.add_argument(
        "--colour",
        type=ColourMode,
        choices=list(ColourMode),
        default=SUPPRESS,
        help="colour mode",
    )
    g.add_argument(
        "--rrb", action="store_true", default=SUPPRESS, help="use raster rewrite buffer"
    )
    g.add_argument(
        "--screen",
        dest="screen_size",
        type=parse_size,
        default=SUPPRESS,
        help="screen size in chars, WxH",
    )
    g.add_argument(
        "--screen-address", type=parse_int, default=SUPPRESS, help="screen RAM address"
    )
    g.add_argument(
        "--chars-address", type=parse_int, default=SUPPRESS, help="chars RAM address"
    )
    g.add_argument(
        "--dry-run", action="store_true", default=SUPPRESS, help="don't write any files"
    )


def build_parser() -> ArgumentParser:
    """Argument parser for a single command slice."""
    common = ArgumentParser(add_help=False)
    _add_global_options(common)

    parser = ArgumentParser(
        prog="m65-assets",
        description="Convert pixel art to MEGA65 data.",
        parents=[common],
    )
    commands = parser.add_subparsers(dest="command", required=True)

    p = commands.add_parser("chars", parents=[common], help="base chars and palette")
    p.add_argument("--input", type=Path, nargs="+", required=True)
    p.add_argument("--output-chars", type=Path)
    p.add_argument("--output-palette", type=Path)

    p = commands.add_parser(
        "screens", parents=[common], help="levels to screen and colour data"
    )
    p.add_argument(
        "--input",
        type=Path,
        nargs="+",
        required=True,
        help="images, LDtk level folders or data.json",
    )
    p.add_argument("--output-screen", help="template, may use {level} and {root}")
    p.add_argument("--output-colour", help="template, may use {level} and {root}")
    p.add_argument("--output-lookup", help="template, may use {level} and {root}")
    p.add_argument(
        "--no-composite",
        dest="use_composite",
        action="store_false",
        help="always merge layers manually",
    )

    p = commands.add_parser("rrb-sprites", parents=[common], help="RRB sprite frames")
    p.add_argument("--input", type=Path, nargs="+", required=True)
    p.add_argument("--frame-size", type=parse_size, help="frame size in pixels, WxH")
    p.add_argument(
        "--duration", dest="duration_ms", type=int, default=0, help="frame duration, ms"
    )
    p.add_argument("--output-frames", help="template, may use {name}")
    p.add_argument("--output-lookup", help="template, may use {name}")
    p.add_argument(
        "--append-screens", action="store_true", help="add first frames to all screens"
    )
    p.add_argument(
        "--position",
        dest="positions",
        type=parse_point,
        action="append",
        default=[],
        help="X,Y",
    )

    return parser


def split_commands(argv: list[str]) -> list[list[str]]:
    """Split arguments into one slice per command.

    Arguments before the first command are global and prepended to each slice.
    """
    shared: list[str] = []
    slices: list[list[str]] = []
    for arg in argv:
        if arg in COMMANDS:
            slices.append([arg])
        elif slices:
            slices[-1].append(arg)
        else:
            shared.append(arg)
    if not slices:
        return [shared]
    return [shared + s for s in slices]


def global_options(ns: Namespace) -> GlobalOptions:
    """Global options from the config file and parsed arguments."""
    base = load_config(ns.config) if "config" in ns else GlobalOptions()
    given = {k: getattr(ns, k) for k in GLOBAL_OPTIONS if k in ns}
    return GlobalOptions.model_validate({**base.model_dump(), **given})


def runner_from_args(ns: Namespace) -> AnyRunner:
    """Create the stage for a parsed command."""
    options = global_options(ns)
    if ns.command == "chars":
        return CharsRunner(
            options=options,
            inputs=ns.input,
            output_chars=ns.output_chars,
            output_palette=ns.output_palette,
        )
    if ns.command == "screens":
        return ScreensRunner(
            options=options,
            inputs=ns.input,
            output_screen=ns.output_screen,
            output_colour=ns.output_colour,
            output_lookup=ns.output_lookup,
            use_composite=ns.use_composite,
        )
    if ns.command == "rrb-sprites":
        return RRBSpritesRunner(
            options=options,
            inputs=ns.input,
            frame_size=ns.frame_size,
            duration_ms=ns.duration_ms,
            output_frames=ns.output_frames,
            output_lookup=ns.output_lookup,
            append_screens=ns.append_screens,
            positions=ns.positions,
        )
    raise ValueError(f"Unknown command: {ns.command}")


def invoke_all_commands(argv: list[str], register: RunnersRegister) -> int:
    """Parse every command slice into the register.

    Returns the exit code of the first failing slice, or 0.
    """
    parser = build_parser()
    for args in split_commands(argv):
        try:
            ns = parser.parse_args(args)
        except SystemExit as e:
            # argparse exits on errors and on --help
            code = e.code if isinstance(e.code, int) else 1
            if code != 0:
                return code
            continue
        try:
            register.register(runner_from_args(ns))
        except (ConverterError, ValidationError, OSError) as e:
            logger.error(f"{ns.command}: {e}")
            return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the converter, returning the exit code."""
    logging.basicConfig(
        level=logging.INFO, format="%(levelname)s %(name)s: %(message)s"
    )
    if argv is None:
        argv = sys.argv[1:]

    register = RunnersRegister()
    code = invoke_all_commands(argv, register)
    if code != 0 or len(register) == 0:
        return code

    verbosity = register.runners[-1].options.verbosity
    logging.getLogger().setLevel(LOG_LEVELS[verbosity])

    try:
        run_build(register)
    except ConverterError as e:
        logger.error(f"Build failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
