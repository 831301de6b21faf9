"""Command-line interface: compile an arkitecture file to SVG or PNG."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from . import __version__
from .generator import DiagramGenerator, is_internal_error
from .models import ValidationError
from .png_renderer import PNGRenderer

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2

EPILOG = """examples:
  arkitecture diagram.ark diagram.svg
  arkitecture diagram.ark --validate-only
  arkitecture diagram.ark --verbose
  arkitecture diagram.ark --font-size 16 --font-family Helvetica
  arkitecture diagram.ark --png
"""


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arkitecture",
        description="Generate SVG architecture diagrams from DSL files.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", help="Input DSL file path")
    parser.add_argument(
        "output",
        nargs="?",
        help="Output file path (defaults to the input path with .svg or .png)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show detailed processing information"
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Parse and validate without generating output",
    )
    parser.add_argument(
        "--font-size", type=_positive_int, default=12, help="Label font size (default 12)"
    )
    parser.add_argument(
        "--font-family", default="Arial", help="Label font family (default Arial)"
    )
    parser.add_argument("--png", action="store_true", help="Write a PNG instead of SVG")
    parser.add_argument(
        "--debug", action="store_true", help="Print the pipeline trace to stderr"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _default_output(input_path: Path, png: bool) -> Path:
    return input_path.with_suffix(".png" if png else ".svg")


def format_errors(errors: List[ValidationError]) -> str:
    return "\n".join(f"  {error}" for error in errors)


class CliError(Exception):
    """An I/O problem reported to the user with exit code 2."""


def _read_input(input_path: Path) -> str:
    try:
        return input_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise CliError(f"File not found: {input_path}") from None
    except PermissionError:
        raise CliError(f"Permission denied: {input_path}") from None


def run(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    output_path = Path(args.output) if args.output else _default_output(input_path, args.png)
    logger.info("Processing: %s -> %s", input_path, output_path)

    text = _read_input(input_path)
    logger.info("Read %d characters from %s", len(text), input_path)
    if not args.validate_only and output_path.resolve() == input_path.resolve():
        raise CliError(f"Output path would overwrite input: {input_path}")

    generator = DiagramGenerator(font_size=args.font_size, font_family=args.font_family)
    result = generator.compile(text, validate_only=args.validate_only, debug=args.debug)

    if args.debug and generator.get_trace() is not None:
        sys.stderr.write(generator.get_trace().summary() + "\n")

    if not result.success and is_internal_error(result.errors):
        sys.stderr.write(format_errors(result.errors) + "\n")
        return EXIT_ERROR

    if not result.success:
        sys.stderr.write("Validation errors:\n")
        sys.stderr.write(format_errors(result.errors) + "\n")
        return EXIT_INVALID

    if args.validate_only:
        print("DSL is valid")
        return EXIT_OK

    try:
        if args.png:
            renderer = PNGRenderer(font_size=args.font_size, font_family=args.font_family)
            renderer.render(result.document, result.layout, str(output_path))
        else:
            output_path.write_text(result.svg, encoding="utf-8")
    except PermissionError:
        raise CliError(f"Permission denied writing to: {output_path}") from None

    print(f"Generated {'PNG' if args.png else 'SVG'}: {output_path}")
    return EXIT_OK


def main(argv: Optional[Iterable[str]] = None) -> int:
    """
    Entry point for the ``arkitecture`` console script.

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 on success, 1 for invalid DSL, 2 for I/O or internal errors
    """
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return run(args)
    except CliError as exc:
        sys.stderr.write(f"{exc}\n")
        return EXIT_ERROR
    except OSError as exc:
        sys.stderr.write(f"Internal error: {exc}\n")
        logger.debug("I/O failure", exc_info=True)
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
