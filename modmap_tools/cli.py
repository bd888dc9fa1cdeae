from __future__ import annotations

import argparse
import logging
import sys

from .aggregate import aggregate_files
from .errors import ModmapError
from .modmap import Compiler, generate_modmap_file


def build_aggregate_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modmap-aggregate",
        description=(
            "Merge module registry fragments and per-unit dependency info files "
            "into one module registry."
        ),
    )
    parser.add_argument(
        "-m",
        "--registry",
        action="append",
        default=[],
        metavar="PATH",
        help="Module registry fragment (repeatable)",
    )
    parser.add_argument(
        "-d",
        "--ddi",
        action="append",
        default=[],
        metavar="PATH",
        help="Dependency info file of one translation unit (repeatable)",
    )
    parser.add_argument(
        "-o",
        "--output",
        required=True,
        metavar="PATH",
        help="Path of the aggregated module registry",
    )
    _add_verbose(parser)
    return parser


def build_modmap_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modmap-generate",
        description="Generate the module mapping file of one translation unit for a compiler.",
    )
    parser.add_argument(
        "-c",
        "--compiler",
        required=True,
        help="Target compiler: clang, gcc or msvc",
    )
    parser.add_argument(
        "-m",
        "--registry",
        required=True,
        metavar="PATH",
        help="Aggregated module registry",
    )
    parser.add_argument(
        "-d",
        "--ddi",
        required=True,
        metavar="PATH",
        help="Dependency info file of the translation unit",
    )
    parser.add_argument(
        "-o",
        "--output",
        required=True,
        metavar="PATH",
        help="Path of the generated modmap",
    )
    parser.add_argument(
        "--bmi-output",
        default=None,
        metavar="PATH",
        help="BMI this unit will produce for the module it provides (default: from the dependency info)",
    )
    _add_verbose(parser)
    return parser


def aggregate_main(argv: list[str] | None = None) -> int:
    args = build_aggregate_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        aggregate_files(args.registry, args.ddi, args.output)
    except ModmapError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    return 0


def modmap_main(argv: list[str] | None = None) -> int:
    args = build_modmap_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        compiler = Compiler.parse(args.compiler)
        generate_modmap_file(
            compiler,
            args.registry,
            args.ddi,
            args.output,
            bmi_output=args.bmi_output,
        )
    except ModmapError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    return 0


COMMANDS = {
    "aggregate": aggregate_main,
    "generate": modmap_main,
}


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] not in COMMANDS:
        print(f"usage: python -m modmap_tools.cli {{{','.join(COMMANDS)}}} ...", file=sys.stderr)
        return 2
    return COMMANDS[argv[0]](argv[1:])


def _add_verbose(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s - %(levelname)s - %(message)s",
    )


if __name__ == "__main__":
    raise SystemExit(main())
