"""CLI entrypoint for repoprofile commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError
from .engine import CodebaseAnalyzer
from .errors import RepoProfileError
from .logging import configure_logging, get_logger
from .models import AnalysisProgress


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repoprofile",
        description="Profile a source repository: technologies, structure, examples and quality.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a repository and print the result as JSON.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    analyze_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    analyze_parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum directory depth to walk.",
    )
    analyze_parser.add_argument(
        "--max-examples",
        type=int,
        default=None,
        dest="max_examples_per_category",
        help="Maximum code examples kept per category.",
    )
    analyze_parser.add_argument(
        "--max-file-size-kb",
        type=int,
        default=None,
        help="Skip files larger than this many kilobytes.",
    )
    analyze_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the JSON analysis to this file instead of stdout.",
    )
    analyze_parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors.",
    )
    analyze_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repoprofile commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "quiet", False)),
        log_file=getattr(args, "log_file", None),
    )
    logger = get_logger("cli")

    if args.command == "analyze":
        for name in ("max_depth", "max_examples_per_category", "max_file_size_kb"):
            value = getattr(args, name)
            if value is not None and value < 0:
                parser.error(f"--{name.replace('_', '-')} must not be negative")

        def _progress(event: AnalysisProgress) -> None:
            logger.debug("Progress %d/%d (%s)", event.current, event.total, event.stage)

        analyzer = CodebaseAnalyzer(
            progress=_progress,
            overrides={
                "max_depth": args.max_depth,
                "max_examples_per_category": args.max_examples_per_category,
                "max_file_size_kb": args.max_file_size_kb,
            },
        )
        try:
            analysis = analyzer.analyze(args.path)
        except (RepoProfileError, ConfigError) as exc:
            parser.exit(1, f"repoprofile analyze failed: {exc}\n")

        payload = json.dumps(analysis.to_dict(), indent=2)
        if args.output is not None:
            args.output.write_text(payload + "\n", encoding="utf-8")
            print(f"Analysis written to {args.output}")
        else:
            sys.stdout.write(payload + "\n")


if __name__ == "__main__":  # pragma: no cover
    main()
