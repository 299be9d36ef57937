"""CLI entrypoints for slicebundle commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .logging import configure_logging
from .orchestrator import Orchestrator
from .report import format_analysis_report, format_info, format_summary


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Configuration file to use instead of <path>/.slicebundle.yml.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slicebundle",
        description="Bundle Slice.js components into a small set of route-aware artifacts.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    bundle_parser = subparsers.add_parser(
        "bundle",
        help="Analyze the project and write bundles plus the bundle manifest.",
    )
    _add_verbose_option(bundle_parser, suppress_default=True)
    _add_path_argument(bundle_parser)
    _add_config_option(bundle_parser)
    bundle_parser.add_argument(
        "--analyze",
        action="store_true",
        help="Print the analysis report without writing any files.",
    )

    info_parser = subparsers.add_parser(
        "info",
        help="Show the bundle manifest written by the last run.",
    )
    _add_verbose_option(info_parser, suppress_default=True)
    _add_path_argument(info_parser)
    _add_config_option(info_parser)

    clean_parser = subparsers.add_parser(
        "clean",
        help="Remove generated bundles and manifests.",
    )
    _add_verbose_option(clean_parser, suppress_default=True)
    _add_path_argument(clean_parser)
    _add_config_option(clean_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for slicebundle commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    orchestrator = Orchestrator()
    config_path = getattr(args, "config", None)

    if args.command == "bundle":
        analyze_only = bool(getattr(args, "analyze", False))
        try:
            outcome = orchestrator.run_bundle(
                args.path, config_path=config_path, analyze_only=analyze_only
            )
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"{exc}\n")
        except RuntimeError as exc:
            parser.exit(1, f"slicebundle bundle failed: {exc}\nRun with --verbose for more details.\n")
        except Exception as exc:  # pragma: no cover - unexpected failure
            parser.exit(1, f"slicebundle bundle failed: {exc}\nRun with --verbose for more details.\n")
        if analyze_only:
            print(format_analysis_report(outcome.analysis))
        else:
            print(format_summary(outcome))
            if outcome.files:
                print(f"Output written to {_relativize(outcome.files[0].parent)}")
    elif args.command == "info":
        try:
            payload = orchestrator.run_info(args.path, config_path=config_path)
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\nRun `slicebundle bundle` first.\n")
        except RuntimeError as exc:
            parser.exit(1, f"slicebundle info failed: {exc}\n")
        print(format_info(payload))
    elif args.command == "clean":
        try:
            removed = orchestrator.run_clean(args.path, config_path=config_path)
        except RuntimeError as exc:
            parser.exit(1, f"slicebundle clean failed: {exc}\n")
        if removed:
            for path in removed:
                print(f"Removed {_relativize(path)}")
        else:
            print("Nothing to clean")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
