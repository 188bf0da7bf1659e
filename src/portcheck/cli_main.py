"""portcheck CLI: check a soup file for missing port connectivity.

Commands:
    check: Verify every required connection in a soup file.
    version: Print the package version.

Exit codes: 0 when every requirement is routed, 1 on connectivity errors or
when the input cannot be loaded, 2 on usage errors.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config import CheckerConfig, load_config
from .io import canonical_json_dumps, load_soup, write_soup
from .verify import ConnectivityReport, apply_annotations, verify_connectivity

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the portcheck CLI."""
    shared = argparse.ArgumentParser(add_help=False)
    shared.add_argument("-v", "--verbose", action="count", default=0)

    parser = argparse.ArgumentParser(
        prog="portcheck",
        description="Verify that schematic connectivity is realized by PCB traces.",
        parents=[shared],
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("version", parents=[shared], help="Print version")

    check = sub.add_parser("check", parents=[shared], help="Check a soup file")
    check.add_argument("soup", help="Soup file (JSON or YAML)")
    check.add_argument("--config", default="", help="Checker config file (JSON or YAML)")
    check.add_argument(
        "--tolerance",
        type=float,
        default=None,
        help="Override the position matching tolerance",
    )
    check.add_argument("--json", action="store_true", help="Print the report as JSON")
    check.add_argument(
        "--write-annotated",
        default="",
        metavar="OUT",
        help="Write the soup with inferred port references filled in",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the portcheck CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv).

    Returns:
        Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = logging.WARNING
    if args.verbose >= 1:
        log_level = logging.INFO
    if args.verbose >= 2:
        log_level = logging.DEBUG
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    try:
        if args.command == "version":
            sys.stdout.write(f"portcheck {__version__}\n")
            return 0
        if args.command == "check":
            return _cmd_check(args)
        parser.error(f"Unknown command: {args.command}")
        return 2
    except Exception as e:
        logger.error("Error: %s", e)
        if args.verbose >= 2:
            import traceback

            traceback.print_exc()
        return 1


def _resolve_config(args: argparse.Namespace) -> CheckerConfig:
    config = load_config(Path(args.config)) if args.config else CheckerConfig()
    if args.tolerance is not None:
        config = CheckerConfig.model_validate({**config.model_dump(), "tolerance": args.tolerance})
    return config


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check command."""
    soup_path = Path(args.soup)
    if not soup_path.exists():
        sys.stderr.write(f"Soup file not found: {soup_path}\n")
        return 1

    config = _resolve_config(args)
    soup = load_soup(soup_path)
    report = verify_connectivity(soup, config)

    if args.write_annotated:
        out_path = Path(args.write_annotated)
        written = apply_annotations(soup, report)
        write_soup(out_path, soup)
        logger.info("Wrote %d inferred references to %s", written, out_path)

    if args.json:
        sys.stdout.write(canonical_json_dumps(report.to_dict()) + "\n")
    else:
        sys.stdout.write(_format_report(soup_path, report))

    return 0 if report.passed else 1


def _format_report(soup_path: Path, report: ConnectivityReport) -> str:
    lines = [f"Connectivity check for {soup_path}"]
    if report.passed:
        lines.append(f"OK: {len(report.required_connections)} required connection(s) satisfied")
    else:
        lines.append(f"FAILED: {len(report.errors)} port(s) not connected")
        lines.extend(f"  {error.message}" for error in report.errors)
    for ref in report.dangling_references:
        lines.append(
            f"  note: trace {ref.pcb_trace_id} segment {ref.segment_index} "
            f"references unknown port {ref.pcb_port_id}"
        )
    return "\n".join(lines) + "\n"


if __name__ == "__main__":
    raise SystemExit(main())
