#!/usr/bin/env python3
"""
cli.py

Command line entry point for ksym.

Responsibilities:
  - Load KSCrash JSON reports from a file or a directory
  - Print the images and candidate symbol files of a report (summary mode)
  - Symbolicate reports via symbolizer.py and write the results as JSON

This version supports:
  - Input as a single report file (output to stdout or --output)
  - Input as a directory containing multiple *.json reports (non-recursive);
    each result is written to a file with the same basename under
    --output-dir.
  - --report-key for reports wrapped in an envelope object, e.g. the
    {"stack": {...}} body posted by a KSCrash sink.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import SymbolicatorConfig, default_config
from .errors import MalformedReportError, SymbolicationError
from .grouper import group_by_image
from .locator import candidate_paths
from .report import ResolverMeta, parse_report
from .symbolizer import symbolicate


LOG = logging.getLogger("ksym")


# ---------------------------------------------------------------------------
# CLI helpers
# ---------------------------------------------------------------------------

def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ksym",
        description="Symbolicate KSCrash JSON crash reports using atos.",
    )
    p.add_argument(
        "input",
        metavar="REPORT_PATH",
        help="Path to a JSON crash report or a directory of *.json reports.",
    )
    p.add_argument(
        "--dsym",
        required=True,
        help="Debug symbol file (dSYM DWARF binary) of the application.",
    )
    p.add_argument(
        "--base-path",
        help=(
            "Root of the versioned system symbol caches "
            "(default: ~/Library/Developer/Xcode/iOS DeviceSupport)."
        ),
    )
    p.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first resolver error instead of leaving frames unresolved.",
    )
    p.add_argument(
        "--timeout",
        type=float,
        help="Seconds to wait for each resolver call (default: 60, 0 = no limit).",
    )
    p.add_argument(
        "--atos",
        metavar="PATH",
        help="Resolver executable (default: atos on macOS, atosl elsewhere).",
    )
    p.add_argument(
        "--report-key",
        metavar="KEY",
        help="Read the report from this key of the input object (e.g. 'stack').",
    )
    p.add_argument(
        "--output",
        help="Write the symbolicated report to this file (single input only).",
    )
    p.add_argument(
        "--output-dir",
        metavar="DIR",
        help=(
            "Directory to write symbolicated reports. For each input file, a "
            "file with the same basename is created under this directory."
        ),
    )
    p.add_argument(
        "--summary",
        action="store_true",
        help="Print images and candidate symbol files only (no symbolication).",
    )
    p.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    return p


def config_from_args(args: argparse.Namespace) -> SymbolicatorConfig:
    """
    Build the call configuration: process-wide defaults overridden by flags.
    """
    config = default_config().with_options(
        base_path=args.base_path,
        strict=True if args.strict else None,
        tool_path=args.atos,
    )
    if args.timeout is not None:
        # 0 clears the limit; with_options() would skip a None value.
        config = replace(config, timeout=args.timeout if args.timeout > 0 else None)
    return config


# ---------------------------------------------------------------------------
# Input helpers
# ---------------------------------------------------------------------------

def find_report_files(path: Path) -> List[Path]:
    """
    Return the report files for an input path.

    A file is returned as-is; a directory yields its *.json files
    (non-recursive, sorted for stable processing order).
    """
    if path.is_file():
        return [path]
    if path.is_dir():
        files = sorted(p for p in path.glob("*.json") if p.is_file())
        if not files:
            LOG.warning("No *.json files found in directory: %s", path)
        return files

    LOG.error("Input path is neither file nor directory: %s", path)
    raise SystemExit(1)


def load_report(path: Path, report_key: Optional[str] = None) -> Dict[str, Any]:
    """
    Read a JSON report, optionally unwrapping it from an envelope key.
    """
    LOG.info("Loading report: %s", path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    if report_key:
        if not isinstance(data, dict) or report_key not in data:
            raise MalformedReportError(f"{path}: no '{report_key}' key in input")
        data = data[report_key]

    return data


def write_report(data: Dict[str, Any], path: Optional[Path]) -> None:
    text = json.dumps(data, indent=2)
    if path is None:
        print(text)
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(text)
        f.write("\n")
    LOG.info("Symbolicated report written to: %s", path)


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------

def print_summary(data: Dict[str, Any], dsym_path: str, config: SymbolicatorConfig) -> None:
    """
    Print every image of a report with its candidate symbol files.
    """
    report = parse_report(data)
    meta = ResolverMeta.from_report(report, dsym_path)
    groups = group_by_image(report)

    LOG.info("Images in report: %d", len([name for name in groups if name]))
    for object_name, group in groups.items():
        if not object_name:
            continue
        print(f"{object_name}\t{len(group.symbols)} addresses")
        for candidate in candidate_paths(object_name, meta, config.base_path):
            print(f"    {candidate}")


def run_symbolication(
    files: List[Path],
    dsym_path: str,
    config: SymbolicatorConfig,
    report_key: Optional[str],
    output: Optional[str],
    output_dir: Optional[str],
) -> None:
    out_dir = Path(output_dir) if output_dir else None

    for report_file in files:
        data = load_report(report_file, report_key)
        result = symbolicate(data, dsym_path, config=config)

        if out_dir is not None:
            write_report(result, out_dir / report_file.name)
        elif output:
            write_report(result, Path(output))
        else:
            write_report(result, None)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> None:
    args = build_argparser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    input_path = Path(args.input)
    if not input_path.exists():
        LOG.error("Input path does not exist: %s", input_path)
        raise SystemExit(1)

    files = find_report_files(input_path)
    config = config_from_args(args)

    if input_path.is_dir() and not args.summary and not args.output_dir:
        LOG.error("--output-dir is required when the input is a directory")
        raise SystemExit(1)

    if args.output_dir and args.output:
        LOG.warning("--output-dir is specified; ignoring --output.")

    try:
        if args.summary:
            for report_file in files:
                print_summary(load_report(report_file, args.report_key), args.dsym, config)
            return

        run_symbolication(
            files,
            dsym_path=args.dsym,
            config=config,
            report_key=args.report_key,
            output=args.output,
            output_dir=args.output_dir,
        )
    except json.JSONDecodeError as e:
        LOG.error("Invalid JSON: %s", e)
        raise SystemExit(1)
    except SymbolicationError as e:
        LOG.error("%s", e)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
