#!/usr/bin/env python3
"""
symbolizer.py

High-level symbolication workflow for ksym.

Responsibilities:
  - Take a parsed CrashReport and group its frames per image.
  - For each image, compute candidate symbol files (locator.py) and run the
    resolver (atos_runner.py) on them in order until one works.
  - Collect every resolved name into a single address -> name table.
  - Hand the table to merger.py to produce the annotated report.

Everything runs sequentially: one image at a time, one candidate at a
time, one resolver process at a time. The output of a resolver call is
paired with its input addresses by position, so invocations must not be
interleaved.

Failure policy:
  - lenient (default): a failing candidate is logged and the next one is
    tried; an image whose candidates all fail keeps the names the report
    already had.
  - strict: the first failure is raised and the whole call fails.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from .atos_runner import AtosTool, SymbolTool
from .config import SymbolicatorConfig, default_config
from .errors import CandidatesExhaustedError, ResolverError
from .grouper import ImageGroup, group_by_image
from .locator import candidate_paths
from .merger import merge_names
from .report import ResolverMeta, parse_report, to_hex


LOG = logging.getLogger("ksym.symbolizer")

# Canonical hex address -> symbol name, for all images of one report.
NameTable = Dict[str, str]


def _pair_names(group: ImageGroup, names: List[str]) -> Dict[int, Optional[str]]:
    """
    Pair resolver output lines with the group's addresses by position.

    Addresses without a matching line keep the name they had.
    """
    addrs = list(group.symbols)

    if len(names) != len(addrs):
        LOG.warning(
            "Resolver returned %d lines for %d addresses of %s",
            len(names),
            len(addrs),
            group.object_name,
        )

    resolved: Dict[int, Optional[str]] = dict(group.symbols)
    for addr, name in zip(addrs, names):
        resolved[addr] = name
    return resolved


def resolve_group(
    group: ImageGroup,
    candidates: List[str],
    meta: ResolverMeta,
    tool: SymbolTool,
    strict: bool = False,
) -> ImageGroup:
    """
    Resolve all addresses of one image.

    Candidates are tried in order; the first one for which the resolver
    exits successfully with non-empty output wins and no further candidate
    is tried.

    Returns a new ImageGroup whose `symbols` holds the resolved names, or
    the unchanged names if nothing worked (lenient mode).

    Raises a ResolverError subclass in strict mode.
    """
    if not candidates:
        if strict:
            raise CandidatesExhaustedError(
                f"No symbol file candidates for {group.object_name}",
                object_name=group.object_name,
            )
        LOG.warning("No symbol file candidates for %s", group.object_name)
        return group

    addresses = group.hex_addresses()
    load_address = to_hex(group.object_addr)

    LOG.info(
        "Symbolicating %s: %d addresses, %d candidates",
        group.object_name,
        len(addresses),
        len(candidates),
    )

    for symbol_file in candidates:
        try:
            names = tool.resolve(symbol_file, meta.cpu_arch, load_address, addresses)
        except ResolverError as e:
            e.object_name = group.object_name
            if strict:
                LOG.error("Symbolication of %s failed: %s", group.object_name, e)
                raise
            LOG.warning("Candidate %s failed for %s: %s", symbol_file, group.object_name, e)
            continue

        LOG.debug("Resolved %s using %s", group.object_name, symbol_file)
        return replace(group, symbols=_pair_names(group, names))

    LOG.warning(
        "No usable symbol file for %s; leaving %d addresses unresolved",
        group.object_name,
        len(addresses),
    )
    return group


def resolve_all(
    groups: Dict[str, ImageGroup],
    meta: ResolverMeta,
    config: SymbolicatorConfig,
    tool: SymbolTool,
) -> NameTable:
    """
    Resolve every image group and merge the results into one NameTable.

    Groups are processed in the given order. When two groups yield the same
    address, the later group wins. The group of frames without an image
    name is skipped.
    """
    names: NameTable = {}

    for object_name, group in groups.items():
        if not object_name:
            LOG.debug("Skipping %d frames without image name", len(group.symbols))
            continue

        candidates = candidate_paths(object_name, meta, config.base_path)
        resolved = resolve_group(group, candidates, meta, tool, strict=config.strict)

        for addr, name in resolved.symbols.items():
            if name is not None:
                names[to_hex(addr)] = name

    return names


def symbolicate(
    data: Dict[str, Any],
    dsym_path: str,
    config: Optional[SymbolicatorConfig] = None,
    tool: Optional[SymbolTool] = None,
) -> Dict[str, Any]:
    """
    Symbolicate a KSCrash JSON report.

    Parameters:
        data:
            Decoded JSON report (not a file path). It is not modified.
        dsym_path:
            Debug symbol file of the application binary.
        config:
            Settings for this call. Defaults to the process-wide options.
        tool:
            Resolver to use. Defaults to AtosTool built from config.

    Returns:
        A new report dict with hex addresses and resolved symbol names.

    Raises:
        MalformedReportError: the report lacks required fields.
        ResolverError: a resolution failed and config.strict is set.
    """
    if config is None:
        config = default_config()
    if tool is None:
        tool = AtosTool.from_config(config)

    report = parse_report(data)
    meta = ResolverMeta.from_report(report, dsym_path)

    groups = group_by_image(report)
    LOG.info(
        "Report for %s (%s, %s): %d threads, %d images",
        meta.process_name,
        meta.cpu_arch,
        meta.system_version,
        len(report.threads),
        len([g for g in groups if g]),
    )

    names = resolve_all(groups, meta, config, tool)
    LOG.info("Resolved %d addresses", len(names))

    return merge_names(data, names)


__all__ = [
    "NameTable",
    "resolve_group",
    "resolve_all",
    "symbolicate",
]
