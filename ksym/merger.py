#!/usr/bin/env python3
"""
merger.py

Merge resolved symbol names back into a crash report.

High-level behavior:

  - Deep-copy the report dict; the caller's report is never modified.
  - For every frame of every thread, in order:
      * render instruction_addr, object_addr and symbol_addr as canonical
        hex strings (fields that are missing or null stay as they are);
      * if the frame belongs to an image and the name table has an entry
        for its instruction address, set symbol_name from it.
  - Leave thread count, thread order, frame count and frame order alone.

Already-hex address strings are re-rendered to the same value, so merging
an already merged report with an empty table returns an equal report.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Mapping

from .report import to_hex


LOG = logging.getLogger("ksym.merger")

ADDRESS_FIELDS = ("instruction_addr", "object_addr", "symbol_addr")


def _merge_frame(entry: Dict[str, Any], names: Mapping[str, str]) -> None:
    for key in ADDRESS_FIELDS:
        if entry.get(key) is not None:
            entry[key] = to_hex(entry[key])

    if not entry.get("object_name"):
        return

    addr = entry.get("instruction_addr")
    if addr is None:
        return

    name = names.get(addr)
    if name is not None:
        entry["symbol_name"] = name


def merge_names(data: Dict[str, Any], names: Mapping[str, str]) -> Dict[str, Any]:
    """
    Return a copy of the report with hex addresses and resolved names.

    Parameters:
        data:
            Report dict in KSCrash JSON shape.
        names:
            Canonical hex address -> symbol name.
    """
    out = copy.deepcopy(data)

    merged = 0
    for thread in out["crash"]["threads"]:
        for entry in thread["backtrace"]["contents"]:
            before = entry.get("symbol_name")
            _merge_frame(entry, names)
            if entry.get("symbol_name") != before:
                merged += 1

    LOG.debug("Updated symbol names of %d frames", merged)
    return out


__all__ = [
    "ADDRESS_FIELDS",
    "merge_names",
]
