#!/usr/bin/env python3
"""
report.py

Crash report model for ksym.

Responsibilities:
  - Validate a KSCrash-style JSON report (already decoded into dicts/lists)
    and expose it as CrashReport / Thread / Frame objects.
  - Build the ResolverMeta for one call from the report's "system" block.
  - Canonical hex formatting of addresses.

Expected shape (only the keys we use are listed; everything else is kept
untouched by the merge step):

    {
      "system": {
        "process_name": "MyApp",
        "cpu_arch": "arm64",
        "os_version": "13D15",
        "system_version": "9.2.1"
      },
      "crash": {
        "threads": [
          {
            "index": 0,
            "backtrace": {
              "contents": [
                {
                  "instruction_addr": 4328,
                  "object_addr": 4096,
                  "symbol_addr": 4300,
                  "object_name": "MyApp",
                  "symbol_name": null
                }
              ]
            }
          }
        ]
      }
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

from .errors import MalformedReportError


Address = Union[int, str]

REQUIRED_SYSTEM_FIELDS = ("process_name", "cpu_arch", "os_version", "system_version")


# ---------------------------------------------------------------------------
# Address helpers
# ---------------------------------------------------------------------------

def to_hex(value: Address) -> str:
    """
    Render an address as canonical hex: uppercase, no "0x", no leading zeros.

    Integers are taken as numeric values (4328 -> "10E8"). Strings are taken
    as already-hex, so formatting an already formatted address is a no-op
    ("10e8" / "0x10E8" / "010E8" -> "10E8").
    """
    return format(parse_address(value), "X")


def parse_address(value: Address) -> int:
    """
    Convert an address field to an int.

    Raises ValueError / TypeError for values that are not addresses.
    """
    if isinstance(value, bool):
        raise TypeError(f"Not an address: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Negative address: {value}")
        return value
    if isinstance(value, str):
        s = value.strip()
        if s[:2] in ("0x", "0X"):
            s = s[2:]
        return int(s, 16)
    raise TypeError(f"Not an address: {value!r}")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class Frame:
    """
    One backtrace entry.

    Fields:
        instruction_addr: Address to resolve.
        object_addr:      Load address of the owning image (None if absent).
        symbol_addr:      Start of the enclosing symbol, if known.
        object_name:      Owning image name; "" when unknown.
        symbol_name:      Name already present in the report, if any.
    """
    instruction_addr: int
    object_addr: Optional[int] = None
    symbol_addr: Optional[int] = None
    object_name: str = ""
    symbol_name: Optional[str] = None


@dataclass
class Thread:
    index: Optional[int]
    frames: List[Frame] = field(default_factory=list)


@dataclass
class CrashReport:
    """
    Parsed view of a report.

    `raw` is the caller's dict. It is only read, never modified; the merge
    step works on a deep copy of it.
    """
    system: Dict[str, Any]
    threads: List[Thread]
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class ResolverMeta:
    """
    Per-call metadata the resolver needs.

    dsym_path is the debug symbol file for the application binary itself
    (the image whose name equals process_name).
    """
    dsym_path: str
    process_name: str
    cpu_arch: str
    os_version: str
    system_version: str

    @classmethod
    def from_report(cls, report: CrashReport, dsym_path: str) -> "ResolverMeta":
        system = report.system
        return cls(
            dsym_path=str(dsym_path),
            process_name=str(system["process_name"]),
            cpu_arch=str(system["cpu_arch"]),
            os_version=str(system["os_version"]),
            system_version=str(system["system_version"]),
        )


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def _require_dict(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise MalformedReportError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _require_list(value: Any, what: str) -> List[Any]:
    if not isinstance(value, list):
        raise MalformedReportError(f"{what} must be a list, got {type(value).__name__}")
    return value


def _optional_address(entry: Dict[str, Any], key: str, where: str) -> Optional[int]:
    value = entry.get(key)
    if value is None:
        return None
    try:
        return parse_address(value)
    except (TypeError, ValueError):
        raise MalformedReportError(f"{where}: invalid {key} {value!r}") from None


def _parse_frame(entry: Any, where: str) -> Frame:
    entry = _require_dict(entry, where)

    instruction_addr = _optional_address(entry, "instruction_addr", where)
    if instruction_addr is None:
        raise MalformedReportError(f"{where}: missing instruction_addr")

    object_name = entry.get("object_name") or ""
    if not isinstance(object_name, str):
        raise MalformedReportError(f"{where}: invalid object_name {object_name!r}")

    object_addr = _optional_address(entry, "object_addr", where)
    if object_name and object_addr is None:
        # The resolver needs the load address of every named image.
        raise MalformedReportError(f"{where}: missing object_addr for {object_name}")

    return Frame(
        instruction_addr=instruction_addr,
        object_addr=object_addr,
        symbol_addr=_optional_address(entry, "symbol_addr", where),
        object_name=object_name,
        symbol_name=entry.get("symbol_name"),
    )


def _parse_thread(entry: Any, position: int) -> Thread:
    where = f"crash.threads[{position}]"
    entry = _require_dict(entry, where)
    backtrace = _require_dict(entry.get("backtrace"), f"{where}.backtrace")
    contents = _require_list(backtrace.get("contents"), f"{where}.backtrace.contents")

    frames = [
        _parse_frame(item, f"{where}.backtrace.contents[{i}]")
        for i, item in enumerate(contents)
    ]
    return Thread(index=entry.get("index"), frames=frames)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_report(data: Any) -> CrashReport:
    """
    Validate a decoded JSON report and return its CrashReport view.

    Raises MalformedReportError when required metadata or structure is
    missing.
    """
    data = _require_dict(data, "report")

    system = _require_dict(data.get("system"), "system")
    missing = [k for k in REQUIRED_SYSTEM_FIELDS if system.get(k) in (None, "")]
    if missing:
        raise MalformedReportError(f"system is missing: {', '.join(missing)}")

    crash = _require_dict(data.get("crash"), "crash")
    threads_raw = _require_list(crash.get("threads"), "crash.threads")

    threads = [_parse_thread(t, i) for i, t in enumerate(threads_raw)]
    return CrashReport(system=system, threads=threads, raw=data)


def iter_frames(report: CrashReport) -> Iterator[Frame]:
    """Yield every frame of every thread, in report order."""
    for thread in report.threads:
        for frame in thread.frames:
            yield frame


__all__ = [
    "Address",
    "Frame",
    "Thread",
    "CrashReport",
    "ResolverMeta",
    "to_hex",
    "parse_address",
    "parse_report",
    "iter_frames",
]
