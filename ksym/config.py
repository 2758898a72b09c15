#!/usr/bin/env python3
"""
config.py

Configuration for a symbolication call.

A call is driven by an explicit SymbolicatorConfig value. Process-wide
defaults are kept in this module so that a host application can set them
once at startup (get_option / set_option) and then obtain a snapshot with
default_config(). A config that was already created is never affected by
later set_option() calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional


LOG = logging.getLogger("ksym.config")


# Xcode caches per-OS-version system symbols here when a device is attached.
DEFAULT_BASE_PATH = "~/Library/Developer/Xcode/iOS DeviceSupport"

# Seconds to wait for one resolver invocation.
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class SymbolicatorConfig:
    """
    Settings for one symbolication call.

    Fields:
        base_path:
            Root of the versioned system symbol caches. "~" is expanded.
        strict:
            If True, the first resolver failure aborts the call.
            If False (default), failures leave frames unresolved.
        timeout:
            Seconds to wait for each resolver process; None or 0 waits forever.
        tool_path:
            Resolver executable. None picks "atos" or "atosl" depending on
            the platform convention.
        native_atos:
            Force the macOS ("atos -arch") or the portable ("atosl --arch")
            argument convention. None detects it from sys.platform.
    """
    base_path: str = DEFAULT_BASE_PATH
    strict: bool = False
    timeout: Optional[float] = DEFAULT_TIMEOUT
    tool_path: Optional[str] = None
    native_atos: Optional[bool] = None

    def with_options(self, **changes: Any) -> "SymbolicatorConfig":
        """
        Return a copy with the given fields replaced. None values are ignored
        so that unset CLI flags can be passed straight through.
        """
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes)


# ---------------------------------------------------------------------------
# Process-wide defaults
# ---------------------------------------------------------------------------

_OPTION_NAMES = tuple(f.name for f in fields(SymbolicatorConfig))

_options: Dict[str, Any] = {}


def get_option(name: str, default: Any = None) -> Any:
    """
    Return the process-wide value of an option.

    If the option was never set, `default` is returned; a callable default
    is invoked to produce the value.
    """
    if name not in _OPTION_NAMES:
        raise KeyError(f"Unknown option: {name}")
    if name in _options:
        return _options[name]
    if callable(default):
        return default()
    return default


def set_option(name: str, value: Any) -> None:
    """Set the process-wide value of an option."""
    if name not in _OPTION_NAMES:
        raise KeyError(f"Unknown option: {name}")
    LOG.debug("Setting option %s=%r", name, value)
    _options[name] = value


def reset_options() -> None:
    """Forget every value set with set_option()."""
    _options.clear()


def default_config() -> SymbolicatorConfig:
    """Snapshot the current process-wide options into a config value."""
    return replace(SymbolicatorConfig(), **_options)


__all__ = [
    "DEFAULT_BASE_PATH",
    "DEFAULT_TIMEOUT",
    "SymbolicatorConfig",
    "get_option",
    "set_option",
    "reset_options",
    "default_config",
]
