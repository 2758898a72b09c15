#!/usr/bin/env python3
"""
atos_runner.py

Helper module to run atos (or atosl) for all addresses of one image.

This module provides:

  - SymbolTool: the interface the symbolizer talks to. Anything with a
    matching resolve() method can stand in for the real tool (tests use a
    scripted double).
  - AtosTool: the production implementation. It runs the resolver once
    per (symbol file, image) with all addresses of that image.
  - build_atos_command(): the argument convention, kept separate so that
    it can be checked without running anything.

Argument conventions:

    macOS:      atos  -o <symbol file> -arch  <arch> -l <load addr> "<addr> <addr> ..."
    elsewhere:  atosl -o <symbol file> --arch <arch> -l <load addr> "<addr> <addr> ..."

Addresses are canonical hex (uppercase, no "0x"). The resolver prints one
name per line, in the order the addresses were given.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from typing import List, Optional

from .config import DEFAULT_TIMEOUT, SymbolicatorConfig
from .errors import (
    EmptyResolutionError,
    ResolverProcessError,
    ResolverTimeoutError,
)


LOG = logging.getLogger("ksym.atos_runner")

# atos only knows the superset slice name for 32-bit ARMv7 devices.
ARCH_ALIASES = {
    "armv7": "armv7s",
}


def is_native_platform() -> bool:
    """True when running where Apple's own atos is available."""
    return sys.platform == "darwin"


def map_arch(cpu_arch: str) -> str:
    return ARCH_ALIASES.get(cpu_arch, cpu_arch)


def split_output(stdout: str) -> List[str]:
    """
    Split resolver output into one entry per line.

    Surrounding whitespace is dropped and "\\r\\n" / "\\r" line endings are
    treated like "\\n". Returns an empty list for empty output.
    """
    text = stdout.strip()
    if not text:
        return []
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def build_atos_command(
    executable: str,
    native: bool,
    symbol_file: str,
    cpu_arch: str,
    load_address: str,
    addresses: List[str],
) -> List[str]:
    """
    Build the argv for one resolver invocation.

    The addresses are passed as a single space-joined argument.
    """
    arch_flag = "-arch" if native else "--arch"
    return [
        executable,
        "-o",
        symbol_file,
        arch_flag,
        map_arch(cpu_arch),
        "-l",
        load_address,
        " ".join(addresses),
    ]


class SymbolTool:
    """
    Interface of an external address resolver.

    resolve() returns one name per input address, in input order (the list
    may be shorter or longer if the tool misbehaves; the caller deals with
    that). Failures are reported by raising ResolverProcessError or
    EmptyResolutionError.
    """

    def resolve(
        self,
        symbol_file: str,
        cpu_arch: str,
        load_address: str,
        addresses: List[str],
    ) -> List[str]:
        raise NotImplementedError


class AtosTool(SymbolTool):
    """
    Run atos / atosl as a subprocess.

    Parameters:
        executable:
            Resolver binary. Defaults to "atos" on macOS, "atosl" elsewhere.
        native:
            Argument convention to use. Defaults to the current platform.
        timeout:
            Seconds to wait for each invocation; None or 0 waits forever.
    """

    def __init__(
        self,
        executable: Optional[str] = None,
        native: Optional[bool] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ) -> None:
        if native is None:
            native = is_native_platform()
        self.native = native
        self.executable = executable or ("atos" if native else "atosl")
        self.timeout = timeout or None

    @classmethod
    def from_config(cls, config: SymbolicatorConfig) -> "AtosTool":
        return cls(
            executable=config.tool_path,
            native=config.native_atos,
            timeout=config.timeout,
        )

    def resolve(
        self,
        symbol_file: str,
        cpu_arch: str,
        load_address: str,
        addresses: List[str],
    ) -> List[str]:
        cmd = build_atos_command(
            self.executable,
            self.native,
            symbol_file,
            cpu_arch,
            load_address,
            addresses,
        )
        LOG.debug("Running: %s", " ".join(cmd))

        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
                check=False,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ResolverTimeoutError(
                f"{self.executable} timed out after {self.timeout}s",
                symbol_file=symbol_file,
                stderr=_as_text(e.stderr),
                command=cmd,
            ) from e
        except OSError as e:
            # Typically FileNotFoundError when the tool is not installed.
            raise ResolverProcessError(
                f"Failed to run {self.executable}: {e}",
                symbol_file=symbol_file,
                command=cmd,
            ) from e

        if proc.returncode != 0:
            raise ResolverProcessError(
                f"Error when using {' '.join(cmd)} (exit code {proc.returncode})",
                symbol_file=symbol_file,
                returncode=proc.returncode,
                stderr=proc.stderr or "",
                command=cmd,
            )

        names = split_output(proc.stdout or "")
        if not names:
            raise EmptyResolutionError(
                f"Empty result from {' '.join(cmd)}",
                symbol_file=symbol_file,
            )

        return names


def _as_text(data) -> str:
    # TimeoutExpired carries bytes even when the process ran in text mode.
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


__all__ = [
    "ARCH_ALIASES",
    "is_native_platform",
    "map_arch",
    "split_output",
    "build_atos_command",
    "SymbolTool",
    "AtosTool",
]
