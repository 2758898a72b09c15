#!/usr/bin/env python3
"""
errors.py

Exception types raised by ksym.

Hierarchy:

  SymbolicationError
    MalformedReportError          report is missing required fields
    ResolverError                 resolution of one image failed
      ResolverProcessError        resolver exited non-zero / could not start
        ResolverTimeoutError      resolver did not exit in time
      EmptyResolutionError        resolver exited 0 but printed nothing
      CandidatesExhaustedError    no candidate symbol file was usable

MalformedReportError is always raised. The ResolverError family is only
raised in strict mode; in lenient mode it is logged and recovered.
"""

from __future__ import annotations

from typing import List, Optional


class SymbolicationError(Exception):
    """Base class for all ksym errors."""


class MalformedReportError(SymbolicationError, ValueError):
    """The crash report does not have the expected shape."""


class ResolverError(SymbolicationError):
    """
    Resolution failed for one image.

    object_name / symbol_file identify which image and which candidate
    symbol file the failure belongs to (symbol_file may be None when no
    candidate was tried at all).
    """

    def __init__(
        self,
        message: str,
        object_name: Optional[str] = None,
        symbol_file: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.object_name = object_name
        self.symbol_file = symbol_file


class ResolverProcessError(ResolverError):
    """The resolver process exited with a non-zero status or failed to start."""

    def __init__(
        self,
        message: str,
        object_name: Optional[str] = None,
        symbol_file: Optional[str] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
        command: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message, object_name=object_name, symbol_file=symbol_file)
        self.returncode = returncode
        self.stderr = stderr
        self.command = list(command) if command else []

    def __str__(self) -> str:
        msg = super().__str__()
        stderr = self.stderr.strip()
        if stderr:
            return f"{msg}: {stderr}"
        return msg


class ResolverTimeoutError(ResolverProcessError):
    """The resolver process was killed after exceeding the timeout."""


class EmptyResolutionError(ResolverError):
    """The resolver exited successfully but produced no output."""


class CandidatesExhaustedError(ResolverError):
    """No candidate symbol file yielded a usable result."""


__all__ = [
    "SymbolicationError",
    "MalformedReportError",
    "ResolverError",
    "ResolverProcessError",
    "ResolverTimeoutError",
    "EmptyResolutionError",
    "CandidatesExhaustedError",
]
