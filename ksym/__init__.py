"""ksym package.

Symbolicates KSCrash JSON crash reports:
- Groups backtrace addresses by binary image
- Locates the app dSYM and versioned iOS DeviceSupport system symbols
- Resolves addresses with atos / atosl, falling back over candidate files
- Merges resolved names into a copy of the report with hex addresses
"""
from .config import (
    SymbolicatorConfig,
    default_config,
    get_option,
    set_option,
)
from .errors import (
    CandidatesExhaustedError,
    EmptyResolutionError,
    MalformedReportError,
    ResolverError,
    ResolverProcessError,
    ResolverTimeoutError,
    SymbolicationError,
)
from .atos_runner import AtosTool, SymbolTool
from .symbolizer import symbolicate

__all__ = [
    "SymbolicatorConfig",
    "default_config",
    "get_option",
    "set_option",
    "SymbolicationError",
    "MalformedReportError",
    "ResolverError",
    "ResolverProcessError",
    "ResolverTimeoutError",
    "EmptyResolutionError",
    "CandidatesExhaustedError",
    "SymbolTool",
    "AtosTool",
    "symbolicate",
]

__version__ = "0.1.0"
