#!/usr/bin/env python3
"""
locator.py

Responsible for finding the debug symbol files of an image based on:
  - the image name (object_name)
  - the application's own dSYM path
  - the device OS version recorded in the report
  - the root of the versioned system symbol caches (base_path)

The goal is to return an ordered list of candidate paths, most specific
first. The list is not filtered by existence: the resolver decides which
candidate is usable.

Typical layout of a system symbol cache:

    ~/Library/Developer/Xcode/iOS DeviceSupport/
      9.2.1 (13D15)/
        Symbols/
          usr/lib/system/libsystem_kernel.dylib
          usr/lib/libobjc.A.dylib
          System/Library/Frameworks/UIKit.framework/UIKit
          System/Library/PrivateFrameworks/GraphicsServices.framework/GraphicsServices
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from .report import ResolverMeta


LOG = logging.getLogger("ksym.locator")

DYLIB_SUFFIX = ".dylib"


def version_tag(meta: ResolverMeta) -> str:
    """
    Directory name of a system symbol cache, e.g. "9.2.1 (13D15)".
    """
    return f"{meta.system_version} ({meta.os_version})"


def version_root(meta: ResolverMeta, base_path: str) -> Path:
    """
    Resolve the symbol cache directory for the report's OS version.

    "~" in base_path is expanded because the path is handed to the resolver
    without going through a shell.
    """
    return Path(os.path.expanduser(base_path)) / version_tag(meta)


def candidate_paths(object_name: str, meta: ResolverMeta, base_path: str) -> List[str]:
    """
    Return candidate symbol file paths for an image.

    Parameters:
        object_name:
            Image name as recorded in the backtrace (e.g. "UIKit",
            "libsystem_kernel.dylib", or the app's process name).
        meta:
            Report metadata. The app's own image maps to meta.dsym_path.
        base_path:
            Root of the versioned system symbol caches.

    Returns:
        Non-empty list of paths, in the order they should be tried.
    """
    if not object_name:
        raise ValueError("object_name must not be empty")

    if object_name == meta.process_name:
        return [meta.dsym_path]

    symbols = version_root(meta, base_path) / "Symbols"

    if object_name.endswith(DYLIB_SUFFIX):
        candidates = [
            symbols / "usr" / "lib" / "system" / object_name,
            symbols / "usr" / "lib" / object_name,
        ]
    else:
        framework = f"{object_name}.framework"
        candidates = [
            symbols / "System" / "Library" / "Frameworks" / framework / object_name,
            symbols / "System" / "Library" / "PrivateFrameworks" / framework / object_name,
        ]

    LOG.debug("Candidates for %s: %s", object_name, [str(c) for c in candidates])
    return [str(c) for c in candidates]


__all__ = [
    "DYLIB_SUFFIX",
    "version_tag",
    "version_root",
    "candidate_paths",
]
