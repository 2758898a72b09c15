#!/usr/bin/env python3
"""
grouper.py

Group backtrace addresses by owning image.

Every frame of every thread is visited in report order. One ImageGroup is
created per distinct object_name, the first time that name is seen; the
group then collects every instruction address that falls into the image.

Group order is first-seen order. It decides the order in which the
resolver is invoked and which group wins when two groups produce the same
address, so it must stay deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .report import CrashReport, iter_frames, to_hex


@dataclass
class ImageGroup:
    """
    All addresses of one image.

    Fields:
        object_name: Image name ("" for frames without an image).
        object_addr: Load address, taken from the first frame of the image.
        symbol_addr: Symbol address, taken from the first frame of the image.
        symbols:
            instruction_addr -> symbol_name, in first-seen order. Before
            resolution the names are whatever the report carried (often
            None); after resolution they are the resolver's output.
    """
    object_name: str
    object_addr: Optional[int] = None
    symbol_addr: Optional[int] = None
    symbols: Dict[int, Optional[str]] = field(default_factory=dict)

    def hex_addresses(self) -> List[str]:
        """Addresses in canonical hex form, in insertion order."""
        return [to_hex(addr) for addr in self.symbols]


def group_by_image(report: CrashReport) -> Dict[str, ImageGroup]:
    """
    Partition all frames of a report by object_name.

    When the same address appears more than once in an image, the name of
    the last frame seen is kept.
    """
    groups: Dict[str, ImageGroup] = {}

    for frame in iter_frames(report):
        group = groups.get(frame.object_name)
        if group is None:
            group = ImageGroup(
                object_name=frame.object_name,
                object_addr=frame.object_addr,
                symbol_addr=frame.symbol_addr,
            )
            groups[frame.object_name] = group

        group.symbols[frame.instruction_addr] = frame.symbol_name

    return groups


__all__ = [
    "ImageGroup",
    "group_by_image",
]
