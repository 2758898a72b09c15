"""Tests for grouping frames by image."""
import copy

from ksym.grouper import group_by_image
from ksym.report import parse_report


def test_groups_in_first_seen_order(sample_report):
    """One group per image, ordered by first appearance across threads."""
    groups = group_by_image(parse_report(sample_report))
    assert list(groups) == ["MyApp", "libsystem_kernel.dylib", "UIKit", ""]


def test_group_collects_addresses_across_threads(sample_report):
    """Addresses from all threads land in the same image group."""
    groups = group_by_image(parse_report(sample_report))
    assert list(groups["MyApp"].symbols) == [4328, 4400]
    assert list(groups["libsystem_kernel.dylib"].symbols) == [6000, 6100]
    assert groups["MyApp"].hex_addresses() == ["10E8", "1130"]


def test_group_seeds_from_first_frame(report_factory, frame_factory):
    """object_addr / symbol_addr come from the first frame of the image."""
    data = report_factory([
        frame_factory(100, "UIKit", 64, symbol_addr=90),
        frame_factory(200, "UIKit", 64, symbol_addr=190),
    ])
    group = group_by_image(parse_report(data))["UIKit"]
    assert group.object_addr == 64
    assert group.symbol_addr == 90


def test_duplicate_address_last_name_wins(report_factory, frame_factory):
    """The later frame's name wins for a repeated address; order is kept."""
    data = report_factory(
        [frame_factory(100, "UIKit", 64, symbol_name="first"), frame_factory(300, "UIKit", 64)],
        [frame_factory(100, "UIKit", 64, symbol_name="second")],
    )
    group = group_by_image(parse_report(data))["UIKit"]
    assert group.symbols == {100: "second", 300: None}
    assert list(group.symbols) == [100, 300]


def test_grouping_does_not_mutate_input(sample_report):
    """Grouping only reads the report."""
    before = copy.deepcopy(sample_report)
    group_by_image(parse_report(sample_report))
    assert sample_report == before
