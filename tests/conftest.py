"""Shared fixtures for ksym tests."""
import pytest

from ksym.atos_runner import SymbolTool
from ksym.config import reset_options
from ksym.errors import ResolverProcessError


class FakeTool(SymbolTool):
    """
    Scripted resolver.

    `script` maps a symbol file path to either a list of output lines or an
    exception instance to raise. Unknown paths raise ResolverProcessError.
    """

    def __init__(self, script=None):
        self.script = dict(script or {})
        self.calls = []

    def resolve(self, symbol_file, cpu_arch, load_address, addresses):
        self.calls.append((symbol_file, cpu_arch, load_address, list(addresses)))
        result = self.script.get(symbol_file)
        if result is None:
            raise ResolverProcessError(
                f"no such file {symbol_file}",
                symbol_file=symbol_file,
                returncode=1,
                stderr="atos cannot load symbols",
            )
        if isinstance(result, Exception):
            raise result
        return list(result)


def make_frame(instruction_addr, object_name="", object_addr=0, symbol_addr=None, symbol_name=None):
    frame = {
        "instruction_addr": instruction_addr,
        "object_addr": object_addr,
        "object_name": object_name,
    }
    if symbol_addr is not None:
        frame["symbol_addr"] = symbol_addr
    if symbol_name is not None:
        frame["symbol_name"] = symbol_name
    return frame


def make_report(*threads, process_name="MyApp", cpu_arch="arm64"):
    return {
        "report": {"id": "8A3C5B2E"},
        "system": {
            "process_name": process_name,
            "cpu_arch": cpu_arch,
            "os_version": "13D15",
            "system_version": "9.2.1",
        },
        "crash": {
            "error": {"type": "mach"},
            "threads": [
                {"index": i, "crashed": i == 0, "backtrace": {"contents": list(frames)}}
                for i, frames in enumerate(threads)
            ],
        },
    }


@pytest.fixture(autouse=True)
def _clean_options():
    reset_options()
    yield
    reset_options()


@pytest.fixture
def fake_tool():
    return FakeTool


@pytest.fixture
def report_factory():
    return make_report


@pytest.fixture
def frame_factory():
    return make_frame


@pytest.fixture
def sample_report():
    """Two threads: app frames, a dylib, a framework and an unnamed frame."""
    return make_report(
        [
            make_frame(4328, "MyApp", 4096, 4300),
            make_frame(6000, "libsystem_kernel.dylib", 5000, 5990),
            make_frame(9000, "UIKit", 8192),
        ],
        [
            make_frame(4400, "MyApp", 4096, 4390),
            make_frame(123, "", 0, symbol_name="keep_me"),
            make_frame(6100, "libsystem_kernel.dylib", 5000, 6050),
        ],
    )
