"""Tests for the ksym command line."""
import json
import subprocess
from unittest import mock

import pytest

from ksym import cli


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@mock.patch("ksym.atos_runner.subprocess.run")
def test_symbolicate_file_to_output(run, tmp_path, report_factory, frame_factory):
    """A single report is symbolicated and written as JSON."""
    run.return_value = _completed(stdout="main\n")
    report = _write(tmp_path / "crash.json", report_factory([frame_factory(4328, "MyApp", 4096)]))
    out = tmp_path / "out.json"

    cli.main([str(report), "--dsym", "/d/MyApp", "--output", str(out), "--atos", "atosl"])

    result = json.loads(out.read_text(encoding="utf-8"))
    frame = result["crash"]["threads"][0]["backtrace"]["contents"][0]
    assert frame["instruction_addr"] == "10E8"
    assert frame["symbol_name"] == "main"
    assert run.call_args[0][0][0] == "atosl"
    assert run.call_args[0][0][2] == "/d/MyApp"


@mock.patch("ksym.atos_runner.subprocess.run")
def test_symbolicate_to_stdout_with_report_key(run, tmp_path, capsys, report_factory, frame_factory):
    """--report-key unwraps an envelope; without --output the JSON goes to stdout."""
    run.return_value = _completed(stdout="main\n")
    envelope = {"stack": report_factory([frame_factory(4328, "MyApp", 4096)])}
    report = _write(tmp_path / "body.json", envelope)

    cli.main([str(report), "--dsym", "/d/MyApp", "--report-key", "stack"])

    result = json.loads(capsys.readouterr().out)
    assert result["crash"]["threads"][0]["backtrace"]["contents"][0]["symbol_name"] == "main"


@mock.patch("ksym.atos_runner.subprocess.run")
def test_directory_input(run, tmp_path, report_factory, frame_factory):
    """Every *.json file of a directory is written under --output-dir."""
    run.return_value = _completed(stdout="main\n")
    in_dir = tmp_path / "in"
    in_dir.mkdir()
    _write(in_dir / "a.json", report_factory([frame_factory(4328, "MyApp", 4096)]))
    _write(in_dir / "b.json", report_factory([frame_factory(4400, "MyApp", 4096)]))
    (in_dir / "notes.txt").write_text("ignored", encoding="utf-8")
    out_dir = tmp_path / "out"

    cli.main([str(in_dir), "--dsym", "/d/MyApp", "--output-dir", str(out_dir)])

    assert sorted(p.name for p in out_dir.iterdir()) == ["a.json", "b.json"]
    b = json.loads((out_dir / "b.json").read_text(encoding="utf-8"))
    assert b["crash"]["threads"][0]["backtrace"]["contents"][0]["instruction_addr"] == "1130"


def test_directory_input_requires_output_dir(tmp_path):
    """A directory without --output-dir is rejected."""
    with pytest.raises(SystemExit) as info:
        cli.main([str(tmp_path), "--dsym", "/d/MyApp"])
    assert info.value.code == 1


def test_missing_input(tmp_path):
    """A nonexistent input path exits with status 1."""
    with pytest.raises(SystemExit) as info:
        cli.main([str(tmp_path / "nope.json"), "--dsym", "/d/MyApp"])
    assert info.value.code == 1


@mock.patch("ksym.atos_runner.subprocess.run")
def test_strict_failure_exits(run, tmp_path, report_factory, frame_factory):
    """--strict turns a resolver failure into exit status 1 and no output."""
    run.return_value = _completed(returncode=1, stderr="cannot load symbols")
    report = _write(tmp_path / "crash.json", report_factory([frame_factory(9000, "UIKit", 8192)]))
    out = tmp_path / "out.json"

    with pytest.raises(SystemExit) as info:
        cli.main([str(report), "--dsym", "/d/MyApp", "--strict", "--output", str(out)])

    assert info.value.code == 1
    assert not out.exists()


def test_malformed_report_exits(tmp_path):
    """A report without system metadata exits with status 1."""
    report = _write(tmp_path / "crash.json", {"crash": {"threads": []}})
    with pytest.raises(SystemExit) as info:
        cli.main([str(report), "--dsym", "/d/MyApp"])
    assert info.value.code == 1


def test_invalid_json_exits(tmp_path):
    """Unparseable JSON exits with status 1."""
    report = tmp_path / "crash.json"
    report.write_text("{not json", encoding="utf-8")
    with pytest.raises(SystemExit) as info:
        cli.main([str(report), "--dsym", "/d/MyApp"])
    assert info.value.code == 1


@mock.patch("ksym.atos_runner.subprocess.run")
def test_summary(run, tmp_path, capsys, sample_report):
    """--summary lists images and candidates without running the resolver."""
    report = _write(tmp_path / "crash.json", sample_report)

    cli.main([str(report), "--dsym", "/d/MyApp", "--summary", "--base-path", "/syms"])

    out = capsys.readouterr().out.splitlines()
    assert out[0] == "MyApp\t2 addresses"
    assert out[1] == "    /d/MyApp"
    assert out[2] == "libsystem_kernel.dylib\t2 addresses"
    assert out[3] == "    /syms/9.2.1 (13D15)/Symbols/usr/lib/system/libsystem_kernel.dylib"
    assert "UIKit\t1 addresses" in out
    run.assert_not_called()


def test_config_from_args():
    """Flags override defaults; --timeout 0 removes the limit."""
    args = cli.build_argparser().parse_args(
        ["x.json", "--dsym", "d", "--strict", "--timeout", "0", "--base-path", "/syms"]
    )
    config = cli.config_from_args(args)
    assert config.strict is True
    assert config.timeout is None
    assert config.base_path == "/syms"

    args = cli.build_argparser().parse_args(["x.json", "--dsym", "d", "--timeout", "5"])
    config = cli.config_from_args(args)
    assert config.strict is False
    assert config.timeout == 5.0
