"""CLI output mode behavior."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pgmisc.cli.output import OutputConfig, emit, normalize_output_format
from pgmisc.lib.ops.timeline import TimelineOutput


def test_porcelain_mode_outputs_stable_key_values(run_pgmisc, data_dir: Path) -> None:
    result = run_pgmisc(["--porcelain", "timeline", "receive", "-D", str(data_dir)])
    assert result.returncode == 0, result.stderr
    assert result.stdout.strip() == "kind=receive\ttimeline="


def test_default_mode_uses_text_format(run_pgmisc, data_dir: Path) -> None:
    result = run_pgmisc(["doctor", "-D", str(data_dir)])
    assert result.returncode == 0, result.stderr
    assert "ok:" in result.stdout
    assert "data_dir:" in result.stdout
    assert not result.stdout.strip().startswith("{")


def test_invalid_format_is_rejected(run_pgmisc) -> None:
    result = run_pgmisc(["--format", "yaml", "doctor"])
    assert result.returncode != 0
    assert "--format must be one of" in result.stderr


@pytest.mark.parametrize(
    ("requested", "json_mode", "porcelain_mode", "expected"),
    [
        (None, False, False, "text"),
        ("", False, False, "text"),
        (" JSON ", False, False, "json"),
        ("text", True, False, "json"),
        (None, False, True, "porcelain"),
    ],
)
def test_normalize_output_format(
    requested: str | None,
    json_mode: bool,
    porcelain_mode: bool,
    expected: str,
) -> None:
    resolved = normalize_output_format(
        requested=requested,
        json_mode=json_mode,
        porcelain_mode=porcelain_mode,
    )
    assert resolved == expected


def test_emit_modes(capsys: pytest.CaptureFixture[str]) -> None:
    output = TimelineOutput(kind="insert", timeline=2)

    emit(output, OutputConfig(format="text"))
    emit(output, OutputConfig(format="json"))
    emit(output, OutputConfig(format="porcelain"))

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "insert: 2"
    assert json.loads(lines[1]) == {"kind": "insert", "timeline": 2}
    assert lines[2] == "kind=insert\ttimeline=2"
