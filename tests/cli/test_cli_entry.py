"""Smoke coverage for the ``songpanel`` preview command."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from click.testing import CliRunner
from rich.cells import cell_len

from songpanel import cli_entry
from songpanel.cli_entry import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _lines(output: str) -> list:
    return [line for line in output.splitlines() if line]


def test_default_template_renders_at_requested_width(runner: CliRunner) -> None:
    result = runner.invoke(
        main,
        [
            "--width", "90",
            "--no-color",
            "--set", "title=Enigma",
            "--set", "composer=Jeroen Tel",
            "--set", "elapsed=83",
            "--set", "count=indexing...",
        ],
    )

    assert result.exit_code == 0, result.output
    lines = _lines(result.stdout)
    assert len(lines) == 6
    assert all(cell_len(line) == 90 for line in lines)
    assert "Enigma / Jeroen Tel" in lines[1]
    assert "\x1b" not in result.stdout


def test_custom_template_metadata_file_and_notice(runner: CliRunner, tmp_path: Path) -> None:
    template = tmp_path / "panel.templ"
    template.write_text("@a=isong\n┃ $a/$b $> $count┃\n", encoding="utf-8")
    metadata = tmp_path / "meta.json"
    metadata.write_text(json.dumps({"a": 2, "b": 10, "count": "indexing..."}), encoding="utf-8")

    result = runner.invoke(
        main,
        [
            "--template", str(template),
            "--metadata", str(metadata),
            "--width", "40",
            "--no-color",
            "--next", "Cybernoid II",
        ],
    )

    assert result.exit_code == 0, result.output
    panel, notice = _lines(result.stdout)
    assert cell_len(panel) == 40
    assert panel.startswith("┃ 2/10 ")
    assert panel.endswith(" indexing...┃")
    assert notice == "NEXT: Cybernoid II"


def test_colored_output_contains_escapes(runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)

    result = runner.invoke(main, ["--width", "70", "--set", "title=x"])

    assert result.exit_code == 0, result.output
    assert "\x1b[" in result.output


def test_template_parse_error_is_reported(runner: CliRunner, tmp_path: Path) -> None:
    template = tmp_path / "broken.templ"
    template.write_text("ok\n┃ $[red text\n", encoding="utf-8")

    result = runner.invoke(main, ["--template", str(template), "--width", "40"])

    assert result.exit_code != 0
    assert "line 2, column 3" in result.output


def test_strict_width_fails_on_unfillable_line(runner: CliRunner, tmp_path: Path) -> None:
    template = tmp_path / "fixed.templ"
    template.write_text("+----+\n", encoding="utf-8")

    relaxed = runner.invoke(main, ["--template", str(template), "--width", "20", "--no-color"])
    strict = runner.invoke(
        main, ["--template", str(template), "--width", "20", "--no-color", "--strict-width"]
    )

    assert relaxed.exit_code == 0
    assert _lines(relaxed.stdout) == ["+----+"]
    assert strict.exit_code != 0
    assert "without a fill marker" in strict.output


def test_width_warnings_are_logged_by_default(
    runner: CliRunner,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    template = tmp_path / "fixed.templ"
    template.write_text("+----+\n", encoding="utf-8")
    monkeypatch.setattr(cli_entry, "_configure_logging", lambda verbose: None)

    with caplog.at_level(logging.WARNING, logger="songpanel.cli_entry"):
        result = runner.invoke(main, ["--template", str(template), "--width", "20", "--no-color"])

    assert result.exit_code == 0
    assert any(
        record.levelno == logging.WARNING and "without a fill marker" in record.getMessage()
        for record in caplog.records
    )


def test_config_file_supplies_defaults(runner: CliRunner, tmp_path: Path) -> None:
    config = tmp_path / "panel.toml"
    template = tmp_path / "panel.templ"
    template.write_text("[$title$>]\n|$^$> |\n", encoding="utf-8")
    config.write_text(
        f'[panel]\ntemplate = "{template.as_posix()}"\nwidth = 16\nheight = 4\ncolor = false\n'
        '[metadata]\ntitle = "Enigma"\n',
        encoding="utf-8",
    )

    result = runner.invoke(main, ["--config", str(config)])

    assert result.exit_code == 0, result.output
    assert _lines(result.stdout) == ["[Enigma]" + "]" * 7 + "]", *["|" + " " * 14 + "|"] * 3]


def test_bad_config_is_reported(runner: CliRunner, tmp_path: Path) -> None:
    config = tmp_path / "panel.toml"
    config.write_text("[panel]\nwidth = -3\n", encoding="utf-8")

    result = runner.invoke(main, ["--config", str(config)])

    assert result.exit_code != 0
    assert "Config error" in result.output


def test_malformed_assignment_is_rejected(runner: CliRunner) -> None:
    result = runner.invoke(main, ["--width", "40", "--set", "novalue"])

    assert result.exit_code != 0
    assert "key=value" in result.output
