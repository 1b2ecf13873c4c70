"""Alias registry precedence, computed fields and value formatting."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from songpanel.layout import (
    AliasRegistry,
    ColorValue,
    ComputedFn,
    LiteralValue,
    RegistryFrozenError,
    build_registry,
    format_value,
    parse,
    render,
    title_and_composer,
)
from songpanel.layout.aliases import full_song_name, full_title
from songpanel.layout.terminal import Color


def test_title_and_composer_joins_both_fields() -> None:
    assert title_and_composer({"title": "Title", "composer": "Composer"}) == "Title / Composer"


def test_title_and_composer_falls_back_to_file_name() -> None:
    assert title_and_composer({"file_name": "track.mod"}) == "track.mod"
    assert title_and_composer({"title": "Only", "file_name": "track.mod"}) == "track.mod"
    assert title_and_composer({}) == ""


def test_title_and_composer_is_deterministic() -> None:
    ctx = {"title": "T", "composer": "C"}
    assert title_and_composer(ctx) == title_and_composer(dict(ctx))


@pytest.mark.parametrize(
    ("ctx", "expected"),
    [
        ({"title": "Enigma", "game": "Musiklinjen"}, "Enigma (Musiklinjen)"),
        ({"title": "Enigma"}, "Enigma"),
        ({"game": "Musiklinjen"}, "Musiklinjen"),
    ],
)
def test_full_title(ctx: dict, expected: str) -> None:
    assert full_title(ctx) == expected


def test_full_song_name() -> None:
    assert full_song_name({"title": "T", "composer": "C", "file_name": "a/b.sid"}) == "T / C [sid]"
    assert full_song_name({"title": "T", "composer": "C"}) == "T / C"
    assert full_song_name({"file_name": "x.mod"}) == "x.mod"
    assert full_song_name({}) == "???"


def test_clock_fields_format_seconds() -> None:
    registry = build_registry()

    assert registry.resolve_text("time", {"elapsed": 83}) == "01:23"
    assert registry.resolve_text("len", {"length": 225.9}) == "03:45"
    assert registry.resolve_text("len", {}) == ""


def test_metadata_key_wins_over_alias() -> None:
    template = parse("@a=isong\n$a")

    assert template.registry.resolve("a", {"a": 2}) == "2"


def test_alias_used_when_metadata_key_absent() -> None:
    template = parse("@a=isong\n$a")

    assert template.registry.resolve("a", {"isong": 7}) == "isong"


def test_alias_is_not_chained() -> None:
    registry = AliasRegistry({"a": LiteralValue("b"), "b": LiteralValue("final")})

    assert registry.resolve("a", {}) == "b"


def test_unresolved_name_is_empty_text() -> None:
    registry = AliasRegistry()

    assert registry.resolve("missing", {}) is None
    assert registry.resolve_text("missing", {}) == ""


def test_color_entries_resolve_to_color_but_render_empty() -> None:
    registry = AliasRegistry({"hot": ColorValue(Color(rgb=0xFF0000))})

    assert registry.resolve("hot", {}) == Color(rgb=0xFF0000)
    assert registry.resolve_text("hot", {}) == ""
    assert registry.color("hot") == Color(rgb=0xFF0000)
    assert registry.color("missing") is None


def test_computed_entry_receives_whole_context() -> None:
    seen: list = []

    def song_counter(ctx: Any) -> str:
        seen.append(dict(ctx))
        return f"{ctx['isong']}/{ctx['songs']}"

    registry = AliasRegistry({"counter": ComputedFn("counter", song_counter)})

    assert registry.resolve("counter", {"isong": 3, "songs": 9}) == "3/9"
    assert seen == [{"isong": 3, "songs": 9}]


def test_computed_non_string_results_are_formatted() -> None:
    registry = AliasRegistry({"n": ComputedFn("n", lambda ctx: 4.0)})

    assert registry.resolve("n", {}) == "4"


def test_failing_computed_entry_degrades_to_empty(caplog: pytest.LogCaptureFixture) -> None:
    registry = AliasRegistry({"boom": ComputedFn("boom", lambda ctx: ctx["absent"])})

    with caplog.at_level(logging.WARNING, logger="songpanel.layout.aliases"):
        assert registry.resolve_text("boom", {}) == ""
    assert "boom" in caplog.text


def test_arithmetic_error_in_computed_field_does_not_abort_render(
    caplog: pytest.LogCaptureFixture,
) -> None:
    ratio = ComputedFn("ratio", lambda ctx: 1 / ctx.get("n", 0))
    template = parse("┃ $ratio $> ┃", functions=(ratio,))

    with caplog.at_level(logging.WARNING, logger="songpanel.layout.aliases"):
        (line,) = render(template, {}, 12, False)

    assert line == "┃" + " " * 10 + "┃"
    assert "ratio" in caplog.text
    assert render(template, {"n": 4}, 12, False) == ["┃ 0.25     ┃"]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Song\nTwo\tTabs", "Song Two Tabs"),
        ("\x1b[31mRed\x1b[0m", "Red"),
        ("bell\x07\x9b", "bell"),
    ],
)
def test_resolved_text_drops_control_characters(raw: str, expected: str) -> None:
    assert build_registry().resolve_text("title", {"title": raw}) == expected


def test_computed_color_result_is_rejected() -> None:
    registry = AliasRegistry({"c": ComputedFn("c", lambda ctx: Color(rgb=1))})

    assert registry.resolve("c", {}) == ""


def test_frozen_registry_rejects_registration() -> None:
    registry = build_registry().freeze()

    with pytest.raises(RegistryFrozenError):
        registry.register("x", LiteralValue("y"))


def test_register_rejects_unknown_entry_type() -> None:
    with pytest.raises(TypeError):
        AliasRegistry().register("x", "plain string")  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, ""),
        (b"\x00\x01", ""),
        (True, "yes"),
        (False, "no"),
        (2, "2"),
        (10.0, "10"),
        (2.5, "2.5"),
        ("text", "text"),
    ],
)
def test_format_value(value: Any, expected: str) -> None:
    assert format_value(value) == expected
