"""Alias registry and the computed fields available to every template."""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple, Union

from .terminal import ANSI_ESCAPE_RE, Color

logger = logging.getLogger(__name__)

MetadataContext = Mapping[str, Any]

_LAYOUT_WHITESPACE_RE = re.compile(r"[\t\n\r\x0b\x0c]")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")


class RegistryFrozenError(RuntimeError):
    """Raised when an alias is registered after the registry was sealed."""


@dataclass(frozen=True)
class LiteralValue:
    """Alias that renders a fixed string."""

    text: str


@dataclass(frozen=True)
class ColorValue:
    """Alias naming a color; also colors the field of the same name."""

    color: Color


@dataclass(frozen=True)
class ComputedFn:
    """Alias computed from the whole metadata context."""

    name: str
    func: Callable[[MetadataContext], Any]


AliasEntry = Union[LiteralValue, ColorValue, ComputedFn]
ResolvedValue = Union[str, Color]


def format_value(value: Any) -> str:
    """
    Format a metadata value for display inside a panel.

    ``None`` and binary payloads render empty, booleans as ``yes``/``no``, integral numbers
    without a decimal part, and everything else through ``str()``.
    """
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return str(value)
    return str(value)


def clean_text(text: str) -> str:
    """
    Make ``text`` safe to place inside a fixed-width line.

    Tabs and line breaks become single spaces; ANSI escape sequences and any other C0/C1
    control characters are removed, since they occupy no cells but still move the cursor.
    """
    text = _LAYOUT_WHITESPACE_RE.sub(" ", text)
    text = ANSI_ESCAPE_RE.sub("", text)
    return _CONTROL_RE.sub("", text)


def _text(ctx: MetadataContext, key: str) -> str:
    return format_value(ctx.get(key)).strip()


def _clock(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return format_value(value)
    if not math.isfinite(value) or value < 0:
        return ""
    seconds = int(value)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def title_and_composer(ctx: MetadataContext) -> str:
    """``"<title> / <composer>"`` when both are known, otherwise the file name."""

    title = _text(ctx, "title")
    composer = _text(ctx, "composer")
    if title and composer:
        return f"{title} / {composer}"
    return _text(ctx, "file_name")


def full_title(ctx: MetadataContext) -> str:
    """Song title with the game it belongs to in parentheses."""

    title = _text(ctx, "title")
    game = _text(ctx, "game")
    if not game:
        return title
    if not title:
        return game
    return f"{title} ({game})"


def full_song_name(ctx: MetadataContext) -> str:
    """Title, composer and file extension, falling back to the bare file name."""

    title = _text(ctx, "title")
    composer = _text(ctx, "composer")
    file_name = _text(ctx, "file_name")
    if composer:
        suffix = PurePath(file_name).suffix.lstrip(".") if file_name else ""
        if suffix:
            return f"{title} / {composer} [{suffix}]"
        return f"{title} / {composer}"
    if file_name:
        return file_name
    return "???"


def elapsed_clock(ctx: MetadataContext) -> str:
    """Elapsed playback time as ``mm:ss`` from the ``elapsed`` seconds counter."""

    return _clock(ctx.get("elapsed"))


def length_clock(ctx: MetadataContext) -> str:
    """Song length as ``mm:ss`` from the ``length`` seconds counter."""

    return _clock(ctx.get("length"))


BUILTIN_FUNCTIONS: Tuple[ComputedFn, ...] = (
    ComputedFn("title_and_composer", title_and_composer),
    ComputedFn("full_title", full_title),
    ComputedFn("full_song_name", full_song_name),
    ComputedFn("time", elapsed_clock),
    ComputedFn("len", length_clock),
)


class AliasRegistry:
    """
    Named indirections resolved at render time.

    Entries are registered while a template is being parsed and the registry is then frozen;
    afterwards it is only read, so one instance can be shared by any number of renders.
    """

    def __init__(self, entries: Optional[Mapping[str, AliasEntry]] = None) -> None:
        self._entries: Dict[str, AliasEntry] = {}
        self._frozen = False
        for name, entry in (entries or {}).items():
            self.register(name, entry)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "AliasRegistry":
        self._frozen = True
        return self

    def register(self, name: str, entry: AliasEntry) -> Optional[AliasEntry]:
        """
        Register ``entry`` under ``name``.

        Returns:
            The entry that was replaced, or ``None`` when the name was new.

        Raises:
            RegistryFrozenError: If the registry has already been frozen.
            TypeError: If ``entry`` is not one of the alias entry types.
        """
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register alias '{name}' on a frozen registry")
        if not isinstance(entry, (LiteralValue, ColorValue, ComputedFn)):
            raise TypeError(f"Unsupported alias entry for '{name}': {entry!r}")
        previous = self._entries.get(name)
        self._entries[name] = entry
        return previous

    def get(self, name: str) -> Optional[AliasEntry]:
        return self._entries.get(name)

    def color(self, name: str) -> Optional[Color]:
        """Return the color registered under ``name``, if that entry is a color."""

        entry = self._entries.get(name)
        if isinstance(entry, ColorValue):
            return entry.color
        return None

    def resolve(self, name: str, ctx: MetadataContext) -> Optional[ResolvedValue]:
        """
        Resolve ``name`` through exactly one layer of indirection.

        A key present in ``ctx`` always wins. Otherwise the registry entry is used: literals
        yield their text, colors yield the :class:`Color`, computed entries are called with
        the full context. Unknown names yield ``None``.
        """
        if name in ctx:
            return format_value(ctx[name])
        entry = self._entries.get(name)
        if entry is None:
            return None
        if isinstance(entry, LiteralValue):
            return entry.text
        if isinstance(entry, ColorValue):
            return entry.color
        return self._call(entry, ctx)

    def resolve_text(self, name: str, ctx: MetadataContext) -> str:
        """
        Resolve ``name`` for display; unresolved names and color entries render empty.

        Control characters are removed so the text measures the same as it prints.
        """
        value = self.resolve(name, ctx)
        if isinstance(value, str):
            return clean_text(value)
        return ""

    @staticmethod
    def _call(entry: ComputedFn, ctx: MetadataContext) -> str:
        try:
            result = entry.func(ctx)
        except Exception as exc:
            logger.warning("Computed field '%s' failed: %s", entry.name, exc)
            return ""
        if isinstance(result, Color):
            logger.warning("Computed field '%s' returned a color; rendering empty", entry.name)
            return ""
        if isinstance(result, str):
            return result
        return format_value(result)


def build_registry(functions: Tuple[ComputedFn, ...] = BUILTIN_FUNCTIONS) -> AliasRegistry:
    """Return an unfrozen registry pre-populated with ``functions``."""

    registry = AliasRegistry()
    for function in functions:
        registry.register(function.name, function)
    return registry
