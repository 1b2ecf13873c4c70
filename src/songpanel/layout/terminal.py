"""Terminal color handling: color values, lookups and ANSI escape generation."""
from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Mapping, Optional, Sequence, Tuple

from ..datatypes import ColorDepth

if TYPE_CHECKING:  # pragma: no cover
    from .aliases import AliasRegistry
    from .models import Span

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")
ANSI_RESET = "\x1b[0m"
ANSI_DEFAULT_FOREGROUND = "\x1b[39m"

_HEX_DIGITS = frozenset("0123456789abcdef")

_TOKEN_CODES_16 = {
    "cyan": 36,
    "blue": 34,
    "green": 32,
    "yellow": 33,
    "orange": 33,
    "red": 31,
    "grey": 37,
    "gray": 37,
    "white": 37,
    "black": 30,
    "magenta": 35,
    "purple": 35,
}

_TOKEN_CODES_256 = {
    "cyan": 51,
    "blue": 75,
    "green": 84,
    "yellow": 184,
    "orange": 214,
    "red": 203,
    "grey": 240,
    "gray": 240,
    "white": 15,
    "black": 0,
    "magenta": 201,
    "purple": 177,
}


@dataclass(frozen=True)
class Color:
    """A concrete foreground color: packed RGB, a named palette entry, or the terminal default."""

    rgb: Optional[int] = None
    name: Optional[str] = None

    @property
    def is_default(self) -> bool:
        return self.rgb is None and self.name is None

    def components(self) -> Tuple[int, int, int]:
        value = self.rgb or 0
        return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


DEFAULT_COLOR = Color()


def parse_color(spec: str) -> Color:
    """
    Parse a color specification into a :class:`Color`.

    Accepts ``#rrggbb`` hex codes, ``0xRRGGBB`` packed values (underscores allowed),
    packed decimal integers and the palette names understood by the 16/256 color tables.

    Raises:
        ValueError: If ``spec`` is empty, malformed, out of the 24-bit range or an unknown name.
    """
    text = (spec or "").strip().lower()
    if not text:
        raise ValueError("Color value is empty")
    if text.startswith("#"):
        digits = text[1:]
        if len(digits) != 6 or not set(digits) <= _HEX_DIGITS:
            raise ValueError(f"Hex color must have exactly 6 hex digits: '{spec}'")
        return Color(rgb=int(digits, 16))
    if text.startswith("0x"):
        try:
            value = int(text[2:].replace("_", ""), 16)
        except ValueError:
            raise ValueError(f"Invalid packed color: '{spec}'") from None
    elif text.replace("_", "").isdigit():
        value = int(text.replace("_", ""))
    elif text in _TOKEN_CODES_256:
        return Color(name=text)
    else:
        raise ValueError(f"Unknown color: '{spec}'")
    if value > 0xFFFFFF:
        raise ValueError(f"Packed color exceeds 24 bits: '{spec}'")
    return Color(rgb=value)


def strip_ansi(text: str) -> str:
    """Remove SGR escape sequences from ``text``."""

    return ANSI_ESCAPE_RE.sub("", text)


def color_disabled_by_env(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True when the ``NO_COLOR`` convention asks for plain output."""

    env = os.environ if environ is None else environ
    return bool(env.get("NO_COLOR"))


def detect_color_depth(environ: Optional[Mapping[str, str]] = None) -> ColorDepth:
    """
    Determine the terminal color depth based on environment variables.

    Checks COLORTERM for truecolor support, then TERM for 256-color support, and treats
    Windows Terminal sessions as truecolor. Anything else is assumed to handle 16 colors.
    """
    env = os.environ if environ is None else environ
    colorterm = env.get("COLORTERM", "").lower()
    if any(token in colorterm for token in ("truecolor", "24bit")):
        return ColorDepth.TRUECOLOR
    term = env.get("TERM", "").lower()
    if "truecolor" in term or "direct" in term:
        return ColorDepth.TRUECOLOR
    if "256color" in term:
        return ColorDepth.COLOR_256
    if sys.platform == "win32" and env.get("WT_SESSION"):
        return ColorDepth.TRUECOLOR
    return ColorDepth.COLOR_16


def _cube_index(channel: int) -> int:
    return round(channel / 255 * 5)


def sgr(color: Color, depth: ColorDepth) -> str:
    """
    Encode ``color`` as an SGR foreground sequence for the given palette depth.

    The default color maps to SGR 39. RGB values are emitted directly on truecolor terminals,
    approximated on the 6x6x6 cube for 256 colors, and on the eight base colors otherwise.
    """
    if color.is_default:
        return ANSI_DEFAULT_FOREGROUND
    if color.name is not None:
        if depth is ColorDepth.COLOR_16:
            return f"\x1b[{_TOKEN_CODES_16[color.name]}m"
        return f"\x1b[38;5;{_TOKEN_CODES_256[color.name]}m"
    red, green, blue = color.components()
    if depth is ColorDepth.COLOR_16:
        bits = int(red >= 128) | int(green >= 128) << 1 | int(blue >= 128) << 2
        code = 30 + bits
        if bits and max(red, green, blue) >= 192:
            code += 60
        return f"\x1b[{code}m"
    if depth is ColorDepth.COLOR_256:
        index = 16 + 36 * _cube_index(red) + 6 * _cube_index(green) + _cube_index(blue)
        return f"\x1b[38;5;{index}m"
    return f"\x1b[38;2;{red};{green};{blue}m"


class ColorResolver:
    """Translate color tags from a template into concrete colors and escape sequences."""

    def __init__(
        self,
        registry: "AliasRegistry",
        *,
        enabled: bool,
        depth: ColorDepth = ColorDepth.TRUECOLOR,
    ) -> None:
        """
        Bind the resolver to a registry and fix the color mode for its lifetime.

        Parameters:
            registry: Registry holding the ``@name=:color`` definitions of the template.
            enabled: When False every lookup yields ``None`` and :meth:`paint` emits plain text.
            depth: Palette to encode for; ``AUTO`` is detected from the environment once here.
        """
        self._registry = registry
        self.enabled = enabled
        self.depth = detect_color_depth() if depth is ColorDepth.AUTO else depth

    def has_color(self, tag: str) -> bool:
        """Return True when ``tag`` names a registered color, a palette name or an inline value."""

        tag = (tag or "").strip()
        if not tag:
            return True
        if self._registry.color(tag) is not None:
            return True
        try:
            parse_color(tag)
        except ValueError:
            return False
        return True

    def color_for(self, tag: str) -> Optional[Color]:
        """
        Resolve a color tag.

        Returns:
            ``None`` when color is disabled; otherwise the registered color for ``tag``, the
            inline color it spells, or :data:`DEFAULT_COLOR` for empty or unknown tags.
        """
        if not self.enabled:
            return None
        tag = (tag or "").strip()
        if not tag:
            return DEFAULT_COLOR
        registered = self._registry.color(tag)
        if registered is not None:
            return registered
        try:
            return parse_color(tag)
        except ValueError:
            return DEFAULT_COLOR

    def field_color(self, name: str) -> Optional[Color]:
        """Color registered under a variable's own name, if any and if color is enabled."""

        if not self.enabled:
            return None
        return self._registry.color(name)

    def paint(self, spans: Sequence["Span"]) -> str:
        """
        Join spans into one string, switching colors only where the active color changes.

        A trailing reset is appended when any escape was emitted, so colors never leak into
        the next line.
        """
        parts: List[str] = []
        current: Optional[Color] = None
        painted = False
        for span in spans:
            if not span.text:
                continue
            if self.enabled and span.color is not None and span.color != current:
                if not (current is None and span.color.is_default):
                    parts.append(sgr(span.color, self.depth))
                    painted = True
                current = span.color
            parts.append(span.text)
        if painted:
            parts.append(ANSI_RESET)
        return "".join(parts)
