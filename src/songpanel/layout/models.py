"""Parsed template structures shared by the parser, layout engine and renderer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple, Union

if TYPE_CHECKING:  # pragma: no cover
    from .aliases import AliasRegistry
    from .terminal import Color


@dataclass(frozen=True)
class Literal:
    """Fixed template text such as box-drawing borders and labels."""

    text: str


@dataclass(frozen=True)
class ColorScope:
    """Switch the active color until the next scope or the end of the line."""

    name: str


@dataclass(frozen=True)
class VariableRef:
    """Placeholder resolved from metadata or the alias registry."""

    name: str


@dataclass(frozen=True)
class FillMarker:
    """Point where horizontal slack is inserted."""

    glyph: str = " "


Segment = Union[Literal, ColorScope, VariableRef, FillMarker]


@dataclass(frozen=True)
class Line:
    """One renderable template line."""

    segments: Tuple[Segment, ...]
    fill_index: Optional[int] = None
    number: int = 0
    stretch: bool = False

    @property
    def fill(self) -> Optional[FillMarker]:
        if self.fill_index is None:
            return None
        marker = self.segments[self.fill_index]
        if not isinstance(marker, FillMarker):
            raise TypeError(f"segment {self.fill_index} of line {self.number} is not a fill marker")
        return marker


@dataclass(frozen=True)
class Template:
    """Immutable parse result: renderable lines plus the definitions found beside them."""

    lines: Tuple[Line, ...]
    registry: "AliasRegistry"
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def height(self) -> int:
        return len(self.lines)


class SpanKind(str, Enum):
    """Role of a resolved span during width fitting."""

    LITERAL = "literal"
    VARIABLE = "variable"
    FILL = "fill"


@dataclass(frozen=True)
class Span:
    """A resolved run of line text with the color it is drawn in."""

    text: str
    kind: SpanKind = SpanKind.LITERAL
    color: Optional["Color"] = None
