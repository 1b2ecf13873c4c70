"""Width fitting: distribute slack at the fill marker or trim overflowing spans."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from rich.cells import cell_len, set_cell_size

from .models import Line, Span, SpanKind


@dataclass(frozen=True)
class Fitted:
    """Spans adjusted to a target width, plus a warning when the width could not be met."""

    spans: List[Span]
    warning: Optional[str] = None

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)


def _keep_left(text: str, cells: int) -> str:
    """Crop ``text`` to ``cells`` columns, keeping its start."""

    if cells <= 0:
        return ""
    return set_cell_size(text, cells)


def _keep_right(text: str, cells: int) -> str:
    """Crop ``text`` to ``cells`` columns, keeping its end."""

    if cells <= 0:
        return ""
    return set_cell_size(text[::-1], cells)[::-1]


def _fill_text(glyph: str, cells: int) -> str:
    if cells <= 0:
        return ""
    glyph_cells = max(1, cell_len(glyph))
    return set_cell_size(glyph * (cells // glyph_cells + 1), cells)


def _trim(spans: List[Span], excess: int) -> int:
    """
    Remove ``excess`` columns from ``spans`` in place and return what could not be removed.

    Variables are cut first, left-most first, each keeping its leading text. Literals other
    than the last one follow, nearest to the right edge first. The last literal goes last
    and is cut from its left so its final glyph (the closing border) survives.
    """
    literal_indexes = [i for i, span in enumerate(spans) if span.kind is SpanKind.LITERAL]
    final_literal = literal_indexes[-1] if literal_indexes else None
    variables = [i for i, span in enumerate(spans) if span.kind is SpanKind.VARIABLE]
    others = [i for i in reversed(literal_indexes) if i != final_literal]

    for index in variables + others:
        if excess <= 0:
            return 0
        span = spans[index]
        width = cell_len(span.text)
        cut = min(excess, width)
        spans[index] = replace(span, text=_keep_left(span.text, width - cut))
        excess -= cut

    if excess > 0 and final_literal is not None:
        span = spans[final_literal]
        width = cell_len(span.text)
        keep = max(width - excess, min(width, 1))
        spans[final_literal] = replace(span, text=_keep_right(span.text, keep))
        excess -= width - keep
    return max(excess, 0)


def fit_spans(spans: Sequence[Span], width: int, *, fill_glyph: str = " ") -> Fitted:
    """
    Fit resolved spans to exactly ``width`` terminal cells.

    Parameters:
        spans: Resolved spans of one line; at most one of kind ``FILL`` is honored.
        width (int): Target width in cells; ``0`` or less yields an empty line.
        fill_glyph (str): Character repeated at the fill position.

    Returns:
        Fitted: The adjusted spans. When the line has no fill marker and is narrower than
        ``width`` the spans are returned unchanged together with a warning message.
    """
    if width <= 0:
        return Fitted([])
    working = [span for span in spans if span.text or span.kind is SpanKind.FILL]
    fill_positions = [i for i, span in enumerate(working) if span.kind is SpanKind.FILL]
    fill_at = fill_positions[0] if fill_positions else None
    fixed = sum(cell_len(span.text) for span in working if span.kind is not SpanKind.FILL)

    if width >= fixed:
        if fill_at is None:
            if width == fixed:
                return Fitted(working)
            return Fitted(
                working,
                warning=f"line is {fixed} columns wide without a fill marker (target {width})",
            )
        fitted: List[Span] = []
        for i, span in enumerate(working):
            if span.kind is SpanKind.FILL:
                if i == fill_at:
                    fitted.append(replace(span, text=_fill_text(fill_glyph, width - fixed)))
                continue
            fitted.append(span)
        return Fitted(fitted)

    trimmed = [span for span in working if span.kind is not SpanKind.FILL]
    leftover = _trim(trimmed, fixed - width)
    result = [span for span in trimmed if span.text]
    if leftover:
        return Fitted(result, warning=f"line could not be trimmed to {width} columns")
    return Fitted(result)


def layout(line: Line, resolved: Sequence[Span], width: int) -> str:
    """Plain-text form of :func:`fit_spans` using the line's own fill glyph."""

    marker = line.fill
    glyph = marker.glyph if marker is not None else " "
    return fit_spans(resolved, width, fill_glyph=glyph).text
