"""Compose parsed templates, metadata and colors into printable panel lines."""
from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence, Union

from rich.cells import cell_len

from ..datatypes import ColorDepth
from .aliases import AliasRegistry, MetadataContext, build_registry
from .engine import fit_spans
from .models import ColorScope, FillMarker, Line, Literal, Span, SpanKind, Template, VariableRef
from .parser import parse_line
from .terminal import ColorResolver, strip_ansi

logger = logging.getLogger(__name__)


def visible_width(text: str) -> int:
    """Cell width of a rendered line, ignoring color escapes."""

    return cell_len(strip_ansi(text))


def stretch_lines(lines: Sequence[Line], height: Optional[int]) -> List[Line]:
    """
    Repeat stretchable lines until the panel is ``height`` lines tall.

    Extra rows are spread evenly over the stretch lines, starting from the bottom-most one.
    Panels without stretch lines, or already at least ``height`` tall, are returned as is.
    """
    result = list(lines)
    indexes = [i for i, line in enumerate(result) if line.stretch]
    if not height or not indexes or height <= len(result):
        return result
    extra = height - len(result)
    added = 0
    for position, index in enumerate(reversed(indexes), start=1):
        goal = -(-extra * position // len(indexes))
        while added < goal:
            result.insert(index, result[index])
            added += 1
    return result


def _resolve_spans(
    line: Line,
    ctx: MetadataContext,
    registry: AliasRegistry,
    colors: ColorResolver,
    warnings: Optional[List[str]],
) -> List[Span]:
    spans: List[Span] = []
    scope = colors.color_for("")
    for segment in line.segments:
        if isinstance(segment, Literal):
            spans.append(Span(segment.text, SpanKind.LITERAL, scope))
        elif isinstance(segment, VariableRef):
            text = registry.resolve_text(segment.name, ctx)
            field = colors.field_color(segment.name)
            spans.append(Span(text, SpanKind.VARIABLE, field if field is not None else scope))
        elif isinstance(segment, FillMarker):
            spans.append(Span("", SpanKind.FILL, scope))
        elif isinstance(segment, ColorScope):
            if not colors.has_color(segment.name):
                _warn(warnings, f"line {line.number}: unknown color '{segment.name}'")
            scope = colors.color_for(segment.name)
    return spans


def _warn(warnings: Optional[List[str]], message: str) -> None:
    logger.debug("Render warning: %s", message)
    if warnings is not None:
        warnings.append(message)


def render(
    template: Template,
    metadata: MetadataContext,
    width: int,
    color_enabled: bool,
    *,
    depth: ColorDepth = ColorDepth.TRUECOLOR,
    height: Optional[int] = None,
    warnings: Optional[List[str]] = None,
) -> List[str]:
    """
    Render every template line at exactly ``width`` terminal cells.

    Rendering is a pure function of its arguments: ``metadata`` is only read and nothing is
    retained between calls. Layout is computed on plain text before colors are applied, so
    enabling color never changes spacing or truncation.

    Parameters:
        template (Template): Parsed template; its registry supplies aliases and colors.
        metadata (Mapping[str, Any]): Field values for this refresh; keys take precedence
            over aliases of the same name.
        width (int): Target width in cells.
        color_enabled (bool): Emit ANSI color escapes when True.
        depth (ColorDepth): Palette used for escapes.
        height (int, optional): Grow the panel to this many lines using stretch lines.
        warnings (list, optional): Receives non-fatal layout messages.

    Returns:
        list[str]: The panel lines, top to bottom.
    """
    colors = ColorResolver(template.registry, enabled=color_enabled, depth=depth)
    rendered: List[str] = []
    for line in stretch_lines(template.lines, height):
        spans = _resolve_spans(line, metadata, template.registry, colors, warnings)
        marker = line.fill
        fitted = fit_spans(spans, width, fill_glyph=marker.glyph if marker else " ")
        if fitted.warning:
            _warn(warnings, f"line {line.number}: {fitted.warning}")
        rendered.append(colors.paint(fitted.spans))
    return rendered


def render_notice(
    source: Union[str, Line],
    metadata: MetadataContext,
    color_enabled: bool,
    *,
    registry: Optional[AliasRegistry] = None,
    depth: ColorDepth = ColorDepth.TRUECOLOR,
    warnings: Optional[List[str]] = None,
) -> str:
    """
    Render a free-length line such as ``NEXT: $next_song``.

    Placeholders resolve exactly as in :func:`render`, but no width is imposed: the line is
    as long as its content and fill markers collapse to nothing.

    Raises:
        TemplateParseError: If ``source`` is a string that does not parse.
    """
    line = parse_line(source) if isinstance(source, str) else source
    lookup = registry if registry is not None else build_registry().freeze()
    colors = ColorResolver(lookup, enabled=color_enabled, depth=depth)
    spans = _resolve_spans(line, metadata, lookup, colors, warnings)
    return colors.paint(spans)


class PanelRenderer:
    """A parsed template bound to one color configuration."""

    def __init__(
        self,
        template: Template,
        *,
        color_enabled: bool = True,
        depth: ColorDepth = ColorDepth.TRUECOLOR,
        height: Optional[int] = None,
    ) -> None:
        self.template = template
        self.color_enabled = color_enabled
        self.depth = depth
        self.height = height

    @property
    def registry(self) -> AliasRegistry:
        return self.template.registry

    def render(
        self,
        metadata: Mapping[str, object],
        width: int,
        *,
        warnings: Optional[List[str]] = None,
    ) -> List[str]:
        return render(
            self.template,
            metadata,
            width,
            self.color_enabled,
            depth=self.depth,
            height=self.height,
            warnings=warnings,
        )

    def notice(
        self,
        source: Union[str, Line],
        metadata: Mapping[str, object],
        *,
        warnings: Optional[List[str]] = None,
    ) -> str:
        return render_notice(
            source,
            metadata,
            self.color_enabled,
            registry=self.registry,
            depth=self.depth,
            warnings=warnings,
        )
