"""Template parsing, width fitting and rendering for the song panel."""

from .aliases import (
    BUILTIN_FUNCTIONS,
    AliasRegistry,
    ColorValue,
    ComputedFn,
    LiteralValue,
    RegistryFrozenError,
    build_registry,
    clean_text,
    format_value,
    title_and_composer,
)
from .engine import Fitted, fit_spans, layout
from .models import ColorScope, FillMarker, Line, Literal, Span, SpanKind, Template, VariableRef
from .parser import (
    InvalidColorValue,
    InvalidVariableSyntax,
    TemplateParseError,
    UnterminatedColorScope,
    parse,
    parse_line,
)
from .renderer import PanelRenderer, render, render_notice, stretch_lines, visible_width
from .terminal import DEFAULT_COLOR, Color, ColorResolver, parse_color, strip_ansi

__all__ = [
    "BUILTIN_FUNCTIONS",
    "DEFAULT_COLOR",
    "AliasRegistry",
    "Color",
    "ColorResolver",
    "ColorScope",
    "ColorValue",
    "ComputedFn",
    "FillMarker",
    "Fitted",
    "InvalidColorValue",
    "InvalidVariableSyntax",
    "Line",
    "Literal",
    "LiteralValue",
    "PanelRenderer",
    "RegistryFrozenError",
    "Span",
    "SpanKind",
    "Template",
    "TemplateParseError",
    "UnterminatedColorScope",
    "VariableRef",
    "build_registry",
    "clean_text",
    "fit_spans",
    "format_value",
    "layout",
    "parse",
    "parse_color",
    "parse_line",
    "render",
    "render_notice",
    "stretch_lines",
    "strip_ansi",
    "title_and_composer",
    "visible_width",
]
