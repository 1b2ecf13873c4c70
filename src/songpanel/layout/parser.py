"""Template text parser: placeholders, fill markers, color scopes and alias definitions."""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from .aliases import (
    BUILTIN_FUNCTIONS,
    AliasRegistry,
    ColorValue,
    ComputedFn,
    LiteralValue,
    build_registry,
)
from .models import ColorScope, FillMarker, Line, Literal, Segment, Template, VariableRef
from .terminal import parse_color

logger = logging.getLogger(__name__)

_DEFINITION_RE = re.compile(r"^@(\w+)=(.*)$")
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

STRETCH_PLACEHOLDER = "  "


class TemplateParseError(ValueError):
    """Raised when template text cannot be parsed; carries the 1-based source position."""

    kind = "template error"

    def __init__(self, message: str, *, line: int, column: int) -> None:
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{self.kind} at line {line}, column {column}: {message}")


class UnterminatedColorScope(TemplateParseError):
    kind = "unterminated color scope"


class InvalidVariableSyntax(TemplateParseError):
    kind = "invalid variable syntax"


class InvalidColorValue(TemplateParseError):
    kind = "invalid color value"


def _warn(warnings: List[str], message: str) -> None:
    logger.debug("Template warning: %s", message)
    warnings.append(message)


def _fill_glyph(text: str, index: int) -> str:
    """Glyph repeated by a ``$>`` marker: the visible punctuation that follows it, else space."""

    if index >= len(text):
        return " "
    char = text[index]
    if char == "$" or char.isspace() or char.isalnum() or char == "_" or not char.isprintable():
        return " "
    return char


def _parse_content(text: str, number: int, warnings: List[str]) -> Line:
    segments: List[Segment] = []
    literal: List[str] = []
    fill_index: Optional[int] = None
    stretch = False
    index = 0

    def flush() -> None:
        if literal:
            segments.append(Literal("".join(literal)))
            literal.clear()

    while index < len(text):
        char = text[index]
        if char != "$":
            literal.append(char)
            index += 1
            continue
        column = index + 1
        nxt = text[index + 1] if index + 1 < len(text) else ""
        if nxt == "$":
            literal.append("$")
            index += 2
        elif nxt == ">":
            index += 2
            if fill_index is not None:
                message = f"line {number}: extra fill marker at column {column} ignored"
                _warn(warnings, message)
                continue
            flush()
            fill_index = len(segments)
            segments.append(FillMarker(_fill_glyph(text, index)))
        elif nxt == "^":
            stretch = True
            literal.append(STRETCH_PLACEHOLDER)
            index += 2
        elif nxt == "[":
            close = text.find("]", index + 2)
            if close == -1:
                raise UnterminatedColorScope(
                    "'$[' has no closing ']'", line=number, column=column
                )
            flush()
            segments.append(ColorScope(text[index + 2 : close].strip()))
            index = close + 1
        else:
            match = _NAME_RE.match(text, index + 1)
            if match is None:
                shown = nxt or "end of line"
                raise InvalidVariableSyntax(
                    f"'$' must be followed by a name, '>', '^', '[' or '$' (found {shown!r})",
                    line=number,
                    column=column,
                )
            flush()
            segments.append(VariableRef(match.group(0)))
            index = match.end()
    flush()
    return Line(tuple(segments), fill_index=fill_index, number=number, stretch=stretch)


def parse_line(text: str, *, number: int = 1) -> Line:
    """
    Parse a single free-standing template line.

    Raises:
        TemplateParseError: On malformed ``$`` tokens or unterminated color scopes.
    """
    return _parse_content(text.rstrip("\r\n"), number, [])


def parse(
    text: str,
    *,
    functions: Tuple[ComputedFn, ...] = BUILTIN_FUNCTIONS,
) -> Template:
    """
    Parse template source text into an immutable :class:`Template`.

    Lines of the form ``@name=value`` are consumed as definitions: a value starting with
    ``:`` registers a color, anything else a literal alias. ``functions`` are registered
    first so the template can shadow them. Leading and trailing blank lines are dropped.

    Parameters:
        text (str): Template source.
        functions: Computed fields available to the template.

    Returns:
        Template: Parsed lines, the frozen alias registry and any parse warnings.

    Raises:
        TemplateParseError: Subclass describing the first malformed token, with its line and
        column in ``text``.
    """
    registry: AliasRegistry = build_registry(functions)
    builtin_names = {function.name for function in functions}
    warnings: List[str] = []
    lines: List[Line] = []
    blank_run: List[Line] = []

    for number, raw in enumerate(text.splitlines(), start=1):
        raw = raw.rstrip("\r")
        definition = _DEFINITION_RE.match(raw)
        if definition is not None:
            name, value = definition.group(1), definition.group(2)
            if value.startswith(":"):
                try:
                    entry = ColorValue(parse_color(value[1:]))
                except ValueError as exc:
                    raise InvalidColorValue(
                        str(exc), line=number, column=definition.start(2) + 2
                    ) from exc
            else:
                if ":#" in value:
                    message = (
                        f"line {number}: alias '{name}' value '{value}' is plain text;"
                        f" use @{name}=:<color> for a field color"
                    )
                    _warn(warnings, message)
                entry = LiteralValue(value)
            previous = registry.register(name, entry)
            if previous is not None and name not in builtin_names:
                message = f"line {number}: alias '{name}' redefined"
                _warn(warnings, message)
            builtin_names.discard(name)
            continue
        line = _parse_content(raw, number, warnings)
        if not raw.strip():
            if lines:
                blank_run.append(line)
            continue
        lines.extend(blank_run)
        blank_run.clear()
        lines.append(line)

    return Template(lines=tuple(lines), registry=registry.freeze(), warnings=tuple(warnings))
