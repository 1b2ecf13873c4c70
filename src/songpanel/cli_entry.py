"""Click CLI wiring for previewing a panel in the terminal."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler

from . import load_default_template
from .config_loader import ConfigError, load_config
from .datatypes import AppConfig, ColorDepth
from .layout import PanelRenderer, TemplateParseError, parse
from .layout.terminal import color_disabled_by_env, detect_color_depth

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _coerce_scalar(raw: str) -> Any:
    """Interpret ``--set`` values as int or float when they look numeric."""

    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


def _parse_assignments(assignments: Tuple[str, ...]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--set")
        values[key] = _coerce_scalar(value)
    return values


def _load_metadata_file(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise click.ClickException(f"Unable to read metadata file: {exc}") from exc
    if not isinstance(raw, dict):
        raise click.ClickException("Metadata file must contain a JSON object")
    return raw


def _read_template(path: str) -> str:
    if not path:
        return load_default_template()
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise click.ClickException(f"Unable to read template: {exc}") from exc


def _is_width_warning(message: str) -> bool:
    return "columns" in message


def run_preview(
    app: AppConfig,
    metadata: Dict[str, Any],
    *,
    width: int,
    next_song: Optional[str] = None,
) -> Tuple[List[str], List[str]]:
    """
    Parse the configured template and render it once.

    Returns:
        The printable lines (panel plus optional notice) and the collected warnings.

    Raises:
        click.ClickException: On template errors, or on width warnings when strict.
    """
    source = _read_template(app.panel.template)
    try:
        template = parse(source)
    except TemplateParseError as exc:
        raise click.ClickException(f"Invalid template: {exc}") from exc

    enabled = app.panel.color and not color_disabled_by_env()
    depth = app.panel.color_depth
    if depth is ColorDepth.AUTO:
        depth = detect_color_depth()
    renderer = PanelRenderer(
        template,
        color_enabled=enabled,
        depth=depth,
        height=app.panel.height or None,
    )

    warnings: List[str] = list(template.warnings)
    lines = renderer.render(metadata, width, warnings=warnings)
    if next_song is not None:
        notice_metadata = dict(metadata)
        notice_metadata.setdefault("next_song", next_song)
        lines.append(renderer.notice("NEXT: $next_song", notice_metadata, warnings=warnings))

    if app.panel.strict_width:
        mismatched = [message for message in warnings if _is_width_warning(message)]
        if mismatched:
            raise click.ClickException("; ".join(mismatched))
    return lines, warnings


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="TOML settings file.")
@click.option("--template", "template_path", type=click.Path(dir_okay=False), help="Panel template file.")
@click.option("--width", type=click.IntRange(min=1), help="Target width; defaults to the terminal width.")
@click.option("--height", type=click.IntRange(min=0), help="Grow the panel to this many lines.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors.")
@click.option("--strict-width", is_flag=True, help="Fail when a line cannot match the width.")
@click.option("--set", "assignments", multiple=True, metavar="KEY=VALUE", help="Metadata value.")
@click.option("--metadata", "metadata_path", type=click.Path(dir_okay=False), help="JSON metadata file.")
@click.option("--next", "next_song", help="Render a NEXT notice below the panel.")
@click.option("--verbose", "-v", is_flag=True, help="Log debug messages.")
def main(
    config_path: Optional[str],
    template_path: Optional[str],
    width: Optional[int],
    height: Optional[int],
    no_color: bool,
    strict_width: bool,
    assignments: Tuple[str, ...],
    metadata_path: Optional[str],
    next_song: Optional[str],
    verbose: bool,
) -> None:
    """Render the song panel once with the given metadata."""

    _configure_logging(verbose)
    try:
        app = load_config(config_path) if config_path else AppConfig()
    except ConfigError as exc:
        raise click.ClickException(f"Config error: {exc}") from exc

    if template_path:
        app.panel.template = template_path
    if height is not None:
        app.panel.height = height
    if no_color:
        app.panel.color = False
    if strict_width:
        app.panel.strict_width = True

    metadata: Dict[str, Any] = dict(app.metadata)
    metadata.update(_load_metadata_file(metadata_path))
    metadata.update(_parse_assignments(assignments))

    target_width = width or app.panel.width or Console().width
    lines, warnings = run_preview(app, metadata, width=target_width, next_song=next_song)
    for message in warnings:
        logger.warning("%s", message)
    for line in lines:
        click.echo(line, color=True)


if __name__ == "__main__":  # pragma: no cover
    main()
