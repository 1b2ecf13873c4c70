"""Terminal status panel for a music player."""

from importlib import resources

from .layout import PanelRenderer, Template, parse, render, render_notice

__version__ = "0.1.0"

DEFAULT_TEMPLATE_NAME = "screen.templ"


def load_default_template() -> str:
    """Return the source text of the panel template bundled with the package."""

    data = resources.files(__package__).joinpath("data")
    return data.joinpath(DEFAULT_TEMPLATE_NAME).read_text(encoding="utf-8")


__all__ = [
    "DEFAULT_TEMPLATE_NAME",
    "PanelRenderer",
    "Template",
    "__version__",
    "load_default_template",
    "parse",
    "render",
    "render_notice",
]
