"""Configuration dataclasses for the song panel."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class ColorDepth(str, Enum):
    """Escape-sequence palettes the color resolver can target."""

    AUTO = "auto"
    TRUECOLOR = "truecolor"
    COLOR_256 = "256"
    COLOR_16 = "16"


@dataclass
class PanelConfig:
    """Template location, target geometry and color behaviour of the panel."""

    template: str = ""
    width: int = 0
    height: int = 0
    color: bool = True
    color_depth: ColorDepth = ColorDepth.AUTO
    strict_width: bool = False


@dataclass
class AppConfig:
    """Top-level configuration loaded from TOML."""

    panel: PanelConfig = field(default_factory=PanelConfig)
    metadata: Dict[str, Any] = field(default_factory=dict)
