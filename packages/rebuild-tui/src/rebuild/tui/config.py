"""Declarative configuration for theme, layout, text and key handling.

Configs are plain dataclasses. They may be built in code, or from nested
dicts / JSON files whose values are merged over the defaults.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from rebuild.tui.gradient import CustomGradient, Gradient, GradientPreset
from rebuild.tui.styles import AccentColor, BorderStyle, Color, ColorPalette


# --- Config schema ---


@dataclass
class Theme:
    """Glyphs and colors."""

    # Item markers in the ASCII row form "[*] name", used when use_unicode is off.
    selected_indicator: str = "*"
    unselected_indicator: str = " "
    selected_prefix: str = "✓ "
    unselected_prefix: str = "  "
    highlighted_prefix: str = "> "
    use_unicode: bool = True
    use_colors: bool = True
    gradient_enabled: bool = False
    gradient_preset: Gradient = GradientPreset.NONE
    gradient_randomize: bool = False
    border_style: BorderStyle = BorderStyle.ROUNDED
    accent_color: AccentColor = AccentColor.CYAN
    palette: ColorPalette = field(default_factory=ColorPalette)

    def highlight_color(self) -> Color:
        """Color of the highlighted row when no gradient is drawn."""
        if self.palette.selected_item is not None:
            return self.palette.selected_item
        return Color(self.accent_color)


@dataclass
class Layout:
    """Geometry and pagination."""

    center_horizontally: bool = True
    center_vertically: bool = True
    max_content_width: int = 80
    min_content_width: int = 40
    vertical_padding: int = 2
    auto_resize_content: bool = True
    show_borders: bool = True
    items_per_page: int = 20
    paginate_sections: bool = True
    sections_per_page: int = 15


@dataclass
class TextConfig:
    """Titles, messages and footer visibility."""

    section_selection_title: str = "Select Section"
    item_selection_prefix: str = "Section: "
    empty_section_message: str = "No items in this section."
    help_text_sections: str = "Enter - select | q - quit | 1-9 - quick select"
    help_text_items: str = "Space - toggle | Enter - select | b/Esc - back | 1-9 - page"
    show_help_text: bool = True
    show_page_numbers: bool = True
    show_counters: bool = True


@dataclass
class Config:
    theme: Theme = field(default_factory=Theme)
    layout: Layout = field(default_factory=Layout)
    text: TextConfig = field(default_factory=TextConfig)
    # Display-only descriptions of application shortcuts, keyed by character.
    custom_shortcuts: dict[str, str] = field(default_factory=dict)
    enable_quick_select: bool = True
    enable_vim_keys: bool = False

    def validate(self) -> Config:
        """Raise ``ValueError`` for settings the engine cannot honor."""
        layout = self.layout
        if layout.items_per_page < 1:
            raise ValueError(f"items_per_page must be >= 1, got {layout.items_per_page}")
        if layout.sections_per_page < 1:
            raise ValueError(f"sections_per_page must be >= 1, got {layout.sections_per_page}")
        if layout.min_content_width > layout.max_content_width:
            raise ValueError(
                f"min_content_width ({layout.min_content_width}) exceeds "
                f"max_content_width ({layout.max_content_width})"
            )
        if layout.vertical_padding < 0:
            raise ValueError(f"vertical_padding must be >= 0, got {layout.vertical_padding}")
        return self

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build a config from nested plain values merged over the defaults."""
        merged = deep_merge(_config_defaults(), data)
        unknown = set(merged) - {f.name for f in fields(cls)}
        if unknown:
            raise KeyError(f"Unknown config keys: {sorted(unknown)}")
        return cls(
            theme=_theme_from_dict(merged["theme"]),
            layout=_build(Layout, merged["layout"]),
            text=_build(TextConfig, merged["text"]),
            custom_shortcuts=dict(merged["custom_shortcuts"]),
            enable_quick_select=bool(merged["enable_quick_select"]),
            enable_vim_keys=bool(merged["enable_vim_keys"]),
        ).validate()


# --- Deep merge ---


def deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge overrides into base.

    Nested dicts merge key by key; any other override value replaces the
    base value. ``None`` overrides are ignored.
    """
    result = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str | Path) -> Config:
    """Read a JSON config file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at the top level")
    return Config.from_dict(data)


# --- Helpers ---


def _config_defaults() -> dict[str, Any]:
    theme = Theme()
    return {
        "theme": {
            f.name: getattr(theme, f.name) for f in fields(Theme) if f.name != "palette"
        },
        "layout": asdict(Layout()),
        "text": asdict(TextConfig()),
        "custom_shortcuts": {},
        "enable_quick_select": True,
        "enable_vim_keys": False,
    }


def _build(cls: type, values: dict[str, Any]) -> Any:
    names = {f.name for f in fields(cls)}
    unknown = set(values) - names
    if unknown:
        raise KeyError(f"Unknown {cls.__name__} keys: {sorted(unknown)}")
    return cls(**values)


def _enum_value(enum_cls: type, value: Any) -> Any:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown {enum_cls.__name__}: {value!r}") from None
    raise TypeError(f"Expected {enum_cls.__name__} name, got {value!r}")


def _gradient_value(value: Any) -> Gradient:
    if isinstance(value, (GradientPreset, CustomGradient)):
        return value
    if isinstance(value, list):
        return CustomGradient(tuple(tuple(c) for c in value))
    return _enum_value(GradientPreset, value)


def _theme_from_dict(values: dict[str, Any]) -> Theme:
    values = dict(values)
    palette_values = values.pop("palette", {}) or {}
    if "gradient_preset" in values:
        values["gradient_preset"] = _gradient_value(values["gradient_preset"])
    if "border_style" in values:
        values["border_style"] = _enum_value(BorderStyle, values["border_style"])
    if "accent_color" in values:
        values["accent_color"] = _enum_value(AccentColor, values["accent_color"])
    theme = _build(Theme, values)
    for element, color in palette_values.items():
        theme.palette.set(element, Color.parse(color))
    return theme
