"""rebuild-tui: interactive two-level terminal menus with themes and gradients."""

# Builders
from rebuild.tui.builder import MultiSectionBuilder, NavigationBuilder, SectionBuilder

# Configuration
from rebuild.tui.config import Config, Layout, TextConfig, Theme, deep_merge, load_config

# Events
from rebuild.tui.events import (
    EventDispatcher,
    Exited,
    ItemToggled,
    NavigationEvent,
    NavigationState,
    PageChanged,
    SectionSelected,
    StateChanged,
)

# Gradients
from rebuild.tui.gradient import RGB, CustomGradient, GradientPreset, apply_gradient, generate_gradient

# Input decoding
from rebuild.tui.input_decoder import DecoderState, InputDecoder
from rebuild.tui.keys import Key, KeyEvent

# Data model
from rebuild.tui.models import Item, Section

# Navigation
from rebuild.tui.navigation import NavigationEngine, page_bounds, total_pages

# Rendering
from rebuild.tui.renderer import Geometry, LayoutRenderer, ViewSnapshot, compute_geometry

# Styles
from rebuild.tui.styles import AccentColor, BorderStyle, Color, ColorPalette

# Terminal
from rebuild.tui.terminal import PosixTerminal, TerminalDriver, WindowsTerminal, get_terminal, raw_mode

# Utilities
from rebuild.tui.utils import center_text, strip_ansi, visible_width, wrap_text

__all__ = [
    # Builders
    "MultiSectionBuilder",
    "NavigationBuilder",
    "SectionBuilder",
    # Configuration
    "Config",
    "Layout",
    "TextConfig",
    "Theme",
    "deep_merge",
    "load_config",
    # Events
    "EventDispatcher",
    "Exited",
    "ItemToggled",
    "NavigationEvent",
    "NavigationState",
    "PageChanged",
    "SectionSelected",
    "StateChanged",
    # Gradients
    "RGB",
    "CustomGradient",
    "GradientPreset",
    "apply_gradient",
    "generate_gradient",
    # Input decoding
    "DecoderState",
    "InputDecoder",
    "Key",
    "KeyEvent",
    # Data model
    "Item",
    "Section",
    # Navigation
    "NavigationEngine",
    "page_bounds",
    "total_pages",
    # Rendering
    "Geometry",
    "LayoutRenderer",
    "ViewSnapshot",
    "compute_geometry",
    # Styles
    "AccentColor",
    "BorderStyle",
    "Color",
    "ColorPalette",
    # Terminal
    "PosixTerminal",
    "TerminalDriver",
    "WindowsTerminal",
    "get_terminal",
    "raw_mode",
    # Utilities
    "center_text",
    "strip_ansi",
    "visible_width",
    "wrap_text",
]
