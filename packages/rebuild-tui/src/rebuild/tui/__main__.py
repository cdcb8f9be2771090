"""Entry point for the rebuild-tui demo menu."""

from __future__ import annotations

import argparse
import logging

from rebuild.tui.builder import MultiSectionBuilder, NavigationBuilder, SectionBuilder
from rebuild.tui.config import load_config
from rebuild.tui.models import Section

logger = logging.getLogger(__name__)

THEMES = ("default", "minimal", "fancy", "retro", "modern")
LAYOUTS = ("default", "compact", "comfortable", "fullscreen", "centered")


def demo_sections() -> list[Section]:
    return (
        MultiSectionBuilder()
        .add_section(
            SectionBuilder("Privacy & Security")
            .description("Control data collection and security settings")
            .add_items(
                [
                    ("Block Telemetry", "Prevent the system from sending usage data"),
                    ("Disable Location Tracking", "Stop apps from accessing location"),
                    ("Clear Web Data", "Remove browsing history and cookies"),
                    ("Enable Firewall", "Block unauthorized network connections"),
                    ("Secure DNS", "Use encrypted DNS queries"),
                ]
            )
            .select_items(["Block Telemetry", "Enable Firewall"])
        )
        .add_section(
            SectionBuilder("Performance")
            .description("Improve system speed and responsiveness")
            .add_generated_items(24, lambda i: f"Optimization {i + 1}")
            .sort_items()
        )
        .add_section("Empty Section", lambda b: b.description("Nothing to configure yet"))
        .add_section(
            SectionBuilder("Developer Tools")
            .description("Tools and settings for software development")
            .add_items(["Git", "Containers", "Debuggers", "Profilers"])
        )
        .build()
    )


def _print_selections(sections: list[Section]) -> None:
    for section in sections:
        names = section.selected_names()
        if names:
            print(f"{section.name}: {', '.join(names)}")


def main() -> None:
    parser = argparse.ArgumentParser(description="rebuild-tui: interactive menu demo")
    parser.add_argument("--config", default=None, help="JSON config file to load")
    parser.add_argument("--theme", default="default", choices=THEMES)
    parser.add_argument("--layout", default="default", choices=LAYOUTS)
    parser.add_argument("--vim", action="store_true", help="Enable j/k/h/l navigation")
    parser.add_argument("--log-file", default=None, help="Write logs to this file")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    args = parser.parse_args()

    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=getattr(logging, args.log_level.upper()),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )

    builder = NavigationBuilder(load_config(args.config) if args.config else None)
    if args.theme != "default":
        getattr(builder, f"theme_{args.theme}")()
    if args.layout != "default":
        getattr(builder, f"layout_{args.layout}")()

    builder.keys_vim_style(args.vim).add_sections(demo_sections()).on_exit(_print_selections)
    builder.on_state_changed(lambda old, new: logger.debug("state %s -> %s", old.value, new.value))

    try:
        builder.run()
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
