"""Multi-stop RGB gradients for highlighted text.

``generate_gradient`` is a pure function: the same preset and step count
always produce the same colors. Randomised "sparkle" ordering is applied
afterwards by :func:`apply_gradient` using a caller-supplied RNG.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Union

import grapheme

from rebuild.tui.terminal import fg_rgb_sequence


class RGB(NamedTuple):
    r: int
    g: int
    b: int


WHITE = RGB(255, 255, 255)


class GradientPreset(Enum):
    """Named gradients. Each value is its ordered list of control points."""

    NONE = "none"
    WARM_TO_COLD = "warm_to_cold"
    RED_TO_GREEN = "red_to_green"
    BLUE_TO_PURPLE = "blue_to_purple"
    SUNSET = "sunset"
    OCEAN = "ocean"
    FOREST = "forest"
    FIRE = "fire"
    RAINBOW = "rainbow"

    @property
    def control_points(self) -> list[RGB]:
        return list(_PRESET_POINTS[self])


_PRESET_POINTS: dict[GradientPreset, tuple[RGB, ...]] = {
    GradientPreset.NONE: (WHITE,),
    GradientPreset.WARM_TO_COLD: (RGB(255, 10, 0), RGB(255, 255, 200), RGB(100, 200, 255)),
    GradientPreset.RED_TO_GREEN: (RGB(255, 50, 50), RGB(255, 255, 100), RGB(50, 255, 50)),
    GradientPreset.BLUE_TO_PURPLE: (RGB(50, 100, 255), RGB(150, 50, 255), RGB(255, 50, 255)),
    GradientPreset.SUNSET: (RGB(255, 0, 100), RGB(255, 100, 0), RGB(150, 0, 255)),
    GradientPreset.OCEAN: (RGB(0, 50, 150), RGB(0, 150, 255), RGB(0, 255, 255)),
    GradientPreset.FOREST: (RGB(0, 100, 0), RGB(50, 200, 50), RGB(150, 255, 100)),
    GradientPreset.FIRE: (RGB(255, 0, 0), RGB(255, 100, 0), RGB(255, 255, 0)),
    GradientPreset.RAINBOW: (
        RGB(255, 0, 0),
        RGB(255, 255, 0),
        RGB(0, 255, 0),
        RGB(0, 255, 255),
        RGB(0, 0, 255),
        RGB(255, 0, 255),
        RGB(255, 0, 0),
    ),
}


@dataclass(frozen=True)
class CustomGradient:
    """User-defined control points. An empty list behaves like white."""

    colors: tuple[RGB, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "colors", tuple(RGB(*c) for c in self.colors))

    @property
    def control_points(self) -> list[RGB]:
        return list(self.colors) if self.colors else [WHITE]


Gradient = Union[GradientPreset, CustomGradient]


def is_flat(preset: Gradient) -> bool:
    """True for the NONE preset, which disables gradient highlighting."""
    return preset is GradientPreset.NONE


def _lerp_channel(start: int, end: int, ratio: float) -> int:
    return int(start + ratio * (end - start))


def generate_gradient(preset: Gradient, steps: int) -> list[RGB]:
    """Return exactly *steps* colors interpolated across the preset's stops.

    The steps are split evenly across ``len(points) - 1`` segments; each
    segment interpolates linearly from its start stop to its end stop. A
    short result is padded with the final stop and a long one truncated.
    For two or more steps the first and last colors are always the first
    and last control points.
    """
    if not isinstance(preset, (GradientPreset, CustomGradient)):
        raise TypeError(f"Unsupported gradient preset: {preset!r}")
    if steps <= 0:
        return []

    points = preset.control_points
    segments = len(points) - 1
    if segments <= 0:
        return [points[0]] * steps

    gradient: list[RGB] = []
    segment_steps = steps / segments
    for seg in range(segments):
        start, end = points[seg], points[seg + 1]
        seg_start = int(seg * segment_steps)
        seg_end = min(int((seg + 1) * segment_steps), steps)
        count = seg_end - seg_start
        for i in range(count):
            ratio = i / (count - 1) if count > 1 else 0.0
            gradient.append(
                RGB(
                    _lerp_channel(start.r, end.r, ratio),
                    _lerp_channel(start.g, end.g, ratio),
                    _lerp_channel(start.b, end.b, ratio),
                )
            )

    if len(gradient) > steps:
        del gradient[steps:]
    while len(gradient) < steps:
        gradient.append(points[-1])

    # Very short ramps can skip a segment start or end entirely.
    if steps >= 2:
        gradient[0] = points[0]
        gradient[-1] = points[-1]
    return gradient


def apply_gradient(
    text: str,
    preset: Gradient,
    *,
    randomize: bool = False,
    rng: random.Random | None = None,
) -> str:
    """Color each visible character of *text* with one gradient step.

    A visible character is one grapheme cluster, so wide glyphs and
    combining sequences take a single step and are never split. Escape
    sequences already present in *text* (``ESC`` through the next ``m``)
    are copied through unchanged and do not consume a step.
    """
    if not text:
        return text

    runs: list[tuple[bool, str | list[str]]] = [
        (is_escape, chunk if is_escape else list(grapheme.graphemes(chunk)))
        for is_escape, chunk in _split_escapes(text)
    ]
    steps = sum(len(chunk) for is_escape, chunk in runs if not is_escape)
    if steps == 0:
        return text

    colors = generate_gradient(preset, steps)
    if randomize:
        (rng or random).shuffle(colors)

    out: list[str] = []
    index = 0
    for is_escape, value in runs:
        if is_escape:
            out.append(value)
            continue
        for cluster in value:
            out.append(fg_rgb_sequence(*colors[index]))
            out.append(cluster)
            index += 1
    out.append("\x1b[0m")
    return "".join(out)


def _split_escapes(text: str) -> list[tuple[bool, str]]:
    """Split *text* into ``(is_escape, chunk)`` pairs, keeping order."""
    parts: list[tuple[bool, str]] = []
    start = 0
    pos = 0
    while pos < len(text):
        if text[pos] == "\x1b":
            end = text.find("m", pos)
            if end != -1:
                if start < pos:
                    parts.append((False, text[start:pos]))
                parts.append((True, text[pos : end + 1]))
                pos = start = end + 1
                continue
        pos += 1
    if start < len(text):
        parts.append((False, text[start:]))
    return parts
