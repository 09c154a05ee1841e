from __future__ import annotations

import logging
import re
from typing import Callable

from pygments.formatters import HtmlFormatter

logger = logging.getLogger(__name__)

THEME_LIGHT = "ado-hl-theme-light"
THEME_DARK = "ado-hl-theme-dark"

# Pygments style used for each palette class.
PALETTE_STYLES = {
    THEME_LIGHT: "default",
    THEME_DARK: "monokai",
}

_RGB_RE = re.compile(
    r"^rgba?\(\s*(?P<r>\d{1,3})\s*[,\s]\s*(?P<g>\d{1,3})\s*[,\s]\s*(?P<b>\d{1,3})\s*(?:[,/]\s*[\d.]+%?\s*)?\)$",
    re.IGNORECASE,
)
_HEX_RE = re.compile(r"^#(?P<hex>[0-9a-f]{3}|[0-9a-f]{6})$", re.IGNORECASE)


def parse_css_color(text: str | None) -> tuple[int, int, int] | None:
    if not text:
        return None
    value = text.strip()
    match = _RGB_RE.match(value)
    if match:
        channels = tuple(int(match.group(key)) for key in ("r", "g", "b"))
        if any(channel > 255 for channel in channels):
            return None
        return channels  # type: ignore[return-value]
    match = _HEX_RE.match(value)
    if match:
        digits = match.group("hex")
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)
    return None


def channel_to_linear(value: int) -> float:
    c = value / 255.0
    if c <= 0.03928:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(rgb: tuple[int, int, int]) -> float:
    r, g, b = (channel_to_linear(channel) for channel in rgb)
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def classify_luminance(luminance: float) -> str:
    return THEME_LIGHT if luminance > 0.5 else THEME_DARK


class ThemeSelector:
    """Session-scoped palette choice, computed lazily from one color sample.

    The sampler is called at most once; later host theme changes are not
    picked up unless ``invalidate`` is called explicitly.
    """

    def __init__(self, sampler: Callable[[], tuple[int, int, int] | None], fallback: tuple[int, int, int] = (0, 0, 0)):
        self._sampler = sampler
        self._fallback = fallback
        self._theme: str | None = None

    @property
    def resolved(self) -> bool:
        return self._theme is not None

    def resolve(self) -> str:
        if self._theme is None:
            rgb = self._sampler() or self._fallback
            luminance = relative_luminance(rgb)
            self._theme = classify_luminance(luminance)
            logger.debug("Theme sample rgb%s luminance=%.4f -> %s", rgb, luminance, self._theme)
        return self._theme

    def invalidate(self) -> None:
        self._theme = None


def palette_css(code_class: str = "ado-syntax-code", superseded_class: str = "ado-syntax-superseded") -> str:
    blocks: list[str] = [f".{superseded_class} {{ display: none !important; }}"]
    for theme, style in PALETTE_STYLES.items():
        formatter = HtmlFormatter(style=style)
        blocks.append(f"/* {theme}: pygments style {style} */")
        blocks.append(formatter.get_style_defs(f".{theme} .{code_class}"))
    return "\n".join(blocks) + "\n"
