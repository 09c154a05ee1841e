from __future__ import annotations

import re
from pathlib import Path

from bs4 import BeautifulSoup, Tag
from bs4.builder import HTMLTreeBuilder

from .config import HostSelectors
from .theme import parse_css_color

_STYLE_COLOR_RE = re.compile(r"(?:^|;)\s*color\s*:\s*(?P<value>[^;]+)", re.IGNORECASE)


# bs4 collapses whitespace-only strings unless one of these tags is open.
# The document root is listed so code indentation survives anywhere in a page.
PRESERVE_WHITESPACE_TAGS = set(HTMLTreeBuilder.DEFAULT_PRESERVE_WHITESPACE_TAGS) | {BeautifulSoup.ROOT_TAG_NAME}


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser", preserve_whitespace_tags=PRESERVE_WHITESPACE_TAGS)


def load_html(path: Path) -> BeautifulSoup:
    try:
        return parse_html(path.read_text(encoding="utf-8"))
    except FileNotFoundError as error:
        raise RuntimeError(f"File not found: {path}") from error
    except UnicodeDecodeError as error:
        raise RuntimeError(f"Not UTF-8 text: {path}") from error


def save_html(soup: BeautifulSoup, path: Path) -> None:
    path.write_text(str(soup), encoding="utf-8")


def owner_document(node: Tag) -> BeautifulSoup:
    top: Tag = node
    for parent in node.parents:
        top = parent
    if isinstance(top, BeautifulSoup):
        return top
    return parse_html("")


def class_list(node: Tag) -> list[str]:
    value = node.get("class")
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return list(value)


def has_class(node: Tag, name: str) -> bool:
    return name in class_list(node)


def add_class(node: Tag, *names: str) -> None:
    classes = class_list(node)
    for name in names:
        if name and name not in classes:
            classes.append(name)
    node["class"] = classes


def hide(node: Tag) -> None:
    style = str(node.get("style") or "").strip()
    if re.search(r"(?:^|;)\s*display\s*:\s*none\b", style, re.IGNORECASE):
        return
    if style and not style.endswith(";"):
        style += ";"
    node["style"] = f"{style} display: none;".strip()


def find_panels(root: Tag, selectors: HostSelectors) -> list[Tag]:
    return list(root.select(selectors.panel))


def find_file_name(panel: Tag, selectors: HostSelectors) -> str | None:
    """Displayed file name for a panel, falling back to page-level headers."""
    element = panel.select_one(selectors.file_name)
    if element is None:
        document = owner_document(panel)
        for selector in selectors.file_name_fallbacks:
            element = document.select_one(selector)
            if element is not None:
                break
    if element is None:
        return None
    text = element.get_text().strip()
    return text or None


def owning_panel(node: Tag, selectors: HostSelectors) -> Tag | None:
    for parent in node.parents:
        if isinstance(parent, BeautifulSoup):
            return None
        if parent.css.match(selectors.panel):
            return parent
    return None


def find_lines(panel: Tag, selectors: HostSelectors) -> list[Tag]:
    """Line containers whose innermost enclosing panel is ``panel``."""
    return [line for line in panel.select(selectors.line) if owning_panel(line, selectors) is panel]


def matches_or_contains(node: Tag, selectors: tuple[str, ...]) -> bool:
    for selector in selectors:
        if node.css.match(selector) or node.select_one(selector) is not None:
            return True
    return False


def sample_foreground(root: Tag, selectors: HostSelectors) -> tuple[int, int, int] | None:
    """First inline `color` found on an element matching the theme sample selector."""
    for element in root.select(selectors.theme_sample):
        match = _STYLE_COLOR_RE.search(str(element.get("style") or ""))
        if match:
            rgb = parse_css_color(match.group("value"))
            if rgb is not None:
                return rgb
    return None
