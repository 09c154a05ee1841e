from __future__ import annotations

import copy
from dataclasses import dataclass, field

from bs4 import NavigableString, Tag

from .host import class_list

ACCESSIBILITY_CLASS = "screen-reader-only"


@dataclass
class ExtractedLine:
    code_text: str
    preserved: list[Tag] = field(default_factory=list)


def is_preserved_node(node: object, accessibility_class: str = ACCESSIBILITY_CLASS) -> bool:
    if not isinstance(node, Tag):
        return False
    if accessibility_class in class_list(node):
        return True
    return str(node.get("aria-hidden", "")).strip().lower() == "true"


def extract_line(line: Tag, accessibility_class: str = ACCESSIBILITY_CLASS) -> ExtractedLine:
    """Split a line container into code text and copies of its marker children.

    Only immediate children are classified; anything else contributes its
    whole text. The line itself is not modified.
    """
    parts: list[str] = []
    preserved: list[Tag] = []
    for child in line.children:
        if is_preserved_node(child, accessibility_class):
            preserved.append(copy.copy(child))
        elif isinstance(child, Tag):
            parts.append(child.get_text())
        elif type(child) is NavigableString:
            parts.append(str(child))
    return ExtractedLine(code_text="".join(parts), preserved=preserved)
