from __future__ import annotations

import asyncio
import logging
import re
import weakref
from dataclasses import dataclass, field
from typing import Iterator

from bs4 import Tag

from .config import HighlighterConfig, default_config
from .extractor import ExtractedLine, extract_line
from .host import (
    add_class,
    find_file_name,
    find_lines,
    find_panels,
    has_class,
    hide,
    owner_document,
    parse_html,
    sample_foreground,
)
from .languages import build_rules, resolve_language
from .theme import ThemeSelector, parse_css_color
from .tokenizer import PygmentsTokenizer, Tokenizer, TokenizerAlignmentError, tokenize_lines

logger = logging.getLogger(__name__)

STATUS_HIGHLIGHTED = "highlighted"
STATUS_ALREADY_PROCESSED = "already-processed"
STATUS_NO_FILENAME = "no-filename"
STATUS_NO_LANGUAGE = "no-language"
STATUS_UNSUPPORTED = "unsupported-language"
STATUS_NO_LINES = "no-lines"
STATUS_NO_CODE = "no-code"
STATUS_ERROR = "error"


class ProcessedRegistry:
    """Identity-keyed set of nodes the reconciler has written or superseded.

    Entries are weak; nodes of a page the host has torn down drop out.
    """

    def __init__(self) -> None:
        self._nodes: weakref.WeakValueDictionary[int, Tag] = weakref.WeakValueDictionary()

    def add(self, node: Tag) -> None:
        self._nodes[id(node)] = node

    def __contains__(self, node: object) -> bool:
        return self._nodes.get(id(node)) is node

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Tag]:
        return iter(list(self._nodes.values()))


@dataclass
class PanelResult:
    file_name: str | None
    language: str | None
    status: str
    lines: int = 0
    highlighted: int = 0
    blank: int = 0
    detail: str = ""


@dataclass
class PassResult:
    panels: list[PanelResult] = field(default_factory=list)

    @property
    def highlighted_lines(self) -> int:
        return sum(panel.highlighted for panel in self.panels)

    def count(self, status: str) -> int:
        return sum(1 for panel in self.panels if panel.status == status)


class Reconciler:
    def __init__(
        self,
        tokenizer: Tokenizer,
        theme: ThemeSelector,
        config: HighlighterConfig | None = None,
    ):
        self.tokenizer = tokenizer
        self.theme = theme
        self.config = config or default_config()
        self.registry = ProcessedRegistry()
        self._rules = build_rules(self.config.languages)
        self._in_flight: set[int] = set()  # ids of lines awaiting the tokenizer

    def is_processed(self, line: Tag) -> bool:
        markers = self.config.markers
        return line in self.registry or has_class(line, markers.processed) or has_class(line, markers.superseded)

    def panel_processed(self, lines: list[Tag]) -> bool:
        return any(self.is_processed(line) for line in lines)

    async def reconcile_panel(self, panel: Tag) -> PanelResult:
        selectors = self.config.selectors
        file_name = find_file_name(panel, selectors)
        if file_name is None:
            logger.debug("No file name element in panel; skipping")
            return PanelResult(None, None, STATUS_NO_FILENAME)

        language = resolve_language(file_name, self._rules)
        if language is None:
            logger.debug("No language mapping for: %s", file_name)
            return PanelResult(file_name, None, STATUS_NO_LANGUAGE)
        if not self.tokenizer.supports(language):
            logger.debug("No grammar for %s (%s); leaving panel as rendered", file_name, language)
            return PanelResult(file_name, language, STATUS_UNSUPPORTED)

        lines = find_lines(panel, selectors)
        if not lines:
            return PanelResult(file_name, language, STATUS_NO_LINES)
        if self.panel_processed(lines) or any(id(line) in self._in_flight for line in lines):
            return PanelResult(file_name, language, STATUS_ALREADY_PROCESSED, lines=len(lines))

        accessibility = self.config.markers.accessibility
        extracted = [extract_line(line, accessibility) for line in lines]
        if not any(item.code_text.strip() for item in extracted):
            return PanelResult(file_name, language, STATUS_NO_CODE, lines=len(lines), blank=len(lines))

        line_ids = {id(line) for line in lines}
        self._in_flight.update(line_ids)
        try:
            try:
                fragments = await tokenize_lines(self.tokenizer, language, [item.code_text for item in extracted])
            except TokenizerAlignmentError as error:
                logger.info("Skipping %s: %s", file_name, error)
                return PanelResult(file_name, language, STATUS_ERROR, lines=len(lines), detail=str(error))

            if self.panel_processed(lines):
                return PanelResult(file_name, language, STATUS_ALREADY_PROCESSED, lines=len(lines))

            logger.info("Highlighting %s as %s", file_name, language)
            theme = self.theme.resolve()
            result = PanelResult(file_name, language, STATUS_HIGHLIGHTED, lines=len(lines))
            for line, item, fragment in zip(lines, extracted, fragments):
                if not item.code_text.strip():
                    result.blank += 1
                    continue
                if line.parent is None:
                    # Torn down by the host while the tokenizer was running.
                    continue
                self._replace_line(line, item, fragment, language, theme)
                result.highlighted += 1
            return result
        finally:
            self._in_flight.difference_update(line_ids)

    def _replace_line(self, line: Tag, item: ExtractedLine, fragment: str, language: str, theme: str) -> Tag:
        markers = self.config.markers
        document = owner_document(line)
        attrs = {key: list(value) if isinstance(value, list) else value for key, value in line.attrs.items()}
        new_line = document.new_tag(line.name, attrs=attrs)
        for node in item.preserved:
            new_line.append(node)

        wrapper = document.new_tag("span", attrs={"class": [markers.code]})
        for child in list(parse_html(fragment).contents):
            wrapper.append(child.extract())
        new_line.append(wrapper)

        add_class(new_line, markers.processed, theme, f"language-{_class_token(language)}")
        add_class(line, markers.superseded)
        hide(line)
        line.insert_after(new_line)
        self.registry.add(line)
        self.registry.add(new_line)
        return new_line

    async def _reconcile_guarded(self, panel: Tag) -> PanelResult:
        try:
            return await self.reconcile_panel(panel)
        except Exception as error:  # noqa: BLE001
            logger.warning("Panel reconciliation failed: %s", error, exc_info=True)
            return PanelResult(None, None, STATUS_ERROR, detail=str(error))

    async def reconcile_document(self, root: Tag) -> PassResult:
        panels = find_panels(root, self.config.selectors)
        results = await asyncio.gather(*(self._reconcile_guarded(panel) for panel in panels))
        result = PassResult(panels=list(results))
        logger.debug(
            "Pass finished: %d panels, %d lines highlighted",
            len(result.panels),
            result.highlighted_lines,
        )
        return result


def _class_token(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9_-]+", "-", value).strip("-") or "plain"


def create_reconciler(
    root: Tag,
    config: HighlighterConfig | None = None,
    tokenizer: Tokenizer | None = None,
) -> Reconciler:
    """Reconciler for one host page session, sampling the theme from ``root`` on first use."""
    config = config or default_config()
    fallback = parse_css_color(config.theme_color) or (0, 0, 0)
    theme = ThemeSelector(lambda: sample_foreground(root, config.selectors), fallback=fallback)
    return Reconciler(tokenizer or PygmentsTokenizer(), theme, config)
