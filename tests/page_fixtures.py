from __future__ import annotations

import asyncio
import html

from adosyntax.host import parse_html
from adosyntax.reconciler import Reconciler
from adosyntax.theme import ThemeSelector


def panel_html(file_name: str | None, lines: list[str]) -> str:
    header = ""
    if file_name is not None:
        header = (
            "<div class='repos-change-summary-file-icon-container'></div>"
            f"<div class='flex-column'><span class='text-ellipsis'>{html.escape(file_name)}</span></div>"
        )
    rows = "".join(
        f"<div class='repos-line-content line-{index}' data-line='{index}'>{inner}</div>"
        for index, inner in enumerate(lines)
    )
    return (
        "<div class='bolt-card'>"
        f"{header}"
        "<div class='repos-summary-code-diff'><div class='repos-summary-diff-blocks'>"
        f"{rows}"
        "</div></div></div>"
    )


def make_page(*panels: str, color: str = "rgb(255, 255, 255)"):
    return parse_html(f"<html><body style='color: {color}'>{''.join(panels)}</body></html>")


class FakeTokenizer:
    def __init__(self, supported=("python", "csharp"), fragment_count=None):
        self.supported = set(supported)
        self.fragment_count = fragment_count
        self.calls: list[tuple[str, str]] = []

    def supports(self, language_id):
        return language_id in self.supported

    def highlight(self, language_id, text):
        self.calls.append((language_id, text))
        future = asyncio.get_running_loop().create_future()
        lines = text.split("\n")
        fragments = [f"<i class='tok' data-i='{i}'>{html.escape(line)}</i>" if line else "" for i, line in enumerate(lines)]
        if self.fragment_count is not None:
            fragments = fragments[: self.fragment_count]
        future.set_result(fragments)
        return future


class ManualTokenizer:
    def __init__(self):
        self.future = None

    def supports(self, language_id):
        return True

    def highlight(self, language_id, text):
        self.future = asyncio.get_running_loop().create_future()
        return self.future


def make_reconciler(tokenizer, color=(255, 255, 255)):
    return Reconciler(tokenizer, ThemeSelector(lambda: color))

