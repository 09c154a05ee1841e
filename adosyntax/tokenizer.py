"""Pygments-backed tokenizer with an asynchronous completion contract.

A panel's code lines are submitted as one payload so lexers that track
multi-line constructs (block comments, triple-quoted strings) see contiguous
context. The result is split back into one HTML fragment per input line.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

# Language ids that are not Pygments aliases themselves.
LEXER_ALIASES = {
    "markup": "xml",
    "clike": "c",
    "solution": "text",
}


class UnsupportedLanguageError(RuntimeError):
    pass


class TokenizerAlignmentError(RuntimeError):
    pass


class Tokenizer(Protocol):
    def supports(self, language_id: str) -> bool: ...

    def highlight(self, language_id: str, text: str) -> asyncio.Future[list[str]]: ...


class PygmentsTokenizer:
    def __init__(self, aliases: dict[str, str] | None = None):
        self._aliases = dict(LEXER_ALIASES if aliases is None else aliases)
        self._formatter = HtmlFormatter(nowrap=True)
        self._lexers: dict[str, Lexer | None] = {}

    def _lexer(self, language_id: str) -> Lexer | None:
        key = language_id.lower()
        if key not in self._lexers:
            name = self._aliases.get(key, key)
            try:
                self._lexers[key] = get_lexer_by_name(name, stripnl=False, stripall=False, ensurenl=True)
            except ClassNotFound:
                self._lexers[key] = None
        return self._lexers[key]

    def supports(self, language_id: str) -> bool:
        return bool(language_id) and self._lexer(language_id) is not None

    def highlight_now(self, language_id: str, text: str) -> list[str]:
        lexer = self._lexer(language_id)
        if lexer is None:
            raise UnsupportedLanguageError(f"No grammar registered for language: {language_id}")
        expected = len(text.split("\n"))
        rendered = pygments_highlight(text, lexer, self._formatter)
        fragments = rendered.split("\n")
        # ensurenl leaves one trailing empty entry after the final newline.
        if len(fragments) == expected + 1 and fragments[-1] == "":
            fragments.pop()
        return fragments

    def highlight(self, language_id: str, text: str) -> asyncio.Future[list[str]]:
        if not self.supports(language_id):
            raise UnsupportedLanguageError(f"No grammar registered for language: {language_id}")
        loop = asyncio.get_running_loop()
        future: asyncio.Future[list[str]] = loop.create_future()

        def complete() -> None:
            if future.cancelled():
                return
            try:
                future.set_result(self.highlight_now(language_id, text))
            except Exception as error:  # noqa: BLE001
                future.set_exception(error)

        loop.call_soon(complete)
        return future


async def tokenize_lines(tokenizer: Tokenizer, language_id: str, lines: list[str]) -> list[str]:
    if not tokenizer.supports(language_id):
        raise UnsupportedLanguageError(f"No grammar registered for language: {language_id}")
    fragments = await tokenizer.highlight(language_id, "\n".join(lines))
    if len(fragments) != len(lines):
        raise TokenizerAlignmentError(
            f"Tokenizer returned {len(fragments)} fragments for {len(lines)} lines ({language_id})"
        )
    logger.debug("Tokenized %d lines as %s", len(lines), language_id)
    return fragments
