from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import soupsieve

from .theme import parse_css_color

DEFAULT_TRIGGERS: tuple[str, ...] = (
    ".repos-summary-code-diff",
    ".vc-diff-viewer",
    ".diff-frame",
    ".repos-diff-contents-row",
    ".bolt-card",
    ".repos-pr-iteration-file-header",
)


@dataclass(frozen=True)
class HostSelectors:
    # Summary cards on the files overview, plus the main diff viewer for a selected file.
    panel: str = ".bolt-card, .vc-diff-viewer, .diff-frame, .page-content .repos-changes-viewer > .flex-row"
    file_name: str = ".repos-change-summary-file-icon-container + .flex-column .text-ellipsis"
    file_name_fallbacks: tuple[str, ...] = (
        ".vc-sparse-files-tree-selected-item .file-path-text",
        ".repos-pr-iteration-file-header .bolt-header-title .text-ellipsis",
    )
    line: str = ".repos-line-content"
    theme_sample: str = "body"
    triggers: tuple[str, ...] = DEFAULT_TRIGGERS


@dataclass(frozen=True)
class MarkerClasses:
    processed: str = "ado-syntax-highlighted"
    superseded: str = "ado-syntax-superseded"
    code: str = "ado-syntax-code"
    accessibility: str = "screen-reader-only"


@dataclass(frozen=True)
class HighlighterConfig:
    debounce_seconds: float = 0.5
    theme_color: str = "rgb(0, 0, 0)"
    selectors: HostSelectors = field(default_factory=HostSelectors)
    markers: MarkerClasses = field(default_factory=MarkerClasses)
    languages: tuple[tuple[str, str], ...] = ()


def default_config() -> HighlighterConfig:
    return HighlighterConfig()


def _str_tuple(value: Any, key: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise RuntimeError(f"config key `{key}` must be a string or an array of strings")
    return tuple(value)


def _check_selector(value: str, key: str) -> str:
    try:
        soupsieve.compile(value)
    except soupsieve.SelectorSyntaxError as error:
        raise RuntimeError(f"config key `{key}` is not a valid CSS selector: {value!r} ({error})") from error
    return value


def _selectors_from(data: Any) -> HostSelectors:
    if data is None:
        return HostSelectors()
    if not isinstance(data, dict):
        raise RuntimeError("config key `selectors` must be a table")
    defaults = HostSelectors()
    values: dict[str, Any] = {}
    for key in ("panel", "file_name", "line", "theme_sample"):
        if key in data:
            if not isinstance(data[key], str) or not data[key].strip():
                raise RuntimeError(f"config key `selectors.{key}` must be a non-empty string")
            values[key] = _check_selector(data[key].strip(), f"selectors.{key}")
    if "file_name_fallbacks" in data:
        fallbacks = _str_tuple(data["file_name_fallbacks"], "selectors.file_name_fallbacks")
        values["file_name_fallbacks"] = tuple(
            _check_selector(value, f"selectors.file_name_fallbacks[{index}]") for index, value in enumerate(fallbacks)
        )
    if "triggers" in data:
        triggers = _str_tuple(data["triggers"], "selectors.triggers")
        values["triggers"] = tuple(
            _check_selector(value, f"selectors.triggers[{index}]") for index, value in enumerate(triggers)
        )
    return HostSelectors(**{**defaults.__dict__, **values})


def _markers_from(data: Any) -> MarkerClasses:
    if data is None:
        return MarkerClasses()
    if not isinstance(data, dict):
        raise RuntimeError("config key `markers` must be a table")
    values = {}
    for key in ("processed", "superseded", "code", "accessibility"):
        if key in data:
            value = str(data[key] or "").strip()
            if not value or " " in value:
                raise RuntimeError(f"config key `markers.{key}` must be a single class name")
            values[key] = value
    return MarkerClasses(**values)


def _languages_from(data: Any) -> tuple[tuple[str, str], ...]:
    if data is None:
        return ()
    if not isinstance(data, list):
        raise RuntimeError("config key `languages` must be an array of tables")
    rules: list[tuple[str, str]] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise RuntimeError(f"config `languages[{index}]` must be a table")
        pattern = str(item.get("pattern") or "").strip()
        language = str(item.get("language") or "").strip()
        if not pattern or not language:
            raise RuntimeError(f"config `languages[{index}]` needs both `pattern` and `language`")
        rules.append((pattern, language))
    return tuple(rules)


def parse_config(data: dict[str, Any]) -> HighlighterConfig:
    debounce = data.get("debounce_seconds", 0.5)
    if isinstance(debounce, bool) or not isinstance(debounce, (int, float)) or debounce < 0:
        raise RuntimeError("config key `debounce_seconds` must be a non-negative number")
    theme_color = str(data.get("theme_color") or "rgb(0, 0, 0)").strip()
    if parse_css_color(theme_color) is None:
        raise RuntimeError(f"config key `theme_color` is not a CSS color: {theme_color}")
    return HighlighterConfig(
        debounce_seconds=float(debounce),
        theme_color=theme_color,
        selectors=_selectors_from(data.get("selectors")),
        markers=_markers_from(data.get("markers")),
        languages=_languages_from(data.get("languages")),
    )


def load_config(path: Path) -> HighlighterConfig:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as error:
        raise RuntimeError(f"Config not found: {path}") from error
    except tomllib.TOMLDecodeError as error:
        raise RuntimeError(f"Invalid TOML in {path}: {error}") from error
    return parse_config(data)
