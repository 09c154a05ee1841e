from __future__ import annotations

from dataclasses import asdict
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .reconciler import (
    STATUS_ALREADY_PROCESSED,
    STATUS_ERROR,
    STATUS_HIGHLIGHTED,
    STATUS_NO_FILENAME,
    STATUS_NO_CODE,
    STATUS_NO_LANGUAGE,
    STATUS_NO_LINES,
    STATUS_UNSUPPORTED,
    PassResult,
)


def status_style(status: str) -> str:
    if status == STATUS_HIGHLIGHTED:
        return "green"
    if status == STATUS_ALREADY_PROCESSED:
        return "cyan"
    if status == STATUS_ERROR:
        return "red"
    if status in {STATUS_NO_LANGUAGE, STATUS_UNSUPPORTED}:
        return "yellow"
    return "dim"


def pass_summary(result: PassResult, theme: str | None) -> dict[str, Any]:
    return {
        "theme": theme,
        "panelCount": len(result.panels),
        "highlightedLines": result.highlighted_lines,
        "statusCounts": {
            status: result.count(status)
            for status in (
                STATUS_HIGHLIGHTED,
                STATUS_ALREADY_PROCESSED,
                STATUS_NO_FILENAME,
                STATUS_NO_LANGUAGE,
                STATUS_UNSUPPORTED,
                STATUS_NO_LINES,
                STATUS_NO_CODE,
                STATUS_ERROR,
            )
        },
        "panels": [asdict(panel) for panel in result.panels],
    }


def render_pass_summary(console: Console, result: PassResult, theme: str | None, output: str | None) -> None:
    summary = pass_summary(result, theme)
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()
    table.add_row("Panels", str(summary["panelCount"]))
    table.add_row("Highlighted lines", str(summary["highlightedLines"]))
    table.add_row("Theme", theme or "-")
    for status, count in summary["statusCounts"].items():
        if count:
            table.add_row(status, str(count))
    table.add_row("Output", output or "-")
    console.print(Panel(table, title="ADO Syntax Highlight", border_style="blue"))


def render_panels(console: Console, result: PassResult) -> None:
    table = Table(title=f"Panels ({len(result.panels)})", header_style="bold magenta")
    table.add_column("status", no_wrap=True)
    table.add_column("file", overflow="ellipsis")
    table.add_column("language", no_wrap=True)
    table.add_column("lines", justify="right")
    table.add_column("highlighted", justify="right")
    table.add_column("blank", justify="right")
    for panel in result.panels:
        style = status_style(panel.status)
        table.add_row(
            f"[{style}]{panel.status}[/{style}]",
            panel.file_name or "-",
            panel.language or "-",
            str(panel.lines),
            str(panel.highlighted),
            str(panel.blank),
        )
    console.print(table)
