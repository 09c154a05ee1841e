from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from .config import default_config, load_config
from .host import find_panels, load_html, save_html
from .reconciler import create_reconciler
from .render import pass_summary, render_panels, render_pass_summary
from .theme import palette_css


def parse_highlight_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Overlay syntax highlighting onto a saved Azure DevOps diff page.")
    parser.add_argument("--input", required=True, help="Saved host page (.html).")
    parser.add_argument("--output", help="Output path. Default: <input stem>.highlighted.html next to the input.")
    parser.add_argument("--config", help="Optional TOML config (selectors, markers, language rules).")
    parser.add_argument("--json", dest="as_json", action="store_true", help="Print the pass result as JSON.")
    parser.add_argument("--verbose", action="store_true", help="Log per-panel diagnostics.")
    return parser.parse_args(argv)


def configure_logging(verbose: bool, console: Console | None = None) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console or Console(stderr=True), show_path=False)],
        force=True,
    )


def default_output_path(input_path: Path) -> Path:
    return input_path.with_name(f"{input_path.stem}.highlighted{input_path.suffix or '.html'}")


def run_highlight(argv: list[str]) -> int:
    args = parse_highlight_args(argv)
    configure_logging(args.verbose)
    input_path = Path(args.input).resolve()
    output_path = Path(args.output).resolve() if args.output else default_output_path(input_path)
    if output_path == input_path:
        print("[error] Output must differ from input.", file=sys.stderr)
        return 1

    try:
        config = load_config(Path(args.config)) if args.config else default_config()
        soup = load_html(input_path)
        panels = find_panels(soup, config.selectors)
    except Exception as error:  # noqa: BLE001
        print(f"[error] {error}", file=sys.stderr)
        return 1

    if not panels:
        print("[error] No file diff panels found in page.", file=sys.stderr)
        return 2

    reconciler = create_reconciler(soup, config)
    try:
        result = asyncio.run(reconciler.reconcile_document(soup))
        save_html(soup, output_path)
    except Exception as error:  # noqa: BLE001
        print(f"[error] {error}", file=sys.stderr)
        return 1

    theme = reconciler.theme.resolve() if reconciler.theme.resolved else None
    if args.as_json:
        payload = pass_summary(result, theme) | {"output": str(output_path)}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    console = Console()
    render_pass_summary(console, result, theme, str(output_path))
    render_panels(console, result)
    return 0


def parse_css_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Write the light/dark palette stylesheet for highlighted lines.")
    parser.add_argument("--output", help="Output .css path. Default: print to stdout.")
    parser.add_argument("--config", help="Optional TOML config (marker class names).")
    return parser.parse_args(argv)


def run_export_css(argv: list[str]) -> int:
    args = parse_css_args(argv)
    try:
        config = load_config(Path(args.config)) if args.config else default_config()
    except RuntimeError as error:
        print(f"[error] {error}", file=sys.stderr)
        return 1
    css = palette_css(code_class=config.markers.code, superseded_class=config.markers.superseded)
    if not args.output:
        sys.stdout.write(css)
        return 0
    Path(args.output).write_text(css, encoding="utf-8")
    print(f"Wrote: {Path(args.output).resolve()}")
    return 0


def main() -> int:
    return run_highlight(sys.argv[1:])


def main_css() -> int:
    return run_export_css(sys.argv[1:])
