import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from adosyntax.host import parse_html
from scripts.export_palette_css import main as export_css_main
from scripts.highlight_page import main as highlight_main
from tests.page_fixtures import panel_html


def page_text() -> str:
    return (
        "<html><body style='color: rgb(32, 31, 30)'>"
        + panel_html("Program.cs", ["<span class='screen-reader-only'>Added</span>var x = 1;", ""])
        + panel_html("notes.xyz123", ["plain"])
        + "</body></html>"
    )


class TestHighlightPageScript(unittest.TestCase):
    def test_highlight_writes_output_and_json(self):
        with tempfile.TemporaryDirectory() as tmp:
            input_path = Path(tmp) / "pr.html"
            input_path.write_text(page_text(), encoding="utf-8")
            stdout = io.StringIO()
            with redirect_stdout(stdout), redirect_stderr(io.StringIO()):
                exit_code = highlight_main(["--input", str(input_path), "--json"])
            self.assertEqual(exit_code, 0)
            payload = json.loads(stdout.getvalue())
            output_path = Path(payload["output"])
            self.assertEqual(output_path.name, "pr.highlighted.html")
            soup = parse_html(output_path.read_text(encoding="utf-8"))
            self.assertEqual(input_path.read_text(encoding="utf-8"), page_text())

        self.assertEqual(payload["panelCount"], 2)
        self.assertEqual(payload["highlightedLines"], 1)
        self.assertEqual(payload["theme"], "ado-hl-theme-dark")
        self.assertEqual(payload["statusCounts"]["highlighted"], 1)
        self.assertEqual(payload["statusCounts"]["unsupported-language"], 1)
        new_line = soup.select_one(".ado-syntax-highlighted")
        self.assertEqual(new_line.select_one(".screen-reader-only").get_text(), "Added")
        self.assertEqual(new_line.select_one(".ado-syntax-code").get_text(), "var x = 1;")

    def test_missing_input(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            exit_code = highlight_main(["--input", "/nonexistent/page.html"])
        self.assertEqual(exit_code, 1)
        self.assertIn("[error]", stderr.getvalue())

    def test_page_without_panels(self):
        with tempfile.TemporaryDirectory() as tmp:
            input_path = Path(tmp) / "empty.html"
            input_path.write_text("<html><body><p>nothing</p></body></html>", encoding="utf-8")
            stderr = io.StringIO()
            with redirect_stderr(stderr):
                exit_code = highlight_main(["--input", str(input_path)])
        self.assertEqual(exit_code, 2)

    def test_malformed_panel_selector_in_config(self):
        with tempfile.TemporaryDirectory() as tmp:
            input_path = Path(tmp) / "pr.html"
            input_path.write_text(page_text(), encoding="utf-8")
            config_path = Path(tmp) / "adosyntax.toml"
            config_path.write_text('[selectors]\npanel = "div[["\n', encoding="utf-8")
            stderr = io.StringIO()
            with redirect_stderr(stderr):
                exit_code = highlight_main(["--input", str(input_path), "--config", str(config_path)])
            self.assertFalse((Path(tmp) / "pr.highlighted.html").exists())
        self.assertEqual(exit_code, 1)
        self.assertIn("[error]", stderr.getvalue())
        self.assertIn("selectors.panel", stderr.getvalue())

    def test_main_diff_viewer_is_highlighted(self):
        with tempfile.TemporaryDirectory() as tmp:
            input_path = Path(tmp) / "file.html"
            input_path.write_text(
                "<html><body>"
                "<div class='repos-pr-iteration-file-header'><div class='bolt-header-title'>"
                "<span class='text-ellipsis'>main.py</span></div></div>"
                "<div class='vc-diff-viewer'><div class='repos-line-content'>x = 1</div></div>"
                "</body></html>",
                encoding="utf-8",
            )
            stdout = io.StringIO()
            with redirect_stdout(stdout), redirect_stderr(io.StringIO()):
                exit_code = highlight_main(["--input", str(input_path), "--json"])
            payload = json.loads(stdout.getvalue())
        self.assertEqual(exit_code, 0)
        self.assertEqual(payload["panelCount"], 1)
        self.assertEqual(payload["highlightedLines"], 1)

    def test_output_must_differ_from_input(self):
        with tempfile.TemporaryDirectory() as tmp:
            input_path = Path(tmp) / "pr.html"
            input_path.write_text(page_text(), encoding="utf-8")
            with redirect_stderr(io.StringIO()):
                exit_code = highlight_main(["--input", str(input_path), "--output", str(input_path)])
        self.assertEqual(exit_code, 1)

    def test_export_palette_css(self):
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            exit_code = export_css_main([])
        self.assertEqual(exit_code, 0)
        self.assertIn(".ado-hl-theme-dark .ado-syntax-code", stdout.getvalue())
        self.assertIn(".ado-syntax-superseded", stdout.getvalue())


if __name__ == "__main__":
    unittest.main()
