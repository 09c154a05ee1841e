import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from adosyntax.config import DEFAULT_TRIGGERS, default_config, load_config, parse_config


class TestConfig(unittest.TestCase):
    def test_defaults(self):
        config = default_config()
        self.assertEqual(config.debounce_seconds, 0.5)
        self.assertIn(".bolt-card", config.selectors.panel)
        self.assertIn(".vc-diff-viewer", config.selectors.panel)
        self.assertEqual(config.selectors.triggers, DEFAULT_TRIGGERS)
        self.assertEqual(config.markers.accessibility, "screen-reader-only")
        self.assertEqual(config.languages, ())

    def test_load_config_from_toml(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "adosyntax.toml"
            path.write_text(
                "\n".join(
                    [
                        "debounce_seconds = 0.25",
                        'theme_color = "#ffffff"',
                        "[selectors]",
                        'panel = ".file-card"',
                        'triggers = [".file-card"]',
                        "[markers]",
                        'processed = "hl-done"',
                        "[[languages]]",
                        'pattern = "*.tf"',
                        'language = "hcl"',
                    ]
                ),
                encoding="utf-8",
            )
            config = load_config(path)
        self.assertEqual(config.debounce_seconds, 0.25)
        self.assertEqual(config.theme_color, "#ffffff")
        self.assertEqual(config.selectors.panel, ".file-card")
        self.assertEqual(config.selectors.triggers, (".file-card",))
        self.assertEqual(config.selectors.line, default_config().selectors.line)
        self.assertEqual(config.markers.processed, "hl-done")
        self.assertEqual(config.markers.superseded, "ado-syntax-superseded")
        self.assertEqual(config.languages, (("*.tf", "hcl"),))

    def test_invalid_values(self):
        with self.assertRaises(RuntimeError):
            parse_config({"debounce_seconds": -1})
        with self.assertRaises(RuntimeError):
            parse_config({"debounce_seconds": True})
        with self.assertRaises(RuntimeError):
            parse_config({"theme_color": "chartreuse"})
        with self.assertRaises(RuntimeError):
            parse_config({"selectors": {"panel": ""}})
        with self.assertRaises(RuntimeError):
            parse_config({"markers": {"code": "two words"}})
        with self.assertRaises(RuntimeError):
            parse_config({"languages": [{"pattern": "*.tf"}]})

    def test_malformed_selectors_name_the_key(self):
        cases = [
            ({"panel": "div[["}, "selectors.panel"),
            ({"line": ".repos-line-content >"}, "selectors.line"),
            ({"file_name_fallbacks": [".ok", "span:nth-child("]}, "selectors.file_name_fallbacks[1]"),
            ({"triggers": ["div[["]}, "selectors.triggers[0]"),
        ]
        for selectors, key in cases:
            with self.subTest(key=key):
                with self.assertRaises(RuntimeError) as raised:
                    parse_config({"selectors": selectors})
                self.assertIn(key, str(raised.exception))

    def test_missing_and_malformed_files(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(RuntimeError):
                load_config(Path(tmp) / "missing.toml")
            bad = Path(tmp) / "bad.toml"
            bad.write_text("debounce_seconds = ", encoding="utf-8")
            with self.assertRaises(RuntimeError):
                load_config(bad)


if __name__ == "__main__":
    unittest.main()
