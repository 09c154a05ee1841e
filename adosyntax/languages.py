from __future__ import annotations

import re
from typing import Iterable

# Ordered (glob, language id) pairs. First match wins.
DEFAULT_RULES: tuple[tuple[str, str], ...] = (
    ("Directory.Build.props", "markup"),
    ("Directory.Build.targets", "markup"),
    ("Directory.Packages.props", "markup"),
    ("*.feature", "gherkin"),
    ("*.js", "javascript"),
    ("*.jsx", "jsx"),
    ("*.ts", "typescript"),
    ("*.tsx", "tsx"),
    ("*.py", "python"),
    ("*.java", "java"),
    ("*.cs", "csharp"),
    ("*.c", "clike"),
    ("*.cpp", "clike"),
    ("*.h", "clike"),
    ("*.html", "markup"),
    ("*.xml", "markup"),
    ("*.svg", "markup"),
    ("*.csproj", "markup"),
    ("*.css", "css"),
    ("*.scss", "scss"),
    ("*.less", "less"),
    ("*.json", "json"),
    ("*.yaml", "yaml"),
    ("*.yml", "yaml"),
    ("*.md", "markdown"),
    ("*.sh", "bash"),
    ("*.ps1", "powershell"),
    ("*.sql", "sql"),
    ("*.sln", "solution"),
)


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    parts = [re.escape(part) for part in pattern.split("*")]
    return re.compile("^" + ".*".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def compile_rules(pairs: Iterable[tuple[str, str]]) -> tuple[tuple[re.Pattern[str], str], ...]:
    compiled: list[tuple[re.Pattern[str], str]] = []
    for pattern, language_id in pairs:
        pattern = str(pattern or "").strip()
        language_id = str(language_id or "").strip().lower()
        if not pattern:
            raise RuntimeError("Language rule pattern must not be empty.")
        if not language_id:
            raise RuntimeError(f"Language rule for {pattern!r} has no language id.")
        compiled.append((glob_to_regex(pattern), language_id))
    return tuple(compiled)


_DEFAULT_COMPILED = compile_rules(DEFAULT_RULES)


def base_name(file_name: str) -> str:
    return re.split(r"[\\/]", file_name.strip())[-1]


def extension_of(file_name: str) -> str | None:
    index = file_name.rfind(".")
    if index < 0 or index == len(file_name) - 1:
        return None
    return file_name[index + 1 :].lower()


def resolve_language(
    file_name: str | None,
    rules: tuple[tuple[re.Pattern[str], str], ...] | None = None,
) -> str | None:
    """Map a displayed file name to a language id, or None to leave the panel alone.

    Rules are tried in order against the whole base name; the lowercased
    extension is the fallback id when nothing matches.
    """
    if not file_name or not file_name.strip():
        return None
    name = base_name(file_name)
    if not name:
        return None
    for regex, language_id in rules if rules is not None else _DEFAULT_COMPILED:
        if regex.match(name):
            return language_id
    return extension_of(name)


def build_rules(extra: Iterable[tuple[str, str]] = ()) -> tuple[tuple[re.Pattern[str], str], ...]:
    """User rules first, then the defaults."""
    return compile_rules(extra) + _DEFAULT_COMPILED
