"""Live-preview bundle: HTML/CSS/JS code blocks pulled from an answer."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

# First fenced block per language; the fence may carry trailing attributes.
_HTML_RE = re.compile(r"```html[^\n]*\n(.*?)\n```", re.IGNORECASE | re.DOTALL)
_CSS_RE = re.compile(r"```css[^\n]*\n(.*?)\n```", re.IGNORECASE | re.DOTALL)
_JS_RE = re.compile(r"```(?:javascript|js)[^\n]*\n(.*?)\n```", re.IGNORECASE | re.DOTALL)

_PAGE_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Preview</title>
<link rel="stylesheet" href="style.css">
</head>
<body>
{body}
<script src="script.js"></script>
</body>
</html>
"""


@dataclass(frozen=True)
class CodeBundle:
    html: str = ""
    css: str = ""
    js: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.html or self.css or self.js)


def extract_code_blocks(text: str) -> CodeBundle:
    """Return the first html, css and js/javascript fenced blocks in *text*."""

    def _first(pattern: re.Pattern[str]) -> str:
        match = pattern.search(text)
        return match.group(1).strip() if match else ""

    return CodeBundle(html=_first(_HTML_RE), css=_first(_CSS_RE), js=_first(_JS_RE))


def write_preview(bundle: CodeBundle, directory: Path) -> list[Path]:
    """Write ``index.html``, ``style.css`` and ``script.js`` into *directory*.

    A bare HTML fragment is wrapped in a page that links the stylesheet and
    script; a full document (``<html`` present) is written unchanged.

    Returns:
        The files written.

    Raises:
        ValueError: If *bundle* has no code.
    """
    if bundle.is_empty:
        raise ValueError("No HTML, CSS or JavaScript code blocks found.")

    directory.mkdir(parents=True, exist_ok=True)
    html = bundle.html
    if "<html" not in html.lower():
        html = _PAGE_TEMPLATE.format(body=html)

    written: list[Path] = []
    for name, content in (
        ("index.html", html),
        ("style.css", bundle.css),
        ("script.js", bundle.js),
    ):
        path = directory / name
        if content and not content.endswith("\n"):
            content += "\n"
        path.write_text(content, encoding="utf-8")
        written.append(path)
    return written
