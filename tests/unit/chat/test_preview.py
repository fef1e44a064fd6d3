"""Tests for the HTML/CSS/JS preview bundle."""

from __future__ import annotations

from pathlib import Path

import pytest

from devtoolbox.chat.preview import CodeBundle, extract_code_blocks, write_preview

_ANSWER = """Here you go:

```html
<h1>Hello</h1>
```

```css
h1 { color: teal; }
```

```javascript
console.log("hi");
```
"""


def test_extract_all_three_blocks():
    bundle = extract_code_blocks(_ANSWER)

    assert bundle.html == "<h1>Hello</h1>"
    assert bundle.css == "h1 { color: teal; }"
    assert bundle.js == 'console.log("hi");'


def test_extract_js_alias_and_case():
    bundle = extract_code_blocks("```JS\nlet a = 1;\n```")

    assert bundle.js == "let a = 1;"
    assert bundle.html == ""


def test_extract_first_block_wins():
    bundle = extract_code_blocks("```css\na{}\n```\n```css\nb{}\n```")

    assert bundle.css == "a{}"


def test_no_blocks_is_empty():
    assert extract_code_blocks("no code here").is_empty


def test_write_preview_wraps_fragment(tmp_path: Path):
    written = write_preview(extract_code_blocks(_ANSWER), tmp_path / "out")

    assert [p.name for p in written] == ["index.html", "style.css", "script.js"]
    html = (tmp_path / "out" / "index.html").read_text(encoding="utf-8")
    assert '<link rel="stylesheet" href="style.css">' in html
    assert '<script src="script.js"></script>' in html
    assert "<h1>Hello</h1>" in html
    assert (tmp_path / "out" / "style.css").read_text(encoding="utf-8") == "h1 { color: teal; }\n"


def test_write_preview_keeps_full_document(tmp_path: Path):
    doc = "<!DOCTYPE html>\n<html><body>x</body></html>"
    write_preview(CodeBundle(html=doc), tmp_path)

    assert (tmp_path / "index.html").read_text(encoding="utf-8") == doc + "\n"
    assert (tmp_path / "script.js").read_text(encoding="utf-8") == ""


def test_write_preview_empty_bundle_raises(tmp_path: Path):
    with pytest.raises(ValueError, match="No HTML"):
        write_preview(CodeBundle(), tmp_path)
