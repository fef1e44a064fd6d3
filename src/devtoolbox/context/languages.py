"""Extension → language lookup and top-level declaration patterns."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

_EXTENSION_LANGUAGES: dict[str, str] = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "java": "java",
    "cpp": "cpp",
    "c": "c",
    "go": "go",
    "rs": "rust",
    "php": "php",
    "rb": "ruby",
    "sh": "bash",
}

# Matched against the stripped line. Languages without an entry never split
# on declarations, only on size.
_BOUNDARY_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "javascript": (
        re.compile(r"^(function|class|const|let|var)\s"),
        re.compile(r"^export\s"),
        re.compile(r"^import\s"),
    ),
    "typescript": (
        re.compile(r"^(function|class|interface|type|const|let|var)\s"),
        re.compile(r"^export\s"),
        re.compile(r"^import\s"),
    ),
    "python": (
        re.compile(r"^(def|class)\s"),
        re.compile(r"^import\s"),
        re.compile(r"^from\s"),
    ),
    "java": (
        re.compile(r"^(public|private|protected)?\s*(class|interface|enum)\s"),
        re.compile(r"^import\s"),
    ),
}

CODE_EXTENSIONS: frozenset[str] = frozenset(_EXTENSION_LANGUAGES)


def detect_language(locator: str) -> str:
    """Return the language for *locator*'s extension, or ``'text'``."""
    name = PurePosixPath(locator.split("?", 1)[0]).name
    if "." not in name:
        return "text"
    ext = name.rsplit(".", 1)[1].lower()
    return _EXTENSION_LANGUAGES.get(ext, "text")


def is_code_boundary(line: str, language: str) -> bool:
    """True if *line* opens a top-level declaration in *language*."""
    patterns = _BOUNDARY_PATTERNS.get(language, ())
    stripped = line.strip()
    return any(p.search(stripped) for p in patterns)
