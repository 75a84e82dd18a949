"""Supported language tags, display labels, and extension inference."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

LANGUAGES: Dict[str, str] = {
    "javascript": "JavaScript",
    "typescript": "TypeScript",
    "python": "Python",
    "java": "Java",
    "cpp": "C++",
    "rust": "Rust",
    "go": "Go",
    "csharp": "C#",
    "ruby": "Ruby",
    "php": "PHP",
    "swift": "Swift",
    "kotlin": "Kotlin",
    "shell": "Shell",
    "sql": "SQL",
    "assembly": "Assembly",
    "dart": "Dart",
    "r": "R",
    "scala": "Scala",
    "lua": "Lua",
    "haskell": "Haskell",
    "zig": "Zig",
    "elixir": "Elixir",
}

DEFAULT_LANGUAGE = "javascript"

ALIASES: Dict[str, str] = {
    "js": "javascript",
    "node": "javascript",
    "ts": "typescript",
    "py": "python",
    "python3": "python",
    "golang": "go",
    "c++": "cpp",
    "cxx": "cpp",
    "c#": "csharp",
    "cs": "csharp",
    "rb": "ruby",
    "kt": "kotlin",
    "sh": "shell",
    "bash": "shell",
    "zsh": "shell",
    "asm": "assembly",
    "rs": "rust",
    "hs": "haskell",
    "ex": "elixir",
}

EXTENSIONS: Dict[str, str] = {
    ".js": "javascript", ".mjs": "javascript", ".cjs": "javascript", ".jsx": "javascript",
    ".ts": "typescript", ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".cpp": "cpp", ".cc": "cpp", ".cxx": "cpp", ".hpp": "cpp", ".h": "cpp", ".c": "cpp",
    ".rs": "rust",
    ".go": "go",
    ".cs": "csharp",
    ".rb": "ruby",
    ".php": "php",
    ".swift": "swift",
    ".kt": "kotlin", ".kts": "kotlin",
    ".sh": "shell", ".bash": "shell", ".zsh": "shell",
    ".sql": "sql",
    ".asm": "assembly", ".s": "assembly",
    ".dart": "dart",
    ".r": "r",
    ".scala": "scala",
    ".lua": "lua",
    ".hs": "haskell",
    ".zig": "zig",
    ".ex": "elixir", ".exs": "elixir",
}


def normalize_language(tag: Optional[str]) -> Optional[str]:
    """Return the canonical tag for ``tag``, or None if unsupported."""
    if not tag:
        return None
    key = tag.strip().lower()
    key = ALIASES.get(key, key)
    return key if key in LANGUAGES else None


def language_for_path(path: Path) -> Optional[str]:
    return EXTENSIONS.get(path.suffix.lower())


def label_for(tag: str) -> str:
    return LANGUAGES.get(tag, tag)
