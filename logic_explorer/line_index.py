"""Line-indexed view over raw source text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .models import LineRange


def split(source_text: str) -> List[str]:
    """Split source text into lines.

    Only ``\\n`` separates lines, so ``"\\n".join(split(text)) == text`` for
    any input. Empty text yields a single empty line.
    """
    return source_text.split("\n")


@dataclass(frozen=True)
class SourceBuffer:
    """Immutable 1-indexed line buffer, replaced wholesale when text changes."""
    text: str
    lines: Tuple[str, ...]

    @classmethod
    def from_text(cls, text: str) -> "SourceBuffer":
        return cls(text=text, lines=tuple(split(text)))

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def contains(self, line: int) -> bool:
        return 1 <= line <= len(self.lines)

    def line(self, line: int) -> str:
        if self.contains(line):
            return self.lines[line - 1]
        return ""

    def excerpt(self, line_range: LineRange) -> List[Tuple[int, str]]:
        """Numbered lines of ``line_range`` that exist in this buffer."""
        last = min(line_range.end, self.line_count)
        return [(n, self.lines[n - 1]) for n in range(line_range.start, last + 1)]

    def numbered(self) -> List[Tuple[int, str]]:
        return list(enumerate(self.lines, 1))
