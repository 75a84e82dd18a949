"""Core data models shared by the annotation, selection, and lifecycle layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class LineRange:
    """Inclusive, contiguous, non-empty span of 1-based line numbers."""
    start: int
    end: int

    def __post_init__(self):
        if self.start < 1:
            raise ValueError(f"Line range must start at 1 or later, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"Line range end {self.end} precedes start {self.start}")

    @classmethod
    def single(cls, line: int) -> "LineRange":
        return cls(line, line)

    @classmethod
    def covering(cls, a: int, b: int) -> "LineRange":
        """Smallest range containing both line numbers."""
        return cls(min(a, b), max(a, b))

    def merge(self, other: "LineRange") -> "LineRange":
        return LineRange(min(self.start, other.start), max(self.end, other.end))

    def contains(self, line: int) -> bool:
        return self.start <= line <= self.end

    def line_numbers(self) -> List[int]:
        return list(range(self.start, self.end + 1))

    @property
    def is_single_line(self) -> bool:
        return self.start == self.end

    @property
    def label(self) -> str:
        if self.is_single_line:
            return f"L{self.start}"
        return f"Lines {self.start}-{self.end}"

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        """Map a provider severity onto the enum; unknown values become MEDIUM."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.MEDIUM


@dataclass(frozen=True)
class LineExplanation:
    line: int
    text: str


@dataclass(frozen=True)
class GlossaryTerm:
    term: str
    definition: str
    relevance: str = ""


@dataclass(frozen=True)
class BestPractice:
    line: int
    text: str


@dataclass(frozen=True)
class Issue:
    line: int
    severity: Severity
    text: str


@dataclass(frozen=True)
class NodeLines:
    """Flowchart node id and the source lines it stands for."""
    node_id: str
    lines: Tuple[int, ...] = ()


@dataclass(frozen=True)
class AnalysisResult:
    """Immutable snapshot of one provider analysis.

    Line references are untrusted: they may repeat, be missing, or point
    past the end of the analyzed buffer.
    """
    summary: str = ""
    line_explanations: Tuple[LineExplanation, ...] = ()
    glossary: Tuple[GlossaryTerm, ...] = ()
    best_practices: Tuple[BestPractice, ...] = ()
    issues: Tuple[Issue, ...] = ()
    flowchart_source: str = ""
    node_lines: Tuple[NodeLines, ...] = ()

    def to_wire(self) -> Dict[str, Any]:
        """Serialize back to the provider's JSON shape."""
        return {
            "overall_program_summary": self.summary,
            "per_line_explanations": [
                {"lineNumber": e.line, "explanation": e.text} for e in self.line_explanations
            ],
            "keyword_glossary": [
                {"term": g.term, "definition": g.definition, "relevance": g.relevance}
                for g in self.glossary
            ],
            "best_practices": [
                {"lineNumber": b.line, "guideline": b.text} for b in self.best_practices
            ],
            "detected_issues": [
                {"lineNumber": i.line, "severity": i.severity.value, "description": i.text}
                for i in self.issues
            ],
            "mermaid_flowchart_code": self.flowchart_source,
            "node_to_line_mapping": [
                {"nodeId": n.node_id, "lineNumbers": list(n.lines)} for n in self.node_lines
            ],
        }


@dataclass(frozen=True)
class SelectionState:
    range: Optional[LineRange] = None
    hovered_line: Optional[int] = None


@dataclass(frozen=True)
class DeepDiveResult:
    """Supplementary explanation keyed by the range it was computed for."""
    for_range: LineRange
    text: Optional[str] = None
    pending: bool = False
