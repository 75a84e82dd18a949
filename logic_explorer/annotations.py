"""Line- and node-keyed lookups built from one analysis result."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, TypeVar

from .models import AnalysisResult, BestPractice, Issue, LineExplanation, LineRange

logger = logging.getLogger(__name__)

_ELEMENT_PREFIX_RE = re.compile(r"^flowchart-")

T = TypeVar("T")


def node_id_from_element(element_id: str) -> str:
    """Recover the flowchart node id from a rendered element id.

    Mermaid renders node ``A`` as ``flowchart-A-12``; the node id is the
    first dash-separated segment once the prefix is removed.
    """
    return _ELEMENT_PREFIX_RE.sub("", element_id).split("-")[0]


def _first_wins(entries: Iterable[T], kind: str) -> Dict[int, T]:
    mapping: Dict[int, T] = {}
    for entry in entries:
        line = entry.line  # type: ignore[attr-defined]
        if line in mapping:
            logger.debug("Duplicate %s for line %d dropped", kind, line)
            continue
        mapping[line] = entry
    return mapping


@dataclass(frozen=True)
class AnnotationIndex:
    """Read-only lookup tables for one :class:`AnalysisResult`.

    Keys are whatever line numbers the provider sent; keys outside
    ``[1, line_count]`` are kept so range queries near the end of the file
    do not lose entries.
    """
    line_count: int
    explanation_by_line: Dict[int, str] = field(default_factory=dict)
    issue_by_line: Dict[int, Issue] = field(default_factory=dict)
    best_practice_by_line: Dict[int, str] = field(default_factory=dict)
    lines_by_node_id: Dict[str, Tuple[int, ...]] = field(default_factory=dict)

    @classmethod
    def build(cls, result: AnalysisResult, line_count: int) -> "AnnotationIndex":
        explanations = _first_wins(result.line_explanations, "explanation")
        issues = _first_wins(result.issues, "issue")
        practices = _first_wins(result.best_practices, "best practice")

        nodes: Dict[str, Tuple[int, ...]] = {}
        for mapping in result.node_lines:
            if mapping.node_id in nodes:
                logger.debug("Node '%s' mapped twice; keeping the later entry", mapping.node_id)
            nodes[mapping.node_id] = tuple(mapping.lines)

        index = cls(
            line_count=line_count,
            explanation_by_line={line: e.text for line, e in explanations.items()},
            issue_by_line=issues,
            best_practice_by_line={line: b.text for line, b in practices.items()},
            lines_by_node_id=nodes,
        )
        outside = index.out_of_range_lines()
        if outside:
            logger.info("Analysis references %d line(s) outside 1..%d", len(outside), line_count)
        return index

    def in_buffer(self, line: int) -> bool:
        return 1 <= line <= self.line_count

    def explanation_for(self, line: int) -> Optional[str]:
        return self.explanation_by_line.get(line)

    def issue_for(self, line: int) -> Optional[Issue]:
        return self.issue_by_line.get(line)

    def best_practice_for(self, line: int) -> Optional[str]:
        return self.best_practice_by_line.get(line)

    def lookup_range_summary(self, line_range: LineRange) -> List[LineExplanation]:
        """Explanations whose line falls in ``line_range``, in ascending line order."""
        return [
            LineExplanation(line, self.explanation_by_line[line])
            for line in sorted(self.explanation_by_line)
            if line_range.contains(line)
        ]

    def range_explanation_text(self, line_range: LineRange) -> Optional[str]:
        """Combined explanation text for a selection, or None when nothing maps."""
        if line_range.is_single_line:
            return self.explanation_by_line.get(line_range.start)
        entries = self.lookup_range_summary(line_range)
        if not entries:
            return None
        return "\n".join(f"[L{e.line}] {e.text}" for e in entries)

    def issues_in_range(self, line_range: LineRange) -> List[Issue]:
        return [self.issue_by_line[n] for n in sorted(self.issue_by_line) if line_range.contains(n)]

    def best_practices_in_range(self, line_range: LineRange) -> List[BestPractice]:
        return [
            BestPractice(n, self.best_practice_by_line[n])
            for n in sorted(self.best_practice_by_line)
            if line_range.contains(n)
        ]

    def lines_for_node(self, node_id: str) -> Tuple[int, ...]:
        return self.lines_by_node_id.get(node_id, ())

    def lines_for_element(self, element_id: str) -> Tuple[int, ...]:
        return self.lines_for_node(node_id_from_element(element_id))

    def nodes_for_line(self, line: int) -> List[str]:
        return [node_id for node_id, lines in self.lines_by_node_id.items() if line in lines]

    def out_of_range_lines(self) -> List[int]:
        keys = set(self.explanation_by_line) | set(self.issue_by_line) | set(self.best_practice_by_line)
        return sorted(line for line in keys if not self.in_buffer(line))
