"""Permissive wire schema for provider analysis responses (Pydantic v2).

Every array field defaults to empty and every item is validated on its own,
so one unusable entry never invalidates an otherwise usable response.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Type, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import MalformedResultError, ProviderError
from .models import (
    AnalysisResult,
    BestPractice,
    GlossaryTerm,
    Issue,
    LineExplanation,
    NodeLines,
    Severity,
)

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s*```[A-Za-z0-9_-]*\s*\n?(.*?)\n?```\s*$", re.DOTALL)

ItemT = TypeVar("ItemT", bound=BaseModel)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, bool)):
        return str(value)
    return json.dumps(value)


class _Item(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class _LineItem(_Item):
    line: int = Field(validation_alias=AliasChoices("lineNumber", "line", "line_number"))

    @field_validator("line")
    @classmethod
    def check_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError(f"line number {value} is not a valid source line")
        return value


class ExplanationItem(_LineItem):
    text: str = Field(default="", validation_alias=AliasChoices("explanation", "text"))

    @field_validator("text", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class BestPracticeItem(_LineItem):
    text: str = Field(default="", validation_alias=AliasChoices("guideline", "text"))

    @field_validator("text", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class IssueItem(_LineItem):
    severity: Severity = Severity.MEDIUM
    text: str = Field(default="", validation_alias=AliasChoices("description", "text"))

    @field_validator("text", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("severity", mode="before")
    @classmethod
    def parse_severity(cls, value: Any) -> Severity:
        return Severity.parse(value)


class GlossaryItem(_Item):
    term: str
    definition: str = ""
    relevance: str = ""

    @field_validator("term", "definition", "relevance", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class NodeMappingItem(_Item):
    node_id: str = Field(validation_alias=AliasChoices("nodeId", "node_id", "id"))
    lines: List[int] = Field(
        default_factory=list,
        validation_alias=AliasChoices("lineNumbers", "lines", "line_numbers"),
    )

    @field_validator("node_id", mode="before")
    @classmethod
    def check_node_id(cls, value: Any) -> str:
        if value is None or isinstance(value, (dict, list)):
            raise ValueError("node id must be a scalar")
        text = str(value).strip()
        if not text:
            raise ValueError("node id is empty")
        return text

    @field_validator("lines", mode="before")
    @classmethod
    def parse_lines(cls, value: Any) -> List[int]:
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        lines: List[int] = []
        for raw in value:
            try:
                line = int(raw)
            except (TypeError, ValueError):
                logger.debug("Dropping non-integer node line %r", raw)
                continue
            if line < 1:
                logger.warning("Dropping impossible node line %d", line)
                continue
            lines.append(line)
        return lines


def _tolerant_items(model: Type[ItemT], raw: Any, field_name: str) -> List[ItemT]:
    """Validate each item of ``raw`` independently, skipping unusable ones."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("Field '%s' is not a list; treating it as empty", field_name)
        return []
    items: List[ItemT] = []
    for idx, entry in enumerate(raw):
        try:
            items.append(model.model_validate(entry))
        except ValidationError as exc:
            logger.warning(
                "Skipping %s[%d]: %s", field_name, idx, exc.errors()[0].get("msg", exc)
            )
    return items


class AnalysisPayload(BaseModel):
    """Raw provider response as sent over the wire."""

    model_config = ConfigDict(extra="ignore")

    overall_program_summary: str = ""
    per_line_explanations: List[ExplanationItem] = Field(default_factory=list)
    keyword_glossary: List[GlossaryItem] = Field(default_factory=list)
    best_practices: List[BestPracticeItem] = Field(default_factory=list)
    detected_issues: List[IssueItem] = Field(default_factory=list)
    mermaid_flowchart_code: str = ""
    node_to_line_mapping: List[NodeMappingItem] = Field(default_factory=list)

    @field_validator("overall_program_summary", "mermaid_flowchart_code", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("per_line_explanations", mode="before")
    @classmethod
    def parse_explanations(cls, value: Any) -> List[ExplanationItem]:
        return _tolerant_items(ExplanationItem, value, "per_line_explanations")

    @field_validator("keyword_glossary", mode="before")
    @classmethod
    def parse_glossary(cls, value: Any) -> List[GlossaryItem]:
        return _tolerant_items(GlossaryItem, value, "keyword_glossary")

    @field_validator("best_practices", mode="before")
    @classmethod
    def parse_best_practices(cls, value: Any) -> List[BestPracticeItem]:
        return _tolerant_items(BestPracticeItem, value, "best_practices")

    @field_validator("detected_issues", mode="before")
    @classmethod
    def parse_issues(cls, value: Any) -> List[IssueItem]:
        return _tolerant_items(IssueItem, value, "detected_issues")

    @field_validator("node_to_line_mapping", mode="before")
    @classmethod
    def parse_node_mapping(cls, value: Any) -> List[NodeMappingItem]:
        return _tolerant_items(NodeMappingItem, value, "node_to_line_mapping")

    def to_result(self) -> AnalysisResult:
        return AnalysisResult(
            summary=self.overall_program_summary,
            line_explanations=tuple(
                LineExplanation(e.line, e.text) for e in self.per_line_explanations
            ),
            glossary=tuple(
                GlossaryTerm(g.term, g.definition, g.relevance) for g in self.keyword_glossary
            ),
            best_practices=tuple(BestPractice(b.line, b.text) for b in self.best_practices),
            issues=tuple(Issue(i.line, i.severity, i.text) for i in self.detected_issues),
            flowchart_source=self.mermaid_flowchart_code,
            node_lines=tuple(
                NodeLines(n.node_id, tuple(n.lines)) for n in self.node_to_line_mapping
            ),
        )


def strip_code_fence(text: str) -> str:
    """Unwrap a response the model wrapped in a Markdown code fence."""
    match = _FENCE_RE.match(text)
    return match.group(1) if match else text


def result_from_dict(data: Dict[str, Any]) -> AnalysisResult:
    try:
        payload = AnalysisPayload.model_validate(data)
    except ValidationError as exc:
        raise MalformedResultError(f"Analysis response has an unusable shape: {exc}") from exc
    return payload.to_result()


def parse_analysis(raw: str) -> AnalysisResult:
    """Parse a provider response body into an :class:`AnalysisResult`.

    Raises:
        ProviderError: the body is empty or not JSON.
        MalformedResultError: the JSON is valid but not an object.
    """
    if not raw or not raw.strip():
        raise ProviderError("Analysis response was empty")
    try:
        data = json.loads(strip_code_fence(raw))
    except json.JSONDecodeError as exc:
        raise ProviderError(f"Analysis response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedResultError(
            f"Analysis response must be a JSON object, got {type(data).__name__}"
        )
    return result_from_dict(data)
