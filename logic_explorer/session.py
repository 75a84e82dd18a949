"""Per-session façade wiring lifecycle, selection, and deep-dive components."""

from __future__ import annotations

from typing import List, Optional

from .annotations import AnnotationIndex
from .deep_dive import DeepDiveSession
from .errors import LifecycleError
from .languages import DEFAULT_LANGUAGE
from .lifecycle import AnalysisLifecycle, LifecycleState
from .models import AnalysisResult, Issue, LineExplanation, LineRange
from .provider import AnalysisProvider
from .selection import SelectionModel

NO_MAPPING_TEXT = "Semantic mapping unavailable for this selection."


class ExplorerSession:
    """One user's isolated set of stateful components.

    Sessions share nothing; run several by creating several instances.
    """

    def __init__(
        self,
        provider: AnalysisProvider,
        text: str = "",
        language: str = DEFAULT_LANGUAGE,
        program_name: str = "Logic Explorer",
    ):
        self.provider = provider
        self.program_name = program_name
        self.selection = SelectionModel()
        self.deep_dive = DeepDiveSession(provider)
        self.lifecycle = AnalysisLifecycle(
            provider,
            selection=self.selection,
            deep_dive=self.deep_dive,
            text=text,
            language=language,
        )

    @property
    def state(self) -> LifecycleState:
        return self.lifecycle.state

    @property
    def text(self) -> str:
        return self.lifecycle.text

    @property
    def result(self) -> Optional[AnalysisResult]:
        return self.lifecycle.result

    @property
    def index(self) -> AnnotationIndex:
        return self.lifecycle.index

    async def analyze(self) -> Optional[AnalysisResult]:
        return await self.lifecycle.analyze()

    def edit(self, text: str) -> None:
        self.lifecycle.edit(text)

    def reset(self) -> None:
        self.lifecycle.reset()

    def click_line(self, line: int, extend: bool = False) -> LineRange:
        self._require_ready()
        return self.selection.click_line(line, extend)

    def hover_line(self, line: Optional[int]) -> None:
        self._require_ready()
        self.selection.hover(line)

    def hover_node(self, node_id: str) -> None:
        self.selection.hover_node_lines(self.index.lines_for_node(node_id))

    def select_node(self, node_id: str) -> Optional[LineRange]:
        return self.selection.select_from_node_lines(self.index.lines_for_node(node_id))

    def select_element(self, element_id: str) -> Optional[LineRange]:
        return self.selection.select_from_node_lines(self.index.lines_for_element(element_id))

    def selected_explanation(self) -> Optional[str]:
        """Explanation text for the current selection (None when nothing is selected)."""
        line_range = self.selection.range
        if line_range is None:
            return None
        return self.index.range_explanation_text(line_range) or NO_MAPPING_TEXT

    def selected_summary(self) -> List[LineExplanation]:
        if self.selection.range is None:
            return []
        return self.index.lookup_range_summary(self.selection.range)

    def selected_issues(self) -> List[Issue]:
        if self.selection.range is None:
            return []
        return self.index.issues_in_range(self.selection.range)

    async def deep_dive_selection(self) -> Optional[str]:
        """Request a deep dive for the current selection."""
        self._require_ready()
        line_range = self.selection.range
        if line_range is None:
            return None
        return await self.deep_dive.request(self.lifecycle.text, line_range)

    def active_deep_dive(self) -> Optional[str]:
        """Deep-dive text, shown only while its range is still the selection."""
        return self.deep_dive.text_for(self.selection.range)

    def _require_ready(self) -> None:
        if not self.lifecycle.is_ready:
            raise LifecycleError("Analyze the source before selecting lines")
