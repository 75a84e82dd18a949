"""Single-range line selection and hover tracking."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .models import LineRange, SelectionState

logger = logging.getLogger(__name__)


class SelectionModel:
    """Owns the current selected range and hovered line for one session.

    Shift-extension anchors on the start of the existing range, so a
    selection grows or flips around one stable point per gesture.
    """

    def __init__(self):
        self.range: Optional[LineRange] = None
        self.hovered_line: Optional[int] = None

    @property
    def state(self) -> SelectionState:
        return SelectionState(range=self.range, hovered_line=self.hovered_line)

    def click_line(self, line: int, extend: bool = False) -> LineRange:
        """Select ``line``, or extend from the current anchor when ``extend`` is set."""
        if line < 1:
            raise ValueError(f"Cannot select line {line}")
        if not extend or self.range is None:
            self.range = LineRange.single(line)
        else:
            self.range = LineRange.covering(self.range.start, line)
        return self.range

    def hover(self, line: Optional[int]) -> None:
        self.hovered_line = line

    def hover_node_lines(self, lines: Iterable[int]) -> None:
        """Hover the first line a flowchart node maps to."""
        for line in lines:
            self.hovered_line = line
            return

    def select_from_node_lines(self, lines: Iterable[int]) -> Optional[LineRange]:
        """Select the contiguous range covering a node's lines.

        Node mappings come from the provider; an empty or unusable list
        leaves the selection unchanged.
        """
        valid = [line for line in lines if line >= 1]
        if not valid:
            logger.debug("Node has no usable lines; selection unchanged")
            return self.range
        self.range = LineRange(min(valid), max(valid))
        return self.range

    def is_selected(self, line: int) -> bool:
        return self.range is not None and self.range.contains(line)

    def is_hovered(self, line: int) -> bool:
        return self.hovered_line == line

    def clear(self) -> None:
        self.range = None
        self.hovered_line = None
