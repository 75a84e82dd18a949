"""Range-scoped secondary explanations with last-request-wins semantics."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .errors import ProviderError
from .models import DeepDiveResult, LineRange

if TYPE_CHECKING:
    from .provider import AnalysisProvider

logger = logging.getLogger(__name__)


class DeepDiveSession:
    """Runs at most one live deep-dive request and stores its result.

    Every request takes a new generation number; a completion whose
    generation is no longer current is dropped on arrival.
    """

    def __init__(self, provider: "AnalysisProvider"):
        self.provider = provider
        self.result: Optional[DeepDiveResult] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> bool:
        return self.result is not None and self.result.pending

    async def request(self, source_text: str, line_range: LineRange) -> Optional[str]:
        """Explain ``line_range`` of ``source_text``.

        Returns:
            The explanation text, or None if a newer request superseded this one.

        Raises:
            ProviderError: the provider failed and this request was still current.
        """
        self._generation += 1
        generation = self._generation

        prior_text = None
        if self.result is not None and self.result.for_range == line_range:
            prior_text = self.result.text
        self.result = DeepDiveResult(for_range=line_range, text=prior_text, pending=True)

        try:
            text = await self.provider.explain(source_text, line_range.line_numbers())
        except ProviderError:
            if generation == self._generation:
                self.result = DeepDiveResult(for_range=line_range, text=prior_text, pending=False)
                raise
            logger.debug("Ignoring failure of superseded deep dive %d", generation)
            return None

        if generation != self._generation:
            logger.debug(
                "Dropping stale deep dive %d for %s (current is %d)",
                generation, line_range.label, self._generation,
            )
            return None

        self.result = DeepDiveResult(for_range=line_range, text=text, pending=False)
        return text

    def text_for(self, line_range: Optional[LineRange]) -> Optional[str]:
        """Stored text, only if it was computed for exactly ``line_range``."""
        if line_range is None or self.result is None or self.result.for_range != line_range:
            return None
        return self.result.text

    def clear(self) -> None:
        self._generation += 1
        self.result = None
