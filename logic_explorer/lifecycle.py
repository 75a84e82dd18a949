"""Analysis state machine: Idle -> Pending -> Ready -> Idle."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .annotations import AnnotationIndex
from .deep_dive import DeepDiveSession
from .errors import LifecycleError, ProviderError, ValidationError
from .languages import DEFAULT_LANGUAGE, normalize_language
from .line_index import SourceBuffer
from .models import AnalysisResult
from .selection import SelectionModel

if TYPE_CHECKING:
    from .provider import AnalysisProvider

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"


class AnalysisLifecycle:
    """Governs when an analysis is pending, ready, or discarded.

    Derived state (result, buffer, annotation index) exists only in READY.
    Any transition out of READY, and any new request, clears the selection
    and deep-dive state it was given.
    """

    def __init__(
        self,
        provider: "AnalysisProvider",
        selection: Optional[SelectionModel] = None,
        deep_dive: Optional[DeepDiveSession] = None,
        text: str = "",
        language: str = DEFAULT_LANGUAGE,
    ):
        self.provider = provider
        self.selection = selection or SelectionModel()
        self.deep_dive = deep_dive or DeepDiveSession(provider)
        self.text = text
        self.language = language
        self.state = LifecycleState.IDLE
        self.result: Optional[AnalysisResult] = None
        self.buffer: Optional[SourceBuffer] = None
        self._index: Optional[AnnotationIndex] = None
        self._generation = 0

    @property
    def index(self) -> AnnotationIndex:
        if self._index is None:
            raise LifecycleError(f"No annotation index in state '{self.state.value}'")
        return self._index

    @property
    def is_ready(self) -> bool:
        return self.state is LifecycleState.READY

    @property
    def generation(self) -> int:
        return self._generation

    def check_request(self, text: str, language: str) -> str:
        """Validate an analysis request and return the canonical language tag.

        Raises:
            ValidationError: text is blank or the language is unsupported.
        """
        if not text or not text.strip():
            raise ValidationError("Nothing to analyze: source text is empty")
        canonical = normalize_language(language)
        if canonical is None:
            raise ValidationError(f"Unsupported language '{language}'")
        return canonical

    async def analyze(
        self, text: Optional[str] = None, language: Optional[str] = None
    ) -> Optional[AnalysisResult]:
        """Run a primary analysis.

        Returns:
            The committed result, or None when the request was refused or
            superseded before it completed.

        Raises:
            ProviderError: the provider failed; state is rolled back to IDLE.
        """
        text = self.text if text is None else text
        language = self.language if language is None else language
        try:
            language = self.check_request(text, language)
        except ValidationError as exc:
            logger.info("Analysis not started: %s", exc)
            return None

        self.text = text
        self.language = language
        self._discard_derived()
        self._generation += 1
        generation = self._generation
        self.state = LifecycleState.PENDING
        logger.debug("Analysis %d started (%s, %d chars)", generation, language, len(text))

        try:
            result = await self.provider.analyze(text, language)
        except ProviderError as exc:
            if generation != self._generation:
                logger.debug("Ignoring failure of superseded analysis %d", generation)
                return None
            logger.warning("Analysis %d failed: %s", generation, exc)
            self.state = LifecycleState.IDLE
            raise

        if generation != self._generation:
            logger.debug("Dropping stale analysis %d (current is %d)", generation, self._generation)
            return None

        buffer = SourceBuffer.from_text(text)
        self._index = AnnotationIndex.build(result, buffer.line_count)
        self.buffer = buffer
        self.result = result
        self.selection.clear()
        self.deep_dive.clear()
        self.state = LifecycleState.READY
        logger.debug("Analysis %d ready", generation)
        return result

    def reset(self) -> None:
        """Return to IDLE, discarding everything derived from the last analysis.

        The source text is kept so it can be edited again.
        """
        self._generation += 1
        self._discard_derived()
        self.state = LifecycleState.IDLE

    def edit(self, text: str) -> None:
        if text == self.text:
            return
        if self.state is not LifecycleState.IDLE:
            self.reset()
        self.text = text

    def set_language(self, language: str) -> None:
        if language == self.language:
            return
        if self.state is not LifecycleState.IDLE:
            self.reset()
        self.language = language

    def _discard_derived(self) -> None:
        self.result = None
        self.buffer = None
        self._index = None
        self.selection.clear()
        self.deep_dive.clear()
