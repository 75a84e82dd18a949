"""Analysis provider contract and its LLM-backed implementation."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol, Sequence

from .config import ANALYSIS_MAX_TOKENS, EXPLAIN_MAX_TOKENS, llm_settings
from .languages import label_for
from .llm import LLMBackend, create_backend
from .models import AnalysisResult
from .schema import parse_analysis

logger = logging.getLogger(__name__)


class AnalysisProvider(Protocol):
    """What the core needs from an analysis service.

    Both calls raise :class:`~logic_explorer.errors.ProviderError` on failure.
    """

    async def analyze(self, source_text: str, language: str) -> AnalysisResult:
        ...

    async def explain(self, source_text: str, line_numbers: Sequence[int]) -> str:
        ...


ANALYSIS_SYSTEM_PROMPT = """You are a senior engineer and compiler expert specializing in {language}.
Analyze the provided code and return one strictly structured JSON object.

Rules:
1. Walk through the code in execution order.
2. Define every technical term the first time you use it.
3. The Mermaid flowchart must start with "graph TD" and show the real control flow (loops, branches).
4. Never put backticks inside JSON strings.
5. Wrap Mermaid node labels in "double quotes".
6. Line numbers are 1-based and refer to the code exactly as given.

JSON schema:
{{
  "overall_program_summary": "One sentence summary.",
  "per_line_explanations": [{{"lineNumber": 1, "explanation": "Why this line exists."}}],
  "keyword_glossary": [{{"term": "keyword", "definition": "what it is", "relevance": "why it matters here"}}],
  "best_practices": [{{"lineNumber": 1, "guideline": "string"}}],
  "detected_issues": [{{"lineNumber": 1, "severity": "low|medium|high", "description": "string"}}],
  "mermaid_flowchart_code": "graph TD; ...",
  "node_to_line_mapping": [{{"nodeId": "A", "lineNumbers": [1]}}]
}}
"""


def build_analysis_prompt(source_text: str, language: str) -> str:
    return f"Analyze this {label_for(language)} code:\n\n{source_text}"


def build_explain_prompt(source_text: str, line_numbers: Sequence[int]) -> str:
    lines = ", ".join(str(n) for n in line_numbers)
    return f"Deeper dive for lines {lines} of this code:\n{source_text}"


class LLMAnalysisProvider:
    """Runs analysis and deep-dive prompts against a configured LLM backend.

    Backends are blocking, so each call runs in a worker thread to keep the
    event loop free.
    """

    def __init__(
        self,
        backend: Optional[LLMBackend] = None,
        explain_backend: Optional[LLMBackend] = None,
    ):
        if backend is None:
            settings = llm_settings()
            backend = create_backend(
                settings["provider"],
                model=settings["model"],
                api_key=settings["api_key"],
                endpoint=settings["endpoint"],
            )
        self.backend = backend
        self.explain_backend = explain_backend or backend

    async def analyze(self, source_text: str, language: str) -> AnalysisResult:
        system = ANALYSIS_SYSTEM_PROMPT.format(language=label_for(language))
        raw = await asyncio.to_thread(
            self.backend.generate,
            build_analysis_prompt(source_text, language),
            system,
            True,
            ANALYSIS_MAX_TOKENS,
        )
        logger.debug("Analysis response: %d chars", len(raw))
        return parse_analysis(raw)

    async def explain(self, source_text: str, line_numbers: Sequence[int]) -> str:
        lines: List[int] = list(line_numbers)
        return await asyncio.to_thread(
            self.explain_backend.generate,
            build_explain_prompt(source_text, lines),
            None,
            False,
            EXPLAIN_MAX_TOKENS,
        )
