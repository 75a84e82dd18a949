"""Pytest configuration and fixtures for Logic Explorer tests."""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest

from logic_explorer.errors import ProviderError
from logic_explorer.models import AnalysisResult
from logic_explorer.schema import result_from_dict


SAMPLE_CODE = """function findMax(arr) {
  if (!arr || arr.length === 0) {
    return null;
  }

  let max = arr[0];
  for (let i = 1; i < arr.length; i++) {
    if (arr[i] > max) {
      max = arr[i];
    }
  }
  return max;
}"""


def sample_payload() -> Dict[str, Any]:
    return {
        "overall_program_summary": "Returns the largest element of an array.",
        "per_line_explanations": [
            {"lineNumber": 1, "explanation": "Declares findMax."},
            {"lineNumber": 2, "explanation": "Guards against empty input."},
            {"lineNumber": 6, "explanation": "Seeds max with the first element."},
            {"lineNumber": 7, "explanation": "Loops over the remaining elements."},
            {"lineNumber": 8, "explanation": "Compares against the current max."},
            {"lineNumber": 12, "explanation": "Returns the result."},
        ],
        "keyword_glossary": [
            {"term": "for", "definition": "Counted loop.", "relevance": "Walks the array."},
        ],
        "best_practices": [
            {"lineNumber": 7, "guideline": "Prefer for...of for readability."},
        ],
        "detected_issues": [
            {"lineNumber": 2, "severity": "low", "description": "Null return may surprise callers."},
        ],
        "mermaid_flowchart_code": 'graph TD; A["start"] --> B{"empty?"}; B --> C["loop"]; C --> D["return"]',
        "node_to_line_mapping": [
            {"nodeId": "A", "lineNumbers": [1]},
            {"nodeId": "B", "lineNumbers": [2, 3, 4]},
            {"nodeId": "C", "lineNumbers": [7, 8, 9, 10, 11]},
            {"nodeId": "D", "lineNumbers": [12]},
        ],
    }


class FakeProvider:
    """In-memory provider returning canned results instantly."""

    def __init__(self, result: Optional[AnalysisResult] = None, explanation: str = "Deep dive text."):
        self.result = result or result_from_dict(sample_payload())
        self.explanation = explanation
        self.analyze_calls: List[tuple] = []
        self.explain_calls: List[List[int]] = []
        self.fail_analyze = False
        self.fail_explain = False

    async def analyze(self, source_text: str, language: str) -> AnalysisResult:
        self.analyze_calls.append((source_text, language))
        if self.fail_analyze:
            raise ProviderError("service unavailable", "fake")
        return self.result

    async def explain(self, source_text: str, line_numbers: Sequence[int]) -> str:
        self.explain_calls.append(list(line_numbers))
        if self.fail_explain:
            raise ProviderError("service unavailable", "fake")
        return self.explanation


class GatedProvider(FakeProvider):
    """Provider whose calls block until the test releases them, in any order."""

    def __init__(self, result: Optional[AnalysisResult] = None):
        super().__init__(result)
        self.analyze_gates: List[asyncio.Event] = []
        self.explain_gates: List[asyncio.Event] = []
        self.analyze_failures: Dict[int, bool] = {}

    async def analyze(self, source_text: str, language: str) -> AnalysisResult:
        call = len(self.analyze_gates)
        gate = asyncio.Event()
        self.analyze_gates.append(gate)
        self.analyze_calls.append((source_text, language))
        await gate.wait()
        if self.analyze_failures.get(call):
            raise ProviderError(f"call {call} failed", "gated")
        return self.result

    async def explain(self, source_text: str, line_numbers: Sequence[int]) -> str:
        gate = asyncio.Event()
        self.explain_gates.append(gate)
        self.explain_calls.append(list(line_numbers))
        await gate.wait()
        return f"explained {line_numbers[0]}-{line_numbers[-1]}"


async def wait_for(predicate, attempts: int = 100) -> None:
    """Yield to the event loop until ``predicate()`` holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch):
    """Point config storage at a temp dir and keep real API keys out of tests."""
    monkeypatch.setattr("logic_explorer.config_manager.CONFIG_FILE", tmp_path / "config.toml")
    monkeypatch.delenv("LOGIC_EXPLORER_API_KEY", raising=False)


@pytest.fixture
def sample_code() -> str:
    return SAMPLE_CODE


@pytest.fixture
def payload() -> Dict[str, Any]:
    return sample_payload()


@pytest.fixture
def sample_result() -> AnalysisResult:
    return result_from_dict(sample_payload())


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def gated_provider() -> GatedProvider:
    return GatedProvider()


@pytest.fixture
def sample_file(tmp_path: Path) -> Path:
    path = tmp_path / "find_max.js"
    path.write_text(SAMPLE_CODE)
    return path
