"""Logic Explorer: line-mapped LLM code explanations."""

__version__ = "0.3.0"
