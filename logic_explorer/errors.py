"""Exception hierarchy for Logic Explorer."""

from __future__ import annotations


class LogicExplorerError(Exception):
    """Base class for all Logic Explorer errors."""


class ValidationError(LogicExplorerError):
    """Raised when a request is refused before reaching the provider."""


class ProviderError(LogicExplorerError):
    """Raised when the analysis provider fails or returns unusable output."""

    def __init__(self, message: str, provider: str = ""):
        super().__init__(message)
        self.message = message
        self.provider = provider

    def __str__(self) -> str:
        if self.provider:
            return f"[{self.provider}] {self.message}"
        return self.message


class MalformedResultError(ProviderError):
    """Raised when a response parses as JSON but cannot be an analysis result."""


class LifecycleError(LogicExplorerError):
    """Raised when derived analysis state is accessed after it was discarded."""
