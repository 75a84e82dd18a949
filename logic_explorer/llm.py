"""Blocking HTTP backends for Ollama, OpenAI-compatible, Anthropic, Gemini, and Groq."""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from typing import Any, Dict, Optional

import requests

from .config import DEFAULT_ENDPOINT, DEFAULT_MODEL, REQUEST_TIMEOUT
from .errors import ProviderError

logger = logging.getLogger(__name__)

OPENAI_ENDPOINT = "https://api.openai.com/v1/chat/completions"
OPENROUTER_ENDPOINT = "https://openrouter.ai/api/v1/chat/completions"
ANTHROPIC_ENDPOINT = "https://api.anthropic.com/v1/messages"
GROQ_ENDPOINT = "https://api.groq.com/openai/v1/chat/completions"
GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class LLMBackend:
    """Base class for LLM backends."""

    name = "llm"

    def __init__(self, model: str, api_key: str = "", endpoint: str = "", timeout: int = REQUEST_TIMEOUT):
        self.model = model
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        json_mode: bool = False,
        max_tokens: int = 2048,
    ) -> str:
        """Return the model's text response.

        Raises:
            ProviderError: on transport failure, HTTP errors, or an empty body.
        """
        raise NotImplementedError

    def _require_key(self) -> None:
        if not self.api_key:
            raise ProviderError("No API key configured (run `lx set-llm`)", self.name)

    def _post_json(self, url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> Dict[str, Any]:
        req = urllib.request.Request(
            url,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json", **headers},
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                parsed = json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as exc:
            raise ProviderError(f"HTTP {exc.code} from {self.name}", self.name) from exc
        except (OSError, http.client.HTTPException) as exc:
            raise ProviderError(f"Could not reach {url}: {exc}", self.name) from exc
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProviderError(f"Non-JSON transport body: {exc}", self.name) from exc
        if not isinstance(parsed, dict):
            raise ProviderError(f"Expected a JSON object, got {type(parsed).__name__}", self.name)
        return parsed

    def _non_empty(self, text: Any) -> str:
        if not isinstance(text, str) or not text.strip():
            raise ProviderError("Model returned an empty response", self.name)
        return text


class OllamaBackend(LLMBackend):
    """Local Ollama server (``/api/generate``)."""

    name = "ollama"

    def generate(self, prompt, system=None, json_mode=False, max_tokens=2048):
        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": 0.1, "num_predict": max_tokens},
        }
        if system:
            payload["system"] = system
        if json_mode:
            payload["format"] = "json"
        parsed = self._post_json(self.endpoint or DEFAULT_ENDPOINT, payload, {})
        return self._non_empty(parsed.get("response"))


class OpenAICompatibleBackend(LLMBackend):
    """OpenAI chat completions; also OpenRouter and other compatible gateways."""

    name = "openai"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _payload(self, prompt, system, json_mode, max_tokens) -> Dict[str, Any]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": 0.1,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def generate(self, prompt, system=None, json_mode=False, max_tokens=2048):
        self._require_key()
        parsed = self._post_json(
            self.endpoint or OPENAI_ENDPOINT,
            self._payload(prompt, system, json_mode, max_tokens),
            self._headers(),
        )
        try:
            message = parsed["choices"][0]["message"]
            content = message.get("content") or ""
            # Reasoning models may leave content empty and answer in 'reasoning'
            if not isinstance(content, str) or not content.strip():
                content = message.get("reasoning") or ""
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise ProviderError("Unexpected chat completion shape", self.name) from exc
        return self._non_empty(content)


class OpenRouterBackend(OpenAICompatibleBackend):
    name = "openrouter"

    def generate(self, prompt, system=None, json_mode=False, max_tokens=2048):
        self.endpoint = self.endpoint or OPENROUTER_ENDPOINT
        return super().generate(prompt, system, json_mode, max_tokens)


class AnthropicBackend(LLMBackend):
    name = "anthropic"

    def generate(self, prompt, system=None, json_mode=False, max_tokens=2048):
        self._require_key()
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": 0.1,
        }
        if system:
            payload["system"] = system
        parsed = self._post_json(
            self.endpoint or ANTHROPIC_ENDPOINT,
            payload,
            {"x-api-key": self.api_key, "anthropic-version": "2023-06-01"},
        )
        try:
            text = "".join(block.get("text", "") for block in parsed["content"])
        except (KeyError, TypeError, AttributeError) as exc:
            raise ProviderError("Unexpected messages response shape", self.name) from exc
        return self._non_empty(text)


class GeminiBackend(LLMBackend):
    name = "gemini"

    def generate(self, prompt, system=None, json_mode=False, max_tokens=2048):
        self._require_key()
        generation_config: Dict[str, Any] = {"temperature": 0.1, "maxOutputTokens": max_tokens}
        if json_mode:
            generation_config["responseMimeType"] = "application/json"
        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        if system:
            body["systemInstruction"] = {"parts": [{"text": system}]}
        url = (self.endpoint or GEMINI_ENDPOINT.format(model=self.model)) + f"?key={self.api_key}"
        parsed = self._post_json(url, body, {})
        try:
            parts = parsed["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise ProviderError("Unexpected generateContent shape", self.name) from exc
        return self._non_empty(text)


class GroqBackend(OpenAICompatibleBackend):
    """Groq cloud API (OpenAI-compatible, called through ``requests``)."""

    name = "groq"

    def generate(self, prompt, system=None, json_mode=False, max_tokens=2048):
        self._require_key()
        try:
            response = requests.post(
                self.endpoint or GROQ_ENDPOINT,
                headers={"Content-Type": "application/json", **self._headers()},
                json=self._payload(prompt, system, json_mode, max_tokens),
                timeout=self.timeout,
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
        except requests.RequestException as exc:
            raise ProviderError(f"Groq request failed: {exc}", self.name) from exc
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise ProviderError("Unexpected chat completion shape", self.name) from exc
        return self._non_empty(content)


BACKENDS = {
    "ollama": OllamaBackend,
    "openai": OpenAICompatibleBackend,
    "openrouter": OpenRouterBackend,
    "anthropic": AnthropicBackend,
    "gemini": GeminiBackend,
    "groq": GroqBackend,
}


def create_backend(
    provider: str,
    model: Optional[str] = None,
    api_key: str = "",
    endpoint: str = "",
) -> LLMBackend:
    """Instantiate the backend for ``provider``.

    Raises:
        ProviderError: the provider name is unknown.
    """
    from .config_manager import get_provider_config

    name = provider.lower().strip()
    backend_cls = BACKENDS.get(name)
    if backend_cls is None:
        raise ProviderError(f"Unknown LLM provider '{provider}'. Choose from: {', '.join(BACKENDS)}")
    resolved_model = model or get_provider_config(name).get("model", DEFAULT_MODEL)
    logger.debug("Using %s backend with model %s", name, resolved_model)
    return backend_cls(resolved_model, api_key=api_key, endpoint=endpoint)
