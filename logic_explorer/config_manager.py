"""TOML-backed LLM provider configuration."""

from __future__ import annotations

import logging
from typing import Any, Dict

import toml

from .config import BASE_DIR

logger = logging.getLogger(__name__)

CONFIG_FILE = BASE_DIR / "config.toml"


DEFAULT_CONFIGS: Dict[str, Dict[str, str]] = {
    "ollama": {
        "provider": "ollama",
        "model": "qwen2.5-coder:7b",
        "endpoint": "http://127.0.0.1:11434/api/generate",
    },
    "openai": {
        "provider": "openai",
        "model": "gpt-4o-mini",
        "api_key": "",
    },
    "anthropic": {
        "provider": "anthropic",
        "model": "claude-3-5-sonnet-20241022",
        "api_key": "",
    },
    "gemini": {
        "provider": "gemini",
        "model": "gemini-2.0-flash",
        "api_key": "",
    },
    "groq": {
        "provider": "groq",
        "model": "llama-3.3-70b-versatile",
        "api_key": "",
    },
    "openrouter": {
        "provider": "openrouter",
        "model": "google/gemini-2.0-flash-exp:free",
        "api_key": "",
        "endpoint": "https://openrouter.ai/api/v1/chat/completions",
    },
}

ALL_PROVIDERS = list(DEFAULT_CONFIGS)


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config, or an empty dict if it is missing or unreadable."""
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", CONFIG_FILE, exc)
        return {}


def load_config() -> Dict[str, Any]:
    """Load the ``[llm]`` section.

    Returns:
        Provider settings, falling back to the Ollama defaults.
    """
    return load_full_config().get("llm", DEFAULT_CONFIGS["ollama"].copy())


def _save_full_config(config: Dict[str, Any]) -> bool:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(CONFIG_FILE, "w") as f:
            toml.dump(config, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config %s: %s", CONFIG_FILE, exc)
        return False


def save_config(provider: str, model: str, api_key: str = "", endpoint: str = "") -> bool:
    """Save LLM settings, preserving any other sections in the file.

    Args:
        provider: One of ``ALL_PROVIDERS``
        model: Model name
        api_key: API key for cloud providers
        endpoint: Custom endpoint URL

    Returns:
        True if saved successfully
    """
    config = load_full_config()
    config["llm"] = {"provider": provider, "model": model}
    if api_key:
        config["llm"]["api_key"] = api_key
    if endpoint:
        config["llm"]["endpoint"] = endpoint
    return _save_full_config(config)


def clear_config() -> bool:
    """Drop the ``[llm]`` section so defaults apply again."""
    config = load_full_config()
    if "llm" not in config:
        return False
    config.pop("llm")
    return _save_full_config(config)


def get_provider_config(provider: str) -> Dict[str, str]:
    return DEFAULT_CONFIGS.get(provider, DEFAULT_CONFIGS["ollama"]).copy()
