"""Configuration paths and LLM settings for Logic Explorer."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict

BASE_DIR = Path(os.environ.get("LOGIC_EXPLORER_HOME", str(Path.home() / ".logic_explorer"))).expanduser()

DEFAULT_PROVIDER = "ollama"
DEFAULT_MODEL = "qwen2.5-coder:7b"
DEFAULT_ENDPOINT = "http://127.0.0.1:11434/api/generate"

ANALYSIS_MAX_TOKENS = 8192
EXPLAIN_MAX_TOKENS = 2048
REQUEST_TIMEOUT = 90


def llm_settings() -> Dict[str, str]:
    """Resolve LLM settings from ``config.toml`` (set via ``lx set-llm``).

    ``LOGIC_EXPLORER_API_KEY`` overrides the stored API key.
    """
    from .config_manager import load_config

    cfg = load_config()
    return {
        "provider": cfg.get("provider", DEFAULT_PROVIDER),
        "model": cfg.get("model", DEFAULT_MODEL),
        "endpoint": cfg.get("endpoint", ""),
        "api_key": os.environ.get("LOGIC_EXPLORER_API_KEY") or cfg.get("api_key", ""),
    }

