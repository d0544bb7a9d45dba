"""Access to the configured text generator and the prompt overrides file."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from flask import current_app

GENERATOR_CACHE_KEY = "_TEXT_GENERATOR_INSTANCE"
PROMPT_CACHE_KEY = "_PROMPT_CONFIG_CACHE"

_GENERATION_PARAMETER_KEYS = {"max_new_tokens", "temperature", "top_p"}


class PromptConfigError(RuntimeError):
    """Raised when the prompt override file cannot be used."""


def get_text_generator() -> Optional[Any]:
    """Return the process-wide generator, building it on first use.

    An OpenAI-compatible API (``LLM_API_KEY``) takes precedence over a local
    model (``TEXT_GENERATOR_MODEL_PATH``). ``None`` means no backend is
    configured.
    """

    app = current_app
    if GENERATOR_CACHE_KEY in app.config:
        return app.config[GENERATOR_CACHE_KEY]

    generator: Optional[Any] = None
    api_key = app.config.get("LLM_API_KEY")
    model_path = app.config.get("TEXT_GENERATOR_MODEL_PATH")

    if api_key:
        from ..api_handler import OpenAIChatGenerator

        generator = OpenAIChatGenerator(
            app.config.get("LLM_MODEL", ""),
            api_key,
            base_url=app.config.get("LLM_BASE_URL"),
            default_max_tokens=app.config.get("LLM_MAX_TOKENS", 1024),
            default_temperature=app.config.get("LLM_TEMPERATURE"),
        )
        model_name, redacted_key = generator.signature()
        app.logger.info("Using API text generator %s (key %s)", model_name, redacted_key)
    elif model_path:  # pragma: no cover - requires the optional local model stack
        try:
            from ..text_generator import TextGenerator

            app.logger.info("Initialising local text generator with model path: %s", model_path)
            generator = TextGenerator(
                model_path,
                max_new_tokens=app.config.get("LLM_MAX_TOKENS", 1024),
                temperature=app.config.get("LLM_TEMPERATURE"),
            )
        except Exception as exc:
            app.logger.warning("Failed to initialise text generator at '%s': %s", model_path, exc)
            generator = None
    else:
        app.logger.info("No LLM backend configured; the writing assistant is disabled.")

    app.config[GENERATOR_CACHE_KEY] = generator
    return generator


def load_prompt_config() -> Dict[str, Any]:
    """Return the parsed ``PROMPT_CONFIG_PATH`` file, or ``{}`` when unset."""

    app = current_app
    cached = app.config.get(PROMPT_CACHE_KEY)
    if isinstance(cached, dict):
        return cached

    config_path = app.config.get("PROMPT_CONFIG_PATH")
    if not config_path:
        app.config[PROMPT_CACHE_KEY] = {}
        return {}

    path = Path(config_path)
    if not path.exists():
        raise PromptConfigError(f"Prompt configuration file not found at: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise PromptConfigError(f"Unable to parse prompt configuration: {exc.msg}") from exc

    if not isinstance(data, dict):
        raise PromptConfigError("Prompt configuration must be a JSON object.")

    app.config[PROMPT_CACHE_KEY] = data
    return data


def load_prompt_entry(key: str) -> Dict[str, Any]:
    entry = load_prompt_config().get(key) or {}
    if not isinstance(entry, dict):
        raise PromptConfigError(f"Prompt configuration entry '{key}' must be a dictionary.")
    return entry


def extract_generation_parameters(parameters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Filter a raw parameters dictionary to generation kwargs supported by the backends."""

    if not isinstance(parameters, dict):
        return {}

    return {
        key: parameters[key]
        for key in _GENERATION_PARAMETER_KEYS
        if key in parameters and parameters[key] is not None
    }
