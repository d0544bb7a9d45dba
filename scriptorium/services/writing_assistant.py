from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from flask import current_app

from .. import system_prompts
from ..api_handler import LLMRateLimitError
from ..models import Project
from ..text_utils import clean
from .bible_context import build_project_bible_context
from .llm import PromptConfigError, extract_generation_parameters, get_text_generator, load_prompt_entry

PROMPT_KEY = "writing_assistant"


class AssistantError(RuntimeError):
    """Raised when the assistant cannot produce a suggestion."""

    status_code = 400

    def __init__(self, message: str, *, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.details = details


class AssistantUnavailableError(AssistantError):
    """Raised when no language model backend is configured."""

    status_code = 503


class AssistantBackendError(AssistantError):
    """Raised when the language model call fails."""

    status_code = 502


class AssistantRateLimitError(AssistantError):
    status_code = 429


@dataclass
class AssistMessages:
    action: str
    system: str
    user: str

    def as_chat(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


@dataclass
class AssistResult:
    action: str
    text: str


def _actions() -> Dict[str, Dict[str, Any]]:
    overrides = load_prompt_entry(PROMPT_KEY).get("actions") or {}
    actions = {key: dict(entry) for key, entry in system_prompts.ASSIST_ACTIONS.items()}
    for key, entry in overrides.items():
        if isinstance(entry, str):
            entry = {"instruction": entry}
        if not isinstance(entry, dict):
            raise PromptConfigError(f"Action override '{key}' must be a string or a dictionary.")
        merged = actions.setdefault(key, {"label": key.title(), "requires_text": True})
        merged.update(entry)
    return actions


def available_actions() -> Dict[str, str]:
    return {key: entry.get("label", key.title()) for key, entry in _actions().items()}


def resolve_action(action: Optional[str]) -> str:
    """Map ``action`` to a known action, defaulting to ``continue``."""

    key = clean(action).lower()
    return key if key in _actions() else system_prompts.DEFAULT_ACTION


def build_assist_messages(
    project: Project,
    action: Optional[str],
    context: Optional[str],
    *,
    tone: Optional[str] = None,
) -> AssistMessages:
    action_key = resolve_action(action)
    entry = _actions()[action_key]
    text = clean(context)
    if entry.get("requires_text", True) and not text:
        raise AssistantError("Write some text in the scene before using this action.")

    prompt_entry = load_prompt_entry(PROMPT_KEY)
    system_template = prompt_entry.get("system_template") or system_prompts.SYSTEM_PROMPT_TEMPLATE
    user_template = prompt_entry.get("user_template") or system_prompts.USER_PROMPT_TEMPLATE

    system_prompt = system_template.format(
        genre=clean(project.genre) or "fiction",
        project_title=clean(project.title),
        bible_context=build_project_bible_context(project, tone=tone),
    )
    user_prompt = user_template.format(instruction=entry["instruction"], context=text)
    return AssistMessages(action=action_key, system=system_prompt, user=user_prompt)


def run_assist(
    project: Project,
    action: Optional[str],
    context: Optional[str],
    *,
    tone: Optional[str] = None,
) -> AssistResult:
    """Ask the configured model to act on ``context`` using the project's bible."""

    try:
        messages = build_assist_messages(project, action, context, tone=tone)
        parameters = extract_generation_parameters(load_prompt_entry(PROMPT_KEY).get("parameters"))
    except PromptConfigError as exc:
        raise AssistantError(str(exc)) from exc

    generator = get_text_generator()
    if generator is None:
        raise AssistantUnavailableError("The writing assistant is not configured on this server.")

    started = time.perf_counter()
    try:
        text = generator.generate_chat(messages.as_chat(), **parameters)
    except LLMRateLimitError as exc:
        raise AssistantRateLimitError(str(exc)) from exc
    except Exception as exc:
        current_app.logger.warning(
            "Writing assistant call failed for project %s (action '%s'): %s",
            project.id,
            messages.action,
            exc,
        )
        raise AssistantBackendError("Error generating a response.", details=str(exc)) from exc

    text = clean(text)
    if not text:
        raise AssistantBackendError("The assistant returned an empty response.")

    elapsed = time.perf_counter() - started
    current_app.logger.info(
        "Writing assistant '%s' for project %s answered in %.2fs",
        messages.action,
        project.id,
        elapsed,
    )
    return AssistResult(action=messages.action, text=text)
