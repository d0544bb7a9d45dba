from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

import openai

LOGGER = logging.getLogger(__name__)

ChatMessage = Dict[str, str]


class LLMError(RuntimeError):
    """Raised when the remote model call fails."""


class LLMRateLimitError(LLMError):
    """Raised when the provider reports a rate limit condition."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(
            message or "The language model rate limit has been exceeded. Please try again shortly."
        )


class OpenAIChatGenerator:
    """
    Chat wrapper over the OpenAI Python SDK (>= 1.0).

    Works against api.openai.com or any OpenAI-compatible endpoint (Groq,
    vLLM, llama.cpp server, ...) when ``base_url`` is set.

    - GPT-5 / o3 / o4 / 4.1(x) on the OpenAI endpoint → Responses API
    - everything else → Chat Completions API
    """

    def __init__(
        self,
        model_name: str,
        api_key: str,
        *,
        base_url: Optional[str] = None,
        default_max_tokens: int = 1024,
        default_temperature: Optional[float] = None,
        client: Any = None,
    ) -> None:
        self.model_name = (model_name or "").strip()
        if not self.model_name:
            raise ValueError("A model name is required.")
        self.api_key = (api_key or "").strip()
        self.base_url = (base_url or "").strip() or None
        self.default_max_tokens = int(default_max_tokens or 1024)
        self.default_temperature = default_temperature
        self._client = client or openai.OpenAI(api_key=self.api_key, base_url=self.base_url)

    def _uses_responses_api(self) -> bool:
        if self.base_url:
            return False
        name = self.model_name.lower()
        return name.startswith(("gpt-5", "o3", "o4", "gpt-4.1"))

    def generate_chat(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_new_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
    ) -> str:
        if not messages:
            raise ValueError("messages must not be empty.")
        max_tokens = int(max_new_tokens if max_new_tokens is not None else self.default_max_tokens)
        if max_tokens <= 0:
            raise ValueError("max_new_tokens must be positive.")
        if temperature is None:
            temperature = self.default_temperature

        started = time.perf_counter()
        try:
            if self._uses_responses_api():
                text = self._call_responses(messages, max_tokens, temperature, top_p)
            else:
                text = self._call_chat(messages, max_tokens, temperature, top_p)
        except openai.RateLimitError as exc:
            raise LLMRateLimitError() from exc
        except openai.OpenAIError as exc:
            raise LLMError(f"The language model request failed: {exc}") from exc

        LOGGER.info(
            "LLM call to %s finished in %.2fs (%d characters)",
            self.model_name,
            time.perf_counter() - started,
            len(text),
        )
        return text

    def signature(self) -> Tuple[str, str]:
        # Never return raw secrets
        redacted = (self.api_key[:4] + "…" + self.api_key[-4:]) if self.api_key else ""
        return (self.model_name, redacted)

    def _call_chat(
        self,
        messages: Sequence[ChatMessage],
        max_tokens: int,
        temperature: Optional[float],
        top_p: Optional[float],
    ) -> str:
        kwargs: Dict[str, Any] = {
            "model": self.model_name,
            "messages": [dict(message) for message in messages],
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            kwargs["temperature"] = float(temperature)
        if top_p is not None:
            kwargs["top_p"] = float(top_p)

        resp = self._client.chat.completions.create(**kwargs)
        text = self._extract_text_from_chat(resp).strip()
        if text:
            return text
        raise LLMError(
            f"Chat completion returned no text. Raw response (truncated): {self._shorten_debug(str(resp))}"
        )

    def _call_responses(
        self,
        messages: Sequence[ChatMessage],
        max_tokens: int,
        temperature: Optional[float],
        top_p: Optional[float],
    ) -> str:
        instructions = "\n\n".join(m["content"] for m in messages if m.get("role") == "system")
        conversation = [
            {"role": m["role"], "content": m["content"]} for m in messages if m.get("role") != "system"
        ]
        payload = {
            "model": self.model_name,
            "instructions": instructions or None,
            "input": conversation,
            "max_output_tokens": max_tokens,
            "temperature": float(temperature) if temperature is not None else None,
            "top_p": float(top_p) if top_p is not None else None,
        }
        resp = self._client.responses.create(**{k: v for k, v in payload.items() if v is not None})
        text = (getattr(resp, "output_text", None) or "").strip()
        if text:
            return text
        raise LLMError(
            f"Model returned no text content. Raw response (truncated): {self._shorten_debug(str(resp))}"
        )

    def _extract_text_from_chat(self, resp: Any) -> str:
        choices = getattr(resp, "choices", []) or []
        if not choices:
            return ""
        msg = getattr(choices[0], "message", None)
        if isinstance(msg, dict):
            content = msg.get("content")
        else:
            content = getattr(msg, "content", None)
        if isinstance(content, list):
            parts: List[str] = []
            for part in content:
                if isinstance(part, dict) and part.get("type") == "text":
                    parts.append(str(part.get("text") or ""))
            return "\n".join(p for p in parts if p)
        return str(content or "")

    @staticmethod
    def _shorten_debug(s: str, limit: int = 1200) -> str:
        s = s.replace("\n", " ")
        return (s[:limit] + "…") if len(s) > limit else s
