"""Local Hugging Face backend for the writing assistant.

:class:`TextGenerator` exposes the same ``generate_chat`` interface as
:class:`scriptorium.api_handler.OpenAIChatGenerator` so the assistant can run
fully offline when ``TEXT_GENERATOR_MODEL_PATH`` points at a causal language
model. It needs the ``local`` extra (``torch`` and ``transformers``) and is
only imported when that setting is present.

* 4-bit loading through ``bitsandbytes`` when a GPU is available, full
  precision otherwise.
* Chat messages are rendered with the tokenizer's chat template when the
  model ships one, and with a plain ``Role:`` transcript otherwise.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, Sequence

import torch
from transformers import AutoModelForCausalLM, AutoTokenizer, BitsAndBytesConfig


LOGGER = logging.getLogger(__name__)


class TextGenerator:
    def __init__(
        self,
        model_path: str,
        *,
        temperature: Optional[float] = 0.8,
        top_p: Optional[float] = 0.95,
        max_new_tokens: int = 1024,
        seed: int = 42,
        device_map: str | Dict[str, Any] | None = "auto",
        use_4bit: bool = True,
    ):
        self.model_path = model_path
        self.temperature = temperature
        self.top_p = top_p
        self.max_new_tokens = max_new_tokens
        self.use_4bit = use_4bit

        torch.manual_seed(seed)
        if torch.cuda.is_available():
            torch.cuda.manual_seed_all(seed)

        model_kwargs: Dict[str, Any] = {"device_map": device_map, "torch_dtype": "auto"}
        quantization_config = self._build_quantization_config()
        if quantization_config is not None:
            model_kwargs["quantization_config"] = quantization_config

        self.model = AutoModelForCausalLM.from_pretrained(model_path, **model_kwargs)
        self.model.eval()

        self.tokenizer = AutoTokenizer.from_pretrained(model_path)
        if self.tokenizer.pad_token is None:
            # Causal models often ship without a pad token.
            self.tokenizer.pad_token = self.tokenizer.eos_token

    def _build_quantization_config(self) -> Optional[BitsAndBytesConfig]:
        if not self.use_4bit:
            return None

        if not torch.cuda.is_available():
            LOGGER.info("CUDA is not available; skipping 4-bit quantisation.")
            return None

        try:
            import bitsandbytes  # type: ignore  # noqa: F401
        except ImportError:
            LOGGER.info("bitsandbytes not installed; using full precision model loading.")
            return None

        LOGGER.info("Loading model with 4-bit quantisation enabled.")
        return BitsAndBytesConfig(
            load_in_4bit=True,
            bnb_4bit_use_double_quant=True,
            bnb_4bit_quant_type="nf4",
            bnb_4bit_compute_dtype=torch.float16,
        )

    def render_messages(self, messages: Sequence[Dict[str, str]]) -> str:
        if getattr(self.tokenizer, "chat_template", None):
            return self.tokenizer.apply_chat_template(
                list(messages),
                tokenize=False,
                add_generation_prompt=True,
            )
        lines = [f"{m['role'].capitalize()}:\n{m['content']}" for m in messages]
        lines.append("Assistant:\n")
        return "\n\n".join(lines)

    def generate_chat(
        self,
        messages: Sequence[Dict[str, str]],
        *,
        max_new_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
    ) -> str:
        """Generate the assistant reply to ``messages`` without echoing the prompt."""

        tokens_to_generate = int(self.max_new_tokens if max_new_tokens is None else max_new_tokens)
        if tokens_to_generate <= 0:
            raise ValueError("max_new_tokens must be a positive integer")

        generation_kwargs: Dict[str, Any] = {
            "max_new_tokens": tokens_to_generate,
            "do_sample": True,
            "pad_token_id": self.tokenizer.pad_token_id,
        }
        effective_temperature = self.temperature if temperature is None else temperature
        effective_top_p = self.top_p if top_p is None else top_p
        if effective_temperature is not None:
            generation_kwargs["temperature"] = effective_temperature
        if effective_top_p is not None:
            generation_kwargs["top_p"] = effective_top_p

        prompt = self.render_messages(messages)
        enc = self.tokenizer(prompt, return_tensors="pt").to(self.model.device)
        started = time.perf_counter()
        with torch.no_grad():
            out = self.model.generate(**enc, **generation_kwargs)
        LOGGER.info(
            "Local generation with %s finished in %.2fs",
            self.model_path,
            time.perf_counter() - started,
        )

        prompt_len = enc["input_ids"].shape[-1]
        generated_ids = out[0, prompt_len:]
        if generated_ids.numel() == 0:
            return ""
        return self.tokenizer.decode(generated_ids, skip_special_tokens=True).strip()
