# api_handler.py
from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

import openai

LOGGER = logging.getLogger(__name__)


class LLMProviderError(RuntimeError):
    """Raised when the language model provider cannot produce a reply."""


class LLMRateLimitError(LLMProviderError):
    """Raised when the provider reports a rate limit condition."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(
            message or "The language model rate limit has been exceeded. Please try again shortly."
        )


def _provider_error(exc: Exception) -> LLMProviderError:
    """Map an SDK exception onto an :class:`LLMProviderError` subclass."""

    if getattr(exc, "status_code", None) == 429:
        return LLMRateLimitError()

    message = str(exc)
    if "rate limit" in message.lower() or "too many requests" in message.lower():
        return LLMRateLimitError()

    return LLMProviderError(f"Language model request failed: {message}")


class OpenAIChatGenerator:
    """
    Text generator backed by an OpenAI-compatible chat completions endpoint.

    The same class talks to the hosted OpenAI API and to a local Ollama
    server: Ollama exposes the chat completions API under ``<base>/v1`` and
    accepts any API key.

    Compatible with OpenAI Python SDK >= 1.0.
    """

    def __init__(
        self,
        model_name: str,
        api_key: str,
        *,
        base_url: Optional[str] = None,
        temperature: Optional[float] = 0.7,
        default_max_tokens: int = 2048,
        label: str = "OpenAI API",
    ) -> None:
        self.model_name = (model_name or "").strip()
        self.api_key = (api_key or "").strip()
        self.base_url = (base_url or "").strip() or None
        self.temperature = temperature
        self.default_max_tokens = int(default_max_tokens or 2048)
        self.label = label
        if not self.model_name:
            raise ValueError("A model name is required for the language model provider.")

        self._client = openai.OpenAI(api_key=self.api_key, base_url=self.base_url)

    # ---------------- public API ----------------
    def generate_response(
        self,
        prompt: str,
        *,
        max_new_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
    ) -> str:
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValueError("prompt must be a non-empty string.")
        max_tokens = int(max_new_tokens if max_new_tokens is not None else self.default_max_tokens)
        if max_tokens <= 0:
            raise ValueError("max_new_tokens must be positive.")

        kwargs: dict = {
            "model": self.model_name,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "n": 1,
        }
        effective_temperature = self.temperature if temperature is None else temperature
        if effective_temperature is not None:
            kwargs["temperature"] = float(effective_temperature)
        if top_p is not None:
            kwargs["top_p"] = float(top_p)

        try:
            resp = self._client.chat.completions.create(**kwargs)
        except openai.OpenAIError as exc:
            LOGGER.warning("Chat completion via %s failed: %s", self.label, exc)
            raise _provider_error(exc) from exc

        text = self._extract_text_from_chat(resp).strip()
        if text:
            return text
        snippet = self._shorten_debug(str(resp))
        raise LLMProviderError(f"Chat completion returned no text. Raw response (truncated): {snippet}")

    def signature(self) -> Tuple[str, str, str]:
        # Never return raw secrets
        redacted = (self.api_key[:4] + "…" + self.api_key[-4:]) if len(self.api_key) > 8 else ""
        return (self.label, self.model_name, redacted)

    # ---------------- extractors ----------------
    def _extract_text_from_chat(self, resp: Any) -> str:
        choices = getattr(resp, "choices", []) or []
        if not choices:
            return ""
        first = choices[0]
        msg = getattr(first, "message", None)
        if isinstance(msg, dict):
            content = msg.get("content")
        else:
            content = getattr(msg, "content", None)
        if isinstance(content, list):
            parts: List[str] = []
            for p in content:
                if isinstance(p, dict) and p.get("type") == "text":
                    parts.append(str(p.get("text") or ""))
            return "\n".join([p for p in parts if p])
        return str(content or "")

    @staticmethod
    def _shorten_debug(s: str, limit: int = 1200) -> str:
        s = s.replace("\n", " ")
        return (s[:limit] + "…") if len(s) > limit else s


__all__ = ["LLMProviderError", "LLMRateLimitError", "OpenAIChatGenerator"]
