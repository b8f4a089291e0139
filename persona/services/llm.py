"""Language model provider selection.

The provider is chosen explicitly through ``LLM_PROVIDER`` and built once per
application. Every provider exposes ``generate_response(prompt, **kwargs)``;
services receive the instance as an argument and never look at the
environment themselves.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from flask import current_app

from api_handler import OpenAIChatGenerator

GENERATOR_CACHE_KEY = "_TEXT_GENERATOR_INSTANCE"
PROVIDERS = ("openai", "ollama", "none")

_PLACEHOLDER_OPENAI_KEYS = {"your_openai_api_key_here"}


class TextGenerator(Protocol):
    def generate_response(self, prompt: str, **kwargs: Any) -> str:
        ...


class ProviderConfigurationError(RuntimeError):
    """Raised when the configured language model provider cannot be built."""


def build_text_generator(config: Mapping[str, Any]) -> Optional[TextGenerator]:
    """Return the text generator selected by ``config["LLM_PROVIDER"]``.

    ``"none"`` returns ``None``: the services then fall back to their
    offline behaviour.
    """

    provider = str(config.get("LLM_PROVIDER") or "none").strip().lower()
    temperature = config.get("LLM_TEMPERATURE")
    max_tokens = config.get("LLM_MAX_TOKENS") or 2048

    if provider == "none":
        return None

    if provider == "openai":
        api_key = (config.get("OPENAI_API_KEY") or "").strip()
        if not api_key or api_key in _PLACEHOLDER_OPENAI_KEYS:
            raise ProviderConfigurationError("OPENAI_API_KEY is required when LLM_PROVIDER is 'openai'.")
        return OpenAIChatGenerator(
            config.get("OPENAI_MODEL") or "gpt-3.5-turbo",
            api_key,
            temperature=temperature,
            default_max_tokens=max_tokens,
            label="OpenAI API",
        )

    if provider == "ollama":
        base_url = (config.get("OLLAMA_BASE_URL") or "").strip().rstrip("/")
        if not base_url:
            raise ProviderConfigurationError("OLLAMA_BASE_URL is required when LLM_PROVIDER is 'ollama'.")
        return OpenAIChatGenerator(
            config.get("OLLAMA_MODEL") or "llama2",
            "ollama",
            base_url=f"{base_url}/v1",
            temperature=temperature,
            default_max_tokens=max_tokens,
            label="Ollama",
        )

    raise ProviderConfigurationError(
        f"Unknown LLM_PROVIDER '{provider}'. Expected one of: {', '.join(PROVIDERS)}."
    )


def get_text_generator() -> Optional[TextGenerator]:
    app = current_app
    if GENERATOR_CACHE_KEY in app.config:
        return app.config[GENERATOR_CACHE_KEY]

    try:
        generator = build_text_generator(app.config)
    except (ProviderConfigurationError, ValueError) as exc:
        app.logger.warning("Language model provider unavailable; using fallbacks. Error: %s", exc)
        generator = None
    else:
        if generator is None:
            app.logger.info("LLM_PROVIDER is 'none'; using fallback behaviour.")
        else:
            app.logger.info("Initialised language model provider: %s", generator.signature()[:2])

    app.config[GENERATOR_CACHE_KEY] = generator
    return generator
