import sys
from pathlib import Path
from types import SimpleNamespace

import openai
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from api_handler import LLMProviderError, LLMRateLimitError, OpenAIChatGenerator
from persona import create_app
from persona.config import TestConfig
from persona.services import llm


class FakeCompletions:
    def __init__(self, outcome):
        self.outcome = outcome
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _generator_with(outcome):
    generator = OpenAIChatGenerator("gpt-test", "sk-test-key-123456")
    completions = FakeCompletions(outcome)
    generator._client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return generator, completions


def test_none_provider_builds_nothing():
    assert llm.build_text_generator({"LLM_PROVIDER": "none"}) is None


@pytest.mark.parametrize("api_key", [None, "", "your_openai_api_key_here"])
def test_openai_provider_requires_key(api_key):
    with pytest.raises(llm.ProviderConfigurationError):
        llm.build_text_generator({"LLM_PROVIDER": "openai", "OPENAI_API_KEY": api_key})


def test_openai_provider_is_built():
    generator = llm.build_text_generator(
        {"LLM_PROVIDER": "OpenAI", "OPENAI_API_KEY": "sk-test-key-123456", "OPENAI_MODEL": "gpt-4o-mini"}
    )

    assert isinstance(generator, OpenAIChatGenerator)
    assert generator.model_name == "gpt-4o-mini"
    assert generator.base_url is None


def test_ollama_provider_uses_openai_compatible_endpoint():
    generator = llm.build_text_generator(
        {"LLM_PROVIDER": "ollama", "OLLAMA_BASE_URL": "http://localhost:11434/", "OLLAMA_MODEL": "llama3"}
    )

    assert generator.base_url == "http://localhost:11434/v1"
    assert generator.model_name == "llama3"
    assert generator.label == "Ollama"


def test_ollama_provider_requires_base_url():
    with pytest.raises(llm.ProviderConfigurationError):
        llm.build_text_generator({"LLM_PROVIDER": "ollama"})


def test_unknown_provider_is_rejected():
    with pytest.raises(llm.ProviderConfigurationError):
        llm.build_text_generator({"LLM_PROVIDER": "gemini"})


def test_get_text_generator_caches_missing_provider():
    app = create_app(TestConfig)
    app.config["LLM_PROVIDER"] = "openai"

    with app.app_context():
        assert llm.get_text_generator() is None
        assert app.config[llm.GENERATOR_CACHE_KEY] is None


def test_generate_response_returns_stripped_text():
    generator, completions = _generator_with(_completion("  Hello!  "))

    assert generator.generate_response("Say hi", max_new_tokens=64, temperature=0.2) == "Hello!"
    assert completions.kwargs["model"] == "gpt-test"
    assert completions.kwargs["messages"] == [{"role": "user", "content": "Say hi"}]
    assert completions.kwargs["max_tokens"] == 64
    assert completions.kwargs["temperature"] == 0.2


def test_generate_response_rejects_empty_reply():
    generator, _ = _generator_with(_completion("   "))

    with pytest.raises(LLMProviderError):
        generator.generate_response("Say hi")


def test_rate_limit_errors_are_mapped():
    generator, _ = _generator_with(openai.OpenAIError("Rate limit reached for requests"))

    with pytest.raises(LLMRateLimitError):
        generator.generate_response("Say hi")


def test_other_sdk_errors_become_provider_errors():
    generator, _ = _generator_with(openai.OpenAIError("invalid api key"))

    with pytest.raises(LLMProviderError) as excinfo:
        generator.generate_response("Say hi")

    assert not isinstance(excinfo.value, LLMRateLimitError)
    assert "invalid api key" in str(excinfo.value)


def test_signature_redacts_key():
    generator, _ = _generator_with(_completion("ok"))

    label, model, redacted = generator.signature()

    assert (label, model) == ("OpenAI API", "gpt-test")
    assert "test-key" not in redacted
