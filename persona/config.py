import os


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Config:
    """Base configuration shared across environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Language model provider: "openai", "ollama" or "none".
    LLM_PROVIDER = os.environ.get("LLM_PROVIDER", "openai")
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
    OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-3.5-turbo")
    OLLAMA_BASE_URL = os.environ.get("OLLAMA_BASE_URL")
    OLLAMA_MODEL = os.environ.get("OLLAMA_MODEL", "llama2")
    LLM_TEMPERATURE = _env_float("LLM_TEMPERATURE", 0.7)
    LLM_MAX_TOKENS = _env_int("LLM_MAX_TOKENS", 2048)

    REPLICATE_API_TOKEN = os.environ.get("REPLICATE_API_TOKEN")
    LOCAL_SD_BASE_URL = os.environ.get("LOCAL_SD_BASE_URL", "http://localhost:7860")
    LOCAL_SD_TIMEOUT = _env_float("LOCAL_SD_TIMEOUT", 120.0)

    # Leaves room for the multipart envelope around a maximum-size PDF upload.
    MAX_CONTENT_LENGTH = 12 * 1024 * 1024


class TestConfig(Config):
    TESTING = True
    LLM_PROVIDER = "none"
    OPENAI_API_KEY = None
    OLLAMA_BASE_URL = None
    REPLICATE_API_TOKEN = None
    LOCAL_SD_BASE_URL = ""
