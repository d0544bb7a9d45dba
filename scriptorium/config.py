import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


def _default_sqlite_uri() -> str:
    instance_path = BASE_DIR / "instance"
    instance_path.mkdir(exist_ok=True)
    return f"sqlite:///{instance_path / 'scriptorium.db'}"


def _first_env(*names: str) -> str | None:
    for name in names:
        value = (os.environ.get(name) or "").strip()
        if value:
            return value
    return None


class Config:
    """Base configuration shared across environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or _default_sqlite_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_TIME_LIMIT = None
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    SCENE_VERSION_LIMIT = int(os.environ.get("SCENE_VERSION_LIMIT", "20"))

    # Any OpenAI-compatible chat endpoint (OpenAI, Groq, a local server).
    LLM_API_KEY = _first_env("LLM_API_KEY", "OPENAI_API_KEY", "GROQ_API_KEY")
    LLM_MODEL = os.environ.get("LLM_MODEL", "llama-3.3-70b-versatile")
    LLM_BASE_URL = _first_env("LLM_BASE_URL")
    LLM_TEMPERATURE = float(os.environ.get("LLM_TEMPERATURE", "0.8"))
    LLM_MAX_TOKENS = int(os.environ.get("LLM_MAX_TOKENS", "1024"))

    TEXT_GENERATOR_MODEL_PATH = _first_env("TEXT_GENERATOR_MODEL_PATH")
    PROMPT_CONFIG_PATH = _first_env("PROMPT_CONFIG_PATH")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False
    LLM_API_KEY = None
    TEXT_GENERATOR_MODEL_PATH = None
    PROMPT_CONFIG_PATH = None
