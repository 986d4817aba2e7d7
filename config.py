# backend/config.py

import os
from typing import List

from dotenv import load_dotenv

from errors import MissingConfiguration

load_dotenv()  # must run before the os.getenv calls below


def parse_origins(value: str) -> List[str]:
    return [origin.strip() for origin in (value or "").split(",") if origin.strip()]


PORT = int(os.getenv("PORT", "4000"))

# OpenRouter (OpenAI-compatible chat completions)
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

# Display-only values sent as HTTP-Referer / X-Title to the provider
APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:5173")
OPENROUTER_APP_NAME = os.getenv("OPENROUTER_APP_NAME", "Resume Builder")

CORS_ORIGINS = parse_origins(os.getenv("CORS_ORIGINS", "http://localhost:5173"))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./resumes.db")

MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(8 * 1024 * 1024)))


def assert_env() -> None:
    """
    Model-backed routes call this before talking to the provider, so the
    server can still boot (and answer /health) without a key.
    """
    if not OPENROUTER_API_KEY:
        raise MissingConfiguration("OPENROUTER_API_KEY is required")
