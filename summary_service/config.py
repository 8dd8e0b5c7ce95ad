# summary_service/config.py
"""
Runtime configuration read from environment variables.

Required (the process refuses to start without them):
  OPENAI_API_KEY / ANTHROPIC_API_KEY      (skipped when MOCK_LLM=true)
  GOOGLE_SHEET_ID                         (sheets backend only)
  GOOGLE_SERVICE_ACCOUNT_EMAIL            (sheets backend only)
  GOOGLE_PRIVATE_KEY                      (sheets backend only, "\\n" escapes allowed)

Optional:
  GLIDE_API_TOKEN, GLIDE_APP_ID, GLIDE_TABLE_NAME, GLIDE_SUMMARY_COLUMN, GLIDE_API_URL
  STORE_BACKEND=sheets|sql, DATABASE_URL
  HISTORY_LIMIT, SAVE_RETRY_DELAY_SECONDS
  LLM_PROVIDER, SUMMARY_LLM_MODEL, SUMMARY_TEMPERATURE, SUMMARY_MAX_TOKENS, LLM_TIMEOUT_SECONDS
"""

import os
from typing import List

VERSION = "1.2.0"


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# --- Text generation
MOCK_LLM = _flag("MOCK_LLM")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip()
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "").strip()
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))
SUMMARY_TEMPERATURE = float(os.getenv("SUMMARY_TEMPERATURE", "0.7"))
SUMMARY_MAX_TOKENS = int(os.getenv("SUMMARY_MAX_TOKENS", "500"))

# --- Row store
STORE_BACKEND = os.getenv("STORE_BACKEND", "sheets").strip().lower()
GOOGLE_SHEET_ID = os.getenv("GOOGLE_SHEET_ID", "").strip()
GOOGLE_SERVICE_ACCOUNT_EMAIL = os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL", "").strip()
GOOGLE_PRIVATE_KEY = os.getenv("GOOGLE_PRIVATE_KEY", "").replace("\\n", "\n")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./summary_service.db")

HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "5"))
SAVE_RETRY_DELAY_SECONDS = float(os.getenv("SAVE_RETRY_DELAY_SECONDS", "1.0"))

# --- Glide propagation (optional)
GLIDE_API_TOKEN = os.getenv("GLIDE_API_TOKEN", "").strip()
GLIDE_APP_ID = os.getenv("GLIDE_APP_ID", "").strip()
GLIDE_TABLE_NAME = os.getenv("GLIDE_TABLE_NAME", "").strip()
GLIDE_SUMMARY_COLUMN = os.getenv("GLIDE_SUMMARY_COLUMN", "Summary").strip()
GLIDE_API_URL = os.getenv("GLIDE_API_URL", "https://api.glideapp.io/api/function/mutateTables")

# --- HTTP
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]


class ConfigError(RuntimeError):
    """Raised when required configuration is missing at startup."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__("Missing required configuration: " + ", ".join(missing))


def llm_provider() -> str:
    explicit = os.getenv("LLM_PROVIDER", "").strip().lower()
    if explicit in ("anthropic", "claude"):
        return "anthropic"
    if explicit in ("openai", "gpt"):
        return "openai"
    if ANTHROPIC_API_KEY and not OPENAI_API_KEY:
        return "anthropic"
    return "openai"


def llm_configured() -> bool:
    if MOCK_LLM:
        return True
    if llm_provider() == "anthropic":
        return bool(ANTHROPIC_API_KEY)
    return bool(OPENAI_API_KEY)


def glide_configured() -> bool:
    return bool(GLIDE_API_TOKEN and GLIDE_APP_ID and GLIDE_TABLE_NAME)


def missing_required_config() -> List[str]:
    missing: List[str] = []
    if not llm_configured():
        missing.append("ANTHROPIC_API_KEY" if llm_provider() == "anthropic" else "OPENAI_API_KEY")
    if STORE_BACKEND == "sheets":
        if not GOOGLE_SHEET_ID:
            missing.append("GOOGLE_SHEET_ID")
        if not GOOGLE_SERVICE_ACCOUNT_EMAIL:
            missing.append("GOOGLE_SERVICE_ACCOUNT_EMAIL")
        if not GOOGLE_PRIVATE_KEY.strip():
            missing.append("GOOGLE_PRIVATE_KEY")
    elif STORE_BACKEND != "sql":
        missing.append("STORE_BACKEND (unknown value %r)" % STORE_BACKEND)
    return missing


def validate_required_config() -> None:
    missing = missing_required_config()
    if missing:
        raise ConfigError(missing)
