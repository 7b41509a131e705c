import os

from dotenv import load_dotenv

BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)

# .env.local wins over .env; neither overrides real environment variables.
load_dotenv(os.path.join(PROJECT_ROOT, ".env.local"))
load_dotenv(os.path.join(PROJECT_ROOT, ".env"))


def env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


def env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


def env_str(name: str, default: str) -> str:
    raw = os.environ.get(name, "")
    return raw.strip() or default


# ── Model endpoint ────────────────────────────────────────────────────────────
GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

LLM_MODEL = env_str("GEMINI_MODEL", "gemini-2.5-flash")
LLM_BASE_URL = env_str("GEMINI_BASE_URL", GEMINI_OPENAI_BASE_URL)
LLM_TIMEOUT_SECONDS = env_float("LLM_TIMEOUT_SECONDS", 60.0, minimum=1.0)
LLM_SLOW_WARN_SECONDS = env_float("LLM_SLOW_WARN_SECONDS", 30.0)
LLM_TEMPERATURE = env_float("LLM_TEMPERATURE", 0.3)
LLM_TOP_P = env_float("LLM_TOP_P", 0.95)
LLM_MAX_OUTPUT_TOKENS = env_int("LLM_MAX_OUTPUT_TOKENS", 8192)


def get_api_key() -> str | None:
    """Read at call time so a key added to the environment after import is picked up."""
    key = os.environ.get("GEMINI_API_KEY", "").strip()
    return key or None


# ── Course catalog ────────────────────────────────────────────────────────────
CATALOG_API_URL = env_str("CATALOG_API_URL", "https://api.umd.io/v1/courses").rstrip("/")
CATALOG_TIMEOUT_SECONDS = env_float("CATALOG_TIMEOUT_SECONDS", 10.0, minimum=0.5)
CATALOG_MAX_WORKERS = env_int("CATALOG_MAX_WORKERS", 8)

# ── Prompt ────────────────────────────────────────────────────────────────────
_env_prompt_path = os.environ.get("PROMPT_PATH")
if not _env_prompt_path:
    PROMPT_PATH = os.path.join(PROJECT_ROOT, "prompt.md")
elif not os.path.isabs(_env_prompt_path):
    PROMPT_PATH = os.path.join(PROJECT_ROOT, _env_prompt_path)
else:
    PROMPT_PATH = _env_prompt_path

# ── Server ────────────────────────────────────────────────────────────────────
SLOW_REQUEST_LOG_MS = env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)
RATE_LIMIT_MAX = env_int("RATE_LIMIT_MAX", 10)
RATE_LIMIT_WINDOW = env_float("RATE_LIMIT_WINDOW", 60.0, minimum=1.0)
