import sys
import time

import openai
from openai import OpenAI

import config


class LlmError(Exception):
    """Model-call failure carrying the error envelope fields for the HTTP layer."""

    error_code = "LLM_ERROR"
    status = 500

    def __init__(self, message: str, error_code: str | None = None, status: int | None = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status:
            self.status = status


class MissingApiKeyError(LlmError):
    error_code = "CONFIG_ERROR"
    status = 500

    def __init__(self):
        super().__init__(
            "Gemini API key is not configured. "
            "Please set GEMINI_API_KEY in your .env.local file."
        )


def get_llm_client() -> OpenAI:
    api_key = config.get_api_key()
    if not api_key:
        raise MissingApiKeyError()
    # One attempt only: the timeout is the whole failure-recovery story.
    return OpenAI(
        api_key=api_key,
        base_url=config.LLM_BASE_URL,
        timeout=config.LLM_TIMEOUT_SECONDS,
        max_retries=0,
    )


def _map_openai_error(exc: Exception) -> LlmError:
    if isinstance(exc, openai.APITimeoutError):
        return LlmError(
            f"Failed to get AI response: Gemini API call timed out after "
            f"{config.LLM_TIMEOUT_SECONDS:g} seconds",
            error_code="LLM_TIMEOUT",
        )
    if isinstance(exc, openai.AuthenticationError) or "API_KEY" in str(exc):
        return LlmError(
            "Invalid API key. Please check your GEMINI_API_KEY in .env.local",
            error_code="INVALID_API_KEY",
            status=401,
        )
    return LlmError(f"Failed to get AI response: {exc}")


def generate_schedule_text(prompt: str) -> str:
    """Sends the prompt in a single chat completion. Returns the raw model text."""
    client = get_llm_client()
    print(f"[LLM] Prompt length: {len(prompt)} characters")
    print(f"[LLM] Calling {config.LLM_MODEL}...")

    started = time.perf_counter()
    try:
        response = client.chat.completions.create(
            model=config.LLM_MODEL,
            temperature=config.LLM_TEMPERATURE,
            top_p=config.LLM_TOP_P,
            max_tokens=config.LLM_MAX_OUTPUT_TOKENS,
            messages=[{"role": "user", "content": prompt}],
        )
    except openai.OpenAIError as exc:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        print(f"[ERROR] Model call failed after {elapsed_ms:.0f} ms: {exc}", file=sys.stderr)
        raise _map_openai_error(exc) from exc

    elapsed = time.perf_counter() - started
    print(f"[LLM] Model call completed in {elapsed * 1000.0:.0f} ms")
    if elapsed > config.LLM_SLOW_WARN_SECONDS:
        print(
            f"[WARN] Model call took longer than {config.LLM_SLOW_WARN_SECONDS:g} seconds",
            file=sys.stderr,
        )

    text = ""
    if response.choices:
        text = response.choices[0].message.content or ""
    print(f"[LLM] Response received, length: {len(text)} characters")
    return text
