from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
BACKEND_ENTRYPOINT = REPO_ROOT / "backend" / "server.py"
PROMPT_FILE = REPO_ROOT / "prompt.md"
ENV_FILES = (REPO_ROOT / ".env.local", REPO_ROOT / ".env")


def check_environment() -> int:
    if not PROMPT_FILE.is_file():
        print(f"[run-local] WARN: scheduling prompt missing: {PROMPT_FILE}", file=sys.stderr, flush=True)

    if not os.environ.get("GEMINI_API_KEY") and not any(p.is_file() for p in ENV_FILES):
        print(
            "[run-local] WARN: GEMINI_API_KEY is not set and no .env.local/.env file was found; "
            "plan requests will fail until a key is configured.",
            file=sys.stderr,
            flush=True,
        )
    return 0


def run_local() -> int:
    status = check_environment()
    if status != 0:
        return status

    if not BACKEND_ENTRYPOINT.is_file():
        print(
            f"[run-local] ERROR: backend entrypoint missing: {BACKEND_ENTRYPOINT}",
            file=sys.stderr,
            flush=True,
        )
        return 1

    print("[run-local] Starting backend server...", flush=True)
    try:
        proc = subprocess.run([sys.executable, str(BACKEND_ENTRYPOINT)], cwd=str(REPO_ROOT))
        return proc.returncode
    except KeyboardInterrupt:
        print("\n[run-local] Stopped by user.", flush=True)
        return 130


def main() -> int:
    return run_local()


if __name__ == "__main__":
    raise SystemExit(main())
