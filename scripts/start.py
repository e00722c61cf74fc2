#!/usr/bin/env python3
"""
Container entrypoint: run the release phase, then exec gunicorn.

Usage:
    PORT=8080 DATABASE_URL=postgresql://... python scripts/start.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

DEFAULT_PORT = 8080


def _port_from_env() -> int | None:
    raw = (os.environ.get("PORT") or "").strip()
    if not raw:
        print(f"PORT not set, using {DEFAULT_PORT}", flush=True)
        return DEFAULT_PORT
    try:
        port = int(raw)
    except ValueError:
        port = 0
    if not 1 <= port <= 65535:
        print(f"ERROR: invalid PORT {raw!r}; expected an integer 1-65535.", flush=True)
        return None
    return port


def gunicorn_argv(port: int) -> list[str]:
    # No --preload: every worker builds its own app, storage engine and session pruner.
    return [
        "gunicorn",
        "app.wsgi:app",
        "--bind", f"0.0.0.0:{port}",
        "--workers", "2",
        "--threads", "4",
        "--timeout", "60",
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    port = _port_from_env()
    if port is None:
        sys.exit(1)

    from scripts.release import run_release

    try:
        run_release()
    except Exception as e:
        print(f"Release failed: {e}", flush=True)
        sys.exit(1)

    print(f"Starting gunicorn on 0.0.0.0:{port}", flush=True)
    os.execvp("gunicorn", gunicorn_argv(port))


if __name__ == "__main__":
    main()
