#!/usr/bin/env python3
from __future__ import annotations

import importlib
import os
import sys
from pathlib import Path
from urllib import error, request


REQUIRED_PYTHON = (3, 11)


def _state_dir() -> Path:
    configured = os.getenv("STATEPILOT_STATE_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".statepilot"


def _base_llm_url() -> str:
    raw = os.getenv("STATEPILOT_LLM_URL", "http://127.0.0.1:8001/v1/chat/completions").strip()
    if raw.endswith("/v1/chat/completions"):
        return raw[: -len("/v1/chat/completions")]
    return raw.rstrip("/")


def _check_llm(url: str) -> tuple[bool, str]:
    models_url = f"{url}/v1/models"
    req = request.Request(models_url, method="GET")
    api_key = os.getenv("STATEPILOT_LLM_API_KEY")
    if api_key:
        req.add_header("Authorization", f"Bearer {api_key}")
    try:
        with request.urlopen(req, timeout=1.0) as resp:  # nosec B310
            if 200 <= resp.status < 500:
                return True, f"reachable via GET {models_url}"
    except error.HTTPError as exc:
        if exc.code < 500:
            return True, f"reachable via GET {models_url} (HTTP {exc.code})"
        return False, f"{exc}"
    except error.URLError as exc:
        return False, f"{exc}"
    return False, "unknown error"


def main() -> int:
    errors: list[str] = []

    if sys.version_info >= REQUIRED_PYTHON:
        print(f"OK: Python {sys.version.split()[0]} (>= 3.11)")
    else:
        errors.append(
            "Python 3.11+ is required. Fix: install Python 3.11+ and recreate your virtual environment."
        )

    try:
        importlib.import_module("statepilot")
        print("OK: import statepilot")
    except Exception as exc:
        errors.append(
            f"Could not import statepilot ({exc}). Fix: run `python -m pip install -e .[dev]` from repo root."
        )

    state_dir = _state_dir()
    try:
        state_dir.mkdir(parents=True, exist_ok=True)
        marker = state_dir / ".write-check"
        marker.write_text("ok", encoding="utf-8")
        marker.unlink(missing_ok=True)
        print(f"OK: STATEPILOT_STATE_DIR writable at {state_dir}")
    except Exception as exc:
        errors.append(
            f"STATEPILOT_STATE_DIR is not writable ({state_dir}): {exc}. "
            "Fix: set STATEPILOT_STATE_DIR to a writable directory."
        )

    catalog_path = os.getenv("STATEPILOT_CATALOG_PATH")
    if catalog_path:
        try:
            from statepilot.core.catalog import CatalogLoadError, load_catalog

            catalog = load_catalog(catalog_path)
            print(f"OK: catalog {catalog_path} declares {len(catalog)} action types")
        except CatalogLoadError as exc:
            errors.append(f"{exc}. Fix: correct the file or unset STATEPILOT_CATALOG_PATH.")
    else:
        print("OK: no default catalog configured (callers send actions per request)")

    provider = os.getenv("STATEPILOT_LLM_PROVIDER", "off").strip().casefold()
    if provider in {"http", "openai", "vllm"}:
        llm_url = _base_llm_url()
        reachable, detail = _check_llm(llm_url)
        if reachable:
            print(f"OK: LLM endpoint {llm_url} is reachable ({detail})")
        else:
            errors.append(
                f"LLM provider enabled but endpoint is unreachable ({llm_url}): {detail}. "
                "Fix: start the server, verify STATEPILOT_LLM_URL, and ensure the port is accessible."
            )
    else:
        print(f"OK: LLM provider is {provider}")

    if errors:
        for message in errors:
            print(f"ERROR: {message}")
        return 1

    print("OK: environment check passed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
