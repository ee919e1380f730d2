from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

FALLBACK_CURRENCY = "EUR"
LOCAL_DEV_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")


def default_currency() -> str:
    raw = (os.getenv("DEFAULT_CURRENCY") or "").strip().upper()
    return raw or FALLBACK_CURRENCY


def cors_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS")
    if raw is None:
        return list(LOCAL_DEV_ORIGINS)
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    if not origins:
        raise RuntimeError("CORS_ALLOW_ORIGINS must not be empty.")
    return origins
