# backend/app/api/deps.py
from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from backend.app.db import get_db
from backend.app.services.ledger_store import LedgerStore


def get_current_user_id(request: Request) -> str:
    """
    Dev/pilot auth dependency.

    Reads identity from the X-User-Id header. The insights services check
    that the user exists, so this only rejects a missing or blank header.
    """
    user_id = (request.headers.get("X-User-Id") or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return user_id


def get_ledger_store(db: Session = Depends(get_db)) -> LedgerStore:
    return LedgerStore(db)
