"""Stable log contract for OG image requests."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Any

LOG_SCHEMA_VERSION = "2026-10-19.v1"

SCHEMA_OG_REQUEST = "og_request.v1"

_REASON_CODE_BY_STATUS: dict[int, str] = {
    200: "OG_RENDERED",
    400: "INPUT_REJECTED",
    404: "NAME_NOT_FOUND",
    500: "RENDER_FAILED",
}

REASON_CODE_TAXONOMY: dict[str, dict[str, str]] = {
    "OG_RENDERED": {"severity": "INFO", "category": "render", "title": "Image rendered"},
    "INPUT_REJECTED": {"severity": "INFO", "category": "input", "title": "Missing or invalid addyOrEns"},
    "NAME_NOT_FOUND": {"severity": "INFO", "category": "resolve", "title": "ENS name did not resolve"},
    "RENDER_FAILED": {"severity": "ERROR", "category": "render", "title": "Image generation failed"},
    "UNKNOWN": {"severity": "WARN", "category": "unknown", "title": "Unclassified outcome"},
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def reason_code_for_status(status: int) -> str:
    return _REASON_CODE_BY_STATUS.get(int(status or 0), "UNKNOWN")


def request_id(token: str | None, ts: str) -> str:
    digest = hashlib.sha1(f"{token or ''}|{ts}".encode("utf-8")).hexdigest()[:12]
    return f"og_{digest}"


def og_request_event(
    *,
    token: str | None,
    status: int,
    kind: str | None = None,
    address: str | None = None,
    strategy: str = "",
    error_kind: str = "",
    elapsed_ms: float = 0.0,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    ts = _now_iso()
    code = reason_code_for_status(status)
    meta = REASON_CODE_TAXONOMY.get(code, REASON_CODE_TAXONOMY["UNKNOWN"])
    row: dict[str, Any] = {
        "schema": SCHEMA_OG_REQUEST,
        "schema_version": LOG_SCHEMA_VERSION,
        "ts": ts,
        "request_id": request_id(token, ts),
        "token": token or "",
        "token_kind": kind or "",
        "address": address or "",
        "strategy": strategy,
        "status": int(status),
        "reason_code": code,
        "reason_category": meta["category"],
        "severity": meta["severity"],
        "error_kind": error_kind,
        "elapsed_ms": round(float(elapsed_ms), 2),
    }
    if extra:
        row.update(extra)
    return row
