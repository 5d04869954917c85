"""
Health endpoints.

- /healthz: liveness, no dependencies touched
- /api/health: database, AI provider, Stripe and local storage checks;
  200 only when every check is healthy (or intentionally disabled)
"""

import logging
import os
import shutil
import tempfile
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict

import httpx
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from pitchgenie.core.config import settings
from pitchgenie.core.database import check_connection
from pitchgenie.features.billing.service import billing_enabled

logger = logging.getLogger("pitchgenie")

router = APIRouter(prefix="/api/health", tags=["health"])
root_router = APIRouter(tags=["health"])

OK_STATUSES = ("healthy", "disabled")
AI_PROBE_TIMEOUT_SECONDS = 5.0
MIN_FREE_BYTES = 100 * 1024 * 1024


def _timed(check: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
    start = time.perf_counter()
    try:
        result = check()
    except Exception as exc:
        logger.warning("health.check_failed", extra={"check": check.__name__, "error_message": str(exc)})
        result = {"status": "unhealthy", "message": "Check failed"}
    result["response_time_ms"] = round((time.perf_counter() - start) * 1000, 2)
    return result


def check_database() -> Dict[str, Any]:
    if check_connection():
        return {"status": "healthy", "message": "Database connection successful"}
    return {"status": "unhealthy", "message": "Database connection failed"}


def _probe_ai(api_key: str) -> int:
    response = httpx.get(
        f"{settings.OPENROUTER_BASE_URL}/models",
        headers={"Authorization": f"Bearer {api_key}"},
        timeout=AI_PROBE_TIMEOUT_SECONDS,
    )
    return response.status_code


def check_ai_service() -> Dict[str, Any]:
    api_key = os.getenv("OPENROUTER_API_KEY") or settings.OPENROUTER_API_KEY
    if not api_key:
        return {"status": "unhealthy", "message": "OPENROUTER_API_KEY not configured"}
    status_code = _probe_ai(api_key)
    if status_code < 400:
        return {"status": "healthy", "message": "AI service operational"}
    return {"status": "degraded", "message": f"AI provider returned {status_code}"}


def check_stripe() -> Dict[str, Any]:
    if not billing_enabled():
        return {"status": "disabled", "message": "Stripe is disabled in this deployment"}
    return {"status": "healthy", "message": "Stripe configured"}


def check_storage() -> Dict[str, Any]:
    usage = shutil.disk_usage(tempfile.gettempdir())
    details = {
        "disk_usage_percent": round(usage.used / usage.total * 100, 1) if usage.total else None,
        "free_bytes": usage.free,
    }
    if usage.free < MIN_FREE_BYTES:
        return {"status": "unhealthy", "message": "Low disk space", "details": details}
    return {"status": "healthy", "message": "Storage operational", "details": details}


@root_router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@router.get("")
def health():
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        checks = {
            "database": _timed(check_database),
            "ai_service": _timed(check_ai_service),
            "stripe": _timed(check_stripe),
            "storage": _timed(check_storage),
        }
    except Exception:
        logger.error("health.failed", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "timestamp": timestamp, "error": "Health check failed"},
        )

    healthy = all(check["status"] in OK_STATUSES for check in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "healthy" if healthy else "unhealthy", "timestamp": timestamp, "checks": checks},
    )
