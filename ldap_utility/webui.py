from __future__ import annotations

from fastapi.responses import JSONResponse, Response

from .env_settings import get_env
from .session import SESSION_COOKIE, SESSION_MAX_AGE, create_session


def ui_result(ok: bool, message: str, details: str | None = None) -> dict:
    """Unified result shape for API responses.

    Format:
      {"ok": bool, "message": str, "details": str}
    """

    return {
        "ok": bool(ok),
        "message": str(message or ""),
        "details": str(details or ""),
    }


def json_result(result: dict, *, status_code: int = 200, **extra) -> JSONResponse:
    return JSONResponse({**result, **extra}, status_code=status_code)


def set_session_cookie(resp: Response, payload: dict) -> None:
    """Set signed session cookie (kept in one place for all auth flows)."""
    env = get_env()
    token = create_session(payload)
    resp.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=env.cookie_secure,
        samesite="lax",
        max_age=SESSION_MAX_AGE,
    )
