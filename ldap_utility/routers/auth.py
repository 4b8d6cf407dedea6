from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..deps import get_authenticator_factory, get_current_user, get_db
from ..exceptions import DirectoryError, MalformedInputError
from ..services import LdapAuthenticate, audit_login, ldap_authenticate
from ..services.auth.backend import INVALID_CREDENTIALS
from ..session import SESSION_COOKIE
from ..webui import json_result, set_session_cookie, ui_result

log = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login")
def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
    make_authenticator: Callable[[], LdapAuthenticate] = Depends(get_authenticator_factory),
):
    username = username.strip()
    ip = request.client.host if request.client else ""
    ua = request.headers.get("user-agent", "")

    # Input validation (no directory round-trip)
    if not username:
        return json_result(ui_result(False, "Enter your username."), status_code=400)
    if not password:
        return json_result(ui_result(False, "Enter your password."), status_code=400)

    try:
        with make_authenticator() as authenticator:
            result = ldap_authenticate(authenticator, username, password)
    except DirectoryError as exc:
        # Same answer as a bad password: directory state is not exposed.
        log.warning("Directory unavailable during login of %s: %s", username, exc)
        audit_login(db, username, False, ip, ua, "error", f"directory-error:{exc.code}")
        return json_result(ui_result(False, INVALID_CREDENTIALS), status_code=401)
    except MalformedInputError as exc:
        log.warning("Unusable directory entry for %s: %s", username, exc)
        audit_login(db, username, False, ip, ua, "error", "malformed-directory-mail")
        return json_result(ui_result(False, INVALID_CREDENTIALS), status_code=401)

    if not result.success:
        audit_login(db, username, False, ip, ua, "invalid", "invalid-ldap-credentials")
        return json_result(ui_result(False, result.error_message), status_code=401)

    resp = json_result(ui_result(True, "OK"), user=result.user_data)
    set_session_cookie(resp, result.user_data)
    audit_login(db, username, True, ip, ua, "ok", "")
    return resp


@router.get("/me")
def me(user: dict = Depends(get_current_user)):
    return {"ok": True, "user": user}


@router.get("/logout")
def logout():
    resp = JSONResponse(ui_result(True, "Logged out."))
    resp.delete_cookie(SESSION_COOKIE)
    return resp
