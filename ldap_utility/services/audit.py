from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..models import LoginAudit

log = logging.getLogger(__name__)


def audit_login(
    db: Session,
    username: str,
    success: bool,
    ip: str,
    user_agent: str,
    result_code: str,
    details: str = "",
    auth_type: str = "ldap",
) -> LoginAudit:
    """Store one login attempt. ``result_code`` is ok, invalid or error."""
    if not success:
        log.info("Login failed for %s from %s: %s %s", username, ip or "-", result_code, details)

    row = LoginAudit(
        username=username[:128],
        auth_type=auth_type,
        success=success,
        ip=ip[:64],
        user_agent=user_agent[:512],
        result_code=result_code,
        details=details[:512],
    )
    db.add(row)
    db.commit()
    return row
