from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ldap import LdapAuthenticate

log = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password."


@dataclass
class AuthResult:
    """User authentication outcome."""
    success: bool
    user_data: dict | None = None
    error_message: str = ""


def authenticate(authenticator: LdapAuthenticate, username: str, password: str) -> AuthResult:
    """Run the LDAP adapter and wrap its outcome for the web layer.

    Every negative outcome carries the same message, whatever the cause.
    """
    user = authenticator.authenticate(username, password)
    if not user:
        return AuthResult(success=False, error_message=INVALID_CREDENTIALS)

    if user.get("is_enabled") is False:
        log.info("Login refused for disabled application user %s", username)
        return AuthResult(success=False, error_message=INVALID_CREDENTIALS)

    return AuthResult(success=True, user_data=user)
