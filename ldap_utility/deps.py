from __future__ import annotations

from typing import Callable, Iterator

from fastapi import Depends, Request, HTTPException, status
from sqlalchemy.orm import Session

from .env_settings import get_env
from .repo import SqlUserStore, db_session
from .services import LdapAuthenticate
from .session import SESSION_COOKIE, read_session


def get_db() -> Iterator[Session]:
    with db_session() as db:
        yield db


def get_current_user(request: Request) -> dict:
    token = request.cookies.get(SESSION_COOKIE, "")
    data = read_session(token) if token else None
    if not data:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return data


def get_authenticator_factory(db: Session = Depends(get_db)) -> Callable[[], LdapAuthenticate]:
    """Build one adapter (and one directory connection) per login attempt.

    Returned as a factory so input validation runs before the directory is
    contacted.
    """
    config = get_env().ldap_config()

    def factory() -> LdapAuthenticate:
        return LdapAuthenticate(config, user_store=SqlUserStore(db))

    return factory
