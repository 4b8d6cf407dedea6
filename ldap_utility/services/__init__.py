"""Application service layer.

Stable import surface for routers:
    from ldap_utility.services import ...
"""

from .audit import audit_login
from .auth import AuthResult, LdapAuthenticate, UserStore
from .auth import authenticate as ldap_authenticate

__all__ = [
    "AuthResult",
    "LdapAuthenticate",
    "UserStore",
    "audit_login",
    "ldap_authenticate",
]
