from .backend import AuthResult, authenticate
from .ldap import LdapAuthenticate, UserStore

__all__ = ["AuthResult", "LdapAuthenticate", "UserStore", "authenticate"]
