"""Directory (LDAP) access package.

Public API:
    - LdapConfig
    - LdapHandler
    - DirectoryClient / Ldap3DirectoryClient
    - DirectoryEntry / DirectoryResult
"""

from .models import BindState, DirectoryEntry, DirectoryResult, LdapConfig
from .client import DirectoryClient, Ldap3DirectoryClient
from .handler import LdapHandler

__all__ = [
    "BindState",
    "DirectoryClient",
    "DirectoryEntry",
    "DirectoryResult",
    "Ldap3DirectoryClient",
    "LdapConfig",
    "LdapHandler",
]
