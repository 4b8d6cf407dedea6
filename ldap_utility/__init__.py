"""LDAP authentication adapter with optional application-datastore lookup."""

__version__ = "1.0.0"
