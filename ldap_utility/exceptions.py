from __future__ import annotations


class LdapUtilityError(Exception):
    """Base class for every error raised by this package."""


class UsageError(LdapUtilityError):
    """A precondition was violated by the caller.

    Empty credentials, a query without a filter, a query on an unbound
    connection or an unknown search type. These are programming or
    configuration faults, never user-facing outcomes.
    """


class DirectoryError(LdapUtilityError):
    """The directory reported a non-zero error code after a failed operation."""

    def __init__(self, message: str = "", code: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}" if self.message else f"[{self.code}]"


class MalformedInputError(LdapUtilityError, ValueError):
    """Input could not be parsed (e.g. a mailbox without exactly one '@')."""
