"""Error taxonomy shared by the grant engine, stores and routers."""

from typing import Any


class AccessGrantError(Exception):
    """Base exception for the access grant core.

    ``code`` is a stable machine-readable tag the HTTP layer maps to a status.
    """

    code = "access_grant_error"
    default_message = "access grant error"

    def __init__(self, message: str | None = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class InvalidInputError(AccessGrantError):
    """Malformed, missing or disallowed caller-supplied data."""

    code = "invalid_input"
    default_message = "invalid input"


class ForbiddenError(AccessGrantError):
    """Caller lacks rights over this specific grant."""

    code = "forbidden"
    default_message = "forbidden"


class NotFoundError(AccessGrantError):
    code = "not_found"
    default_message = "not found"


class BadStateError(AccessGrantError):
    """Operation not valid from the grant's current status."""

    code = "bad_state"
    default_message = "invalid state"


class GrantNotFoundError(NotFoundError):
    default_message = "grant not found"


class GrantAlreadyExistsError(AccessGrantError):
    code = "already_exists"
    default_message = "grant already exists"


class PetNotFoundError(NotFoundError):
    default_message = "pet not found"


class GrantConflictError(AccessGrantError):
    """The stored grant changed between read and conditional write."""

    code = "conflict"
    default_message = "grant changed concurrently"
