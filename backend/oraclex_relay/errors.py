"""Relay error taxonomy.

Every error carries the HTTP status the controller answers with, so the
transport layer needs a single exception handler.
"""

from __future__ import annotations


class RelayError(Exception):
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RelayError):
    """A required field is missing or has the wrong type."""

    status_code = 400


class MalformedInputError(RelayError):
    """A batch payload does not have the expected shape."""

    status_code = 400


class NotFoundError(RelayError):
    status_code = 404


class AlreadyApprovedError(RelayError):
    status_code = 409
