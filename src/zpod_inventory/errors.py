"""Exceptions raised by the vSphere and NSX inventory clients.

Only connection establishment raises. Listing and membership checks degrade
to empty results on HTTP errors, and let transport failures from ``requests``
propagate untouched.
"""

from __future__ import annotations


class InventoryError(Exception):
    """Base class for all zpod_inventory errors."""


class ConnectError(InventoryError):
    """Connection to a management endpoint could not be established.

    ``str(err)`` is the message shown to the user filling in a connection form.
    """

    default_message = "Unable to connect"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class InvalidCredentialsError(ConnectError):
    default_message = "Invalid credentials"


class ServerUnreachableError(ConnectError):
    """Endpoint did not answer, or answered with an unexpected status."""

    default_message = "Unable to connect"


class LoginFailedError(ConnectError):
    default_message = "Login failed"


class MalformedResponseError(ConnectError):
    """The endpoint answered 200 but the payload lacks required fields."""

    default_message = "Unable to parse response"
