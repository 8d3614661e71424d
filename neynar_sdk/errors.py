"""
Exception types raised by the Neynar SDK.

Remote failures are classified once, inside the HTTP client, into
:class:`RemoteApiError` (a response came back with an error status) or
:class:`TransportError` (no response at all). Everything else is a local
precondition failure.
"""

from __future__ import annotations

from typing import Any


class NeynarError(Exception):
    """Base class for every error raised by this package."""


class InvalidMnemonicError(NeynarError, ValueError):
    """The seed phrase is empty, uses unknown words, or fails its checksum."""


class InvalidPayloadError(NeynarError, TypeError):
    """A typed-data message does not match its type schema."""


class InvalidResponseError(NeynarError):
    """A response body did not have the expected shape."""


class RemoteApiError(NeynarError):
    """The API answered with a non-success status.

    ``body`` is the upstream error payload, kept verbatim (parsed JSON when
    possible, raw text otherwise).
    """

    def __init__(
        self,
        status_code: int,
        body: Any,
        method: str | None = None,
        path: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.method = method
        self.path = path
        detail = ""
        if isinstance(body, dict):
            detail = str(body.get("message") or body.get("code") or "")
        msg = f"Neynar API request failed ({status_code})"
        if method and path:
            msg += f" [{method} {path}]"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class TransportError(NeynarError):
    """The request never produced a response (timeout, connection reset, ...)."""

    def __init__(self, message: str, method: str | None = None, path: str | None = None) -> None:
        self.method = method
        self.path = path
        super().__init__(message)
