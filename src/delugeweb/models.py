from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Config:
    """Connection parameters for a Deluge Web UI (immutable).

    Note: timeout is in seconds and bounds every HTTP round trip.
    Note: http_user/http_pass are only for a proxy or web server placed in
    front of Deluge; the web UI itself only knows the password.
    Note: log_level, when set, also writes the delugeweb logger to a file
    in the user log directory.
    """

    url: str
    password: str = ""
    http_user: str = ""
    http_pass: str = ""
    timeout: float = 10.0
    verify_ssl: bool = True
    version: str = ""
    log_level: str = ""
    debug_log: Callable[[str], None] | None = field(
        default=None, repr=False, compare=False
    )


class Schema(str, Enum):
    """Transfer-status layouts published by the Web UI."""

    LEGACY = "legacy"
    """Deluge 1.x layout."""

    CURRENT = "current"
    """Deluge 2.x layout."""

    COMPAT = "compat"
    """Superset of both layouts."""


@dataclass(frozen=True)
class Backend:
    """One daemon host known to the Web UI (display only)."""

    id: str
    address: str  # host:port
    protocol: str


@dataclass(frozen=True)
class RpcError:
    code: int = 0
    message: str = ""


@dataclass(frozen=True)
class Response:
    """Decoded JSON-RPC response envelope.

    result is left as decoded JSON; interpreting it is up to the caller.
    """

    id: int | None
    result: Any
    error: RpcError

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Response":
        error = data.get("error") or {}
        if not isinstance(error, dict):
            # Some plugins report a bare message instead of an object
            error = {"code": 1, "message": str(error)}

        return cls(
            id=data.get("id"),
            result=data.get("result"),
            error=RpcError(
                code=int(error.get("code") or 0),
                message=str(error.get("message") or ""),
            ),
        )

    @property
    def ok(self) -> bool:
        return self.error.code == 0


class ClientError(Exception):
    """Base exception for all client errors."""

    pass


class AuthFailedError(ClientError):
    """The login request was answered with a non-200 HTTP status."""

    def __init__(
        self, url: str, method: str, status_code: int, reason: str
    ) -> None:
        self.url = url
        self.method = method
        self.status_code = status_code
        self.reason = reason
        super().__init__(
            f"Authentication failed: {url}[{method}] "
            f"(status: {status_code}/{reason})"
        )


class DelugeError(ClientError):
    """The daemon returned an error envelope, even after re-login."""

    def __init__(self, method: str, code: int, message: str) -> None:
        self.method = method
        self.code = code
        self.message = message
        super().__init__(f"Deluge error in {method} (code {code}): {message}")


class InvalidVersionError(ClientError):
    """Host discovery data did not have the expected positional shape."""

    pass


class TransportError(ClientError):
    """Network or HTTP failure. Never retried by the client."""

    pass


class DecodeError(TransportError):
    """Response body or result payload could not be decoded."""

    def __init__(self, message: str, payload: Any = None) -> None:
        self.payload = payload
        super().__init__(message)
