"""HTTP session shared by every call of one client."""

import base64
import json
import time
from typing import Any

import requests
import urllib3

from .models import Config, DecodeError, Response, TransportError
from .util.log import get_logger

logger = get_logger()

READ_SIZE = 64 * 1024


def normalize_url(url: str) -> str:
    """Return the JSON endpoint for a Web UI URL, with or without /json."""
    return url.removesuffix("/json").removesuffix("/") + "/json"


def basic_auth_header(user: str, password: str) -> str | None:
    """Authorization header value for HTTP auth in front of the Web UI."""
    both = f"{user}:{password}"
    if both == ":":
        return None

    return "Basic " + base64.b64encode(both.encode("utf-8")).decode("ascii")


class WebSession:
    """Cookie-bearing HTTP context for one client.

    Holds the normalized endpoint, the optional basic-auth header, the
    requests session (its cookie jar carries the Web UI login), the
    authenticated flag and the request id counter. Not thread safe.
    """

    def __init__(self, config: Config) -> None:
        self.url = normalize_url(config.url)
        self.auth = basic_auth_header(config.http_user, config.http_pass)
        self.timeout = config.timeout
        self.verify = config.verify_ssl
        self.authenticated = False
        self.bytes_read = 0
        self._request_id = 0
        self._http = requests.Session()

    def close(self) -> None:
        """Release pooled connections."""
        self._http.close()

    def next_id(self) -> int:
        """Get next request ID."""
        self._request_id += 1
        return self._request_id

    def headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.auth:
            headers["Authorization"] = self.auth
        return headers

    def envelope(
        self, method: str, params: list[Any] | None = None
    ) -> dict[str, Any]:
        return {
            "method": method,
            "id": self.next_id(),
            "params": [] if params is None else params,
        }

    def post(
        self, method: str, params: list[Any] | None = None
    ) -> tuple[int, str, bytes]:
        """Send one RPC request and read the whole body.

        The configured timeout bounds the whole round trip, connect and
        body read together.

        Returns:
            HTTP status code, reason phrase and raw body

        Raises:
            TransportError: If the request fails or runs past the timeout;
                the session is marked unauthenticated so the next call
                logs in again
        """
        payload = self.envelope(method, params)
        logger.debug(f"POST {self.url} method={method} id={payload['id']}")
        deadline = time.monotonic() + self.timeout

        try:
            with self._http.post(
                self.url,
                json=payload,
                headers=self.headers(),
                timeout=self.timeout,
                verify=self.verify,
                stream=True,
            ) as response:
                body = self._read_body(response, deadline)
                status, reason = response.status_code, response.reason
        except (
            requests.exceptions.RequestException,
            urllib3.exceptions.HTTPError,
        ) as e:
            self.authenticated = False
            raise TransportError(f"Request {method} failed: {e}") from e

        self.bytes_read += len(body)

        return status, reason, body

    def _read_body(
        self, response: requests.Response, deadline: float
    ) -> bytes:
        # read1 returns whatever arrived, so a trickling peer cannot hold
        # a read open much past the deadline
        chunks = []
        while True:
            if time.monotonic() > deadline:
                raise requests.exceptions.Timeout(
                    f"response not complete within {self.timeout}s"
                )

            chunk = response.raw.read1(READ_SIZE, decode_content=True)
            if not chunk:
                return b"".join(chunks)
            chunks.append(chunk)

    def rpc(self, method: str, params: list[Any] | None = None) -> Response:
        """Send one RPC request and decode the response envelope.

        Raises:
            TransportError: If the request fails
            DecodeError: If the body is not a JSON-RPC envelope
        """
        status, reason, body = self.post(method, params)

        try:
            data = json.loads(body)
            if not isinstance(data, dict):
                raise TypeError(
                    f"expected an object, got {type(data).__name__}"
                )
            return Response.from_dict(data)
        except (TypeError, ValueError) as e:
            raise DecodeError(
                f"Invalid response to {method} "
                f"(status: {status}/{reason}): {e}",
                payload=body,
            ) from e
