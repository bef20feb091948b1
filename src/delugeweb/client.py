"""Deluge Web UI client."""

from typing import Any

from .models import (
    AuthFailedError,
    Backend,
    ClientError,
    Config,
    DecodeError,
    DelugeError,
    InvalidVersionError,
    Response,
    Schema,
)
from .session import WebSession
from .transfer import TransferStatus, decode_transfers
from .util.log import get_logger, init_logger, log_time

logger = get_logger()

# Web UI methods
AUTH_LOGIN = "auth.login"
ADD_MAGNET = "core.add_torrent_magnet"
ADD_TORRENT_URL = "core.add_torrent_url"
ADD_TORRENT_FILE = "core.add_torrent_file"
GET_TORRENT_STATUS = "core.get_torrent_status"
GET_ALL_TORRENTS = "core.get_torrents_status"
GET_HOST_STATUS = "web.get_host_status"
GET_HOSTS = "web.get_hosts"
GET_LABELS = "label.get_labels"
SET_LABEL = "label.set_torrent"


class DelugeClient:
    """Client for the Deluge Web UI JSON-RPC interface.

    Documentation: https://deluge.readthedocs.io/en/latest/reference/webapi.html

    The Web UI authenticates with a session cookie set by auth.login. Calls
    log in lazily when needed and, when the daemon answers with an error
    (typically an expired session), log in again and retry exactly once.

    A client is not safe for concurrent use; serialize calls or create one
    client per thread.
    """

    @log_time
    def __init__(self, config: Config, connect: bool = True) -> None:
        """Create the client.

        Args:
            config: Connection parameters
            connect: Log in and look up the daemon version right away.
                     With False no request is made until the first call.

        Raises:
            ClientError: If connect is True and login or version lookup fails
        """
        if config.log_level:
            init_logger(config.log_level)

        self.config = config
        self.version = config.version
        self.backends: dict[str, Backend] = {}
        self._session = WebSession(config)

        if not connect:
            return

        try:
            self.login()
            if not self.version:
                self.discover_version()
        except ClientError:
            self._session.close()
            raise

    def __enter__(self) -> "DelugeClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    @property
    def url(self) -> str:
        return self._session.url

    @property
    def authenticated(self) -> bool:
        return self._session.authenticated

    @property
    def bytes_read(self) -> int:
        """Total size of all response bodies read so far."""
        return self._session.bytes_read

    # ========================================================================
    # Session
    # ========================================================================

    @log_time
    def login(self) -> None:
        """Log in with the Web UI password and keep the session cookie.

        Only the HTTP status decides the outcome: the Web UI answers 200 to
        a successful login.

        Raises:
            AuthFailedError: If the status is not 200
            TransportError: If the request fails
        """
        # The password is the only positional parameter of auth.login
        status, reason, _ = self._session.post(
            AUTH_LOGIN, [self.config.password]
        )

        if status != 200:
            self._session.authenticated = False
            logger.warning(
                f"Login to {self.url} failed with status {status} {reason}"
            )
            raise AuthFailedError(self.url, AUTH_LOGIN, status, reason)

        self._session.authenticated = True
        logger.info(f"Logged in to {self.url}")

    @log_time
    def call(self, method: str, params: list[Any] | None = None) -> Response:
        """Make RPC call to Deluge Web API.

        Args:
            method: RPC method name
            params: Method parameters

        Returns:
            Decoded response envelope, result left for the caller

        Raises:
            AuthFailedError: If a required login fails
            DelugeError: If the daemon reports an error twice in a row
            TransportError: If the request fails or cannot be decoded
        """
        if not self._session.authenticated:
            self.login()

        response = self._rpc(method, params)
        if response.ok:
            return response

        logger.info(
            f"{method} failed with code {response.error.code} "
            f"({response.error.message}), logging in again"
        )
        self.login()

        response = self._rpc(method, params)
        if response.ok:
            return response

        raise DelugeError(method, response.error.code, response.error.message)

    # ========================================================================
    # Daemon Metadata
    # ========================================================================

    @log_time
    def discover_version(self) -> str:
        """Look up backends and the version of the last one.

        Backends and version are informational only; listing transfers does
        not need them.

        Returns:
            Version string reported by the daemon

        Raises:
            InvalidVersionError: If the Web UI data has an unexpected shape
        """
        response = self.call(GET_HOSTS, [])
        self.backends, host_id = self._parse_hosts(response.result)

        response = self.call(GET_HOST_STATUS, [host_id])
        self.version = self._parse_host_status(response.result)

        logger.info(
            f"Deluge {self.version} on {self.backends[host_id].address}"
        )

        return self.version

    # ========================================================================
    # Torrent Retrieval
    # ========================================================================

    @log_time
    def list_transfers(
        self, schema: Schema = Schema.COMPAT
    ) -> dict[str, TransferStatus]:
        """Get status of all torrents, keyed by torrent hash.

        Schema.COMPAT works with both daemon generations and is the right
        choice unless a caller needs one generation's exact field set.

        Raises:
            DecodeError: If the result does not match the layout
        """
        # Empty filter and field list: every torrent, every field
        response = self.call(GET_ALL_TORRENTS, ["", ""])

        try:
            return decode_transfers(response.result, schema)
        except (TypeError, ValueError) as e:
            self._log_payload(response.result)
            raise DecodeError(
                f"Invalid {GET_ALL_TORRENTS} result: {e}",
                payload=response.result,
            ) from e

    # ========================================================================
    # Internal Helpers
    # ========================================================================

    def log(self, msg: str) -> None:
        """Send a diagnostic message to the logger and the debug hook."""
        logger.debug(msg)

        if self.config.debug_log is None:
            return

        try:
            self.config.debug_log(msg)
        except Exception as e:
            logger.warning(f"Debug log hook failed: {e}")

    def _log_payload(self, payload: Any) -> None:
        self.log(f"Failed Payload:\n{payload!r}\n")

    def _rpc(self, method: str, params: list[Any] | None) -> Response:
        try:
            return self._session.rpc(method, params)
        except DecodeError as e:
            self._log_payload(e.payload)
            raise

    def _parse_hosts(self, result: Any) -> tuple[dict[str, Backend], str]:
        """Parse web.get_hosts result: [[id, address, port, protocol], ...].

        Returns the backends and the id of the last entry.
        """
        if not isinstance(result, list) or not result:
            self._log_payload(result)
            raise InvalidVersionError(f"{GET_HOSTS} returned no hosts")

        backends = {}
        host_id = ""
        for host in result:
            if not _is_host_entry(host):
                self._log_payload(result)
                raise InvalidVersionError(
                    f"Invalid host entry in {GET_HOSTS}: {host!r}"
                )

            host_id, address, port, protocol = host[:4]
            backends[host_id] = Backend(
                id=host_id,
                address=f"{address}:{port:.0f}",
                protocol=protocol,
            )

        return backends, host_id

    def _parse_host_status(self, result: Any) -> str:
        """Parse web.get_host_status result, version comes last."""
        if not isinstance(result, list) or len(result) < 3:
            self._log_payload(result)
            raise InvalidVersionError(
                f"Invalid data returned by {GET_HOST_STATUS}"
            )

        version = result[-1]
        if not isinstance(version, str):
            self._log_payload(result)
            raise InvalidVersionError(
                f"Invalid version in {GET_HOST_STATUS}: {version!r}"
            )

        return version


def _is_host_entry(host: Any) -> bool:
    if not isinstance(host, list) or len(host) < 4:
        return False

    host_id, address, port, protocol = host[:4]
    return (
        isinstance(host_id, str)
        and isinstance(address, str)
        and isinstance(port, (int, float))
        and not isinstance(port, bool)
        and isinstance(protocol, str)
    )
