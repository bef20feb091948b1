"""Client for the Deluge Web UI JSON-RPC interface."""

from .client import DelugeClient
from .models import (
    AuthFailedError,
    Backend,
    ClientError,
    Config,
    DecodeError,
    DelugeError,
    InvalidVersionError,
    Response,
    RpcError,
    Schema,
    TransportError,
)
from .transfer import (
    TrackerError,
    TransferFile,
    TransferStatus,
    TransferTracker,
    flexible_bool,
)

__all__ = [
    'AuthFailedError',
    'Backend',
    'ClientError',
    'Config',
    'DecodeError',
    'DelugeClient',
    'DelugeError',
    'InvalidVersionError',
    'Response',
    'RpcError',
    'Schema',
    'TrackerError',
    'TransferFile',
    'TransferStatus',
    'TransferTracker',
    'TransportError',
    'flexible_bool',
]
