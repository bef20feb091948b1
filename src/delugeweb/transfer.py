"""Transfer-status records returned by core.get_torrents_status.

TransferStatus carries the union of the Deluge 1.x and 2.x layouts. Attribute
names are the daemon's JSON keys. LEGACY_FIELDS and CURRENT_FIELDS select the
keys each daemon generation publishes; decoding with Schema.COMPAT reads all
of them.
"""

from collections.abc import Callable
from dataclasses import dataclass, field, fields
from typing import Any

from .models import Schema

TRUE_TOKENS = frozenset({"1", "true", "yes", "active"})


def flexible_bool(value: Any) -> bool:
    """Decode a flag the Web UI may send as a boolean, number or string.

    Accepts 1/true/yes/active in any case, quoted or not. Any other value
    is False; this never raises.
    """
    if isinstance(value, bool):
        return value

    return str(value).strip('"').casefold() in TRUE_TOKENS


def _mismatch(expected: str, value: Any) -> TypeError:
    return TypeError(
        f"expected {expected}, got {type(value).__name__} {value!r}"
    )


def _boolean(value: Any) -> bool:
    if not isinstance(value, bool):
        raise _mismatch("a boolean", value)
    return value


def _integer(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise _mismatch("an integer", value)


def _number(value: Any) -> int | float:
    # ints stay ints: 1.x daemons send integer counters where 2.x sends floats
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    raise _mismatch("a number", value)


def _string(value: Any) -> str:
    if not isinstance(value, str):
        raise _mismatch("a string", value)
    return value


def _list_of(decode: Callable[[Any], Any]) -> Callable[[Any], list]:
    def decode_list(value: Any) -> list:
        if not isinstance(value, list):
            raise TypeError(f"expected a list, got {type(value).__name__}")
        return [decode(item) for item in value]

    return decode_list


def _raw(value: Any) -> Any:
    return value


_DECODERS: dict[Any, Callable[[Any], Any]] = {
    bool: _boolean,
    int: _integer,
    float: _number,
    str: _string,
}


def _flag():
    return field(default=False, metadata={"decoder": flexible_bool})


def _items(decode: Callable[[Any], Any]):
    return field(default_factory=list, metadata={"decoder": _list_of(decode)})


def _nested(cls, default_factory):
    return field(
        default_factory=default_factory,
        metadata={"decoder": lambda value: decode_record(cls, value)},
    )


def decode_record(cls, data: Any, names: frozenset[str] | None = None):
    """Build dataclass ``cls`` from a JSON object.

    Missing keys and nulls keep the field default. When ``names`` is given,
    keys outside it are ignored.

    Raises:
        TypeError: If a value does not have the field's JSON type
    """
    if not isinstance(data, dict):
        raise TypeError(
            f"{cls.__name__}: expected an object, got {type(data).__name__}"
        )

    values = {}
    for f in fields(cls):
        if names is not None and f.name not in names:
            continue

        value = data.get(f.name)
        if value is None:
            continue

        decode = f.metadata.get("decoder") or _DECODERS.get(f.type, _raw)
        values[f.name] = decode(value)

    return cls(**values)


@dataclass(frozen=True)
class TransferFile:
    index: int = 0
    path: str = ""
    size: int = 0  # bytes
    offset: int = 0  # bytes


@dataclass(frozen=True)
class TrackerError:
    value: int = 0
    category: str = ""


@dataclass(frozen=True)
class TransferTracker:
    """Tracker entry of a transfer.

    Note: announce times are passed through untouched, daemons send either
    numbers or null.
    """

    next_announce: Any = None
    min_announce: Any = None
    endpoints: list[Any] = _items(_raw)
    updating: bool = False
    start_sent: bool = False
    complete_sent: bool = False
    send_stats: bool = False
    verified: bool = False
    tier: int = 0
    fail_limit: int = 0
    source: int = 0
    scrape_incomplete: float = 0
    scrape_complete: float = 0
    scrape_downloaded: float = 0
    fails: int = 0
    url: str = ""
    trackerid: str = ""
    message: str = ""
    last_error: TrackerError = _nested(TrackerError, TrackerError)


@dataclass(frozen=True)
class TransferStatus:
    """Status of one torrent as reported by the Web UI (immutable).

    Note: All size fields are in bytes, all rate fields in bytes/second,
    all time fields in seconds.
    """

    # Timing
    active_time: float = 0
    seeding_time: float = 0
    finished_time: float = 0
    time_added: float = 0
    completed_time: float = 0
    last_seen_complete: float = 0
    next_announce: float = 0
    time_since_download: float = 0
    time_since_upload: float = 0
    time_since_transfer: float = 0
    eta: float = 0

    # Rates and limits
    download_payload_rate: float = 0
    upload_payload_rate: float = 0
    max_connections: float = 0
    max_download_speed: float = 0
    max_upload_slots: float = 0
    max_upload_speed: float = 0

    # Totals
    all_time_download: float = 0
    total_done: float = 0
    total_payload_download: float = 0
    total_payload_upload: float = 0
    total_uploaded: float = 0
    total_wanted: float = 0
    total_remaining: float = 0
    total_size: float = 0

    # Swarm
    distributed_copies: float = 0
    num_peers: int = 0
    num_seeds: int = 0
    total_peers: int = 0
    total_seeds: float = 0
    seeds_peers_ratio: float = 0
    seed_rank: int = 0
    ratio: float = 0
    peers: list[Any] = _items(_raw)

    # Identity and metadata
    hash: str = ""
    name: str = ""
    comment: str = ""
    creator: str = ""
    owner: str = ""
    label: str = ""
    message: str = ""
    state: str = ""
    storage_mode: str = ""
    private: bool = False
    shared: bool = False
    num_files: float = 0
    num_pieces: float = 0
    piece_length: float = 0
    pieces: Any = None
    queue: int = 0

    # Completion
    progress: float = 0
    is_seed: bool = False
    is_finished: bool = False
    seed_mode: bool = False
    super_seeding: bool = False

    # Behaviour flags
    auto_managed: bool = False
    is_auto_managed: bool = False
    paused: bool = False
    compact: bool = False
    prioritize_first_last: bool = False
    prioritize_first_last_pieces: bool = False
    sequential_download: bool = False
    remove_at_ratio: bool = False
    stop_at_ratio: bool = _flag()
    stop_ratio: float = 0

    # Paths
    save_path: str = ""
    download_location: str = ""
    move_completed: bool = _flag()
    move_completed_path: str = ""
    move_on_completed: bool = _flag()
    move_on_completed_path: str = ""

    # Trackers
    tracker: str = ""
    tracker_host: str = ""
    tracker_status: str = ""
    trackers: list[TransferTracker] = _items(
        lambda value: decode_record(TransferTracker, value)
    )

    # Files
    files: list[TransferFile] = _items(
        lambda value: decode_record(TransferFile, value)
    )
    orig_files: list[TransferFile] = _items(
        lambda value: decode_record(TransferFile, value)
    )
    file_priorities: list[int] = _items(_integer)
    file_progress: list[float] = _items(_number)

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], schema: Schema = Schema.COMPAT
    ) -> "TransferStatus":
        return decode_record(cls, data, schema_fields(schema))


# Keys published by Deluge 1.x
LEGACY_FIELDS = frozenset(
    {
        "active_time",
        "all_time_download",
        "comment",
        "compact",
        "distributed_copies",
        "download_payload_rate",
        "eta",
        "file_priorities",
        "file_progress",
        "files",
        "hash",
        "is_auto_managed",
        "is_finished",
        "is_seed",
        "label",
        "max_connections",
        "max_download_speed",
        "max_upload_slots",
        "max_upload_speed",
        "message",
        "move_completed",
        "move_completed_path",
        "move_on_completed",
        "move_on_completed_path",
        "name",
        "next_announce",
        "num_files",
        "num_peers",
        "num_pieces",
        "num_seeds",
        "paused",
        "peers",
        "piece_length",
        "prioritize_first_last",
        "private",
        "progress",
        "queue",
        "ratio",
        "remove_at_ratio",
        "save_path",
        "seed_rank",
        "seeding_time",
        "seeds_peers_ratio",
        "state",
        "stop_at_ratio",
        "stop_ratio",
        "time_added",
        "total_done",
        "total_payload_download",
        "total_payload_upload",
        "total_peers",
        "total_seeds",
        "total_size",
        "total_uploaded",
        "total_wanted",
        "tracker",
        "tracker_host",
        "tracker_status",
        "trackers",
        "upload_payload_rate",
    }
)

# Keys published by Deluge 2.x; labels come from the plugin, compact is gone
CURRENT_FIELDS = frozenset(
    f.name for f in fields(TransferStatus)
) - {"label", "compact"}


def schema_fields(schema: Schema) -> frozenset[str] | None:
    """Keys read for ``schema``; None means every known key."""
    if schema == Schema.LEGACY:
        return LEGACY_FIELDS
    if schema == Schema.CURRENT:
        return CURRENT_FIELDS
    return None


def decode_transfers(
    result: Any, schema: Schema = Schema.COMPAT
) -> dict[str, TransferStatus]:
    """Decode a core.get_torrents_status result keyed by torrent hash.

    Raises:
        TypeError: If the payload does not match the layout
    """
    if result is None:
        return {}

    if not isinstance(result, dict):
        raise TypeError(
            f"expected an object of transfers, got {type(result).__name__}"
        )

    return {
        torrent_id: TransferStatus.from_dict(data, schema)
        for torrent_id, data in result.items()
    }
