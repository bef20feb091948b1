# delugeweb - Client for the Deluge Web UI JSON-RPC interface
# Copyright (C) 2025  Anton Larionov
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import pytest

from delugeweb.models import Schema
from delugeweb.transfer import (
    CURRENT_FIELDS,
    LEGACY_FIELDS,
    TrackerError,
    TransferFile,
    TransferStatus,
    TransferTracker,
    decode_transfers,
    flexible_bool,
    schema_fields,
)


class TestFlexibleBool:
    """Test decoding of loosely typed boolean flags."""

    @pytest.mark.parametrize(
        "value", ["1", "true", "TRUE", "Yes", "active", '"yes"', True, 1]
    )
    def test_true_values(self, value):
        assert flexible_bool(value) is True

    @pytest.mark.parametrize(
        "value", ["0", "false", "", "no", "paused", False, 0, 1.5, None]
    )
    def test_false_values(self, value):
        assert flexible_bool(value) is False

    def test_record_fields_use_flexible_decoding(self):
        """Test that move/stop flags accept strings in records."""
        status = TransferStatus.from_dict(
            {
                "move_on_completed": "Yes",
                "move_completed": "active",
                "stop_at_ratio": "0",
            }
        )

        assert status.move_on_completed is True
        assert status.move_completed is True
        assert status.stop_at_ratio is False


class TestSchemaProjection:
    """Test the per-generation field sets."""

    DATA = {
        "name": "Projected",
        "label": "tv",
        "owner": "admin",
        "compact": True,
        "storage_mode": "sparse",
    }

    def test_legacy_reads_legacy_keys_only(self):
        status = TransferStatus.from_dict(self.DATA, Schema.LEGACY)

        assert status.name == "Projected"
        assert status.label == "tv"
        assert status.compact is True
        assert status.owner == ""
        assert status.storage_mode == ""

    def test_current_reads_current_keys_only(self):
        status = TransferStatus.from_dict(self.DATA, Schema.CURRENT)

        assert status.name == "Projected"
        assert status.owner == "admin"
        assert status.storage_mode == "sparse"
        assert status.label == ""
        assert status.compact is False

    def test_compat_reads_everything(self):
        status = TransferStatus.from_dict(self.DATA)

        assert status.label == "tv"
        assert status.owner == "admin"
        assert status.compact is True
        assert status.storage_mode == "sparse"

    def test_field_sets(self):
        """Test that projections only name known record fields."""
        known = schema_fields(Schema.CURRENT) | {"label", "compact"}

        assert LEGACY_FIELDS <= known
        assert "label" not in CURRENT_FIELDS
        assert "owner" not in LEGACY_FIELDS
        assert schema_fields(Schema.LEGACY) is LEGACY_FIELDS
        assert schema_fields(Schema.COMPAT) is None


class TestTransferStatus:
    """Test record decoding."""

    def test_defaults_for_missing_and_null(self):
        status = TransferStatus.from_dict({"name": None})

        assert status.name == ""
        assert status.progress == 0
        assert status.trackers == []
        assert status.pieces is None

    def test_integers_stay_integers(self):
        """Test that 1.x integer counters are not turned into floats."""
        status = TransferStatus.from_dict(
            {"total_size": 1024, "progress": 12.5, "eta": 3600}
        )

        assert status.total_size == 1024
        assert isinstance(status.total_size, int)
        assert status.progress == 12.5
        assert status.eta == 3600

    def test_integral_floats_accepted_for_integers(self):
        status = TransferStatus.from_dict({"num_peers": 3.0, "queue": -1})

        assert status.num_peers == 3
        assert isinstance(status.num_peers, int)
        assert status.queue == -1

    def test_nested_records(self):
        status = TransferStatus.from_dict(
            {
                "files": [
                    {"index": 0, "path": "a/b.mkv", "size": 10, "offset": 0}
                ],
                "file_priorities": [4],
                "file_progress": [0.5],
                "trackers": [
                    {
                        "url": "udp://tracker.example:1337",
                        "tier": 0,
                        "next_announce": None,
                        "last_error": {"value": 2, "category": "system"},
                    }
                ],
                "peers": [{"ip": "10.0.0.1:51413"}],
            }
        )

        assert status.files == [
            TransferFile(index=0, path="a/b.mkv", size=10, offset=0)
        ]
        assert status.file_priorities == [4]
        assert status.file_progress == [0.5]
        tracker = status.trackers[0]
        assert isinstance(tracker, TransferTracker)
        assert tracker.url == "udp://tracker.example:1337"
        assert tracker.next_announce is None
        assert tracker.last_error == TrackerError(value=2, category="system")
        assert status.peers == [{"ip": "10.0.0.1:51413"}]

    def test_unknown_keys_ignored(self):
        status = TransferStatus.from_dict({"name": "x", "brand_new": 1})

        assert status.name == "x"

    @pytest.mark.parametrize(
        "data",
        [
            {"paused": "false"},
            {"is_seed": "0"},
            {"private": 1},
            {"num_peers": 2.9},
            {"num_seeds": "3"},
            {"queue": True},
            {"ratio": "1.5"},
            {"progress": False},
            {"name": {"nested": "object"}},
            {"save_path": 42},
            {"file_priorities": [4, 1.5]},
            {"trackers": [{"url": "udp://t", "verified": "yes"}]},
        ],
    )
    def test_mistyped_values_raise(self, data):
        """Test that values of the wrong JSON type are rejected."""
        with pytest.raises(TypeError):
            TransferStatus.from_dict(data)

    def test_invalid_values_raise(self):
        with pytest.raises(TypeError):
            TransferStatus.from_dict({"num_seeds": "lots"})

        with pytest.raises(TypeError):
            TransferStatus.from_dict({"trackers": {"url": "x"}})


class TestDecodeTransfers:
    """Test decoding of the whole result mapping."""

    def test_keyed_by_hash(self):
        result = {
            "abc": {"name": "A"},
            "def": {"name": "B"},
            "ghi": {"name": "C"},
        }

        transfers = decode_transfers(result, Schema.LEGACY)

        assert len(transfers) == 3
        assert transfers["def"].name == "B"

    def test_null_result(self):
        assert decode_transfers(None) == {}

    def test_not_a_mapping(self):
        with pytest.raises(TypeError):
            decode_transfers([{"name": "A"}])
