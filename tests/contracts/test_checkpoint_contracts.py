# tests/contracts/test_checkpoint_contracts.py
"""Tests for checkpoint record contracts."""

from datetime import UTC, datetime

import pytest

from waypoint.contracts import Checkpoint, CheckpointCorruptionError, CheckpointData, ValidityCheck


def _record(**overrides: object) -> dict[str, object]:
    record: dict[str, object] = {
        "formatVersion": 1,
        "capturedAt": 1_767_225_600_000,
        "step": "update_versions",
        "data": {
            "options": {"tag": "next"},
            "head": "abc123",
            "state": {"expo-image": {"release_version": "1.1.0"}},
        },
    }
    record.update(overrides)
    return record


class TestCheckpoint:
    """Tests for the Checkpoint dataclass and its persisted form."""

    def test_to_record_uses_persisted_field_names(self) -> None:
        """to_record() produces the camelCase on-disk layout."""
        checkpoint = Checkpoint(
            captured_at=1000,
            step="prepare_parcels",
            data=CheckpointData(options={"tag": "next"}, head="abc123", state={"a": {"value": 1}}),
        )

        assert checkpoint.to_record() == {
            "formatVersion": 1,
            "capturedAt": 1000,
            "step": "prepare_parcels",
            "data": {"options": {"tag": "next"}, "head": "abc123", "state": {"a": {"value": 1}}},
        }

    def test_from_record_reads_all_fields(self) -> None:
        """from_record() is the inverse of to_record()."""
        checkpoint = Checkpoint.from_record(_record())

        assert checkpoint.step == "update_versions"
        assert checkpoint.captured_at == 1_767_225_600_000
        assert checkpoint.format_version == 1
        assert checkpoint.data.head == "abc123"
        assert checkpoint.data.state == {"expo-image": {"release_version": "1.1.0"}}

    def test_captured_at_datetime_is_utc(self) -> None:
        """capturedAt millis convert to an aware UTC datetime."""
        checkpoint = Checkpoint.from_record(_record())

        assert checkpoint.captured_at_datetime == datetime(2026, 1, 1, tzinfo=UTC)

    def test_empty_step_rejected(self) -> None:
        """A checkpoint must name the step it was saved after."""
        with pytest.raises(ValueError, match="step is required"):
            Checkpoint(captured_at=0, step="", data=CheckpointData(options={}, head="x"))

    def test_missing_field_is_corruption(self) -> None:
        """A record without data.head is rejected as corrupt."""
        record = _record(data={"options": {}, "state": {}})

        with pytest.raises(CheckpointCorruptionError, match="head"):
            Checkpoint.from_record(record)

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("capturedAt", "yesterday"),
            ("capturedAt", True),
            ("formatVersion", "1"),
            ("step", ""),
            ("step", 42),
        ],
    )
    def test_ill_typed_field_is_corruption(self, field: str, value: object) -> None:
        """Wrongly typed top-level fields are rejected as corrupt."""
        with pytest.raises(CheckpointCorruptionError):
            Checkpoint.from_record(_record(**{field: value}))

    def test_non_object_record_is_corruption(self) -> None:
        """A JSON array is not a checkpoint record."""
        with pytest.raises(CheckpointCorruptionError, match="must be an object"):
            Checkpoint.from_record([1, 2, 3])

    def test_state_must_be_object(self) -> None:
        """data.state must map item keys to fragments."""
        record = _record(data={"options": {}, "head": "abc123", "state": ["a"]})

        with pytest.raises(CheckpointCorruptionError, match="data.state"):
            Checkpoint.from_record(record)


class TestValidityCheck:
    """Tests for ValidityCheck invariants."""

    def test_valid_without_reason(self) -> None:
        check = ValidityCheck(is_valid=True)
        assert check.reason is None

    def test_valid_with_reason_rejected(self) -> None:
        """A valid result carries no reason."""
        with pytest.raises(ValueError, match="should not have a reason"):
            ValidityCheck(is_valid=True, reason="all good")

    def test_invalid_requires_reason(self) -> None:
        """An invalid result must explain itself."""
        with pytest.raises(ValueError, match="must have a reason"):
            ValidityCheck(is_valid=False)
