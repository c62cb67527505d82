"""CheckpointStore for saving, loading and clearing the checkpoint file."""

from __future__ import annotations

import json
import os
import tempfile
from datetime import timedelta
from pathlib import Path

import structlog

from waypoint.contracts import Checkpoint, CheckpointCorruptionError, CheckpointPersistenceError
from waypoint.core.checkpoint.serialization import checkpoint_dumps, checkpoint_loads
from waypoint.core.clock import DEFAULT_CLOCK, Clock

logger = structlog.get_logger(__name__)


class CheckpointStore:
    """Durable storage for a single checkpoint record at a fixed path.

    Writes are atomic: the record is written to a temporary file in the
    same directory, fsync'd, then moved over the target with os.replace().
    An interrupted save leaves the previous record untouched.

    Only one runner may use a given path at a time.
    """

    def __init__(self, path: Path, expiration: timedelta, *, clock: Clock | None = None) -> None:
        """Initialize the store.

        Args:
            path: Checkpoint file location
            expiration: Records older than this are treated as absent
            clock: Time source for expiration checks (default: system clock)
        """
        if expiration <= timedelta(0):
            raise ValueError(f"expiration must be positive, got {expiration}")
        self._path = path
        self._expiration = expiration
        self._clock = clock if clock is not None else DEFAULT_CLOCK

    @property
    def path(self) -> Path:
        return self._path

    @property
    def expiration(self) -> timedelta:
        return self._expiration

    def exists(self) -> bool:
        return self._path.is_file()

    def is_expired(self, checkpoint: Checkpoint) -> bool:
        """Whether ``checkpoint`` is outside the freshness window."""
        age_ms = self._clock.now_ms() - checkpoint.captured_at
        return age_ms >= self._expiration // timedelta(milliseconds=1)

    def read(self) -> Checkpoint | None:
        """Read the stored checkpoint regardless of its age.

        Returns:
            The Checkpoint, or None if no file exists

        Raises:
            CheckpointCorruptionError: If the file cannot be decoded
            CheckpointPersistenceError: If the file exists but cannot be read
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CheckpointPersistenceError(f"Cannot read checkpoint {self._path}: {e}") from e

        try:
            record = checkpoint_loads(raw)
        except json.JSONDecodeError as e:
            raise CheckpointCorruptionError(f"Checkpoint {self._path} is not valid JSON: {e}") from e
        return Checkpoint.from_record(record)

    def load(self) -> Checkpoint | None:
        """Load the checkpoint if one exists and is still fresh.

        A missing, expired or corrupt record all yield None. The file is
        never deleted here: it is superseded by the next save or removed
        by clear() once the whole run completes.
        """
        try:
            checkpoint = self.read()
        except CheckpointCorruptionError as e:
            logger.warning("Ignoring unreadable checkpoint", path=str(self._path), error=str(e))
            return None

        if checkpoint is None:
            logger.debug("No checkpoint found", path=str(self._path))
            return None

        if self.is_expired(checkpoint):
            logger.info(
                "Ignoring expired checkpoint",
                path=str(self._path),
                captured_at=checkpoint.captured_at_datetime.isoformat(),
                expiration=str(self._expiration),
            )
            return None

        return checkpoint

    def save(self, checkpoint: Checkpoint) -> None:
        """Persist ``checkpoint``, replacing any previous record.

        Raises:
            CheckpointPersistenceError: If the record cannot be serialized or written
        """
        try:
            payload = checkpoint_dumps(checkpoint.to_record())
        except (TypeError, ValueError) as e:
            raise CheckpointPersistenceError(f"Checkpoint after step '{checkpoint.step}' is not serializable: {e}") from e

        tmp_path: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
            tmp_path = None
        except OSError as e:
            raise CheckpointPersistenceError(f"Cannot write checkpoint {self._path}: {e}") from e
        finally:
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)

        logger.debug("Checkpoint saved", path=str(self._path), step=checkpoint.step)

    def clear(self) -> None:
        """Remove the checkpoint record if present.

        Raises:
            CheckpointPersistenceError: If the file exists but cannot be removed
        """
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise CheckpointPersistenceError(f"Cannot remove checkpoint {self._path}: {e}") from e
        logger.debug("Checkpoint cleared", path=str(self._path))
