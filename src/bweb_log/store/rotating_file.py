"""Size-bounded, append-only JSONL log file with numbered history.

Layout on disk (``max_files=3``)::

    node-http.log       current file, appended to
    node-http.log.1     most recent rotated file
    node-http.log.2
    node-http.log.3     oldest kept file

Each record is one self-terminated JSON line. A record is never split across
files: rotation happens before a write whose line would push a non-empty
current file past ``max_file_size``, so a file only exceeds the limit when a
single record is larger than the limit.

Concurrency: one store instance owns the file handle and the size counter.
Writers queue on an asyncio.Lock (append order), and the blocking file work
runs in a worker thread under a threading.Lock so that a cancelled writer can
never interleave with the next one.
"""

from __future__ import annotations

__all__ = ["RotatingLogStore", "serialize_record"]

import asyncio
import json
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import IO, Any

from bweb_log.constants import DEFAULT_MAX_FILE_SIZE, DEFAULT_MAX_FILES
from bweb_log.exceptions import StoreRotationError, StoreWriteError
from bweb_log.telemetry.models import RecordModel
from bweb_log.telemetry.system import get_system_logger

_system_logger = get_system_logger()


def serialize_record(record: RecordModel | Mapping[str, Any]) -> bytes:
    """Serialize a record as one compact UTF-8 JSON line ending in ``\\n``."""
    data = record.to_record() if isinstance(record, RecordModel) else dict(record)
    return (json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str) + "\n").encode("utf-8")


class RotatingLogStore:
    """Rotating JSONL writer.

    Attributes:
        path: Current log file.
        max_file_size: Rotation threshold in bytes.
        max_files: Number of rotated files kept (0 keeps none).
    """

    def __init__(
        self,
        filename: str | Path,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        max_files: int = DEFAULT_MAX_FILES,
    ) -> None:
        if max_file_size <= 0:
            raise ValueError("max_file_size must be positive")
        if max_files < 0:
            raise ValueError("max_files must not be negative")

        self.path = Path(filename)
        self.max_file_size = max_file_size
        self.max_files = max_files

        self._stream: IO[bytes] | None = None
        self._size = 0
        self._write_lock = asyncio.Lock()
        self._io_lock = threading.Lock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def size(self) -> int:
        """Bytes in the current file (resumed from disk on open)."""
        return self._size

    def history_path(self, slot: int) -> Path:
        """Path of rotated file number ``slot`` (1 is the most recent)."""
        return self.path.with_name(f"{self.path.name}.{slot}")

    def history_files(self) -> list[Path]:
        """Existing rotated files, newest first."""
        return [path for _, path in self._history_slots()]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Create the directory and file if needed, resume the size counter.

        Raises:
            StoreWriteError: If the directory or file cannot be opened.
        """
        async with self._write_lock:
            await asyncio.to_thread(self._open_sync)

    async def close(self) -> None:
        """Flush and release the file handle (no-op if not open)."""
        async with self._write_lock:
            await asyncio.to_thread(self._close_sync)

    async def write_record(self, record: RecordModel | Mapping[str, Any]) -> int:
        """Append one record, rotating first if it would not fit.

        Args:
            record: Record model or JSON-compatible mapping.

        Returns:
            Number of bytes written.

        Raises:
            StoreWriteError: If the record could not be written.
            StoreRotationError: If rotation failed; the record was still written.
        """
        line = serialize_record(record)
        async with self._write_lock:
            return await asyncio.to_thread(self._write_sync, line)

    async def write_json_line(self, record: RecordModel | Mapping[str, Any]) -> int:
        """Alias of write_record."""
        return await self.write_record(record)

    # ------------------------------------------------------------------
    # Blocking implementation (worker thread)
    # ------------------------------------------------------------------

    def _open_sync(self) -> None:
        with self._io_lock:
            if self._stream is not None:
                return
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._reopen()
            except OSError as e:
                raise StoreWriteError(f"Cannot open log file {self.path}: {e}", str(self.path)) from e

    def _close_sync(self) -> None:
        with self._io_lock:
            stream, self._stream = self._stream, None
            if stream is None:
                return
            try:
                stream.flush()
            finally:
                stream.close()

    def _write_sync(self, line: bytes) -> int:
        with self._io_lock:
            if self._stream is None:
                raise StoreWriteError(f"Log file {self.path} is not open", str(self.path))

            rotation_error: StoreRotationError | None = None
            if self._size > 0 and self._size + len(line) > self.max_file_size:
                try:
                    self._rotate()
                except StoreRotationError as e:
                    rotation_error = e

            if self._stream is None:
                # Could not reopen any file after rotation
                raise StoreWriteError(f"Log file {self.path} is unavailable after rotation", str(self.path))

            try:
                self._stream.write(line)
                self._stream.flush()
            except OSError as e:
                raise StoreWriteError(f"Failed to write to {self.path}: {e}", str(self.path)) from e

            self._size += len(line)

            if rotation_error is not None:
                raise rotation_error

            return len(line)

    def _reopen(self) -> None:
        self._stream = open(self.path, "ab")
        self._size = self._stream.seek(0, 2)

    def _history_slots(self) -> list[tuple[int, Path]]:
        prefix = f"{self.path.name}."
        slots = []
        if not self.path.parent.exists():
            return slots
        for candidate in self.path.parent.iterdir():
            suffix = candidate.name[len(prefix) :] if candidate.name.startswith(prefix) else ""
            if suffix.isdigit() and int(suffix) > 0:
                slots.append((int(suffix), candidate))
        slots.sort()
        return slots

    def _rotate(self) -> None:
        """Demote the current file to slot 1 and open a fresh current file.

        Always leaves an open stream behind (fresh file on success, the old
        current file if it could not be moved).

        Raises:
            StoreRotationError: If a rename or delete failed.
        """
        assert self._stream is not None
        self._stream.close()
        self._stream = None

        failures: list[str] = []
        try:
            if self.max_files == 0:
                self.path.unlink()
            else:
                # Shift oldest first so nothing is overwritten. A slot that
                # cannot move blocks every newer one, the current file included.
                for slot, path in reversed(self._history_slots()):
                    target = self.history_path(slot + 1)
                    try:
                        path.replace(target)
                    except OSError as e:
                        failures.append(f"{path.name} -> {target.name}: {e}")
                        break
                else:
                    self.path.replace(self.history_path(1))
        except OSError as e:
            failures.append(f"{self.path.name}: {e}")

        # Prune slots beyond max_files (highest numbers are the oldest)
        for slot, path in self._history_slots():
            if slot > self.max_files:
                try:
                    path.unlink()
                except OSError as e:
                    failures.append(f"delete {path.name}: {e}")

        try:
            self._reopen()
        except OSError as e:
            failures.append(f"reopen {self.path.name}: {e}")

        if failures:
            _system_logger.warning(
                {
                    "event": "store_rotation_failed",
                    "message": f"Log rotation for {self.path} failed",
                    "path": str(self.path),
                    "failures": failures,
                }
            )
            raise StoreRotationError(f"Rotation of {self.path} failed: {'; '.join(failures)}", str(self.path))
