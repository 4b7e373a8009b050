"""
Copyright 2025 DNAi inc.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

"""
Incremental store-only ZIP archive.

This module provides the AnZip class: paths and payloads are registered one
by one, and the archive bytes are only assembled when ``zip()`` or
``zip_sync()`` is called.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

from .checksum import crc32
from .constants import LOCAL_FILE_HEADER_SIZE, MAX_FILE_SIZE
from .errors import AlreadyFinalizedError, InvalidPayloadTypeError, StillPendingError, ZipFormatError
from .ledger import OffsetLedger
from .paths import Entry, PathTree, validate_path
from .scheduler import ChecksumJob, ChecksumScheduler
from .sources import DeferredPayload, coerce_payload
from .structures import CentralChunk, LocalChunk, build_chunks, build_end_of_central_directory
from .utils import DateLike, resolve_dos_datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryInfo:
    """Public view of an archive entry, as returned by ``AnZip.list``."""

    path: str
    size: int
    is_file: bool


@dataclass(frozen=True)
class _Snapshot:
    local_chunks: list[LocalChunk]
    central_chunks: list[CentralChunk]
    end_record: bytes


class AnZip:
    """Builder for uncompressed ZIP archives.

    Each ``add`` registers a path, creating directory entries for all of its
    ancestors, and builds the entry's headers right away against the running
    offsets. ``remove`` takes a file out again and shifts every later
    offset. Payloads whose bytes arrive asynchronously get their CRC-32
    resolved in the background, strictly in the order they were added.

    Example:
        archive = AnZip()
        archive.add("docs/readme.txt", "hello")
        archive.add("empty/dir/")
        data = archive.zip_sync(close=True)

    Deferred payloads need a running event loop:
        archive.add("big.bin", DeferredPayload(fetch, size=n))
        data = await archive.zip(close=True)
    """

    def __init__(self) -> None:
        self._scheduler = ChecksumScheduler(on_failure=self._drop_failed)
        self.clear()

    def clear(self) -> None:
        """Reset to an empty archive, unfreezing it if it was closed."""
        self._tree = PathTree()
        self._ledger = OffsetLedger()
        self._local_chunks: list[LocalChunk] = []
        self._central_chunks: list[CentralChunk] = []
        self._zipped: Optional[bytes] = None
        self._revision = 0
        self._scheduler.reset()

    @staticmethod
    def get_crc32(data: Any) -> int:
        """CRC-32 of any immediate payload accepted by ``add``."""
        payload = coerce_payload(data)
        if isinstance(payload, DeferredPayload):
            raise InvalidPayloadTypeError("get_crc32 needs bytes that are available now")
        return crc32(payload)

    @property
    def closed(self) -> bool:
        """True once ``zip(close=True)`` froze the archive."""
        return self._zipped is not None

    @property
    def pending(self) -> bool:
        """True while deferred checksum work is outstanding."""
        return self._scheduler.pending

    def _check_open(self, action: str) -> None:
        if self._zipped is not None:
            raise AlreadyFinalizedError(
                f"could not {action}. the archive was already zipped; "
                "create a new instance or call clear() first"
            )

    def add(
        self,
        path: str,
        data: Any = None,
        date: DateLike = None,
        crc: Optional[int] = None,
    ) -> int:
        """Register a path, with a payload for files.

        Ancestor directories are created as needed; directories that already
        exist are skipped, so adding a directory path twice is a no-op.

        Args:
            path: Slash-separated entry path. Backslashes are converted and
                one leading slash is dropped.
            data: File payload. ``None`` registers a directory.
            date: Modification time, see ``resolve_dos_datetime``.
            crc: Precomputed CRC-32 of the payload.

        Returns:
            Number of entries (files and directories) after the call.

        Raises:
            AlreadyFinalizedError: If the archive is closed.
            InvalidPathError: If the path is malformed.
            DuplicatePathError: If the file path already exists.
            InvalidPayloadTypeError: If data or crc has an unsupported type.
            ZipFormatError: If the archive would exceed classic ZIP limits.
            RuntimeError: If a deferred payload is added outside an event loop.
        """
        count, _ = self._add(path, data, date, crc)
        return count

    async def add_async(
        self,
        path: str,
        data: Any = None,
        date: DateLike = None,
        crc: Optional[int] = None,
    ) -> int:
        """Like ``add``, then wait until this entry's checksum is resolved.

        Raises:
            ChecksumResolutionError: If the deferred payload failed; the
                entry has been removed again.
        """
        count, job = self._add(path, data, date, crc)
        if job is not None:
            await self._scheduler.wait_for(job)
        return count

    def _add(
        self, path: str, data: Any, date: DateLike, crc: Optional[int]
    ) -> tuple[int, Optional[ChecksumJob]]:
        self._check_open(f'add "{path}"')

        is_file = data is not None
        path = validate_path(path, is_file)

        if crc is not None and (isinstance(crc, bool) or not isinstance(crc, int) or not 0 <= crc <= 0xFFFFFFFF):
            raise InvalidPayloadTypeError(f"crc must be an unsigned 32-bit int, not {crc!r}")

        payload = coerce_payload(data) if is_file else None
        deferred = isinstance(payload, DeferredPayload)
        size = 0
        if payload is not None:
            size = payload.size if deferred else len(payload)
            if size > MAX_FILE_SIZE:
                raise ZipFormatError(f"File too large for a classic archive: {size} bytes")
        if deferred:
            # fail before touching any state
            asyncio.get_running_loop()
        elif payload is not None and crc is None:
            crc = crc32(payload)

        mod_date, mod_time = resolve_dos_datetime(date)

        offset = self._ledger.local_offset
        new_entries = []
        for key, terminal_file in self._tree.plan(path, is_file):
            entry = Entry(
                path=key,
                is_file=terminal_file,
                size=size if terminal_file else 0,
                offset=offset,
                path_length=len(key.encode("utf-8")),
            )
            offset += entry.local_span
            new_entries.append(entry)
        self._ledger.check_room(new_entries)

        job = None
        for entry in new_entries:
            local, central = build_chunks(
                entry, mod_date, mod_time, crc or 0, payload if entry.is_file else None
            )
            self._tree.insert(entry)
            self._local_chunks.append(local)
            self._central_chunks.append(central)
            self._ledger.advance(entry)
            if entry.is_file and deferred:
                job = self._scheduler.schedule(
                    ChecksumJob(entry, local.shared, payload, compute_crc=crc is None)
                )

        if new_entries:
            self._revision += 1
            logger.debug("Added %s (%d new entries, next offset %d)", path, len(new_entries), self._ledger.local_offset)
        return self._ledger.path_count, job

    def add_file(self, name_in_zip: str, source_path: Union[str, os.PathLike], date: DateLike = None) -> int:
        """Add an entry from a file on disk.

        Args:
            name_in_zip: Entry path within the archive.
            source_path: Path to the source file.
            date: Modification time; defaults to the file's mtime.

        Raises:
            ZipFormatError: If the source file cannot be read.
        """
        self._check_open(f'add "{name_in_zip}"')

        if not os.path.isfile(source_path):
            raise ZipFormatError(f"Source file not found: {source_path}")

        try:
            with open(source_path, "rb") as f:
                data = f.read()
            if date is None:
                date = datetime.fromtimestamp(os.path.getmtime(source_path))
        except PermissionError as e:
            raise ZipFormatError(f"Permission denied reading file: {source_path}") from e
        except OSError as e:
            raise ZipFormatError(f"Error reading file {source_path}: {e}") from e

        return self.add(name_in_zip, data, date=date)

    def remove(self, index: Union[int, str]) -> bool:
        """Remove a file by path or by file-insertion index.

        Directories cannot be removed.

        Returns:
            False if no such file exists, True otherwise.

        Raises:
            AlreadyFinalizedError: If the archive is closed.
        """
        self._check_open(f"remove {index!r}")

        entry = self._tree.find_file(index)
        if entry is None:
            return False
        self._remove_entry(entry)
        return True

    def _remove_entry(self, entry: Entry) -> None:
        num = self._tree.index_of(entry)
        span = entry.local_span

        del self._local_chunks[num]
        del self._central_chunks[num]
        self._tree.discard(entry)
        self._ledger.retract(entry)

        # Replace rather than edit: a zip() in flight holds the old chunks
        for i in range(num, len(self._central_chunks)):
            later = self._tree.entries[i]
            later.offset -= span
            self._central_chunks[i] = self._central_chunks[i].with_offset(later.offset)

        self._revision += 1
        logger.debug("Removed %s (%d bytes), next offset %d", entry.path, span, self._ledger.local_offset)

    def _drop_failed(self, job: ChecksumJob) -> None:
        if self._zipped is None and self._tree.get(job.path) is job.entry:
            self._remove_entry(job.entry)

    def has(self, path: str) -> bool:
        """Return whether a file or directory exists at path."""
        return self._tree.has(path)

    def size(self) -> int:
        """Total payload bytes of all files."""
        return self._ledger.data_size

    def count(self, all: bool = False) -> int:
        """Number of files, or of all entries with ``all=True``."""
        return self._ledger.path_count if all else self._ledger.file_count

    def list(self, include_dirs: bool = False) -> list[EntryInfo]:
        """Entries in insertion order; directories only with ``include_dirs``."""
        return [
            EntryInfo(path=e.path, size=e.size, is_file=e.is_file)
            for e in self._tree.entries
            if include_dirs or e.is_file
        ]

    def get_path_by_index(self, index: int) -> Optional[str]:
        entry = self._tree.find_file(index)
        return entry.path if entry is not None else None

    def get(self, index: Union[int, str]) -> Optional[bytes]:
        """Return a file's payload by path or file-insertion index.

        After the archive is closed the bytes are sliced out of the frozen
        archive.

        Returns:
            The payload, or None if there is no such file.

        Raises:
            StillPendingError: If the file's deferred payload is not drained.
        """
        entry = self._tree.find_file(index)
        if entry is None:
            return None
        if self._zipped is not None:
            start = entry.offset + LOCAL_FILE_HEADER_SIZE + entry.path_length
            return self._zipped[start : start + entry.size]
        return self._local_chunks[self._tree.index_of(entry)].payload_bytes()

    async def wait(self, deep: bool = True) -> None:
        """Wait for outstanding checksum work.

        Raises:
            ChecksumResolutionError: For the oldest failure not yet reported.
        """
        await self._scheduler.wait(deep)

    def _snapshot(self) -> _Snapshot:
        ledger = self._ledger
        return _Snapshot(
            local_chunks=list(self._local_chunks),
            central_chunks=list(self._central_chunks),
            end_record=build_end_of_central_directory(
                ledger.path_count, ledger.central_size, ledger.local_offset
            ),
        )

    def _build(self, snapshot: _Snapshot) -> bytes:
        parts = [chunk.to_bytes() for chunk in snapshot.local_chunks]
        parts.extend(chunk.to_bytes() for chunk in snapshot.central_chunks)
        parts.append(snapshot.end_record)
        return b"".join(parts)

    def _close(self, data: bytes) -> None:
        self._zipped = data
        self._local_chunks = []
        self._central_chunks = []
        logger.debug("Closed archive: %d entries, %d bytes", self._ledger.path_count, len(data))

    async def zip(self, close: bool = False) -> bytes:
        """Assemble the archive once all checksums are resolved.

        The chunk lists are captured before waiting, so changes made while
        waiting do not leak into the result. With ``close=True`` the capture
        is repeated until nothing changed during the wait, then the archive
        is frozen.

        Args:
            close: Freeze the archive and release the chunk lists.

        Returns:
            The archive bytes; a closed archive returns the same bytes again.

        Raises:
            ChecksumResolutionError: If a deferred payload failed.
        """
        if self._zipped is not None:
            return self._zipped

        while True:
            revision = self._revision
            snapshot = self._snapshot()
            await self._scheduler.wait()
            if self._zipped is not None:
                return self._zipped
            if not close or revision == self._revision:
                break

        data = self._build(snapshot)
        if close:
            self._close(data)
        return data

    def zip_sync(self, close: bool = False) -> bytes:
        """Assemble the archive without waiting.

        Raises:
            StillPendingError: If checksum work is still outstanding.
            ChecksumResolutionError: If a deferred payload failed earlier
                and nobody has been told yet.
        """
        if self._zipped is not None:
            return self._zipped

        if self._scheduler.pending:
            raise StillPendingError(
                "the archive is still pending. await wait() before calling zip_sync()"
            )
        self._scheduler.raise_failure()

        data = self._build(self._snapshot())
        if close:
            self._close(data)
        return data
