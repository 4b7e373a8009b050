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
Running offsets and counters of an archive under construction.
"""

from dataclasses import dataclass

from .constants import MAX_CD_OFFSET, MAX_CD_SIZE, MAX_ENTRIES
from .errors import ZipFormatError
from .paths import Entry


@dataclass
class OffsetLedger:
    """Counters kept in step with the entry list.

    Attributes:
        local_offset: Offset of the next local file header, which is also
            where the central directory starts.
        central_size: Total length of the central directory.
        path_count: Number of entries (files and directories).
        file_count: Number of file entries.
        data_size: Total payload bytes of all files.
    """

    local_offset: int = 0
    central_size: int = 0
    path_count: int = 0
    file_count: int = 0
    data_size: int = 0

    def check_room(self, entries: list[Entry]) -> None:
        """Raise ZipFormatError if adding entries would overflow a classic archive."""
        local_offset = self.local_offset + sum(e.local_span for e in entries)
        central_size = self.central_size + sum(e.central_span for e in entries)
        if self.path_count + len(entries) > MAX_ENTRIES:
            raise ZipFormatError(f"Too many entries: {self.path_count + len(entries)} (max {MAX_ENTRIES})")
        if local_offset > MAX_CD_OFFSET:
            raise ZipFormatError(f"Archive too large: central directory would start at {local_offset}")
        if central_size > MAX_CD_SIZE:
            raise ZipFormatError(f"Central directory too large: {central_size} bytes")

    def advance(self, entry: Entry) -> None:
        self.local_offset += entry.local_span
        self.central_size += entry.central_span
        self.path_count += 1
        if entry.is_file:
            self.file_count += 1
            self.data_size += entry.size

    def retract(self, entry: Entry) -> None:
        self.local_offset -= entry.local_span
        self.central_size -= entry.central_span
        self.path_count -= 1
        if entry.is_file:
            self.file_count -= 1
            self.data_size -= entry.size
