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
Entry paths and the deduplicating path tree.

Every file path registered in an archive implies a directory entry for each
of its ancestors. The tree keeps one Entry per unique path prefix, in the
order the prefixes were first seen.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from .constants import CENTRAL_DIR_HEADER_SIZE, LOCAL_FILE_HEADER_SIZE, MAX_NAME_LENGTH
from .errors import DuplicatePathError, InvalidPathError

# empty segment, leftover leading slash, or a drive/scheme prefix such as "C:"
_INVALID_PATH = re.compile(r"/{2,}|^/|^[a-z]+:", re.IGNORECASE)


@dataclass(eq=False)
class Entry:
    """One path registered in the archive.

    Directory paths always end with a slash. ``offset`` is the position of
    the entry's local file header from the start of the archive.
    """

    path: str
    is_file: bool
    size: int
    offset: int
    path_length: int

    @property
    def local_span(self) -> int:
        """Bytes occupied by the local header, name and payload."""
        return LOCAL_FILE_HEADER_SIZE + self.path_length + (self.size if self.is_file else 0)

    @property
    def central_span(self) -> int:
        """Bytes occupied by the central directory header and name."""
        return CENTRAL_DIR_HEADER_SIZE + self.path_length


def normalize_path(path: str) -> str:
    """Convert backslashes to forward slashes and drop one leading slash."""
    return str(path).replace("\\", "/").removeprefix("/")


def validate_path(path: str, is_file: bool) -> str:
    """Normalize and validate an entry path.

    Args:
        path: Path as given by the caller.
        is_file: Whether a payload accompanies the path.

    Returns:
        The normalized path.

    Raises:
        InvalidPathError: If the path cannot name an archive entry.
    """
    if not path:
        raise InvalidPathError("path is empty")

    normalized = normalize_path(path)
    if not normalized:
        raise InvalidPathError(f'path is empty after normalization: "{path}"')
    if "\x00" in normalized:
        raise InvalidPathError("path cannot contain null bytes")
    if _INVALID_PATH.search(normalized):
        raise InvalidPathError(
            "invalid path. containing a drive letter, a leading slash, "
            f'or empty directory name: "{normalized}"'
        )
    if is_file and normalized.endswith("/"):
        raise InvalidPathError(f'needs a file name: "{normalized}"')

    return normalized


def iter_prefixes(path: str, is_file: bool) -> list[tuple[str, bool]]:
    """Split a normalized path into its ordered prefixes.

    ``"a/b/c.txt"`` with a payload yields ``a/``, ``a/b/`` and ``a/b/c.txt``;
    without one the terminal segment is a directory too (``a/b/c.txt/``).

    Returns:
        List of (key, is_file) pairs, ancestors first.
    """
    segments = path.rstrip("/").split("/")
    prefixes = []
    stack = ""
    for i, segment in enumerate(segments):
        terminal_file = is_file and i == len(segments) - 1
        stack += segment if terminal_file else segment + "/"
        prefixes.append((stack, terminal_file))
    return prefixes


class PathTree:
    """Insertion-ordered set of archive entries keyed by path.

    ``entries`` mirrors the order of the archive's chunk lists; ``files``
    holds only file entries and backs numeric lookups.
    """

    def __init__(self) -> None:
        self._records: dict[str, Entry] = {}
        self.entries: list[Entry] = []
        self.files: list[Entry] = []

    def get(self, key: str) -> Optional[Entry]:
        return self._records.get(key)

    def has(self, path: str) -> bool:
        """Return whether a file or directory exists at path.

        Directories match with or without their trailing slash.
        """
        key = normalize_path(path).rstrip("/")
        if not key:
            return False
        return key in self._records or key + "/" in self._records

    def find_file(self, index: Union[int, str]) -> Optional[Entry]:
        """Look up a file entry by path or by file-insertion index."""
        if isinstance(index, bool):
            return None
        if isinstance(index, int):
            if 0 <= index < len(self.files):
                return self.files[index]
            return None
        if isinstance(index, str):
            entry = self._records.get(normalize_path(index))
            if entry is not None and entry.is_file:
                return entry
        return None

    def plan(self, path: str, is_file: bool) -> list[tuple[str, bool]]:
        """Return the prefixes of path that are not in the tree yet.

        Nothing is modified; callers insert the returned prefixes in order.

        Raises:
            DuplicatePathError: If the file already exists or a prefix
                collides with an entry of the other kind.
            InvalidPathError: If an encoded prefix is too long for the format.
        """
        if is_file and self.has(path):
            raise DuplicatePathError(f'the path already exists: "{path}"')

        missing = []
        for key, terminal_file in iter_prefixes(path, is_file):
            if key in self._records:
                continue
            if not terminal_file and key.rstrip("/") in self._records:
                raise DuplicatePathError(f'"{key.rstrip("/")}" is a file, not a directory')
            if len(key.encode("utf-8")) > MAX_NAME_LENGTH:
                raise InvalidPathError(f"path too long: {len(key.encode('utf-8'))} bytes (max {MAX_NAME_LENGTH})")
            missing.append((key, terminal_file))
        return missing

    def insert(self, entry: Entry) -> None:
        self._records[entry.path] = entry
        self.entries.append(entry)
        if entry.is_file:
            self.files.append(entry)

    def index_of(self, entry: Entry) -> int:
        """Position of entry in insertion order (and in the chunk lists)."""
        return self.entries.index(entry)

    def discard(self, entry: Entry) -> None:
        del self._records[entry.path]
        self.entries.remove(entry)
        if entry.is_file:
            self.files.remove(entry)
