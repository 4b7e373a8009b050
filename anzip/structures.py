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
ZIP structure definitions: chunks for writing and records for parsing.

An archive under construction keeps one LocalChunk and one CentralChunk per
entry. Both reference the same SharedFields block, so the local and central
headers always agree on date, CRC-32, sizes and name length. Chunks are
never edited once appended: a changed offset produces a new CentralChunk.

The second half of the module parses the same records back out of a
finished archive.
"""

import struct
from dataclasses import dataclass, replace
from datetime import datetime
from typing import BinaryIO, Optional, Union

from .constants import (
    CENTRAL_DIR_HEADER,
    CENTRAL_HEADER_PREFIX,
    CENTRAL_HEADER_REST_DIRECTORY,
    CENTRAL_HEADER_REST_FILE,
    END_OF_CENTRAL_DIR,
    EXTERNAL_ATTR_DIRECTORY,
    LOCAL_FILE_HEADER,
    LOCAL_HEADER_PREFIX,
)
from .errors import ZipFormatError
from .paths import Entry
from .sources import DeferredPayload
from .utils import dos_datetime_to_timestamp, pack_uint16, pack_uint32, read_exact, read_uint16, read_uint32

Payload = Union[bytes, DeferredPayload]


@dataclass(eq=False)
class SharedFields:
    """Fields common to the local and central header of one entry.

    ``crc32`` is the only field written after the chunks are appended: a
    deferred payload's checksum lands here once it is resolved.
    """

    mod_time: int
    mod_date: int
    crc32: int
    size: int
    path_length: int

    def to_bytes(self) -> bytes:
        # compressed size == uncompressed size, extra field length is 0
        return struct.pack(
            "<HHIIIHH",
            self.mod_time,
            self.mod_date,
            self.crc32,
            self.size,
            self.size,
            self.path_length,
            0,
        )


@dataclass(frozen=True, eq=False)
class LocalChunk:
    """Local file header, entry name and (for files) the stored payload."""

    shared: SharedFields
    name: bytes
    payload: Optional[Payload] = None

    def payload_bytes(self) -> bytes:
        if self.payload is None:
            return b""
        if isinstance(self.payload, DeferredPayload):
            return self.payload.data
        return self.payload

    def to_bytes(self) -> bytes:
        return b"".join(
            (LOCAL_HEADER_PREFIX, self.shared.to_bytes(), self.name, self.payload_bytes())
        )


@dataclass(frozen=True, eq=False)
class CentralChunk:
    """Central directory header referencing a local header by offset."""

    shared: SharedFields
    rest: bytes
    offset: bytes
    name: bytes

    def with_offset(self, offset: int) -> "CentralChunk":
        """Return a copy pointing at a new local header offset."""
        return replace(self, offset=pack_uint32(offset))

    def to_bytes(self) -> bytes:
        return b"".join(
            (CENTRAL_HEADER_PREFIX, self.shared.to_bytes(), self.rest, self.offset, self.name)
        )


def build_chunks(
    entry: Entry,
    mod_date: int,
    mod_time: int,
    crc: int = 0,
    payload: Optional[Payload] = None,
) -> tuple[LocalChunk, CentralChunk]:
    """Build the local and central chunk for a new entry.

    Directories get zero CRC and sizes and the directory attribute bit.

    Args:
        entry: Entry whose ``offset`` is already set.
        mod_date: DOS date.
        mod_time: DOS time.
        crc: CRC-32 of the payload, 0 while it is unresolved.
        payload: Stored bytes or deferred source (files only).

    Returns:
        Tuple of (LocalChunk, CentralChunk).
    """
    name = entry.path.encode("utf-8")
    shared = SharedFields(
        mod_time=mod_time,
        mod_date=mod_date,
        crc32=crc if entry.is_file else 0,
        size=entry.size if entry.is_file else 0,
        path_length=len(name),
    )
    local = LocalChunk(shared=shared, name=name, payload=payload if entry.is_file else None)
    central = CentralChunk(
        shared=shared,
        rest=CENTRAL_HEADER_REST_FILE if entry.is_file else CENTRAL_HEADER_REST_DIRECTORY,
        offset=pack_uint32(entry.offset),
        name=name,
    )
    return local, central


def build_end_of_central_directory(entry_count: int, cd_size: int, cd_offset: int) -> bytes:
    """Build the End of Central Directory record (no comment)."""
    return b"".join(
        (
            pack_uint32(END_OF_CENTRAL_DIR),
            pack_uint16(0),  # Number of this disk
            pack_uint16(0),  # Disk with start of central directory
            pack_uint16(entry_count),  # Entries on this disk
            pack_uint16(entry_count),  # Total entries
            pack_uint32(cd_size),
            pack_uint32(cd_offset),
            pack_uint16(0),  # Comment length
        )
    )


@dataclass
class LocalFileHeader:
    """Local file header structure.

    This header appears before each entry's stored data in the ZIP archive.
    """

    signature: int
    version: int
    flags: int
    compression_method: int
    mod_time: int
    mod_date: int
    crc32: int
    compressed_size: int
    uncompressed_size: int
    filename_len: int
    extra_len: int
    filename: bytes
    extra: bytes

    @property
    def date_time(self) -> datetime:
        """Get modification date/time as datetime object."""
        return dos_datetime_to_timestamp(self.mod_date, self.mod_time)


@dataclass
class CentralDirectoryHeader:
    """Central directory header structure.

    This header appears in the central directory and contains information
    about an entry, including a pointer to its local file header.
    """

    signature: int
    version_made_by: int
    version: int
    flags: int
    compression_method: int
    mod_time: int
    mod_date: int
    crc32: int
    compressed_size: int
    uncompressed_size: int
    filename_len: int
    extra_len: int
    comment_len: int
    disk_num: int
    internal_attrs: int
    external_attrs: int
    local_header_offset: int
    filename: bytes
    extra: bytes
    comment: bytes

    @property
    def name(self) -> str:
        return self.filename.decode("utf-8")

    @property
    def is_dir(self) -> bool:
        return bool(self.external_attrs & EXTERNAL_ATTR_DIRECTORY) or self.name.endswith("/")


@dataclass
class EndOfCentralDirectory:
    """End of Central Directory record.

    This record marks the end of the central directory and contains
    information needed to locate the central directory.
    """

    signature: int
    disk_num: int
    cd_disk: int
    cd_records_on_disk: int
    cd_records_total: int
    cd_size: int
    cd_offset: int
    comment_len: int
    comment: bytes


def parse_local_file_header(f: BinaryIO) -> LocalFileHeader:
    """Parse a local file header from the current file position.

    Raises:
        ZipFormatError: If the signature is invalid or file is truncated.
    """
    signature = read_uint32(f)
    if signature != LOCAL_FILE_HEADER:
        raise ZipFormatError(
            f"Invalid local file header signature: 0x{signature:08X}, "
            f"expected 0x{LOCAL_FILE_HEADER:08X}"
        )

    version = read_uint16(f)
    flags = read_uint16(f)
    compression_method = read_uint16(f)
    mod_time = read_uint16(f)
    mod_date = read_uint16(f)
    crc32 = read_uint32(f)
    compressed_size = read_uint32(f)
    uncompressed_size = read_uint32(f)
    filename_len = read_uint16(f)
    extra_len = read_uint16(f)
    filename = read_exact(f, filename_len)
    extra = read_exact(f, extra_len)

    return LocalFileHeader(
        signature=signature,
        version=version,
        flags=flags,
        compression_method=compression_method,
        mod_time=mod_time,
        mod_date=mod_date,
        crc32=crc32,
        compressed_size=compressed_size,
        uncompressed_size=uncompressed_size,
        filename_len=filename_len,
        extra_len=extra_len,
        filename=filename,
        extra=extra,
    )


def parse_central_directory_header(f: BinaryIO) -> CentralDirectoryHeader:
    """Parse a central directory header from the current file position.

    Raises:
        ZipFormatError: If the signature is invalid or file is truncated.
    """
    signature = read_uint32(f)
    if signature != CENTRAL_DIR_HEADER:
        raise ZipFormatError(
            f"Invalid central directory header signature: 0x{signature:08X}, "
            f"expected 0x{CENTRAL_DIR_HEADER:08X}"
        )

    version_made_by = read_uint16(f)
    version = read_uint16(f)
    flags = read_uint16(f)
    compression_method = read_uint16(f)
    mod_time = read_uint16(f)
    mod_date = read_uint16(f)
    crc32 = read_uint32(f)
    compressed_size = read_uint32(f)
    uncompressed_size = read_uint32(f)
    filename_len = read_uint16(f)
    extra_len = read_uint16(f)
    comment_len = read_uint16(f)
    disk_num = read_uint16(f)
    internal_attrs = read_uint16(f)
    external_attrs = read_uint32(f)
    local_header_offset = read_uint32(f)
    filename = read_exact(f, filename_len)
    extra = read_exact(f, extra_len)
    comment = read_exact(f, comment_len)

    return CentralDirectoryHeader(
        signature=signature,
        version_made_by=version_made_by,
        version=version,
        flags=flags,
        compression_method=compression_method,
        mod_time=mod_time,
        mod_date=mod_date,
        crc32=crc32,
        compressed_size=compressed_size,
        uncompressed_size=uncompressed_size,
        filename_len=filename_len,
        extra_len=extra_len,
        comment_len=comment_len,
        disk_num=disk_num,
        internal_attrs=internal_attrs,
        external_attrs=external_attrs,
        local_header_offset=local_header_offset,
        filename=filename,
        extra=extra,
        comment=comment,
    )


def parse_eocd(f: BinaryIO) -> EndOfCentralDirectory:
    """Parse an End of Central Directory record from the current file position.

    Raises:
        ZipFormatError: If the signature is invalid or file is truncated.
    """
    signature = read_uint32(f)
    if signature != END_OF_CENTRAL_DIR:
        raise ZipFormatError(
            f"Invalid EOCD signature: 0x{signature:08X}, "
            f"expected 0x{END_OF_CENTRAL_DIR:08X}"
        )

    disk_num = read_uint16(f)
    cd_disk = read_uint16(f)
    cd_records_on_disk = read_uint16(f)
    cd_records_total = read_uint16(f)
    cd_size = read_uint32(f)
    cd_offset = read_uint32(f)
    comment_len = read_uint16(f)
    comment = read_exact(f, comment_len)

    return EndOfCentralDirectory(
        signature=signature,
        disk_num=disk_num,
        cd_disk=cd_disk,
        cd_records_on_disk=cd_records_on_disk,
        cd_records_total=cd_records_total,
        cd_size=cd_size,
        cd_offset=cd_offset,
        comment_len=comment_len,
        comment=comment,
    )
