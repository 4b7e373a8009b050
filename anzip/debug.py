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
Debugging utilities for the anzip library.

This module provides tools for analyzing and checking the structure of
archives, either as produced bytes or as files on disk.
"""

import io
import os
import struct
from typing import Optional, Union

from .checksum import crc32
from .constants import (
    CENTRAL_DIR_HEADER,
    CENTRAL_DIR_HEADER_SIZE,
    END_OF_CENTRAL_DIR,
    END_OF_CENTRAL_DIR_SIZE,
    LOCAL_FILE_HEADER,
    LOCAL_FILE_HEADER_SIZE,
)
from .errors import ZipFormatError
from .structures import (
    CentralDirectoryHeader,
    EndOfCentralDirectory,
    parse_central_directory_header,
    parse_eocd,
    parse_local_file_header,
)

ArchiveSource = Union[bytes, bytearray, str, os.PathLike]


def _load(source: ArchiveSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    with open(source, "rb") as f:
        return f.read()


def hex_dump(data: bytes, offset: int = 0, length: Optional[int] = None) -> str:
    """Create a hex dump of binary data.

    Args:
        data: Binary data to dump.
        offset: Starting offset for display.
        length: Maximum length to dump (None for all).

    Returns:
        Formatted hex dump string.
    """
    if length is not None:
        data = data[:length]

    lines = []
    for i in range(0, len(data), 16):
        chunk = data[i : i + 16]
        hex_part = " ".join(f"{b:02X}" for b in chunk)
        ascii_part = "".join(chr(b) if 32 <= b < 127 else "." for b in chunk)
        lines.append(f"{offset + i:08X}  {hex_part:<48}  {ascii_part}")

    return "\n".join(lines)


def find_eocd(data: bytes) -> EndOfCentralDirectory:
    """Locate and parse the End of Central Directory record.

    Raises:
        ZipFormatError: If no EOCD record is present.
    """
    signature = struct.pack("<I", END_OF_CENTRAL_DIR)
    pos = data.rfind(signature, max(0, len(data) - END_OF_CENTRAL_DIR_SIZE - 0xFFFF))
    if pos < 0:
        raise ZipFormatError("End of central directory record not found")
    return parse_eocd(io.BytesIO(data[pos:]))


def read_central_directory(source: ArchiveSource) -> list[CentralDirectoryHeader]:
    """Parse every central directory header of an archive."""
    data = _load(source)
    eocd = find_eocd(data)
    f = io.BytesIO(data)
    f.seek(eocd.cd_offset)
    return [parse_central_directory_header(f) for _ in range(eocd.cd_records_total)]


def dump_zip_structure(source: ArchiveSource) -> str:
    """Dump the structure of a ZIP archive.

    Args:
        source: Archive bytes or path to a ZIP file.

    Returns:
        Formatted string describing the ZIP structure.
    """
    data = _load(source)
    label = "<bytes>" if isinstance(source, (bytes, bytearray)) else os.fspath(source)
    output = [f"ZIP File Structure: {label}\n", "=" * 80]
    output.append(f"\nFile size: {len(data)} bytes")

    local_headers = []
    central_headers = []
    eocd_offset = None
    offset = 0
    while offset + 4 <= len(data):
        sig = struct.unpack_from("<I", data, offset)[0]
        try:
            if sig == LOCAL_FILE_HEADER:
                header = parse_local_file_header(io.BytesIO(data[offset:]))
                local_headers.append((offset, header.filename.decode("utf-8", "replace"), header.compressed_size))
                offset += LOCAL_FILE_HEADER_SIZE + header.filename_len + header.extra_len + header.compressed_size
            elif sig == CENTRAL_DIR_HEADER:
                header = parse_central_directory_header(io.BytesIO(data[offset:]))
                central_headers.append((offset, header.name, header.local_header_offset))
                offset += CENTRAL_DIR_HEADER_SIZE + header.filename_len + header.extra_len + header.comment_len
            elif sig == END_OF_CENTRAL_DIR:
                eocd_offset = offset
                offset += END_OF_CENTRAL_DIR_SIZE
            else:
                offset += 1  # Unknown, advance slowly
        except ZipFormatError:
            break

    output.append(f"\nLocal File Headers: {len(local_headers)}")
    for i, (off, name, size) in enumerate(local_headers):
        output.append(f"  [{i}] Offset: 0x{off:08X}  {name} ({size} bytes)")

    output.append(f"\nCentral Directory Headers: {len(central_headers)}")
    for i, (off, name, local_offset) in enumerate(central_headers):
        output.append(f"  [{i}] Offset: 0x{off:08X}  {name} -> 0x{local_offset:08X}")

    if eocd_offset is not None:
        output.append(f"\nEnd of Central Directory: 0x{eocd_offset:08X}")

    return "\n".join(output)


def verify_zip_structure(source: ArchiveSource) -> tuple[bool, list[str]]:
    """Verify ZIP structure correctness.

    Every central directory header must point at a local header that agrees
    with it, and every stored payload must match its CRC-32.

    Args:
        source: Archive bytes or path to a ZIP file.

    Returns:
        Tuple of (is_valid, list_of_errors).
    """
    errors = []

    try:
        data = _load(source)
        eocd = find_eocd(data)
        headers = read_central_directory(data)
    except (OSError, ZipFormatError) as e:
        return False, [f"Error opening ZIP file: {e}"]

    if eocd.cd_records_on_disk != eocd.cd_records_total:
        errors.append("EOCD entry counts disagree")
    if eocd.cd_offset + eocd.cd_size > len(data):
        errors.append("Central directory extends past end of data")

    f = io.BytesIO(data)
    for header in headers:
        name = header.name
        try:
            f.seek(header.local_header_offset)
            local = parse_local_file_header(f)
        except ZipFormatError as e:
            errors.append(f"Error reading local header of {name}: {e}")
            continue

        for field in ("crc32", "compressed_size", "uncompressed_size", "mod_time", "mod_date", "filename"):
            if getattr(local, field) != getattr(header, field):
                errors.append(f"{name}: local and central {field} differ")

        payload = f.read(header.compressed_size)
        if len(payload) != header.compressed_size:
            errors.append(f"{name}: payload truncated")
        elif crc32(payload) != header.crc32:
            errors.append(f"{name}: CRC-32 mismatch")

    return len(errors) == 0, errors
