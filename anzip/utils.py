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
Utility functions for the anzip library.

This module provides DOS date/time conversion, little-endian packing helpers
and safe binary reads used when inspecting archives.
"""

import struct
from datetime import datetime
from typing import BinaryIO, Optional, Union

from .constants import DOS_EPOCH_YEAR, DOS_MAX_YEAR
from .errors import ZipFormatError

DateLike = Union[datetime, int, float, None]


def dos_datetime_to_timestamp(dos_date: int, dos_time: int) -> datetime:
    """Convert DOS date and time to Python datetime.

    DOS date format (16 bits):
        Bits 0-4: Day (1-31)
        Bits 5-8: Month (1-12)
        Bits 9-15: Year - 1980 (0-127, so 1980-2107)

    DOS time format (16 bits):
        Bits 0-4: Second / 2 (0-29, so 0-58 seconds in 2-second increments)
        Bits 5-10: Minute (0-59)
        Bits 11-15: Hour (0-23)

    Args:
        dos_date: DOS date value (16-bit unsigned integer).
        dos_time: DOS time value (16-bit unsigned integer).

    Returns:
        datetime object representing the DOS date/time.
    """
    day = dos_date & 0x1F
    month = (dos_date >> 5) & 0x0F
    year = ((dos_date >> 9) & 0x7F) + DOS_EPOCH_YEAR

    second = (dos_time & 0x1F) * 2
    minute = (dos_time >> 5) & 0x3F
    hour = (dos_time >> 11) & 0x1F

    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError:
        # A zeroed date field ("no date") lands here
        return datetime(DOS_EPOCH_YEAR, 1, 1, 0, 0, 0)


def timestamp_to_dos_datetime(dt: datetime) -> tuple[int, int]:
    """Convert Python datetime to DOS date and time.

    Dates outside the DOS range are clamped to its first or last second.

    Args:
        dt: datetime object to convert.

    Returns:
        Tuple of (dos_date, dos_time) as 16-bit unsigned integers.
    """
    if dt.year < DOS_EPOCH_YEAR:
        dt = datetime(DOS_EPOCH_YEAR, 1, 1, 0, 0, 0)
    elif dt.year > DOS_MAX_YEAR:
        dt = datetime(DOS_MAX_YEAR, 12, 31, 23, 59, 58)

    year = dt.year - DOS_EPOCH_YEAR
    dos_date = dt.day | (dt.month << 5) | (year << 9)
    dos_time = (dt.second // 2) | (dt.minute << 5) | (dt.hour << 11)

    return (dos_date & 0xFFFF, dos_time & 0xFFFF)


def resolve_dos_datetime(date: DateLike = None) -> tuple[int, int]:
    """Turn the ``date`` argument accepted by ``AnZip.add`` into DOS fields.

    Args:
        date: ``None`` or ``-1`` for now, a datetime, a POSIX timestamp in
            seconds, or any other negative number for "no date".

    Returns:
        Tuple of (dos_date, dos_time); ``(0, 0)`` for "no date".

    Raises:
        TypeError: If ``date`` has an unsupported type.
    """
    if isinstance(date, datetime):
        return timestamp_to_dos_datetime(date)
    if date is not None and (isinstance(date, bool) or not isinstance(date, (int, float))):
        raise TypeError(f"date must be a datetime, a timestamp or None, not {type(date).__name__}")
    if date is None or date == -1:
        return timestamp_to_dos_datetime(datetime.now())
    if date < 0:
        return (0, 0)
    return timestamp_to_dos_datetime(datetime.fromtimestamp(date))


def pack_uint16(value: int) -> bytes:
    """Pack a little-endian 16-bit unsigned integer.

    Raises:
        ZipFormatError: If value does not fit in 16 bits.
    """
    if value < 0 or value > 0xFFFF:
        raise ZipFormatError(f"Value out of 16-bit range: {value}")
    return struct.pack("<H", value)


def pack_uint32(value: int) -> bytes:
    """Pack a little-endian 32-bit unsigned integer.

    Raises:
        ZipFormatError: If value does not fit in 32 bits.
    """
    if value < 0 or value > 0xFFFFFFFF:
        raise ZipFormatError(f"Value out of 32-bit range: {value}")
    return struct.pack("<I", value)


def read_exact(f: BinaryIO, size: int) -> bytes:
    """Read exactly 'size' bytes from file, raising ZipFormatError on short read.

    Args:
        f: Binary file-like object to read from.
        size: Number of bytes to read.

    Returns:
        Exactly 'size' bytes of data.

    Raises:
        ZipFormatError: If fewer than 'size' bytes could be read or size is invalid.
    """
    if size < 0:
        raise ZipFormatError(f"Invalid read size: {size} (must be non-negative)")

    data = f.read(size)
    if len(data) != size:
        raise ZipFormatError(
            f"Unexpected end of file: expected {size} bytes, got {len(data)}"
        )
    return data


def read_uint16(f: BinaryIO) -> int:
    """Read a little-endian 16-bit unsigned integer from file."""
    return struct.unpack("<H", read_exact(f, 2))[0]


def read_uint32(f: BinaryIO) -> int:
    """Read a little-endian 32-bit unsigned integer from file."""
    return struct.unpack("<I", read_exact(f, 4))[0]


def format_size(size_bytes: float, precision: Optional[int] = 2) -> str:
    """Format size in human-readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size_bytes < 1024.0:
            return f"{size_bytes:.{precision}f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.{precision}f} TB"
