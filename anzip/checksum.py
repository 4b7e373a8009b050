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
Table-driven CRC-32 (reflected polynomial 0xEDB88320).

The table is built once at import time; the functions below keep no other
state and are safe to call from several threads at once.
"""

import asyncio
from typing import Iterable

CRC32_POLYNOMIAL = 0xEDB88320


def make_crc_table(polynomial: int = CRC32_POLYNOMIAL) -> tuple[int, ...]:
    """Build the 256-entry lookup table for a reflected CRC-32 polynomial."""
    table = []
    for i in range(256):
        value = i
        for _ in range(8):
            if value & 1:
                value = polynomial ^ (value >> 1)
            else:
                value >>= 1
        table.append(value)
    return tuple(table)


CRC32_TABLE = make_crc_table()


def crc32(data: Iterable[int], value: int = 0) -> int:
    """Calculate the CRC-32 checksum of data.

    Like ``zlib.crc32`` the previous result can be passed as ``value`` to
    checksum data that arrives in several pieces.

    Args:
        data: Bytes (or any iterable of 0-255 ints) to checksum.
        value: Checksum of the data that precedes ``data``.

    Returns:
        CRC-32 value as unsigned 32-bit integer.
    """
    table = CRC32_TABLE
    crc = (value ^ 0xFFFFFFFF) & 0xFFFFFFFF
    for byte in data:
        crc = table[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return (crc ^ 0xFFFFFFFF) & 0xFFFFFFFF


async def crc32_async(data: bytes, value: int = 0) -> int:
    """Calculate a CRC-32 in a worker thread so the event loop keeps running."""
    return await asyncio.to_thread(crc32, data, value)
