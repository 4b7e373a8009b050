import asyncio
import zlib

from anzip import AnZip
from anzip.checksum import CRC32_TABLE, crc32, crc32_async


def test_table_is_reflected_polynomial():
    assert len(CRC32_TABLE) == 256
    assert CRC32_TABLE[0] == 0
    assert CRC32_TABLE[1] == 0x77073096
    assert CRC32_TABLE[255] == 0x2D02EF8D


def test_known_check_value():
    assert crc32(b"123456789") == 0xCBF43926
    assert crc32(b"") == 0


def test_mixed_byte_values_match_zlib():
    data = bytes([0, 1, 127, 128, 254, 255])
    assert crc32(data) == zlib.crc32(data)
    assert crc32([0, 1, 127, 128, 254, 255]) == zlib.crc32(data)


def test_incremental_matches_whole():
    data = b"the quick brown fox jumps over the lazy dog" * 10
    partial = crc32(data[:100])
    assert crc32(data[100:], partial) == crc32(data)


def test_async_variant():
    data = bytes(range(256)) * 4
    assert asyncio.run(crc32_async(data)) == zlib.crc32(data)


def test_get_crc32_accepts_payload_shapes():
    assert AnZip.get_crc32("txt2") == zlib.crc32(b"txt2")
    assert AnZip.get_crc32([1, 2, 3]) == zlib.crc32(b"\x01\x02\x03")
    assert AnZip.get_crc32(bytearray(b"abc")) == zlib.crc32(b"abc")
