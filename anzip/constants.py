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
ZIP format constants for store-only archive assembly.

This module defines signatures, fixed header blocks, header lengths and the
32-bit format limits used when building and inspecting archives.
"""

# ZIP record signatures (magic numbers)
LOCAL_FILE_HEADER = 0x04034B50  # "PK\x03\x04"
CENTRAL_DIR_HEADER = 0x02014B50  # "PK\x01\x02"
END_OF_CENTRAL_DIR = 0x06054B50  # "PK\x05\x06"

# Compression methods
COMP_STORED = 0  # No compression

# General purpose bit flags
FLAG_UTF8 = 0x0800  # UTF-8 encoding for filename

# Version needed to extract / made by: 1.0, plain stored entries
VERSION_STORED = 10

# External attribute values (MS-DOS attribute byte)
EXTERNAL_ATTR_FILE = 0x00000000
EXTERNAL_ATTR_DIRECTORY = 0x00000010

# Fixed part of each record
LOCAL_FILE_HEADER_SIZE = 30
CENTRAL_DIR_HEADER_SIZE = 46
END_OF_CENTRAL_DIR_SIZE = 22

# Size of the block shared between local and central headers:
# time(2) date(2) crc(4) compressed(4) uncompressed(4) name_len(2) extra_len(2)
SHARED_FIELDS_SIZE = 20

# signature(4) version(2) flags(2) method(2)
LOCAL_HEADER_PREFIX = bytes(
    [0x50, 0x4B, 0x03, 0x04, 0x0A, 0x00, 0x00, 0x08, 0x00, 0x00]
)

# signature(4) version made by(2) version needed(2) flags(2) method(2)
CENTRAL_HEADER_PREFIX = bytes(
    [0x50, 0x4B, 0x01, 0x02, 0x0A, 0x00, 0x0A, 0x00, 0x00, 0x08, 0x00, 0x00]
)

# comment_len(2) disk(2) internal attrs(2) external attrs(4)
CENTRAL_HEADER_REST_FILE = bytes(
    [0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00]
)
CENTRAL_HEADER_REST_DIRECTORY = bytes(
    [0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x10, 0x00, 0x00, 0x00]
)

# Classic ZIP limits (32-bit, no ZIP64)
MAX_FILE_SIZE = 0xFFFFFFFF  # 4 GiB - 1
MAX_ENTRIES = 0xFFFF  # 65535 entries
MAX_CD_SIZE = 0xFFFFFFFF
MAX_CD_OFFSET = 0xFFFFFFFF
MAX_NAME_LENGTH = 0xFFFF

# DOS date range
DOS_EPOCH_YEAR = 1980
DOS_MAX_YEAR = 2107
