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
ANZIP - incremental builder for uncompressed ZIP archives.

Paths and payloads are registered one at a time, removed again if needed,
and assembled into archive bytes on demand. Payloads that arrive
asynchronously have their CRC-32 resolved in the background. Only Python
standard library modules are used.
"""

from .archive import AnZip, EntryInfo
from .checksum import crc32
from .errors import (
    AlreadyFinalizedError,
    ChecksumResolutionError,
    DuplicatePathError,
    InvalidPathError,
    InvalidPayloadTypeError,
    StillPendingError,
    ZipError,
    ZipFormatError,
)
from .sources import DeferredPayload

__all__ = [
    "AnZip",
    "EntryInfo",
    "DeferredPayload",
    "crc32",
    "ZipError",
    "ZipFormatError",
    "InvalidPathError",
    "DuplicatePathError",
    "InvalidPayloadTypeError",
    "AlreadyFinalizedError",
    "StillPendingError",
    "ChecksumResolutionError",
]

__version__ = "0.1.0"
