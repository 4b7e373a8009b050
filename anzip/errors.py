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
Custom exception classes for the anzip library.

This module defines specific exception types for the error conditions that
can occur while assembling or inspecting ZIP archives.
"""

from typing import Optional


class ZipError(Exception):
    """Base exception class for all ZIP-related errors."""

    pass


class ZipFormatError(ZipError):
    """Raised when data does not fit the ZIP format.

    This exception is raised when:
    - Required signatures are missing or incorrect
    - An archive being inspected is truncated
    - A value exceeds the 32-bit limits of a classic (non-ZIP64) archive
    """

    pass


class InvalidPathError(ZipError):
    """Raised when an entry path is malformed.

    This exception is raised when the path:
    - Is empty or contains a null byte
    - Starts with a drive letter or still has a leading slash
    - Contains an empty segment (``a//b``)
    - Has no file name but a payload was given
    """

    pass


class DuplicatePathError(ZipError):
    """Raised when a file path is already present in the archive."""

    pass


class InvalidPayloadTypeError(ZipError):
    """Raised when a payload is not one of the recognized byte sources."""

    pass


class AlreadyFinalizedError(ZipError):
    """Raised when an archive is mutated after it was closed."""

    pass


class StillPendingError(ZipError):
    """Raised when a synchronous operation needs checksums that are not resolved yet."""

    pass


class ChecksumResolutionError(ZipError):
    """Raised when a deferred payload could not be drained or hashed.

    The entry owning the payload has already been removed from the archive
    when this error reaches the caller.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
