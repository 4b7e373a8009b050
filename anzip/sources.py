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
Payload sources accepted by ``AnZip.add``.

Immediate payloads (bytes-like objects, lists of byte values and text) are
turned into ``bytes`` right away. Deferred payloads announce their size up
front and deliver their bytes later, when the archive drains them on the
event loop.
"""

import inspect
from typing import Any, Optional, Union

from .errors import InvalidPayloadTypeError, StillPendingError, ZipFormatError


class DeferredPayload:
    """A payload whose bytes become available asynchronously.

    ``source`` may be:
    - an async callable (or a callable returning an awaitable) producing bytes
    - an awaitable producing bytes
    - an async iterable of byte chunks
    - an object with an async ``read()`` method

    The declared ``size`` is used for offset bookkeeping as soon as the
    payload is added; the drained bytes must match it.

    Example:
        async def fetch():
            return await response.read()

        archive.add("data.bin", DeferredPayload(fetch, size=1024))
    """

    def __init__(self, source: Any, size: int):
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise InvalidPayloadTypeError(f"deferred payload size must be a non-negative int, not {size!r}")
        self.source = source
        self.size = size
        self._data: Optional[bytes] = None

    def __repr__(self) -> str:
        state = "resolved" if self.resolved else "pending"
        return f"<DeferredPayload size={self.size} {state}>"

    @property
    def resolved(self) -> bool:
        return self._data is not None

    @property
    def data(self) -> bytes:
        """The drained bytes.

        Raises:
            StillPendingError: If the payload has not been drained yet.
        """
        if self._data is None:
            raise StillPendingError("deferred payload has not been drained yet")
        return self._data

    async def drain(self) -> bytes:
        """Read the whole source once and cache the result."""
        if self._data is not None:
            return self._data

        source = self.source
        if hasattr(source, "__aiter__"):
            chunks = []
            async for chunk in source:
                chunks.append(_as_bytes(chunk))
            data = b"".join(chunks)
        else:
            if hasattr(source, "read") and callable(source.read):
                result = source.read()
            elif callable(source):
                result = source()
            else:
                result = source
            if inspect.isawaitable(result):
                result = await result
            data = _as_bytes(result)

        if len(data) != self.size:
            raise ZipFormatError(
                f"deferred payload produced {len(data)} bytes, expected {self.size}"
            )
        self._data = data
        return data


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    raise InvalidPayloadTypeError(
        f"deferred payload must produce bytes-like data, not {type(value).__name__}"
    )


def is_deferred(data: Any) -> bool:
    """Return whether data is drained asynchronously rather than read now."""
    if isinstance(data, DeferredPayload):
        return True
    size = getattr(data, "size", None)
    read = getattr(data, "read", None)
    return (
        isinstance(size, int)
        and not isinstance(size, bool)
        and read is not None
        and inspect.iscoroutinefunction(read)
    )


def coerce_payload(data: Any) -> Union[bytes, DeferredPayload]:
    """Turn a caller-supplied payload into bytes or a DeferredPayload.

    Mutable buffers are copied so later changes by the caller cannot reach
    the archive.

    Raises:
        InvalidPayloadTypeError: If data is not a recognized byte source.
    """
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (list, tuple)):
        try:
            return bytes(data)
        except (TypeError, ValueError) as e:
            raise InvalidPayloadTypeError(f"byte list must hold ints in range 0-255: {e}") from e
    if isinstance(data, DeferredPayload):
        return data
    if is_deferred(data):
        return DeferredPayload(data, data.size)
    raise InvalidPayloadTypeError(
        "data must be one of the following types: bytes, bytearray, memoryview, "
        f"list of ints, str, or a deferred payload, not {type(data).__name__}"
    )
