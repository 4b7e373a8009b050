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
Serialized checksum resolution for deferred payloads.

Jobs run one at a time in the order they were scheduled, whatever order
their sources become ready in. A single worker task drains the queue; while
it exists the archive is "pending", and finalization waits on it until the
queue is empty, including jobs scheduled during the wait.
"""

import asyncio
import logging
from collections import deque
from typing import Callable, Optional

from .checksum import crc32_async
from .errors import ChecksumResolutionError
from .paths import Entry
from .sources import DeferredPayload
from .structures import SharedFields

logger = logging.getLogger(__name__)


class ChecksumJob:
    """Drain one deferred payload and, unless precomputed, store its CRC-32."""

    def __init__(
        self,
        entry: Entry,
        shared: SharedFields,
        payload: DeferredPayload,
        compute_crc: bool = True,
    ):
        self.entry = entry
        self.shared = shared
        self.payload = payload
        self.compute_crc = compute_crc
        self.error: Optional[ChecksumResolutionError] = None
        self.done = asyncio.Event()

    @property
    def path(self) -> str:
        return self.entry.path

    async def run(self) -> None:
        data = await self.payload.drain()
        if self.compute_crc:
            self.shared.crc32 = await crc32_async(data)


class ChecksumScheduler:
    """FIFO queue of checksum jobs with a single in-flight worker.

    Args:
        on_failure: Called with the failed job right after it fails, before
            any later job starts.
    """

    def __init__(self, on_failure: Optional[Callable[[ChecksumJob], None]] = None):
        self._queue: deque[ChecksumJob] = deque()
        self._worker: Optional[asyncio.Task] = None
        self._failures: list[ChecksumJob] = []
        self._on_failure = on_failure

    @property
    def pending(self) -> bool:
        return self._worker is not None or bool(self._queue)

    def schedule(self, job: ChecksumJob) -> ChecksumJob:
        """Queue a job behind all previously scheduled ones.

        Raises:
            RuntimeError: If called without a running event loop.
        """
        loop = asyncio.get_running_loop()
        self._queue.append(job)
        logger.debug("Scheduled checksum for %s (%d queued)", job.path, len(self._queue))
        if self._worker is None:
            self._worker = loop.create_task(self._drain())
        return job

    async def _drain(self) -> None:
        # a reset() swaps both containers; this worker keeps the old ones
        queue, failures = self._queue, self._failures
        try:
            while queue:
                await self._run(queue.popleft(), failures)
        finally:
            if self._worker is asyncio.current_task():
                self._worker = None

    async def _run(self, job: ChecksumJob, failures: list[ChecksumJob]) -> None:
        try:
            await job.run()
        except Exception as e:
            job.error = ChecksumResolutionError(
                f'{e}\ncould not resolve the CRC-32 of "{job.path}"', path=job.path
            )
            job.error.__cause__ = e
            if failures is not self._failures:
                logger.debug("Checksum of %s failed after a reset: %s", job.path, e)
                return
            failures.append(job)
            logger.warning("Checksum of %s failed, dropping the entry: %s", job.path, e)
            if self._on_failure is not None:
                self._on_failure(job)
        finally:
            job.done.set()

    async def wait(self, deep: bool = True) -> None:
        """Wait for queued jobs to finish.

        Args:
            deep: Keep waiting until the queue stays empty, covering jobs
                scheduled while waiting. Otherwise return after the current
                worker finishes.

        Raises:
            ChecksumResolutionError: The oldest failure nobody has seen yet.
        """
        while self.pending:
            if self._worker is None:
                # left behind by a worker cancelled with its event loop
                self._worker = asyncio.get_running_loop().create_task(self._drain())
            await asyncio.shield(self._worker)
            if not deep:
                break
        self.raise_failure()

    async def wait_for(self, job: ChecksumJob) -> None:
        """Wait for one job and raise its own failure, if any."""
        await job.done.wait()
        if job.error is not None:
            if job in self._failures:
                self._failures.remove(job)
            raise job.error

    def raise_failure(self) -> None:
        """Raise the oldest unreported failure, if there is one."""
        if self._failures:
            raise self._failures.pop(0).error

    def reset(self) -> None:
        """Detach from queued jobs and failures.

        A running worker finishes the jobs it already owns in the
        background; they no longer count as pending, and their failures are
        only raised to an ``add_async`` caller waiting on that very job.
        """
        self._queue = deque()
        self._worker = None
        self._failures = []
