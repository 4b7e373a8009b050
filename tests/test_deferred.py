import asyncio
import io
import zipfile
import zlib

import pytest

from anzip import (
    AnZip,
    ChecksumResolutionError,
    DeferredPayload,
    InvalidPayloadTypeError,
    StillPendingError,
)


class FakeBlob:
    """Blob-like source: size known up front, bytes read asynchronously."""

    def __init__(self, data):
        self._data = data
        self.size = len(data)
        self.reads = 0

    async def read(self):
        self.reads += 1
        await asyncio.sleep(0)
        return self._data


def _open(data):
    return zipfile.ZipFile(io.BytesIO(data))


def test_deferred_payload_is_resolved_before_zip():
    async def scenario():
        archive = AnZip()

        async def fetch():
            await asyncio.sleep(0.01)
            return b"deferred bytes"

        archive.add("dir3/blob.bin", DeferredPayload(fetch, 14))
        archive.add("plain.txt", b"plain")
        assert archive.pending
        return await archive.zip()

    data = asyncio.run(scenario())
    with _open(data) as zf:
        assert zf.testzip() is None
        assert zf.read("dir3/blob.bin") == b"deferred bytes"
        assert zf.getinfo("dir3/blob.bin").CRC == zlib.crc32(b"deferred bytes")


def test_resolution_follows_scheduling_order():
    async def scenario():
        archive = AnZip()
        events = []
        gate = asyncio.Event()

        async def slow():
            events.append("slow-start")
            await gate.wait()
            events.append("slow-end")
            return b"slow payload"

        async def fast():
            events.append("fast-start")
            return b"fast"

        archive.add("slow.bin", DeferredPayload(slow, 12))
        archive.add("fast.bin", DeferredPayload(fast, 4))
        asyncio.get_running_loop().call_later(0.01, gate.set)
        await archive.wait()
        assert not archive.pending
        return events, archive.zip_sync()

    events, data = asyncio.run(scenario())
    assert events == ["slow-start", "slow-end", "fast-start"]
    with _open(data) as zf:
        assert zf.testzip() is None
        assert zf.getinfo("slow.bin").CRC == zlib.crc32(b"slow payload")
        assert zf.getinfo("fast.bin").CRC == zlib.crc32(b"fast")


def test_concurrent_adds_all_resolve():
    async def scenario():
        archive = AnZip()

        async def add_one(i):
            payload = bytes([i]) * (i + 1)

            async def source():
                await asyncio.sleep(0.001 * (10 - i))
                return payload

            return await archive.add_async(f"parts/{i}.bin", DeferredPayload(source, len(payload)))

        counts = await asyncio.gather(*(add_one(i) for i in range(10)))
        return counts, await archive.zip(close=True)

    counts, data = asyncio.run(scenario())
    assert sorted(counts) == list(range(2, 12))
    with _open(data) as zf:
        assert zf.testzip() is None
        for i in range(10):
            assert zf.read(f"parts/{i}.bin") == bytes([i]) * (i + 1)


def test_blob_like_and_async_iterable_sources():
    async def chunks():
        yield b"ab"
        yield bytearray(b"cd")

    async def scenario():
        archive = AnZip()
        blob = FakeBlob(bytes([0, 1, 127, 128, 254, 255]))
        archive.add("dir3/blob.bin", blob)
        archive.add("dir5/blob.bin", blob)
        archive.add("stream.bin", DeferredPayload(chunks(), 4))
        archive.add("ready.bin", DeferredPayload(asyncio.sleep(0, result=b"xyz"), 3))
        await archive.wait()
        return blob, archive

    blob, archive = asyncio.run(scenario())
    assert blob.reads == 2
    assert archive.get("stream.bin") == b"abcd"
    assert archive.get("ready.bin") == b"xyz"
    with _open(archive.zip_sync()) as zf:
        assert zf.testzip() is None
        assert zf.read("dir5/blob.bin") == bytes([0, 1, 127, 128, 254, 255])


def test_zip_sync_fails_while_pending():
    async def scenario():
        archive = AnZip()
        gate = asyncio.Event()

        async def gated():
            await gate.wait()
            return b"late"

        archive.add("late.bin", DeferredPayload(gated, 4))
        with pytest.raises(StillPendingError):
            archive.zip_sync()
        with pytest.raises(StillPendingError):
            archive.get("late.bin")

        gate.set()
        await archive.wait()
        assert archive.get("late.bin") == b"late"
        return archive.zip_sync(close=True)

    data = asyncio.run(scenario())
    with _open(data) as zf:
        assert zf.read("late.bin") == b"late"


def test_failed_checksum_removes_entry_and_surfaces():
    async def scenario():
        archive = AnZip()

        async def broken():
            raise OSError("source went away")

        archive.add("ok.txt", b"ok")
        archive.add("bad/x.bin", DeferredPayload(broken, 3))
        with pytest.raises(ChecksumResolutionError) as excinfo:
            await archive.zip()
        assert excinfo.value.path == "bad/x.bin"
        assert isinstance(excinfo.value.__cause__, OSError)

        assert not archive.has("bad/x.bin")
        assert archive.has("bad/")
        assert archive.count() == 1
        await archive.wait()
        return await archive.zip()

    data = asyncio.run(scenario())
    with _open(data) as zf:
        assert zf.namelist() == ["ok.txt", "bad/"]
        assert zf.testzip() is None


def test_size_mismatch_is_a_resolution_failure():
    async def scenario():
        archive = AnZip()

        async def short():
            return b"abc"

        with pytest.raises(ChecksumResolutionError):
            await archive.add_async("short.bin", DeferredPayload(short, 5))
        assert archive.count(all=True) == 0
        # reported to add_async already
        await archive.wait()
        return archive.zip_sync()

    data = asyncio.run(scenario())
    with _open(data) as zf:
        assert zf.namelist() == []


def test_snapshot_is_not_affected_by_later_removal():
    async def scenario():
        archive = AnZip()
        gate = asyncio.Event()

        async def gated():
            await gate.wait()
            return b"late"

        archive.add("first.txt", b"first")
        archive.add("late.bin", DeferredPayload(gated, 4))

        task = asyncio.create_task(archive.zip())
        await asyncio.sleep(0)
        assert archive.remove("first.txt")
        gate.set()
        snapshot = await task
        return snapshot, await archive.zip()

    snapshot, current = asyncio.run(scenario())
    with _open(snapshot) as zf:
        assert zf.namelist() == ["first.txt", "late.bin"]
        assert zf.testzip() is None
        assert zf.read("first.txt") == b"first"
    with _open(current) as zf:
        assert zf.namelist() == ["late.bin"]
        assert zf.testzip() is None
        assert zf.read("late.bin") == b"late"


def test_closing_zip_reflects_changes_made_while_waiting():
    async def scenario():
        archive = AnZip()
        gate = asyncio.Event()

        async def gated():
            await gate.wait()
            return b"late"

        archive.add("first.txt", b"first")
        archive.add("late.bin", DeferredPayload(gated, 4))

        task = asyncio.create_task(archive.zip(close=True))
        await asyncio.sleep(0)
        archive.remove("first.txt")
        gate.set()
        data = await task
        return archive, data

    archive, data = asyncio.run(scenario())
    assert archive.closed
    assert archive.get("late.bin") == b"late"
    with _open(data) as zf:
        assert zf.namelist() == ["late.bin"]


def test_clear_detaches_checksum_work_in_flight():
    async def scenario():
        archive = AnZip()
        gate = asyncio.Event()

        async def broken():
            await gate.wait()
            raise OSError("old source failed")

        archive.add("old/x.bin", DeferredPayload(broken, 3))
        await asyncio.sleep(0)
        archive.clear()
        assert not archive.pending

        archive.add("fresh.txt", b"fresh")
        gate.set()
        await asyncio.sleep(0.05)
        await archive.wait()
        return archive, await archive.zip(close=True)

    archive, data = asyncio.run(scenario())
    assert archive.closed
    assert not archive.has("old/")
    with _open(data) as zf:
        assert zf.namelist() == ["fresh.txt"]
        assert zf.testzip() is None


def test_precomputed_crc_still_drains_payload():
    async def scenario():
        archive = AnZip()

        async def source():
            return b"abc"

        archive.add("c.bin", DeferredPayload(source, 3), crc=zlib.crc32(b"abc"))
        assert archive.pending
        await archive.wait()
        return archive.zip_sync()

    data = asyncio.run(scenario())
    with _open(data) as zf:
        assert zf.testzip() is None


def test_deferred_payload_needs_running_loop():
    async def source():
        return b"x"

    archive = AnZip()
    with pytest.raises(RuntimeError):
        archive.add("a/x.bin", DeferredPayload(source, 1))
    assert archive.count(all=True) == 0
    assert not archive.pending


def test_deferred_payload_size_validation():
    with pytest.raises(InvalidPayloadTypeError):
        DeferredPayload(b"", -1)
    with pytest.raises(InvalidPayloadTypeError):
        DeferredPayload(b"", "3")
