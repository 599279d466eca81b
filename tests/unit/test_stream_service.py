"""Tests for StreamService.consume_readable_stream."""
import asyncio
import json
import pytest

from services.stream_service import StreamService, consume_readable_stream
from tests.fixtures.streams import ByteStream, FakeResponse


@pytest.mark.anyio
async def test_calls_callback_for_each_chunk():
    """Given N non-empty chunks, on_chunk should be called N times with each chunk in order."""
    received = []
    stream = ByteStream(["Hello", " ", "World"])

    await consume_readable_stream(stream, received.append)

    assert received == ["Hello", " ", "World"]
    assert stream.closed


@pytest.mark.anyio
async def test_empty_stream_never_calls_callback():
    """Given an empty stream, on_chunk should not be called."""
    received = []

    await consume_readable_stream(ByteStream([]), received.append)

    assert received == []


@pytest.mark.anyio
async def test_many_chunks_and_special_characters():
    """Given many chunks including non-ASCII text, each should arrive intact and in order."""
    chunks = [f"chunk{i}" for i in range(100)] + ["日本語", "émoji 🎉"]
    received = []

    await consume_readable_stream(ByteStream(chunks), received.append)

    assert received == chunks


@pytest.mark.anyio
async def test_multibyte_character_split_across_reads():
    """Given a character split across two buffers, the delivered text should reconstruct it exactly."""
    encoded = "日本".encode("utf-8")
    stream = ByteStream([encoded[:2], encoded[2:4], encoded[4:]])
    received = []

    await consume_readable_stream(stream, received.append)

    assert "".join(received) == "日本"
    assert all("�" not in text for text in received)


@pytest.mark.anyio
async def test_truncated_character_at_stream_end_is_not_delivered():
    """Given a stream ending partway through a character, only the earlier chunks should be delivered."""
    stream = ByteStream([b"ab", "日".encode("utf-8")[:2]])
    received = []

    await consume_readable_stream(stream, received.append)

    assert received == ["ab"]
    assert stream.closed


@pytest.mark.anyio
async def test_async_callback_is_awaited():
    """Given an async on_chunk, each call should be awaited."""
    received = []

    async def on_chunk(text):
        await asyncio.sleep(0)
        received.append(text)

    await consume_readable_stream(ByteStream(["a", "b"]), on_chunk)

    assert received == ["a", "b"]


@pytest.mark.anyio
async def test_stream_error_is_logged_and_swallowed(caplog):
    """Given a stream that fails mid-way, chunks before the error should arrive and nothing should raise."""
    received = []
    stream = ByteStream(["chunk0", "chunk1", "chunk2"], error_after=2)

    await consume_readable_stream(stream, received.append)

    assert received == ["chunk0", "chunk1"]
    assert "Error consuming stream" in caplog.text
    assert stream.closed


@pytest.mark.anyio
async def test_throwing_callback_does_not_stop_stream(caplog):
    """Given a sink that always raises, every chunk should still be attempted."""
    attempts = []

    def on_chunk(text):
        attempts.append(text)
        raise RuntimeError("sink broken")

    stream = ByteStream(["a", "b", "c"])
    await consume_readable_stream(stream, on_chunk)

    assert attempts == ["a", "b", "c"]
    assert "Error in stream chunk handler" in caplog.text
    assert stream.closed


@pytest.mark.anyio
async def test_abort_after_first_chunk_stops_reading():
    """Given an abort after the first chunk, fewer chunks should be delivered and the call should return."""
    cancel_event = asyncio.Event()
    received = []
    stream = ByteStream([f"chunk{i}" for i in range(5)], delay=0.01)

    def on_chunk(text):
        received.append(text)
        cancel_event.set()

    await consume_readable_stream(stream, on_chunk, cancel_event)

    assert 1 <= len(received) < 5
    assert stream.closed


@pytest.mark.anyio
async def test_abort_cancels_pending_read():
    """Given a read that never completes, setting the cancel event should end consumption promptly."""
    cancel_event = asyncio.Event()
    received = []
    stream = ByteStream(["first"], hang_after=1)

    async def abort_soon():
        await asyncio.sleep(0.05)
        cancel_event.set()

    abort_task = asyncio.create_task(abort_soon())
    await asyncio.wait_for(consume_readable_stream(stream, received.append, cancel_event), timeout=2)
    await abort_task

    assert received == ["first"]
    assert stream.closed


@pytest.mark.anyio
async def test_already_aborted_signal_reads_nothing():
    """Given an already-set cancel event, consumption should return without reading."""
    cancel_event = asyncio.Event()
    cancel_event.set()
    stream = ByteStream(["never"], hang_after=0)
    received = []

    await asyncio.wait_for(consume_readable_stream(stream, received.append, cancel_event), timeout=2)

    assert received == []
    assert stream.reads == 0
    assert stream.closed


@pytest.mark.anyio
async def test_response_like_stream_is_released():
    """Given an httpx-style response, both the byte iterator and the response should be closed."""
    response = FakeResponse(["data"])
    received = []

    await consume_readable_stream(response, received.append)

    assert received == ["data"]
    assert response.body.closed
    assert response.closed


@pytest.mark.anyio
async def test_concurrent_streams_are_independent():
    """Given two streams consumed in parallel, each callback should only see its own chunks."""
    received1, received2 = [], []

    await asyncio.gather(
        consume_readable_stream(ByteStream(["s1-a", "s1-b"], delay=0.01), received1.append),
        consume_readable_stream(ByteStream(["s2-a", "s2-b"], delay=0.01), received2.append),
    )

    assert received1 == ["s1-a", "s1-b"]
    assert received2 == ["s2-a", "s2-b"]


@pytest.mark.anyio
async def test_json_split_across_chunks_reassembles():
    """Given JSON split across chunks, the concatenated text should parse."""
    received = []

    await consume_readable_stream(ByteStream(['{"message":', '"Hello",', '"count":42}']), received.append)

    assert json.loads("".join(received)) == {"message": "Hello", "count": 42}


def test_send_sse_event_format():
    """send_sse_event should produce a compact SSE frame."""
    assert StreamService.send_sse_event("token", {"content": "hi"}) == 'event: token\ndata: {"content":"hi"}\n\n'
