"""
Streaming service containing core stream consumption logic.
Decodes provider byte streams incrementally, forwards text to a sink and
handles cancellation, upstream errors and reader cleanup.
"""
import asyncio
import codecs
import inspect
import json
from typing import Any, AsyncIterable, AsyncIterator, Awaitable, Callable, Optional, Union

from utils.logger import app_logger

ChunkHandler = Callable[[str], Union[None, Awaitable[Any]]]


class StreamService:
    """Service for consuming provider streams."""

    @staticmethod
    def send_sse_event(event_type: str, data: dict) -> str:
        """Format data as Server-Sent Events (SSE) format."""
        return f"event: {event_type}\ndata: {json.dumps(data, separators=(',', ':'))}\n\n"

    @staticmethod
    def open_reader(stream: Any) -> tuple[AsyncIterator[bytes], list[Callable[[], Awaitable[None]]]]:
        """
        Get a byte iterator for a stream and the callbacks that release it.

        httpx responses are read through aiter_bytes() and released by closing
        that iterator and then the response. Plain async iterables are released
        by closing their iterator when it supports aclose().
        """
        if hasattr(stream, "aiter_bytes"):
            iterator = stream.aiter_bytes()
            owner_close = getattr(stream, "aclose", None)
        else:
            iterator = stream.__aiter__()
            owner_close = None

        releases = []
        iterator_close = getattr(iterator, "aclose", None)
        if iterator_close is not None:
            releases.append(iterator_close)
        if owner_close is not None:
            releases.append(owner_close)

        return iterator, releases

    @staticmethod
    async def _read_next(iterator: AsyncIterator[bytes]) -> bytes:
        return await iterator.__anext__()

    @staticmethod
    async def _deliver(on_chunk: ChunkHandler, text: str) -> None:
        """Hand text to the sink; sink failures are logged and skipped."""
        try:
            result = on_chunk(text)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            app_logger.error(f"Error in stream chunk handler: {e}")

    @staticmethod
    async def _cancel_read(read: asyncio.Future) -> None:
        """Cancel a pending read and wait for it to settle."""
        if not read.done():
            read.cancel()
            await asyncio.wait({read})
        elif not read.cancelled():
            # Mark the result as retrieved; it is discarded
            read.exception()

    @staticmethod
    async def consume_readable_stream(
        stream: Union[AsyncIterable[bytes], Any],
        on_chunk: ChunkHandler,
        cancel_event: Optional[asyncio.Event] = None
    ) -> None:
        """Consume a byte stream, forwarding decoded text to on_chunk.

        Each read that decodes to non-empty text produces exactly one call,
        in arrival order. A multi-byte character split across reads is held
        back until complete; bytes of a character left incomplete when the
        stream ends are discarded.

        Reading stops when the stream completes, when it raises (the error is
        logged) or when cancel_event is set, in which case a pending read is
        cancelled immediately. The reader is released on every path and this
        coroutine never raises for stream or sink failures.

        Args:
            stream: Async iterable of bytes, or an httpx.Response
            on_chunk: Sync or async callback receiving decoded text
            cancel_event: Set by the caller to abort consumption
        """
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        iterator, releases = StreamService.open_reader(stream)
        cancel_waiter = None
        read = None
        chunk_count = 0

        try:
            if cancel_event is not None:
                cancel_waiter = asyncio.ensure_future(cancel_event.wait())

            while True:
                if cancel_event is not None and cancel_event.is_set():
                    app_logger.info(f"Stream consumption cancelled after {chunk_count} chunks")
                    break

                read = asyncio.ensure_future(StreamService._read_next(iterator))

                if cancel_waiter is not None:
                    await asyncio.wait({read, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED)
                    if cancel_event.is_set():
                        await StreamService._cancel_read(read)
                        app_logger.info(f"Stream consumption cancelled after {chunk_count} chunks")
                        break

                try:
                    chunk = await read
                except StopAsyncIteration:
                    pending = len(decoder.getstate()[0])
                    if pending:
                        app_logger.debug(f"Stream ended with {pending} undecoded bytes")
                    break

                text = decoder.decode(chunk)
                if text:
                    chunk_count += 1
                    await StreamService._deliver(on_chunk, text)

        except Exception as e:
            app_logger.error(f"Error consuming stream: {e}")

        finally:
            if read is not None:
                await StreamService._cancel_read(read)

            if cancel_waiter is not None and not cancel_waiter.done():
                cancel_waiter.cancel()

            for release in releases:
                try:
                    await release()
                except Exception as e:
                    app_logger.warning(f"Error closing stream: {e}")


consume_readable_stream = StreamService.consume_readable_stream
