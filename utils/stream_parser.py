"""
Frame parser for decoded provider streams.
Splits incremental SSE text into complete `data:` payloads.
"""
from utils.constants import StreamFraming


class StreamFrameParser:
    """Buffers decoded SSE text and emits complete data payloads.

    Only `data:` lines are emitted, with the prefix stripped. The `[DONE]`
    terminator sets `done`; lines after it are ignored.
    """

    def __init__(self):
        self.buffer = ""
        self.done = False

    def _parse_line(self, line: str) -> str | None:
        line = line.rstrip("\r")
        if self.done or not line.startswith(StreamFraming.SSE_DATA_PREFIX):
            return None

        data = line[len(StreamFraming.SSE_DATA_PREFIX):].strip()
        if data == StreamFraming.SSE_DONE:
            self.done = True
            return None
        return data or None

    def process_text(self, text: str) -> list[str]:
        """Process a decoded chunk and return the frames it completes."""
        self.buffer += text
        if "\n" not in self.buffer:
            return []

        *lines, self.buffer = self.buffer.split("\n")

        frames = []
        for line in lines:
            frame = self._parse_line(line)
            if frame is not None:
                frames.append(frame)
        return frames

    def flush(self) -> list[str]:
        """Return a trailing frame left without a newline at stream end."""
        remaining = self.buffer
        self.buffer = ""
        frame = self._parse_line(remaining)
        return [frame] if frame is not None else []

    def reset(self):
        """Reset the parser state."""
        self.buffer = ""
        self.done = False
