"""
Server-Sent Events helpers.

SSEDecoder turns raw bytes from an upstream provider into UpstreamEvent
records. Reads may split a record (or a multi-byte character) anywhere; the
decoder keeps the unfinished tail until the next read completes it.

streaming_response wraps an async byte generator in the response used for
every long-lived stream this service sends.
"""

import codecs
import logging
from typing import AsyncIterable, AsyncIterator, Dict, List, Optional

from fastapi.responses import StreamingResponse

from chatcierge.models.stream import UpstreamEvent

logger = logging.getLogger(__name__)

# Constants
EVENT_TYPE = "event"
DEFAULT_EVENT_NAME = "message"
RECORD_SEPARATOR = "\n\n"

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


class SSEDecoder:
    """Incremental decoder for the SSE text protocol."""

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes | str) -> List[UpstreamEvent]:
        """Add one network read and return every record it completed."""
        if isinstance(chunk, bytes):
            text = self._decoder.decode(chunk)
        else:
            text = chunk
        self._buffer += text
        self._normalize_line_endings()

        events = []
        while RECORD_SEPARATOR in self._buffer:
            record, self._buffer = self._buffer.split(RECORD_SEPARATOR, 1)
            event = self._parse_record(record)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> List[UpstreamEvent]:
        """Dispatch whatever is left once the byte source is exhausted."""
        self._buffer += self._decoder.decode(b"", final=True)
        self._buffer = self._buffer.replace("\r\n", "\n").replace("\r", "\n")
        records = [r for r in self._buffer.split(RECORD_SEPARATOR) if r.strip()]
        self._buffer = ""
        return [e for e in (self._parse_record(r) for r in records) if e is not None]

    def _normalize_line_endings(self) -> None:
        # A trailing CR may be the first half of a CRLF split across reads
        held = ""
        if self._buffer.endswith("\r"):
            self._buffer, held = self._buffer[:-1], "\r"
        self._buffer = self._buffer.replace("\r\n", "\n").replace("\r", "\n") + held

    def _parse_record(self, record: str) -> Optional[UpstreamEvent]:
        event_name = DEFAULT_EVENT_NAME
        data_lines: List[str] = []
        unknown_fields = 0

        for line in record.split("\n"):
            if not line or line.startswith(":"):
                continue

            field, _, value = line.partition(":")
            if value.startswith(" "):
                value = value[1:]

            if field == "data":
                data_lines.append(value)
            elif field == "event":
                event_name = value or DEFAULT_EVENT_NAME
            elif field in ("id", "retry"):
                continue
            else:
                unknown_fields += 1

        if not data_lines:
            if unknown_fields:
                logger.debug(f"Skipping malformed SSE record: {record[:200]!r}")
            return None

        return UpstreamEvent(type=EVENT_TYPE, data="\n".join(data_lines), event=event_name)


async def decode_sse(chunks: AsyncIterable[bytes]) -> AsyncIterator[UpstreamEvent]:
    """Decode an async byte stream into SSE events as they complete."""
    decoder = SSEDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
    for event in decoder.flush():
        yield event


def streaming_response(
    body: AsyncIterable[bytes], headers: Optional[Dict[str, str]] = None
) -> StreamingResponse:
    """Wrap a byte generator as a long-lived text/event-stream response."""
    return StreamingResponse(
        body,
        media_type="text/event-stream",
        headers={**STREAM_HEADERS, **(headers or {})},
    )
