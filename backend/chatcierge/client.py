"""
Client for the recommendations stream.

StreamReassembler folds the wire fragments of one response back into a text
buffer per hotel. RecommendationsClient performs the request, and
RecommendationSession keeps at most one stream in flight per user.

Usage:
    async with RecommendationsClient("http://localhost:8000") as client:
        session = RecommendationSession(client)
        await session.submit("Somewhere quiet by the sea?", hotel_uuids)
        reassembler = await session.wait()
        print(reassembler.buffers)
"""

import asyncio
import codecs
import contextlib
import logging
from typing import Any, AsyncIterable, List, Optional, Sequence

import httpx

from chatcierge.config import WireFraming, settings
from chatcierge.models.stream import CompletionFragment, StreamState
from chatcierge.utils.exceptions import SlotIndexError, StreamClosedError, StreamError, StreamTimeoutError
from chatcierge.utils.normalize import strip_escaped_newlines
from chatcierge.utils.wire import FRAMING_HEADER, make_reader

logger = logging.getLogger(__name__)

RECOMMENDATIONS_PATH = "/api/recommendations"


class StreamReassembler:
    """Per-slot text buffers for one recommendations response.

    Buffers are sized up front from the number of hotels requested. A
    fragment for any other index is a hard error.
    """

    def __init__(self, slot_count: int, framing: Optional[WireFraming] = None):
        if slot_count < 0:
            raise ValueError("slot_count must be >= 0")
        self.slot_count = slot_count
        self.buffers: List[str] = [""] * slot_count
        self.state = StreamState.PENDING
        self.completed_event = asyncio.Event()
        self.error: Optional[StreamError] = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.use_framing(framing or settings.wire_framing)

    @property
    def is_completed(self) -> bool:
        return self.state == StreamState.COMPLETED

    def use_framing(self, framing: WireFraming) -> None:
        """Select the wire framing; only allowed before the first chunk."""
        if self.state != StreamState.PENDING:
            raise RuntimeError("Framing can only change before the stream starts")
        self.framing = framing
        self._reader = make_reader(framing)

    def feed(self, chunk: bytes) -> List[CompletionFragment]:
        """Apply one network read. Returns the fragments that changed a buffer."""
        if self.state in (StreamState.COMPLETED, StreamState.FAILED):
            raise StreamClosedError(f"Stream already {self.state.value}")
        self.state = StreamState.STREAMING

        applied = []
        for item in self._reader.feed(self._decoder.decode(chunk)):
            fragment = self._to_fragment(item)
            if fragment is not None and self.apply(fragment):
                applied.append(fragment)
        return applied

    def apply(self, fragment: CompletionFragment) -> bool:
        """Append a fragment to its slot. Empty text (once cleaned) is skipped."""
        index = fragment.index
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < self.slot_count:
            raise SlotIndexError(index, self.slot_count)

        text = strip_escaped_newlines(fragment.text)
        if not text:
            return False
        self.buffers[index] += text
        return True

    def finish(self) -> None:
        """Transport reported end of stream. Residual partial data is discarded."""
        if self._reader.residual:
            logger.debug(f"Discarding {len(self._reader.residual)} unterminated characters at end of stream")
        self.state = StreamState.COMPLETED
        self.completed_event.set()

    def fail(self, error: StreamError) -> None:
        """Abort the reassembly. Buffers keep what arrived before the error."""
        self.error = error
        self.state = StreamState.FAILED
        self.completed_event.set()

    async def consume(self, chunks: AsyncIterable[bytes], read_timeout: Optional[float] = None) -> None:
        """Read until the transport ends; fail if a read takes longer than `read_timeout`.

        On a StreamError the reassembler moves to FAILED (waking anyone on
        `completed_event`) and the error is re-raised.
        """
        iterator = chunks.__aiter__()
        try:
            while True:
                try:
                    chunk = await asyncio.wait_for(iterator.__anext__(), timeout=read_timeout)
                except StopAsyncIteration:
                    break
                except asyncio.TimeoutError as e:
                    raise StreamTimeoutError(f"No data within {read_timeout}s") from e
                self.feed(chunk)
        except StreamError as e:
            self.fail(e)
            raise
        self.finish()

    def _to_fragment(self, item: Any) -> Optional[CompletionFragment]:
        if not isinstance(item, dict) or "index" not in item or not isinstance(item.get("text"), str):
            logger.warning(f"Dropping malformed fragment: {item!r}")
            return None
        return CompletionFragment(index=item["index"], text=item["text"])


class RecommendationsClient:
    """HTTP client for POST /api/recommendations."""

    def __init__(
        self,
        base_url: str,
        framing: Optional[WireFraming] = None,
        read_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.framing: WireFraming = framing or settings.wire_framing
        self.read_timeout = read_timeout if read_timeout is not None else float(settings.stream_read_timeout)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=float(settings.provider_timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "RecommendationsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def stream(
        self,
        question: str,
        hotel_uuids: Sequence[str],
        reassembler: Optional[StreamReassembler] = None,
    ) -> Optional[StreamReassembler]:
        """
        Stream recommendations for `hotel_uuids` into a reassembler.

        Returns None (no request made) for a blank question. A non-2xx
        response completes the reassembler with empty buffers.
        """
        if question.strip() == "":
            return None
        if reassembler is None:
            reassembler = StreamReassembler(len(hotel_uuids), self.framing)

        body = {"question": question, "hotelUUIDs": list(hotel_uuids)}
        async with self._client.stream("POST", RECOMMENDATIONS_PATH, json=body) as response:
            if not response.is_success:
                logger.warning(f"Recommendations request failed with HTTP {response.status_code}")
                reassembler.finish()
                return reassembler

            announced = response.headers.get(FRAMING_HEADER)
            if announced and announced != reassembler.framing:
                reassembler.use_framing(announced)

            await reassembler.consume(response.aiter_bytes(), self.read_timeout)
        return reassembler


class RecommendationSession:
    """One user's view: a new question cancels and discards the previous stream."""

    def __init__(self, client: RecommendationsClient):
        self.client = client
        self.reassembler: Optional[StreamReassembler] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def buffers(self) -> List[str]:
        return self.reassembler.buffers if self.reassembler else []

    @property
    def is_completed(self) -> bool:
        return bool(self.reassembler and self.reassembler.is_completed)

    async def submit(self, question: str, hotel_uuids: Sequence[str]) -> Optional[StreamReassembler]:
        """Start streaming a new question. Blank questions are ignored."""
        if question.strip() == "":
            return None

        await self.cancel()
        self.reassembler = StreamReassembler(len(hotel_uuids), self.client.framing)
        self._task = asyncio.create_task(
            self.client.stream(question, hotel_uuids, self.reassembler)
        )
        return self.reassembler

    async def wait(self) -> Optional[StreamReassembler]:
        """Wait for the current stream; re-raises its StreamError if it failed."""
        if self._task is not None:
            await self._task
        return self.reassembler

    async def cancel(self) -> None:
        """Stop the in-flight stream (if any) and drop its buffers."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self.reassembler = None
