"""
Recommendations stream orchestrator.

Runs one completion request for every hotel and relays it to the client:

    provider SSE bytes -> decode_sse -> SlotDemultiplexer -> wire bytes

The outbound generator ends exactly once:
- on the upstream ``[DONE]`` sentinel,
- when the upstream byte source is exhausted,
- by raising a StreamError (the response is aborted, not cleanly closed).

Closing the generator early (client disconnect) closes the upstream response,
which aborts the provider request.
"""

import contextlib
import logging
from typing import AsyncIterable, AsyncIterator, List, Optional, Sequence

import httpx

from chatcierge.config import WireFraming, settings
from chatcierge.models.response import Hotel
from chatcierge.providers.registry import ProviderRegistry
from chatcierge.services.demux import SlotDemultiplexer, StreamContext
from chatcierge.services.prompts import build_prompts
from chatcierge.utils.exceptions import StreamError, StreamTimeoutError, is_provider_error
from chatcierge.utils.sse import decode_sse

logger = logging.getLogger(__name__)


async def relay_completion_stream(
    chunks: AsyncIterable[bytes], demux: SlotDemultiplexer
) -> AsyncIterator[bytes]:
    """Decode upstream reads and yield the wire bytes to forward, until done."""
    async with contextlib.aclosing(decode_sse(chunks)) as events:
        async for event in events:
            packet = demux.handle(event)
            if demux.done:
                return
            if packet:
                yield packet


class RecommendationOrchestrator:
    """Streams hotel recommendations for one question."""

    def __init__(self, registry: ProviderRegistry, framing: Optional[WireFraming] = None):
        self.registry = registry
        self.framing: WireFraming = framing or settings.wire_framing
        self.context: Optional[StreamContext] = None

    async def run(
        self, question: str, hotels: List[Hotel], slots: Optional[Sequence[int]] = None
    ) -> AsyncIterator[bytes]:
        """
        Yield the outbound body. Prompt i is hotels[i] and is sent to the
        client as slot `slots[i]` (or i when no slots are given).

        Provider failures end the stream without data; decode failures raise.
        """
        if not hotels:
            logger.info("No hotels to recommend, closing stream")
            return
        if slots is not None and len(slots) != len(hotels):
            raise ValueError(f"Got {len(slots)} slots for {len(hotels)} hotels")

        self.context = StreamContext(
            slot_count=len(hotels), slots=list(slots) if slots is not None else None
        )
        demux = SlotDemultiplexer(self.context, self.framing)

        response = await self.registry.openai.start_completions(build_prompts(question, hotels))
        if is_provider_error(response):
            return

        self.registry.stream_started()
        try:
            async for packet in relay_completion_stream(response.aiter_bytes(), demux):
                yield packet
        except httpx.TimeoutException as e:
            logger.error(f"Completion stream stalled for more than {settings.stream_read_timeout}s")
            raise StreamTimeoutError(f"No upstream data within {settings.stream_read_timeout}s") from e
        except StreamError as e:
            logger.error(f"Recommendations stream failed: {e}")
            raise
        finally:
            await response.aclose()
            self.registry.stream_ended()

        logger.info(
            f"Recommendations stream finished: {self.context.forwarded} fragments for "
            f"{self.context.slot_count} hotels"
        )
