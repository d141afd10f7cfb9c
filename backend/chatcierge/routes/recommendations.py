"""
Recommendations route.

The body is not SSE framed: it is the wire format from utils/wire.py, sent
with event-stream headers so intermediaries do not buffer it.
"""

from fastapi import APIRouter, Depends

from chatcierge.models.request import RecommendationRequest
from chatcierge.providers.registry import ProviderRegistry, get_registry
from chatcierge.services.hotels import get_hotels_for_question, get_hotels_from_uuids, requested_slots
from chatcierge.services.recommendations import RecommendationOrchestrator
from chatcierge.utils.exceptions import raise_bad_request
from chatcierge.utils.sse import streaming_response
from chatcierge.utils.wire import FRAMING_HEADER

router = APIRouter()


@router.post("/recommendations")
async def recommendations(
    request: RecommendationRequest,
    registry: ProviderRegistry = Depends(get_registry),
):
    """
    POST /api/recommendations - stream one recommendation per hotel

    Slot i of the stream belongs to hotelUUIDs[i]. Unknown uuids get no
    prompt, so their slots receive no fragments. Without hotelUUIDs the
    hotels are found by similarity search and slot i is the i-th match.

    Each fragment is {"text": ..., "index": ...}; framing is announced in the
    X-Wire-Framing header.
    """
    question = request.question.strip()
    if not question:
        raise_bad_request("Question must not be empty")

    slots = None
    if request.hotel_uuids is None:
        hotels = await get_hotels_for_question(registry, question)
    else:
        hotels = await get_hotels_from_uuids(registry, request.hotel_uuids)
        slots = requested_slots(request.hotel_uuids, hotels)

    orchestrator = RecommendationOrchestrator(registry)
    return streaming_response(
        orchestrator.run(question, hotels, slots),
        headers={FRAMING_HEADER: orchestrator.framing},
    )
