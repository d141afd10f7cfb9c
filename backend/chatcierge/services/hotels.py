"""
Hotel lookups backed by the embedding provider and the Supabase store.

Provider failures never escape from here: every error envelope is turned
into an empty hotel list.
"""

import logging
from typing import List, Sequence

from chatcierge.config import settings
from chatcierge.models.response import Hotel
from chatcierge.providers.registry import ProviderRegistry
from chatcierge.utils.exceptions import is_provider_error

logger = logging.getLogger(__name__)

HOTEL_COLUMNS = (
    "id",
    "uuid",
    "name",
    "description",
    "city_name",
    "local_image_url",
    "fallback_image_url",
)
SIMILARITY_RPC = "get_hotels_for_question"


def hotel_from_row(row: dict) -> Hotel:
    """Project a hotels row; hand selected local images win over fallbacks."""
    image_url = row.get("local_image_url") or row.get("fallback_image_url") or None
    return Hotel(
        id=row["id"],
        uuid=row["uuid"],
        name=row["name"],
        description=row["description"],
        city=row["city_name"],
        image_url=image_url,
    )


async def get_hotels_for_question(registry: ProviderRegistry, question: str) -> List[Hotel]:
    """
    Return the hotels that best match a question, best match first.

    E.g. "What is the best hotel for pet lovers?" -> up to `match_count`
    hotels above `similarity_threshold`.
    """
    embedding = await registry.openai.get_embedding(question)
    if is_provider_error(embedding):
        return []

    rows = await registry.supabase.execute_rpc(
        SIMILARITY_RPC,
        {
            "question_embedding": embedding,
            "similarity_threshold": settings.similarity_threshold,
            "match_count": settings.match_count,
        },
    )
    if is_provider_error(rows):
        return []
    return [hotel_from_row(row) for row in rows]


async def get_hotels_from_uuids(registry: ProviderRegistry, hotel_uuids: Sequence[str]) -> List[Hotel]:
    """Fetch hotels by uuid, in the same order as `hotel_uuids`.

    Unknown uuids are dropped.
    """
    if not hotel_uuids:
        return []

    rows = await registry.supabase.select_in(
        "hotels", HOTEL_COLUMNS, "uuid", hotel_uuids, "getHotelsFromUUIDs"
    )
    if is_provider_error(rows):
        return []

    by_uuid = {row["uuid"]: row for row in rows}
    hotels = [hotel_from_row(by_uuid[u]) for u in hotel_uuids if u in by_uuid]
    if len(hotels) < len(hotel_uuids):
        logger.info(f"Found {len(hotels)} of {len(hotel_uuids)} requested hotels")
    return hotels


def requested_slots(hotel_uuids: Sequence[str], hotels: Sequence[Hotel]) -> List[int]:
    """Position in `hotel_uuids` of each found hotel.

    `hotels` must be the in-order subset returned by get_hotels_from_uuids.
    E.g. ["a", "missing", "b"] with hotels [a, b] -> [0, 2].
    """
    slots = []
    found = iter(hotels)
    hotel = next(found, None)
    for position, uuid in enumerate(hotel_uuids):
        if hotel is not None and hotel.uuid == uuid:
            slots.append(position)
            hotel = next(found, None)
    return slots
