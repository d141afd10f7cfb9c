"""Builders for upstream payloads shared by the tests."""

import asyncio
from typing import AsyncIterator, List, Optional

import orjson


HOTEL_ROWS = [
    {
        "id": 1,
        "uuid": "uuid-seaside",
        "name": "Seaside Retreat",
        "description": "Quiet rooms facing the ocean.",
        "city_name": "Lisbon",
        "local_image_url": "/images/seaside.jpg",
        "fallback_image_url": "https://cdn.example.com/seaside.jpg",
    },
    {
        "id": 2,
        "uuid": "uuid-alpine",
        "name": "Alpine Lodge",
        "description": "Ski-in ski-out chalet.",
        "city_name": "Zermatt",
        "local_image_url": None,
        "fallback_image_url": "https://cdn.example.com/alpine.jpg",
    },
    {
        "id": 3,
        "uuid": "uuid-city",
        "name": "City Loft",
        "description": "Rooftop bar downtown.",
        "city_name": "Berlin",
        "local_image_url": None,
        "fallback_image_url": None,
    },
]


def completion_event(text: str, index: int) -> bytes:
    """One upstream SSE record in the legacy completions format."""
    payload = {
        "id": "cmpl-test",
        "object": "text_completion",
        "choices": [{"text": text, "index": index, "logprobs": None, "finish_reason": None}],
        "model": "text-davinci-003",
    }
    return b"data: " + orjson.dumps(payload) + b"\n\n"


DONE_EVENT = b"data: [DONE]\n\n"


async def iterate(
    chunks: List[bytes],
    pause: Optional[asyncio.Event] = None,
    error: Optional[Exception] = None,
) -> AsyncIterator[bytes]:
    """Async byte source; after the last chunk it optionally hangs until `pause` is set, then raises `error`."""
    for chunk in chunks:
        yield chunk
    if pause is not None:
        await pause.wait()
    if error is not None:
        raise error
