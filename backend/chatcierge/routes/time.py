"""
Time demo stream: a minimal long-lived response for checking that streaming
works end to end through proxies.
"""

import asyncio
from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import APIRouter

from chatcierge.models.request import QuestionRequest
from chatcierge.utils.sse import streaming_response


router = APIRouter()

TICKS = 3
TICK_INTERVAL = 1.0


async def tick_stream(question: str, ticks: int = TICKS, interval: float = TICK_INTERVAL) -> AsyncIterator[bytes]:
    """Yield "<question>: <n> <timestamp>" every `interval` seconds, `ticks` times."""
    for count in range(1, ticks + 1):
        await asyncio.sleep(interval)
        yield f"{question}: {count} {datetime.now(timezone.utc).isoformat()}".encode()


@router.post("/time")
async def time_stream(request: QuestionRequest):
    """POST /api/time - demo stream of timestamps"""
    return streaming_response(tick_stream(request.question))
