"""
Streaming models for the recommendations pipeline.

Upstream provider SSE -> UpstreamEvent -> CompletionFragment -> wire bytes -> slot buffers
"""

from dataclasses import dataclass
from enum import Enum

# Sentinel data payload sent by the completion provider once generation is over
DONE_SENTINEL = "[DONE]"


@dataclass
class UpstreamEvent:
    """A single dispatched SSE record from the completion provider"""

    type: str
    data: str
    event: str = "message"


@dataclass
class CompletionFragment:
    """A piece of generated text for one prompt slot"""

    index: int
    text: str


class StreamState(str, Enum):
    """Lifecycle of a client-side recommendations stream"""

    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
