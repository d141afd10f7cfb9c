"""
Error types shared by routes, providers and the streaming pipeline.

Usage:
    from chatcierge.utils.exceptions import raise_bad_request, ProviderError

    raise_bad_request("Question must not be empty")
    return ProviderError(message=get_error_message(e), source="OpenAI:getEmbedding")
"""

from typing import Any, NoReturn, TypeGuard

from fastapi import HTTPException, status
from pydantic import BaseModel


def raise_bad_request(detail: str) -> NoReturn:
    """Raise HTTP 400 Bad Request."""
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


# =============================================================================
# External boundary envelope
# =============================================================================


class ProviderError(BaseModel):
    """Error envelope returned (never raised) by every external call.

    `source` names the failing call site, e.g. ``Supabase:executeRPC<get_hotels_for_question>``.
    """

    message: str
    source: str


def is_provider_error(value: Any) -> TypeGuard[ProviderError]:
    return isinstance(value, ProviderError)


def get_error_message(error: Any) -> str:
    """Best-effort human readable message for anything that was raised or returned as an error."""
    if error is None:
        return "Unknown error"
    if isinstance(error, BaseException):
        return str(error) or error.__class__.__name__
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    if isinstance(error, str):
        return error
    return repr(error)


# =============================================================================
# Streaming pipeline errors
# =============================================================================


class StreamError(Exception):
    """Base class for errors that abort a recommendations stream."""


class FragmentDecodeError(StreamError):
    """Upstream event payload is not valid JSON or has no completion choice."""

    def __init__(self, message: str, data: str = ""):
        super().__init__(message)
        self.data = data


class SlotIndexError(StreamError):
    """Fragment addressed a slot outside the pre-sized buffer set."""

    def __init__(self, index: Any, slot_count: int):
        super().__init__(f"Fragment index {index!r} outside slot range [0, {slot_count})")
        self.index = index
        self.slot_count = slot_count


class StreamTimeoutError(StreamError):
    """No chunk arrived within the read timeout."""


class StreamClosedError(StreamError):
    """A chunk was fed after the stream completed."""
