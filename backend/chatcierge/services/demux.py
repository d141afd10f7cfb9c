"""
Slot demultiplexer: upstream completion events -> outbound wire fragments.

One completion request carries a prompt per hotel. The provider interleaves
the generated text of every prompt on a single SSE stream, tagging each
choice with the prompt index. This module extracts ``(index, text)`` pairs,
drops the shared blank preamble and encodes what remains for the client.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import orjson

from chatcierge.config import WireFraming
from chatcierge.models.stream import DONE_SENTINEL, CompletionFragment, UpstreamEvent
from chatcierge.utils.exceptions import FragmentDecodeError
from chatcierge.utils.normalize import is_newline_only
from chatcierge.utils.wire import NDJSON, encode_fragment

logger = logging.getLogger(__name__)


@dataclass
class StreamContext:
    """State of one recommendations request.

    `real_content_seen` is shared by every slot: the first fragment with
    real text (in any slot) opens the stream for all of them.

    `slots` maps each prompt index to the client slot it answers (prompt i
    belongs to slot `slots[i]`). Without it the two numberings coincide.
    """

    slot_count: int
    real_content_seen: bool = False
    forwarded: int = 0
    suppressed: int = 0
    slots: Optional[List[int]] = None

    def client_slot(self, index: int) -> int:
        if self.slots is None or not 0 <= index < len(self.slots):
            return index
        return self.slots[index]


def parse_fragment(data: str) -> CompletionFragment:
    """Extract the first completion choice from an upstream event payload."""
    try:
        payload = orjson.loads(data)
        choice = payload["choices"][0]
        text = choice["text"]
        index = choice["index"]
    except orjson.JSONDecodeError as e:
        raise FragmentDecodeError(f"Malformed completion payload: {e}", data) from e
    except (KeyError, IndexError, TypeError) as e:
        raise FragmentDecodeError(f"Completion payload has no usable choice: {e!r}", data) from e

    if not isinstance(text, str) or not isinstance(index, int) or isinstance(index, bool):
        raise FragmentDecodeError("Completion choice has invalid text/index types", data)
    return CompletionFragment(index=index, text=text)


class SlotDemultiplexer:
    """Turns decoded upstream events into wire bytes for one request."""

    def __init__(self, context: StreamContext, framing: WireFraming = NDJSON):
        self.context = context
        self.framing = framing
        self.done = False

    def handle(self, event: UpstreamEvent) -> Optional[bytes]:
        """
        Process one upstream event.

        Returns:
            Encoded fragment to write, or None when nothing should be written
            (non-data event, leading blank fragment, or stream already done).

        Raises:
            FragmentDecodeError: payload is not a completion chunk.
        """
        if self.done or event.type != "event":
            return None

        if event.data == DONE_SENTINEL:
            self.done = True
            logger.debug(
                f"Upstream done: {self.context.forwarded} fragments forwarded, "
                f"{self.context.suppressed} suppressed"
            )
            return None

        fragment = parse_fragment(event.data)
        if not 0 <= fragment.index < self.context.slot_count:
            logger.warning(
                f"Upstream fragment index {fragment.index} outside {self.context.slot_count} prompts"
            )

        # Generations start with a run of newlines we can ignore
        if not is_newline_only(fragment.text):
            self.context.real_content_seen = True

        if not self.context.real_content_seen:
            self.context.suppressed += 1
            return None

        self.context.forwarded += 1
        fragment = CompletionFragment(index=self.context.client_slot(fragment.index), text=fragment.text)
        return encode_fragment(fragment, self.framing)
