"""
Wire framing for the recommendations stream.

Every forwarded fragment is a compact JSON object ``{"text": ..., "index": ...}``.

- ndjson: one object per line. Readers buffer partial lines, so a network
  read may end anywhere.
- concat: objects back to back with no separator. Readers repair ``}{`` into
  ``},{`` and parse the read as an array. Contract with the sender: a read
  never ends inside an object. A read that breaks it is dropped.
"""

import logging
from typing import Any, List

import orjson

from chatcierge.config import WireFraming
from chatcierge.models.stream import CompletionFragment

logger = logging.getLogger(__name__)

FRAMING_HEADER = "X-Wire-Framing"
NDJSON = "ndjson"
CONCAT = "concat"


def encode_fragment(fragment: CompletionFragment, framing: WireFraming = NDJSON) -> bytes:
    """Encode one fragment for the outbound stream."""
    payload = orjson.dumps({"text": fragment.text, "index": fragment.index})
    if framing == NDJSON:
        return payload + b"\n"
    return payload


class NDJSONReader:
    """Split newline-delimited JSON objects out of arbitrary text reads."""

    def __init__(self):
        self._pending = ""

    def feed(self, text: str) -> List[Any]:
        self._pending += text
        *lines, self._pending = self._pending.split("\n")
        items = []
        for line in lines:
            if not line.strip():
                continue
            try:
                items.append(orjson.loads(line))
            except orjson.JSONDecodeError as e:
                logger.warning(f"Dropping malformed stream line ({e}): {line[:200]!r}")
        return items

    @property
    def residual(self) -> str:
        return self._pending


class ConcatReader:
    """Parse a read holding one or more objects written back to back."""

    residual = ""

    def feed(self, text: str) -> List[Any]:
        if not text.strip():
            return []
        try:
            items = orjson.loads(f"[{text.replace('}{', '},{')}]")
        except orjson.JSONDecodeError as e:
            logger.warning(f"Dropping malformed stream chunk ({e}): {text[:200]!r}")
            return []
        return items


def make_reader(framing: WireFraming) -> NDJSONReader | ConcatReader:
    if framing == CONCAT:
        return ConcatReader()
    return NDJSONReader()
