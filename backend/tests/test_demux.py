"""Tests for the slot demultiplexer and the upstream relay."""

import orjson
import pytest
from chatcierge.models.stream import UpstreamEvent
from chatcierge.services.demux import SlotDemultiplexer, StreamContext, parse_fragment
from chatcierge.services.recommendations import relay_completion_stream
from chatcierge.utils.exceptions import FragmentDecodeError

from helpers import DONE_EVENT, completion_event, iterate


def event_for(text, index):
    return UpstreamEvent(type="event", data=orjson.dumps({"choices": [{"text": text, "index": index}]}).decode())


def test_parse_fragment():
    fragment = parse_fragment('{"choices":[{"text":"Hi","index":2}]}')
    assert fragment.index == 2
    assert fragment.text == "Hi"


@pytest.mark.parametrize(
    "data",
    [
        "not json",
        '{"choices": []}',
        '{"id": "no choices"}',
        '{"choices": [{"index": 0}]}',
        '{"choices": [{"text": "x", "index": "0"}]}',
    ],
)
def test_parse_fragment_rejects_bad_payloads(data):
    with pytest.raises(FragmentDecodeError):
        parse_fragment(data)


def test_leading_newlines_suppressed_across_slots():
    demux = SlotDemultiplexer(StreamContext(slot_count=3), framing="concat")
    outputs = [
        demux.handle(event_for("\n", 0)),
        demux.handle(event_for("\n", 2)),
        demux.handle(event_for("\n\n", 1)),
        demux.handle(event_for("Hello", 1)),
        demux.handle(event_for("\n", 0)),
        demux.handle(event_for("World", 2)),
    ]
    assert outputs[:3] == [None, None, None]
    assert orjson.loads(outputs[3]) == {"text": "Hello", "index": 1}
    # Once real text was seen in any slot, newlines in other slots are forwarded
    assert orjson.loads(outputs[4]) == {"text": "\n", "index": 0}
    assert orjson.loads(outputs[5]) == {"text": "World", "index": 2}
    assert demux.context.real_content_seen is True
    assert demux.context.suppressed == 3
    assert demux.context.forwarded == 3


def test_prompt_indices_are_renumbered_to_client_slots():
    demux = SlotDemultiplexer(StreamContext(slot_count=2, slots=[0, 2]), framing="ndjson")
    assert orjson.loads(demux.handle(event_for("Alpine", 0))) == {"text": "Alpine", "index": 0}
    assert orjson.loads(demux.handle(event_for("Seaside", 1))) == {"text": "Seaside", "index": 2}
    # Unknown prompt indices pass through unchanged
    assert orjson.loads(demux.handle(event_for("Stray", 5))) == {"text": "Stray", "index": 5}


def test_context_is_per_request():
    first = SlotDemultiplexer(StreamContext(slot_count=1))
    first.handle(event_for("Real", 0))

    second = SlotDemultiplexer(StreamContext(slot_count=1))
    assert second.handle(event_for("\n", 0)) is None


def test_ndjson_framing_terminates_each_fragment():
    demux = SlotDemultiplexer(StreamContext(slot_count=1), framing="ndjson")
    packet = demux.handle(event_for("Hi", 0))
    assert packet.endswith(b"\n")
    assert orjson.loads(packet) == {"text": "Hi", "index": 0}


def test_done_stops_everything_after_it():
    demux = SlotDemultiplexer(StreamContext(slot_count=1))
    assert demux.handle(event_for("Hi", 0)) is not None
    assert demux.handle(UpstreamEvent(type="event", data="[DONE]")) is None
    assert demux.done is True
    assert demux.handle(event_for("late", 0)) is None
    # Not even malformed data is looked at once done
    assert demux.handle(UpstreamEvent(type="event", data="garbage")) is None


def test_non_event_records_are_ignored():
    demux = SlotDemultiplexer(StreamContext(slot_count=1))
    assert demux.handle(UpstreamEvent(type="reconnect-interval", data="3000")) is None


@pytest.mark.asyncio
async def test_relay_scenario_concat():
    chunks = [
        completion_event("\n", 0),
        completion_event("\n", 1),
        completion_event("Great", 0),
        completion_event("Nice", 1),
        DONE_EVENT,
    ]
    demux = SlotDemultiplexer(StreamContext(slot_count=2), framing="concat")
    body = b"".join([p async for p in relay_completion_stream(iterate(chunks), demux)])
    assert body == b'{"text":"Great","index":0}{"text":"Nice","index":1}'


@pytest.mark.asyncio
async def test_relay_writes_nothing_after_done():
    chunks = [
        completion_event("One", 0) + DONE_EVENT + completion_event("Two", 0),
        completion_event("Three", 0),
    ]
    demux = SlotDemultiplexer(StreamContext(slot_count=1), framing="ndjson")
    packets = [p async for p in relay_completion_stream(iterate(chunks), demux)]
    assert packets == [b'{"text":"One","index":0}\n']


@pytest.mark.asyncio
async def test_relay_handles_records_split_across_reads():
    raw = completion_event("Split", 0) + completion_event(" text", 0) + DONE_EVENT
    chunks = [raw[i : i + 7] for i in range(0, len(raw), 7)]
    demux = SlotDemultiplexer(StreamContext(slot_count=1), framing="ndjson")
    packets = [p async for p in relay_completion_stream(iterate(chunks), demux)]
    assert [orjson.loads(p)["text"] for p in packets] == ["Split", " text"]


@pytest.mark.asyncio
async def test_relay_ends_when_upstream_is_exhausted():
    chunks = [completion_event("No", 0), completion_event(" sentinel", 0)]
    demux = SlotDemultiplexer(StreamContext(slot_count=1), framing="ndjson")
    packets = [p async for p in relay_completion_stream(iterate(chunks), demux)]
    assert len(packets) == 2
    assert demux.done is False


@pytest.mark.asyncio
async def test_relay_raises_on_malformed_payload():
    chunks = [completion_event("Fine", 0), b"data: {not json}\n\n", completion_event("never", 0)]
    demux = SlotDemultiplexer(StreamContext(slot_count=1), framing="ndjson")
    packets = []
    with pytest.raises(FragmentDecodeError):
        async for packet in relay_completion_stream(iterate(chunks), demux):
            packets.append(packet)
    assert packets == [b'{"text":"Fine","index":0}\n']


@pytest.mark.asyncio
async def test_relay_skips_malformed_sse_records():
    chunks = [b"garbage without data\n\n", completion_event("Ok", 0), DONE_EVENT]
    demux = SlotDemultiplexer(StreamContext(slot_count=1), framing="ndjson")
    packets = [p async for p in relay_completion_stream(iterate(chunks), demux)]
    assert packets == [b'{"text":"Ok","index":0}\n']
