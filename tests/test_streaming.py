# tests/test_streaming.py
"""
Test the shared ticker and per-subscriber SSE streams.

Async code is driven with asyncio.run so no extra pytest plugin is needed.
"""

import asyncio
import json
import random

import pytest

from app.settings import Settings
from app.streaming import FleetBroadcaster, build_payload, event_stream, format_sse
from simulation.clock import SimulationClock
from simulation.errors import ConfigurationError
from simulation.filters import FilterCriteria
from simulation.fleet import create_fleet

from helpers import BASE_TIME, hourly


@pytest.fixture
def broadcaster() -> FleetBroadcaster:
    rng = random.Random(5)
    fleet = create_fleet(3, 6, 4, rng=rng, now=BASE_TIME)
    clock = SimulationClock(fleet, tick_ms=2000, time_scale=1800, rng=rng)
    return FleetBroadcaster(fleet, clock, tick_seconds=0.01)


def parse_event(chunk: str) -> dict:
    lines = chunk.strip().split("\n")
    assert lines[1] == "event: railUpdate"
    return {
        "id": int(lines[0].split(": ", 1)[1]),
        "data": json.loads(lines[2].split(": ", 1)[1]),
    }


class TestBroadcaster:
    """Tests for the shared tick."""

    def test_initial_frame_before_any_tick(self, broadcaster):
        assert broadcaster.frame.tick == 0
        assert len(broadcaster.frame.trains) == 3

    def test_tick_projects_new_frame(self, broadcaster):
        frame = broadcaster.tick(hourly(1))
        assert frame.tick == 1
        assert frame.timestamp == hourly(1)
        assert broadcaster.frame is frame

    def test_failed_tick_keeps_previous_frame(self, broadcaster, monkeypatch):
        previous = broadcaster.frame

        def explode(now=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(broadcaster.clock, "step", explode)

        assert broadcaster.tick() is previous
        assert broadcaster.failed_ticks == 1

    def test_subscribers_share_one_clock_step(self, broadcaster):
        async def scenario():
            a = broadcaster.frames()
            b = broadcaster.frames()
            first_a = await a.__anext__()
            first_b = await b.__anext__()

            next_a = asyncio.ensure_future(a.__anext__())
            next_b = asyncio.ensure_future(b.__anext__())
            await asyncio.sleep(0)
            await broadcaster.publish(hourly(1))
            second_a, second_b = await asyncio.gather(next_a, next_b)

            await a.aclose()
            await b.aclose()
            return first_a, first_b, second_a, second_b

        first_a, first_b, second_a, second_b = asyncio.run(scenario())

        assert first_a is first_b
        assert second_a is second_b
        assert second_a.tick == 1
        assert broadcaster.clock.tick_count == 1

    def test_background_ticker(self, broadcaster):
        async def scenario():
            broadcaster.start()
            assert broadcaster.is_running
            frames = broadcaster.frames()
            await frames.__anext__()
            frame = await asyncio.wait_for(frames.__anext__(), timeout=2)
            await frames.aclose()
            await broadcaster.stop()
            return frame

        frame = asyncio.run(scenario())

        assert frame.tick >= 1
        assert not broadcaster.is_running

    def test_from_settings_rejects_bad_config(self):
        with pytest.raises(ConfigurationError):
            FleetBroadcaster.from_settings(Settings(train_count=0))

    def test_from_settings_is_reproducible_with_seed(self):
        a = FleetBroadcaster.from_settings(Settings(seed=3))
        b = FleetBroadcaster.from_settings(Settings(seed=3))
        assert [t.route for t in a.fleet.trains] == [t.route for t in b.fleet.trains]
        assert a.clock.simulated_hours_per_tick == pytest.approx(1.0)


class TestEventStream:
    """Tests for one subscriber's SSE body."""

    def test_connected_comment_then_event(self, broadcaster):
        async def scenario():
            stream = event_stream(broadcaster, FilterCriteria())
            hello = await stream.__anext__()
            assert broadcaster.subscriber_count == 1
            first = await stream.__anext__()
            await stream.aclose()
            return hello, first

        hello, first = asyncio.run(scenario())

        assert hello == ": connected\n\n"
        event = parse_event(first)
        assert event["id"] == 1
        assert len(event["data"]["trains"]) == 3
        assert len(event["data"]["stationCatalog"]) == 6
        assert broadcaster.subscriber_count == 0

    def test_event_ids_increase_per_tick(self, broadcaster):
        async def scenario():
            stream = event_stream(broadcaster, FilterCriteria())
            await stream.__anext__()
            first = await stream.__anext__()
            pending = asyncio.ensure_future(stream.__anext__())
            await asyncio.sleep(0)
            await broadcaster.publish(hourly(1))
            second = await pending
            await stream.aclose()
            return first, second

        first, second = asyncio.run(scenario())

        assert parse_event(first)["id"] == 1
        assert parse_event(second)["id"] == 2
        assert parse_event(second)["data"]["timestamp"] == hourly(1).isoformat()

    def test_filters_applied_per_subscriber(self, broadcaster):
        async def scenario():
            stream = event_stream(broadcaster, FilterCriteria(train_name="no such train"))
            await stream.__anext__()
            chunk = await stream.__anext__()
            await stream.aclose()
            return chunk

        data = parse_event(asyncio.run(scenario()))["data"]

        assert data["trains"] == []
        assert data["filtersApplied"]["trainName"] == "no such train"

    def test_disconnect_ends_stream(self, broadcaster):
        async def gone():
            return True

        async def scenario():
            chunks = [c async for c in event_stream(broadcaster, FilterCriteria(), gone)]
            return chunks

        assert asyncio.run(scenario()) == [": connected\n\n"]
        assert broadcaster.subscriber_count == 0


class TestPayload:
    """Tests for payload shaping."""

    def test_payload_fields(self, broadcaster):
        criteria = FilterCriteria(status="LOADED")
        payload = build_payload(broadcaster.frame, criteria)

        assert set(payload) == {"timestamp", "filtersApplied", "trains", "stationCatalog"}
        assert payload["filtersApplied"]["status"] == "LOADED"
        for train in payload["trains"]:
            for car in train["cars"]:
                assert all(a["status"] == "LOADED" for a in car["airwayBills"])

    def test_format_sse(self):
        chunk = format_sse({"a": 1}, 7)
        assert chunk == 'id: 7\nevent: railUpdate\ndata: {"a": 1}\n\n'
