# app/streaming.py
"""
Shared simulation ticker and subscriber fan-out.

One background task steps the simulation once per tick and projects a single
FleetFrame. Every subscriber reads that same frame and filters it for itself,
so the clock never runs per connection.

Tick and read both happen on the event loop, so a frame is never projected
while the clock is mutating the fleet.
"""

import asyncio
import contextlib
import itertools
import json
import logging
import random
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional

from simulation.clock import SimulationClock
from simulation.filters import FilterCriteria, apply_filters
from simulation.fleet import FleetState, create_fleet_from_settings
from simulation.geo import STATIONS
from simulation.snapshots import FleetFrame, project_fleet

from .logging import get_stream_logger
from .settings import Settings

logger = get_stream_logger()

SSE_EVENT_NAME = "railUpdate"


class FleetBroadcaster:
    """
    Owns the fleet, its clock and the latest projected frame.

    Usage:
        broadcaster = FleetBroadcaster.from_settings(settings)
        broadcaster.start()
        async for frame in broadcaster.frames():
            ...
        await broadcaster.stop()
    """

    def __init__(
        self,
        fleet: FleetState,
        clock: SimulationClock,
        tick_seconds: float,
    ):
        self.fleet = fleet
        self.clock = clock
        self.tick_seconds = tick_seconds
        self._frame = project_fleet(fleet, tick=clock.tick_count)
        self._condition: Optional[asyncio.Condition] = None
        self._task: Optional[asyncio.Task] = None
        self._subscriber_ids = itertools.count(1)
        self.subscriber_count = 0
        self.failed_ticks = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "FleetBroadcaster":
        """
        Build fleet and clock from settings.

        Raises:
            ConfigurationError: If settings or routes are invalid
        """
        settings.validate()
        rng = random.Random(settings.seed)
        fleet = create_fleet_from_settings(settings, rng=rng)
        clock = SimulationClock.from_settings(fleet, settings, rng=rng)

        logger.info(
            "fleet_created",
            seed=settings.seed,
            tick_ms=settings.tick_ms,
            simulated_hours_per_tick=clock.simulated_hours_per_tick,
            **fleet.summary(),
        )
        return cls(fleet, clock, settings.tick_seconds)

    @property
    def frame(self) -> FleetFrame:
        """Most recent projected frame."""
        return self._frame

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _get_condition(self) -> asyncio.Condition:
        # Created lazily so it binds to the running loop
        if self._condition is None:
            self._condition = asyncio.Condition()
        return self._condition

    def tick(self, now: Optional[datetime] = None) -> FleetFrame:
        """
        Step the simulation once and project a new frame.

        A failed step is logged and the previous frame is kept.
        """
        now = now or datetime.now(timezone.utc)
        try:
            report = self.clock.step(now)
        except Exception as e:
            self.failed_ticks += 1
            logger.exception("tick_failed", tick=self.clock.tick_count, error=str(e))
            return self._frame

        if logger.is_enabled_for(logging.DEBUG):
            logger.debug("tick_completed", **report.to_dict())

        self._frame = project_fleet(self.fleet, tick=self.clock.tick_count, now=now)
        return self._frame

    async def publish(self, now: Optional[datetime] = None) -> FleetFrame:
        """Tick and wake every waiting subscriber."""
        frame = self.tick(now)
        condition = self._get_condition()
        async with condition:
            condition.notify_all()
        return frame

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.tick_seconds)
            await self.publish()

    def start(self) -> None:
        """Start the background ticker (requires a running event loop)."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("ticker_started", tick_seconds=self.tick_seconds)

    async def stop(self) -> None:
        """Cancel the background ticker."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("ticker_stopped", ticks=self.clock.tick_count)

    async def frames(self) -> AsyncIterator[FleetFrame]:
        """
        Yield the current frame immediately, then one frame per global tick.

        A slow subscriber skips frames rather than queueing them.
        """
        frame = self._frame
        yield frame
        last_tick = frame.tick

        condition = self._get_condition()
        while True:
            async with condition:
                await condition.wait_for(lambda: self._frame.tick != last_tick)
                frame = self._frame
            last_tick = frame.tick
            yield frame

    @contextlib.contextmanager
    def subscription(self, criteria: FilterCriteria):
        """Track one subscriber for the lifetime of its connection."""
        subscriber_id = next(self._subscriber_ids)
        self.subscriber_count += 1
        logger.info(
            "subscriber_connected",
            subscriber_id=subscriber_id,
            subscribers=self.subscriber_count,
            filters=criteria.to_dict(),
        )
        try:
            yield subscriber_id
        finally:
            self.subscriber_count -= 1
            logger.info(
                "subscriber_disconnected",
                subscriber_id=subscriber_id,
                subscribers=self.subscriber_count,
            )


def build_payload(frame: FleetFrame, criteria: FilterCriteria) -> Dict[str, Any]:
    """Filter a frame for one subscriber and shape it for the wire."""
    trains = apply_filters(frame.trains, criteria)
    return {
        "timestamp": frame.timestamp.isoformat(),
        "filtersApplied": criteria.to_dict(),
        "trains": [t.to_dict() for t in trains],
        "stationCatalog": [s.to_dict() for s in STATIONS],
    }


def format_sse(payload: Dict[str, Any], event_id: int, event: str = SSE_EVENT_NAME) -> str:
    """Encode one Server-Sent Event."""
    return f"id: {event_id}\nevent: {event}\ndata: {json.dumps(payload)}\n\n"


async def event_stream(
    broadcaster: FleetBroadcaster,
    criteria: FilterCriteria,
    is_disconnected=None,
) -> AsyncIterator[str]:
    """
    SSE body for one subscriber.

    Args:
        broadcaster: Shared ticker
        criteria: Filters captured at connection time
        is_disconnected: Optional async callable reporting client disconnect
    """
    with broadcaster.subscription(criteria) as subscriber_id:
        yield ": connected\n\n"

        event_id = 1
        async for frame in broadcaster.frames():
            if is_disconnected is not None and await is_disconnected():
                break
            try:
                payload = build_payload(frame, criteria)
            except Exception as e:
                # Keep the connection open; the next frame may project cleanly
                logger.exception(
                    "payload_build_failed",
                    subscriber_id=subscriber_id,
                    tick=frame.tick,
                    error=str(e),
                )
                continue
            yield format_sse(payload, event_id)
            event_id += 1
