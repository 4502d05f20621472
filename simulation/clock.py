# simulation/clock.py
"""
Simulation clock.

Advances the fleet by one tick. Each tick covers a fixed real-time interval
scaled into simulated hours:

    simulated_hours = tick_ms / 3_600_000 * time_scale

Per train, in order:
1. Dwelling trains count down their dwell and do not move.
2. A train whose previous leg finished rolls over to the next leg.
3. The train moves speed * hours along the real (haversine) leg distance.
4. On arrival: deliver cargo, pick up new cargo, start a dwell.
5. Otherwise: LOADED cargo departs, speed occasionally drifts.

This is the only code that mutates FleetState.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from app.logging import get_logger

from .cargo import (
    IN_TRANSIT_PROGRESS_THRESHOLD,
    NEW_CARGO_PROBABILITY,
    generate_cargo_item,
)
from .errors import ConfigurationError, TransientTickError
from .fleet import FleetState, Train
from .geo import Station, distance_km, get_station
from .routes import next_leg_index

logger = get_logger(__name__)

MS_PER_HOUR = 3_600_000

# Chance per moving tick that a train's nominal speed drifts
SPEED_CHANGE_PROBABILITY = 0.05
MAX_SPEED_DELTA_KMH = 10


@dataclass
class TickReport:
    """What happened during one clock step."""
    tick: int
    simulated_hours: float
    arrivals: List[Tuple[str, str]] = field(default_factory=list)  # (train_id, station_code)
    departed_cargo: int = 0
    delivered_cargo: int = 0
    new_cargo: int = 0
    skipped_trains: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "simulated_hours": self.simulated_hours,
            "arrivals": [{"train_id": t, "station": s} for t, s in self.arrivals],
            "departed_cargo": self.departed_cargo,
            "delivered_cargo": self.delivered_cargo,
            "new_cargo": self.new_cargo,
            "skipped_trains": self.skipped_trains,
        }


class SimulationClock:
    """
    Steps a FleetState forward in simulated time.

    All randomness comes from the injected rng so runs can be replayed.
    """

    def __init__(
        self,
        fleet: FleetState,
        tick_ms: int = 2000,
        time_scale: float = 1800.0,
        dwell_min_minutes: float = 30.0,
        dwell_max_minutes: float = 120.0,
        min_speed_kmh: float = 30.0,
        max_speed_kmh: float = 90.0,
        rng: Optional[random.Random] = None,
        in_transit_threshold: float = IN_TRANSIT_PROGRESS_THRESHOLD,
        new_cargo_probability: float = NEW_CARGO_PROBABILITY,
        speed_change_probability: float = SPEED_CHANGE_PROBABILITY,
    ):
        if tick_ms <= 0 or time_scale <= 0:
            raise ConfigurationError(
                f"tick_ms and time_scale must be positive, got {tick_ms} and {time_scale}"
            )
        if dwell_min_minutes < 0 or dwell_min_minutes > dwell_max_minutes:
            raise ConfigurationError(
                f"Invalid dwell range: {dwell_min_minutes}..{dwell_max_minutes} minutes"
            )
        if min_speed_kmh <= 0 or min_speed_kmh > max_speed_kmh:
            raise ConfigurationError(
                f"Invalid speed bounds: {min_speed_kmh}..{max_speed_kmh} km/h"
            )

        self.fleet = fleet
        self.tick_ms = tick_ms
        self.time_scale = time_scale
        self.dwell_min_minutes = dwell_min_minutes
        self.dwell_max_minutes = dwell_max_minutes
        self.min_speed_kmh = min_speed_kmh
        self.max_speed_kmh = max_speed_kmh
        self.rng = rng or random.Random()
        self.in_transit_threshold = in_transit_threshold
        self.new_cargo_probability = new_cargo_probability
        self.speed_change_probability = speed_change_probability
        self.tick_count = 0

    @classmethod
    def from_settings(
        cls,
        fleet: FleetState,
        settings,
        rng: Optional[random.Random] = None,
    ) -> "SimulationClock":
        """Build a clock from an app Settings object."""
        return cls(
            fleet,
            tick_ms=settings.tick_ms,
            time_scale=settings.time_scale,
            dwell_min_minutes=settings.min_dwell_minutes,
            dwell_max_minutes=settings.max_dwell_minutes,
            min_speed_kmh=settings.min_speed_kmh,
            max_speed_kmh=settings.max_speed_kmh,
            rng=rng,
        )

    @property
    def simulated_hours_per_tick(self) -> float:
        return self.tick_ms / MS_PER_HOUR * self.time_scale

    def step(self, now: Optional[datetime] = None) -> TickReport:
        """
        Advance every train by one tick.

        A train that fails is logged and left as it was; the others still move.

        Args:
            now: Timestamp for this tick (defaults to current UTC time)

        Returns:
            TickReport for the step
        """
        now = now or datetime.now(timezone.utc)
        hours = self.simulated_hours_per_tick
        self.tick_count += 1
        report = TickReport(tick=self.tick_count, simulated_hours=hours)

        for train in self.fleet.trains:
            if len(train.route) < 2:
                continue
            try:
                self.advance_train(train, hours, now, report)
            except TransientTickError as e:
                report.skipped_trains.append(train.id)
                logger.warning(
                    "train_tick_skipped",
                    train_id=train.id,
                    tick=self.tick_count,
                    reason=str(e),
                )
            except Exception as e:
                report.skipped_trains.append(train.id)
                logger.exception(
                    "train_tick_failed",
                    train_id=train.id,
                    tick=self.tick_count,
                    error=str(e),
                )

        return report

    def advance_train(
        self,
        train: Train,
        hours: float,
        now: datetime,
        report: Optional[TickReport] = None,
    ) -> None:
        """Advance a single train by `hours` of simulated time."""
        report = report or TickReport(tick=self.tick_count, simulated_hours=hours)

        if train.is_dwelling:
            train.dwell_remaining_hours = max(train.dwell_remaining_hours - hours, 0.0)
            train.display_speed_kmh = 0.0
            train.last_updated = now
            return

        leg_index = train.current_leg_index
        progress = train.leg_progress
        if progress >= 1.0:
            leg_index = next_leg_index(train.route, leg_index)
            progress = 0.0

        # Resolve everything before touching the train
        from_station, to_station = self._resolve_leg(train, leg_index)
        leg_km = distance_km(from_station, to_station)
        progress += train.speed_kmh * hours / leg_km

        train.current_leg_index = leg_index

        if progress >= 1.0:
            train.leg_progress = 1.0
            self._arrive(train, to_station, now, report)
        else:
            train.leg_progress = progress
            self._depart_cargo(train, from_station.code, now, report)
            self._maybe_change_speed(train)
            train.display_speed_kmh = train.speed_kmh

        train.last_updated = now

    def _resolve_leg(self, train: Train, leg_index: int) -> Tuple[Station, Station]:
        if not 0 <= leg_index < len(train.route) - 1:
            raise TransientTickError(train.id, f"leg index {leg_index} out of range")

        from_code = train.route[leg_index]
        to_code = train.route[leg_index + 1]
        from_station = get_station(from_code)
        to_station = get_station(to_code)
        if from_station is None or to_station is None:
            raise TransientTickError(
                train.id, f"unresolved station on leg {from_code}->{to_code}"
            )
        return from_station, to_station

    def _arrive(
        self,
        train: Train,
        station: Station,
        now: datetime,
        report: TickReport,
    ) -> None:
        """Deliver cargo, pick up new freight and start dwelling."""
        delivered = deliver_cargo(train, station.code, now)
        picked_up = self._pick_up_cargo(train, now)

        dwell_minutes = self.rng.uniform(self.dwell_min_minutes, self.dwell_max_minutes)
        train.dwell_remaining_hours = dwell_minutes / 60.0
        train.display_speed_kmh = 0.0

        report.arrivals.append((train.id, station.code))
        report.delivered_cargo += delivered
        report.new_cargo += picked_up

        logger.debug(
            "train_arrived",
            train_id=train.id,
            station=station.code,
            delivered=delivered,
            picked_up=picked_up,
            dwell_minutes=round(dwell_minutes, 1),
        )

    def _pick_up_cargo(self, train: Train, now: datetime) -> int:
        """
        Load new airway bills at the arrival station.

        Destinations are stations after the arrival station on the route, so
        nothing is loaded at the route's terminal station.
        """
        arrival_index = train.current_leg_index + 1
        last_index = len(train.route) - 1
        if arrival_index >= last_index:
            return 0

        count = 0
        for car in train.cars:
            if self.rng.random() < self.new_cargo_probability:
                dest_index = self.rng.randint(arrival_index + 1, last_index)
                car.airway_bills.append(
                    generate_cargo_item(
                        train.route,
                        arrival_index,
                        dest_index,
                        car.next_awb_number(),
                        self.rng,
                        now,
                    )
                )
                count += 1
        return count

    def _depart_cargo(
        self,
        train: Train,
        from_code: str,
        now: datetime,
        report: TickReport,
    ) -> None:
        if train.leg_progress <= self.in_transit_threshold:
            return
        report.departed_cargo += depart_cargo(train, from_code, now)

    def _maybe_change_speed(self, train: Train) -> None:
        if self.rng.random() >= self.speed_change_probability:
            return
        delta = self.rng.randint(-MAX_SPEED_DELTA_KMH, MAX_SPEED_DELTA_KMH)
        train.speed_kmh = min(
            max(train.speed_kmh + delta, self.min_speed_kmh),
            self.max_speed_kmh,
        )


def deliver_cargo(train: Train, station_code: str, now: datetime) -> int:
    """
    Deliver every airway bill destined for station_code.

    Safe to call repeatedly; delivered items keep their original timestamps.

    Returns:
        Number of items delivered by this call
    """
    delivered = 0
    for awb in train.iter_cargo():
        if awb.dest_station_code == station_code and awb.deliver(station_code, now):
            delivered += 1
    return delivered


def depart_cargo(train: Train, origin_code: str, now: datetime) -> int:
    """
    Mark LOADED airway bills originating at origin_code as IN_TRANSIT.

    Returns:
        Number of items that changed status
    """
    departed = 0
    for awb in train.iter_cargo():
        if awb.origin_station_code == origin_code and awb.mark_in_transit(now):
            departed += 1
    return departed
