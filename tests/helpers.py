# tests/helpers.py
"""
Builders for trains, cars and airway bills used across tests.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from simulation.cargo import CargoItem, CargoStatus
from simulation.fleet import Car, Train


BASE_TIME = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class StubRandom(random.Random):
    """
    Random source with pinned answers for probability branches.

    random() always returns `value`; randint() and uniform() return the low
    or high bound depending on `pick_high`.
    """

    def __init__(self, value: float = 0.0, pick_high: bool = False):
        super().__init__(0)
        self.value = value
        self.pick_high = pick_high

    def random(self) -> float:
        return self.value

    def randint(self, a: int, b: int) -> int:
        return b if self.pick_high else a

    def uniform(self, a: float, b: float) -> float:
        return b if self.pick_high else a


def make_awb(
    awb_number: str,
    origin: str,
    dest: str,
    status: CargoStatus = CargoStatus.LOADED,
    now: datetime = BASE_TIME,
) -> CargoItem:
    """Build an airway bill directly."""
    item = CargoItem(
        awb_number=awb_number,
        origin_station_code=origin,
        dest_station_code=dest,
        pieces=3,
        weight_kg=1200,
        status=CargoStatus.LOADED,
        loaded_at=now,
        last_updated=now,
    )
    if status == CargoStatus.IN_TRANSIT:
        item.mark_in_transit(now)
    elif status == CargoStatus.DELIVERED:
        item.deliver(dest, now)
    return item


def make_train(
    route: Sequence[str] = ("LA", "KC", "CHI", "NYC"),
    speed_kmh: float = 60,
    leg_index: int = 0,
    progress: float = 0.0,
    cars: Optional[List[Car]] = None,
    train_id: str = "T1",
    name: str = "Pacific Runner 1",
) -> Train:
    """Build a train directly, bypassing random fleet construction."""
    return Train(
        id=train_id,
        name=name,
        route=tuple(route),
        speed_kmh=speed_kmh,
        cars=cars if cars is not None else [Car(car_number="R1001", car_type="BOXCAR")],
        current_leg_index=leg_index,
        leg_progress=progress,
        display_speed_kmh=speed_kmh,
        last_updated=BASE_TIME,
    )


def hourly(n: int) -> datetime:
    """Timestamp of the n-th one-hour tick after BASE_TIME."""
    return BASE_TIME + timedelta(hours=n)


