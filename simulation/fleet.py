# simulation/fleet.py
"""
Fleet state: the mutable simulated world.

A fleet is built once at startup and then mutated only by the
SimulationClock. Trains own their cars, cars own their airway bills.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from .cargo import CargoItem, generate_cargo_item, random_leg_pair
from .errors import ConfigurationError
from .routes import ROUTES, Route, validate_catalog

CAR_TYPES = ["BOXCAR", "TANK", "HOPPER", "INTERMODAL", "FLATCAR"]

TRAIN_NAMES = [
    "Pacific Runner",
    "Continental Freight",
    "Atlantic Express",
    "Heartland Cargo",
    "Mountain Hauler",
]

# Initial nominal speed range (km/h), before clamping to configured bounds
INITIAL_SPEED_RANGE = (40, 80)

# Smallest car count a train is built with, when max_cars_per_train allows it
MIN_CARS_PER_TRAIN = 5

# Car numbers carry a 3-digit car index
MAX_CARS_LIMIT = 999


@dataclass
class Car:
    """Rail car with its airway bills."""
    car_number: str
    car_type: str
    airway_bills: List[CargoItem] = field(default_factory=list)
    awb_sequence: int = 0

    def next_awb_number(self) -> str:
        """Mint a new airway bill number, unique across the process."""
        self.awb_sequence += 1
        return f"AWB-{self.car_number}-{self.awb_sequence:04d}"


@dataclass
class Train:
    """
    Freight train moving along a cyclic route.

    The active leg runs from route[current_leg_index] to
    route[current_leg_index + 1]; leg_progress is the covered fraction.
    """
    id: str
    name: str
    route: Route
    speed_kmh: float
    cars: List[Car] = field(default_factory=list)
    current_leg_index: int = 0
    leg_progress: float = 0.0
    display_speed_kmh: float = 0.0
    dwell_remaining_hours: float = 0.0
    last_updated: Optional[datetime] = None

    @property
    def is_dwelling(self) -> bool:
        return self.dwell_remaining_hours > 0

    @property
    def has_arrived(self) -> bool:
        return self.leg_progress >= 1.0

    @property
    def from_station_code(self) -> str:
        return self.route[self.current_leg_index]

    @property
    def to_station_code(self) -> str:
        if self.current_leg_index + 1 < len(self.route):
            return self.route[self.current_leg_index + 1]
        return self.from_station_code

    def iter_cargo(self):
        """Yield every airway bill on the train."""
        for car in self.cars:
            yield from car.airway_bills


@dataclass
class FleetState:
    """All trains in the simulated world."""
    trains: List[Train] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_train(self, train_id: str) -> Optional[Train]:
        for train in self.trains:
            if train.id == train_id:
                return train
        return None

    def cargo_counts(self) -> Dict[str, int]:
        """Count airway bills by status across the fleet."""
        counts: Dict[str, int] = {}
        for train in self.trains:
            for awb in train.iter_cargo():
                counts[awb.status.value] = counts.get(awb.status.value, 0) + 1
        return counts

    def summary(self) -> Dict[str, Any]:
        return {
            "trains": len(self.trains),
            "cars": sum(len(t.cars) for t in self.trains),
            "cargo": self.cargo_counts(),
        }


def car_number(train_index: int, car_index: int) -> str:
    """Car number such as R1001 for the first car of the first train."""
    return f"R{train_index + 1}{car_index + 1:03d}"


def build_car(
    route: Route,
    train_index: int,
    car_index: int,
    max_awbs_per_car: int,
    rng: random.Random,
    now: datetime,
) -> Car:
    """Create a car preloaded with 1..max_awbs_per_car airway bills."""
    car = Car(
        car_number=car_number(train_index, car_index),
        car_type=rng.choice(CAR_TYPES),
    )
    for _ in range(rng.randint(1, max_awbs_per_car)):
        origin_index, dest_index = random_leg_pair(route, rng)
        car.airway_bills.append(
            generate_cargo_item(
                route, origin_index, dest_index, car.next_awb_number(), rng, now
            )
        )
    return car


def build_train(
    train_index: int,
    route: Route,
    max_cars_per_train: int,
    max_awbs_per_car: int,
    min_speed_kmh: float,
    max_speed_kmh: float,
    rng: random.Random,
    now: datetime,
) -> Train:
    """Create one train with a random consist, speed and starting position."""
    speed = rng.randint(*INITIAL_SPEED_RANGE)
    speed = min(max(speed, min_speed_kmh), max_speed_kmh)

    car_count = rng.randint(min(MIN_CARS_PER_TRAIN, max_cars_per_train), max_cars_per_train)
    cars = [
        build_car(route, train_index, c, max_awbs_per_car, rng, now)
        for c in range(car_count)
    ]

    return Train(
        id=f"T{train_index + 1}",
        name=f"{rng.choice(TRAIN_NAMES)} {train_index + 1}",
        route=tuple(route),
        speed_kmh=speed,
        cars=cars,
        current_leg_index=0,
        leg_progress=rng.random(),
        display_speed_kmh=speed,
        last_updated=now,
    )


def create_fleet(
    train_count: int,
    max_cars_per_train: int,
    max_awbs_per_car: int,
    rng: Optional[random.Random] = None,
    routes: Sequence[Route] = ROUTES,
    min_speed_kmh: float = 30,
    max_speed_kmh: float = 90,
    now: Optional[datetime] = None,
) -> FleetState:
    """
    Build the initial fleet.

    Args:
        train_count: Number of trains
        max_cars_per_train: Upper bound on cars per train
        max_awbs_per_car: Upper bound on initial airway bills per car
        rng: Random source (a fresh unseeded one if omitted)
        routes: Route catalog trains are assigned from
        min_speed_kmh: Lower speed bound
        max_speed_kmh: Upper speed bound
        now: Creation time (defaults to current UTC time)

    Raises:
        ConfigurationError: Non-positive counts or an invalid route catalog
    """
    if train_count <= 0:
        raise ConfigurationError(f"train_count must be positive, got {train_count}")
    if not 0 < max_cars_per_train <= MAX_CARS_LIMIT:
        raise ConfigurationError(
            f"max_cars_per_train must be in 1..{MAX_CARS_LIMIT}, got {max_cars_per_train}"
        )
    if max_awbs_per_car <= 0:
        raise ConfigurationError(f"max_awbs_per_car must be positive, got {max_awbs_per_car}")
    if min_speed_kmh <= 0 or min_speed_kmh > max_speed_kmh:
        raise ConfigurationError(
            f"Invalid speed bounds: {min_speed_kmh}..{max_speed_kmh} km/h"
        )
    validate_catalog(routes)

    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)

    trains = [
        build_train(
            i,
            rng.choice(list(routes)),
            max_cars_per_train,
            max_awbs_per_car,
            min_speed_kmh,
            max_speed_kmh,
            rng,
            now,
        )
        for i in range(train_count)
    ]
    return FleetState(trains=trains, created_at=now)


def create_fleet_from_settings(settings, rng: Optional[random.Random] = None) -> FleetState:
    """Build the fleet from an app Settings object."""
    return create_fleet(
        train_count=settings.train_count,
        max_cars_per_train=settings.max_cars_per_train,
        max_awbs_per_car=settings.max_awbs_per_car,
        rng=rng,
        min_speed_kmh=settings.min_speed_kmh,
        max_speed_kmh=settings.max_speed_kmh,
    )
