# simulation/cargo.py
"""
Cargo lifecycle for airway bills.

States:
LOADED -> IN_TRANSIT (train has left the origin station)
LOADED | IN_TRANSIT -> DELIVERED (train arrived at the destination station)
DELIVERED is terminal; status never moves backwards.
"""

import random
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Sequence, Set, Tuple


class CargoStatus(Enum):
    """Airway bill status."""
    LOADED = "LOADED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"


# Valid status transitions
TRANSITIONS: Dict[CargoStatus, Set[CargoStatus]] = {
    CargoStatus.LOADED: {CargoStatus.IN_TRANSIT, CargoStatus.DELIVERED},
    CargoStatus.IN_TRANSIT: {CargoStatus.DELIVERED},
    CargoStatus.DELIVERED: set(),  # Terminal
}

# Leg progress a train must exceed before LOADED items count as departed
IN_TRANSIT_PROGRESS_THRESHOLD = 0.1

# Chance per car, per arrival, that new freight is picked up
NEW_CARGO_PROBABILITY = 0.35

MIN_PIECES, MAX_PIECES = 1, 10
MIN_WEIGHT_KG, MAX_WEIGHT_KG = 500, 20000


def can_transition(current: CargoStatus, target: CargoStatus) -> bool:
    """Check whether current -> target is allowed."""
    return target in TRANSITIONS.get(current, set())


@dataclass
class CargoItem:
    """A single airway bill carried in a rail car."""
    awb_number: str
    origin_station_code: str
    dest_station_code: str
    pieces: int
    weight_kg: int
    status: CargoStatus
    loaded_at: datetime
    last_updated: datetime
    delivered_at: Optional[datetime] = None
    offloaded_at_station_code: Optional[str] = None

    @property
    def is_delivered(self) -> bool:
        return self.status == CargoStatus.DELIVERED

    def mark_in_transit(self, now: datetime) -> bool:
        """
        Move a LOADED item to IN_TRANSIT.

        Returns:
            True if the status changed
        """
        if self.status != CargoStatus.LOADED:
            return False
        self.status = CargoStatus.IN_TRANSIT
        self.last_updated = now
        return True

    def deliver(self, station_code: str, now: datetime) -> bool:
        """
        Offload the item at station_code.

        Already-delivered items are left untouched.

        Returns:
            True if the status changed
        """
        if not can_transition(self.status, CargoStatus.DELIVERED):
            return False
        self.status = CargoStatus.DELIVERED
        self.last_updated = now
        self.delivered_at = now
        self.offloaded_at_station_code = station_code
        return True


def random_leg_pair(route: Sequence[str], rng: random.Random) -> Tuple[int, int]:
    """
    Pick (origin_index, dest_index) with 0 <= origin < dest <= len(route) - 1.
    """
    origin_index = rng.randint(0, len(route) - 2)
    dest_index = rng.randint(origin_index + 1, len(route) - 1)
    return origin_index, dest_index


def generate_cargo_item(
    route: Sequence[str],
    origin_index: int,
    dest_index: int,
    awb_number: str,
    rng: random.Random,
    now: datetime,
) -> CargoItem:
    """
    Create a LOADED airway bill travelling between two stations of a route.

    Args:
        route: Station codes of the owning train's route
        origin_index: Index of the origin station in route
        dest_index: Index of the destination station, after origin_index
        awb_number: Identifier, unique for the process
        rng: Random source for pieces and weight
        now: Creation time

    Raises:
        ValueError: If the indices do not describe a forward pair on the route
    """
    if not 0 <= origin_index < dest_index <= len(route) - 1:
        raise ValueError(
            f"Invalid cargo leg {origin_index}->{dest_index} for route {list(route)}"
        )

    return CargoItem(
        awb_number=awb_number,
        origin_station_code=route[origin_index],
        dest_station_code=route[dest_index],
        pieces=rng.randint(MIN_PIECES, MAX_PIECES),
        weight_kg=rng.randint(MIN_WEIGHT_KG, MAX_WEIGHT_KG),
        status=CargoStatus.LOADED,
        loaded_at=now,
        last_updated=now,
    )
