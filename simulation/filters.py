# simulation/filters.py
"""
Filter engine for fleet snapshots.

Filters prune top-down across three levels:
train (name) -> car (car number) -> airway bill (awb / station / status).
Cars left without airway bills and trains left without cars are dropped.
Absent criteria match everything.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence

from .cargo import CargoStatus
from .snapshots import CargoView, CarView, TrainSnapshot

VALID_STATUSES = {s.value for s in CargoStatus}


@dataclass(frozen=True)
class FilterCriteria:
    """
    Per-subscriber filter, fixed for the life of a connection.

    Empty strings are treated the same as None.
    """
    cargo_id: Optional[str] = None
    train_name: Optional[str] = None
    car_id: Optional[str] = None
    station: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_query(
        cls,
        awb: Optional[str] = None,
        airway_bill: Optional[str] = None,
        train_name: Optional[str] = None,
        car_number: Optional[str] = None,
        station: Optional[str] = None,
        status: Optional[str] = None,
    ) -> "FilterCriteria":
        """Build criteria from stream query parameters (awb wins over airwayBill)."""
        return cls(
            cargo_id=awb or airway_bill or None,
            train_name=train_name or None,
            car_id=car_number or None,
            station=station or None,
            status=status or None,
        )

    def is_empty(self) -> bool:
        return not any(
            (self.cargo_id, self.train_name, self.car_id, self.station, self.status)
        )

    @property
    def has_cargo_criteria(self) -> bool:
        return bool(self.cargo_id or self.station or self.status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "awb": self.cargo_id or None,
            "trainName": self.train_name or None,
            "carNumber": self.car_id or None,
            "station": self.station or None,
            "status": self.status or None,
        }


def matches_text(value: Optional[str], needle: Optional[str]) -> bool:
    """Case-insensitive substring match; non-strings never match."""
    if not isinstance(value, str) or not isinstance(needle, str):
        return False
    return needle.lower() in value.lower()


def normalize_status(status: Optional[str]) -> Optional[str]:
    """
    Upper-case a status filter value.

    Returns None for values that are not a known cargo status.
    """
    if not isinstance(status, str):
        return None
    normalized = status.strip().upper()
    return normalized if normalized in VALID_STATUSES else None


def cargo_matches(awb: CargoView, criteria: FilterCriteria) -> bool:
    """Check an airway bill against every cargo-level criterion present."""
    if criteria.cargo_id and not matches_text(awb.awb_number, criteria.cargo_id):
        return False

    if criteria.station:
        station_match = (
            matches_text(awb.origin_station_code, criteria.station)
            or matches_text(awb.dest_station_code, criteria.station)
            or matches_text(awb.offloaded_at_station_code or "", criteria.station)
        )
        if not station_match:
            return False

    if criteria.status:
        # Unknown status values match nothing
        wanted = normalize_status(criteria.status)
        if wanted is None or awb.status != wanted:
            return False

    return True


def filter_train(
    train: TrainSnapshot,
    criteria: FilterCriteria,
) -> Optional[TrainSnapshot]:
    """
    Filter a single train snapshot.

    Returns:
        The pruned snapshot, or None if nothing in the train matches
    """
    if criteria.train_name and not matches_text(train.name, criteria.train_name):
        return None

    cars: Sequence[CarView] = train.cars

    if criteria.car_id:
        cars = [c for c in cars if matches_text(c.car_number, criteria.car_id)]

    if criteria.has_cargo_criteria:
        kept: List[CarView] = []
        for car in cars:
            awbs = tuple(a for a in car.airway_bills if cargo_matches(a, criteria))
            if awbs:
                kept.append(replace(car, airway_bills=awbs))
        cars = kept

    if not cars:
        return None

    return replace(train, cars=tuple(cars))


def apply_filters(
    snapshots: Sequence[TrainSnapshot],
    criteria: Optional[FilterCriteria] = None,
) -> List[TrainSnapshot]:
    """
    Apply criteria to a list of train snapshots.

    Args:
        snapshots: Train snapshots from one tick
        criteria: Filter criteria (None or empty matches everything)

    Returns:
        Surviving trains, each holding only its surviving cars and cargo
    """
    if criteria is None or criteria.is_empty():
        return list(snapshots)

    filtered = []
    for train in snapshots:
        result = filter_train(train, criteria)
        if result is not None:
            filtered.append(result)
    return filtered
