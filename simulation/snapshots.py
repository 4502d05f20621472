# simulation/snapshots.py
"""
Snapshot projector.

Turns the mutable fleet into immutable views with interpolated positions.
Snapshots copy cars and cargo, so later ticks never change a published view.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from .cargo import CargoItem
from .fleet import Car, FleetState, Train
from .geo import get_station, interpolate

COORDINATE_DECIMALS = 5
PROGRESS_DECIMALS = 3


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class CargoView:
    """Read-only copy of an airway bill."""
    awb_number: str
    origin_station_code: str
    dest_station_code: str
    pieces: int
    weight_kg: int
    status: str
    loaded_at: datetime
    last_updated: datetime
    delivered_at: Optional[datetime]
    offloaded_at_station_code: Optional[str]

    @classmethod
    def from_item(cls, item: CargoItem) -> "CargoView":
        return cls(
            awb_number=item.awb_number,
            origin_station_code=item.origin_station_code,
            dest_station_code=item.dest_station_code,
            pieces=item.pieces,
            weight_kg=item.weight_kg,
            status=item.status.value,
            loaded_at=item.loaded_at,
            last_updated=item.last_updated,
            delivered_at=item.delivered_at,
            offloaded_at_station_code=item.offloaded_at_station_code,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "awbNumber": self.awb_number,
            "originStationCode": self.origin_station_code,
            "destStationCode": self.dest_station_code,
            "pieces": self.pieces,
            "weightKg": self.weight_kg,
            "status": self.status,
            "lastUpdated": _iso(self.last_updated),
            "loadedAt": _iso(self.loaded_at),
            "deliveredAt": _iso(self.delivered_at),
            "offloadedAtStationCode": self.offloaded_at_station_code,
        }


@dataclass(frozen=True)
class CarView:
    """Read-only copy of a rail car."""
    car_number: str
    car_type: str
    airway_bills: Tuple[CargoView, ...]

    @classmethod
    def from_car(cls, car: Car) -> "CarView":
        return cls(
            car_number=car.car_number,
            car_type=car.car_type,
            airway_bills=tuple(CargoView.from_item(a) for a in car.airway_bills),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "carNumber": self.car_number,
            "type": self.car_type,
            "airwayBills": [a.to_dict() for a in self.airway_bills],
        }


@dataclass(frozen=True)
class TrainSnapshot:
    """Position and consist of one train at one tick."""
    id: str
    name: str
    speed_kmh: float
    route: Tuple[str, ...]
    from_station_code: str
    to_station_code: str
    leg_progress: float
    latitude: Optional[float]
    longitude: Optional[float]
    cars: Tuple[CarView, ...]
    last_updated: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "speedKmh": self.speed_kmh,
            "route": list(self.route),
            "fromStationCode": self.from_station_code,
            "toStationCode": self.to_station_code,
            "legProgress": self.leg_progress,
            "currentLocation": {
                "lat": self.latitude,
                "lon": self.longitude,
            },
            "cars": [c.to_dict() for c in self.cars],
            "lastUpdated": _iso(self.last_updated),
        }


@dataclass(frozen=True)
class FleetFrame:
    """Snapshots of the whole fleet at one tick."""
    tick: int
    timestamp: datetime
    trains: Tuple[TrainSnapshot, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "timestamp": self.timestamp.isoformat(),
            "trains": [t.to_dict() for t in self.trains],
        }


def project_train(train: Train) -> TrainSnapshot:
    """
    Project a train into a snapshot.

    A dwelling train sits exactly on its arrival station with speed 0 and
    reports progress 0 on a zero-length leg (from = to = arrival station).
    A moving train is interpolated along its active leg.
    """
    cars = tuple(CarView.from_car(c) for c in train.cars)

    if train.is_dwelling and train.has_arrived:
        code = train.to_station_code
        station = get_station(code)
        return TrainSnapshot(
            id=train.id,
            name=train.name,
            speed_kmh=0,
            route=tuple(train.route),
            from_station_code=code,
            to_station_code=code,
            leg_progress=0.0,
            latitude=round(station.latitude, COORDINATE_DECIMALS) if station else None,
            longitude=round(station.longitude, COORDINATE_DECIMALS) if station else None,
            cars=cars,
            last_updated=train.last_updated,
        )

    from_code = train.from_station_code
    to_code = train.to_station_code
    from_station = get_station(from_code)
    to_station = get_station(to_code)
    t = min(max(train.leg_progress, 0.0), 1.0)

    lat: Optional[float] = None
    lon: Optional[float] = None
    if from_station is not None and to_station is not None:
        lat, lon = interpolate(from_station, to_station, t)
        lat = round(lat, COORDINATE_DECIMALS)
        lon = round(lon, COORDINATE_DECIMALS)

    return TrainSnapshot(
        id=train.id,
        name=train.name,
        speed_kmh=train.display_speed_kmh,
        route=tuple(train.route),
        from_station_code=from_code,
        to_station_code=to_code,
        leg_progress=round(t, PROGRESS_DECIMALS),
        latitude=lat,
        longitude=lon,
        cars=cars,
        last_updated=train.last_updated,
    )


def project_fleet(
    fleet: FleetState,
    tick: int = 0,
    now: Optional[datetime] = None,
) -> FleetFrame:
    """Project every train in the fleet."""
    return FleetFrame(
        tick=tick,
        timestamp=now or datetime.now(timezone.utc),
        trains=tuple(project_train(t) for t in fleet.trains),
    )
