# simulation/geo.py
"""
Geo model: station registry and great-circle distance.

Stations are fictional US cargo hubs. All functions here are pure.
"""

import math
from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple

EARTH_RADIUS_KM = 6371.0

# Floor applied to degenerate legs so progress = distance / leg never divides by zero
MIN_DISTANCE_KM = 1.0


@dataclass(frozen=True)
class Station:
    """A freight hub trains can stop at."""
    code: str
    name: str
    city: str
    state: str
    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "city": self.city,
            "state": self.state,
            "lat": self.latitude,
            "lon": self.longitude,
        }


STATIONS: Tuple[Station, ...] = (
    Station("LA", "Los Angeles Freight Yard", "Los Angeles", "CA", 34.033, -118.238),
    Station("KC", "Kansas City Intermodal", "Kansas City", "MO", 39.104, -94.598),
    Station("CHI", "Chicago Rail Hub", "Chicago", "IL", 41.874, -87.640),
    Station("MEM", "Memphis Freight Terminal", "Memphis", "TN", 35.149, -90.049),
    Station("ATL", "Atlanta Distribution Center", "Atlanta", "GA", 33.749, -84.388),
    Station("NYC", "New York Consolidation Yard", "New York", "NY", 40.713, -74.006),
)

STATIONS_BY_CODE: Dict[str, Station] = {s.code: s for s in STATIONS}


def get_station(code: str) -> Optional[Station]:
    """Look up a station by code."""
    return STATIONS_BY_CODE.get(code)


def distance_km(a: Station, b: Station) -> float:
    """
    Great-circle distance between two stations (haversine).

    Never returns less than MIN_DISTANCE_KM.
    """
    lat1 = math.radians(a.latitude)
    lon1 = math.radians(a.longitude)
    lat2 = math.radians(b.latitude)
    lon2 = math.radians(b.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(math.sqrt(h))

    return max(EARTH_RADIUS_KM * c, MIN_DISTANCE_KM)


def interpolate(a: Station, b: Station, t: float) -> Tuple[float, float]:
    """
    Linear (lat, lon) between two stations.

    t is clamped to [0, 1]; the endpoints return the station coordinates exactly.
    """
    t = min(max(t, 0.0), 1.0)
    if t == 0.0:
        return a.latitude, a.longitude
    if t == 1.0:
        return b.latitude, b.longitude
    lat = a.latitude + (b.latitude - a.latitude) * t
    lon = a.longitude + (b.longitude - a.longitude) * t
    return lat, lon
