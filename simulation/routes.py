# simulation/routes.py
"""
Route catalog.

A route is an ordered tuple of station codes. Trains traverse their route
leg by leg and wrap back to the first leg after the last one.
"""

from typing import Iterable, Sequence, Tuple

from .errors import ConfigurationError
from .geo import STATIONS_BY_CODE

Route = Tuple[str, ...]

ROUTES: Tuple[Route, ...] = (
    ("LA", "KC", "CHI", "NYC"),
    ("LA", "MEM", "ATL", "NYC"),
    ("CHI", "KC", "MEM", "ATL"),
    ("NYC", "CHI", "KC", "LA"),
)


def leg_count(route: Sequence[str]) -> int:
    """Number of legs in a route (0 for degenerate routes)."""
    return max(len(route) - 1, 0)


def next_leg_index(route: Sequence[str], leg_index: int) -> int:
    """Index of the leg after leg_index, wrapping to 0 after the final leg."""
    legs = leg_count(route)
    if legs == 0:
        return 0
    return (leg_index + 1) % legs


def validate_route(route: Sequence[str]) -> None:
    """
    Check a route against the station registry.

    Raises:
        ConfigurationError: fewer than 2 stations, repeated stations,
            or an unknown station code
    """
    if len(route) < 2:
        raise ConfigurationError(f"Route must have at least 2 stations: {list(route)}")

    if len(set(route)) != len(route):
        raise ConfigurationError(f"Route repeats a station: {list(route)}")

    unknown = [code for code in route if code not in STATIONS_BY_CODE]
    if unknown:
        raise ConfigurationError(
            f"Route {list(route)} references unknown stations: {unknown}"
        )


def validate_catalog(routes: Iterable[Sequence[str]]) -> None:
    """Validate every route in a catalog."""
    routes = list(routes)
    if not routes:
        raise ConfigurationError("Route catalog is empty")
    for route in routes:
        validate_route(route)
