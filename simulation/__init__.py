# simulation/__init__.py
"""
Rail cargo simulation.

Simulates freight trains running cyclic routes between US cargo hubs,
with airway bills moving LOADED -> IN_TRANSIT -> DELIVERED.

Components:
- geo, routes: static station registry and route catalog
- cargo: airway bill lifecycle
- fleet: mutable world state, built once at startup
- clock: the only writer of fleet state, one step per tick
- snapshots, filters: read-only projection and per-subscriber filtering

Usage:
    import random
    from simulation import (
        create_fleet, SimulationClock, project_fleet, apply_filters, FilterCriteria,
    )

    rng = random.Random(7)
    fleet = create_fleet(train_count=4, max_cars_per_train=12, max_awbs_per_car=5, rng=rng)
    clock = SimulationClock(fleet, rng=rng)
    clock.step()
    frame = project_fleet(fleet, tick=clock.tick_count)
    trains = apply_filters(frame.trains, FilterCriteria(status="DELIVERED"))
"""

from .errors import SimulationError, ConfigurationError, TransientTickError
from .geo import Station, STATIONS, get_station, distance_km, interpolate
from .routes import ROUTES, validate_route, validate_catalog
from .cargo import CargoItem, CargoStatus, generate_cargo_item
from .fleet import Car, Train, FleetState, create_fleet, create_fleet_from_settings
from .clock import SimulationClock, TickReport
from .snapshots import CargoView, CarView, TrainSnapshot, FleetFrame, project_train, project_fleet
from .filters import FilterCriteria, apply_filters

__all__ = [
    # Errors
    "SimulationError",
    "ConfigurationError",
    "TransientTickError",
    # Static data
    "Station",
    "STATIONS",
    "get_station",
    "distance_km",
    "interpolate",
    "ROUTES",
    "validate_route",
    "validate_catalog",
    # World state
    "CargoItem",
    "CargoStatus",
    "generate_cargo_item",
    "Car",
    "Train",
    "FleetState",
    "create_fleet",
    "create_fleet_from_settings",
    # Stepping and projection
    "SimulationClock",
    "TickReport",
    "CargoView",
    "CarView",
    "TrainSnapshot",
    "FleetFrame",
    "project_train",
    "project_fleet",
    "FilterCriteria",
    "apply_filters",
]
