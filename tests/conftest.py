# tests/conftest.py
"""
Pytest configuration and fixtures.

All simulation tests are in-memory and deterministic: randomness comes from
seeded random.Random instances or from helpers.StubRandom.
"""

import random

import pytest

from simulation.fleet import FleetState, create_fleet

from helpers import BASE_TIME


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(42)


@pytest.fixture
def fleet(rng) -> FleetState:
    """Small random fleet."""
    return create_fleet(
        train_count=3,
        max_cars_per_train=6,
        max_awbs_per_car=4,
        rng=rng,
        now=BASE_TIME,
    )
