# tests/test_geo_routes.py
"""
Test the geo model and route catalog.
"""

import pytest

from simulation.errors import ConfigurationError
from simulation.geo import (
    EARTH_RADIUS_KM,
    MIN_DISTANCE_KM,
    STATIONS,
    Station,
    distance_km,
    get_station,
    interpolate,
)
from simulation.routes import (
    ROUTES,
    leg_count,
    next_leg_index,
    validate_catalog,
    validate_route,
)


class TestStationRegistry:
    """Tests for station lookup."""

    def test_six_hubs_registered(self):
        codes = [s.code for s in STATIONS]
        assert codes == ["LA", "KC", "CHI", "MEM", "ATL", "NYC"]

    def test_lookup_by_code(self):
        chi = get_station("CHI")
        assert chi.name == "Chicago Rail Hub"
        assert chi.state == "IL"

    def test_unknown_code_returns_none(self):
        assert get_station("XYZ") is None

    def test_station_serializes_lat_lon(self):
        data = get_station("LA").to_dict()
        assert data == {
            "code": "LA",
            "name": "Los Angeles Freight Yard",
            "city": "Los Angeles",
            "state": "CA",
            "lat": 34.033,
            "lon": -118.238,
        }


class TestDistance:
    """Tests for haversine distance."""

    def test_la_to_kansas_city(self):
        d = distance_km(get_station("LA"), get_station("KC"))
        assert 2100 < d < 2260

    def test_distance_is_symmetric(self):
        a, b = get_station("CHI"), get_station("ATL")
        assert distance_km(a, b) == pytest.approx(distance_km(b, a))

    def test_identical_coordinates_use_floor(self):
        la = get_station("LA")
        assert distance_km(la, la) == MIN_DISTANCE_KM

    def test_near_identical_coordinates_use_floor(self):
        a = Station("A", "A", "A", "XX", 10.0, 10.0)
        b = Station("B", "B", "B", "XX", 10.0, 10.000001)
        assert distance_km(a, b) == MIN_DISTANCE_KM

    def test_quarter_meridian(self):
        """Equator to pole is a quarter of the great circle."""
        equator = Station("E", "E", "E", "XX", 0.0, 0.0)
        pole = Station("P", "P", "P", "XX", 90.0, 0.0)
        expected = EARTH_RADIUS_KM * 3.141592653589793 / 2
        assert distance_km(equator, pole) == pytest.approx(expected)


class TestInterpolation:
    """Tests for linear position interpolation."""

    def test_zero_progress_is_origin(self):
        la, kc = get_station("LA"), get_station("KC")
        assert interpolate(la, kc, 0.0) == (la.latitude, la.longitude)

    def test_full_progress_is_destination(self):
        la, kc = get_station("LA"), get_station("KC")
        assert interpolate(la, kc, 1.0) == (kc.latitude, kc.longitude)

    def test_midpoint(self):
        la, kc = get_station("LA"), get_station("KC")
        lat, lon = interpolate(la, kc, 0.5)
        assert lat == pytest.approx((la.latitude + kc.latitude) / 2)
        assert lon == pytest.approx((la.longitude + kc.longitude) / 2)

    def test_progress_is_clamped(self):
        la, kc = get_station("LA"), get_station("KC")
        assert interpolate(la, kc, 1.7) == (kc.latitude, kc.longitude)
        assert interpolate(la, kc, -0.3) == (la.latitude, la.longitude)


class TestRouteCatalog:
    """Tests for route validation and leg arithmetic."""

    def test_builtin_catalog_is_valid(self):
        validate_catalog(ROUTES)

    def test_routes_are_immutable_tuples(self):
        assert all(isinstance(r, tuple) for r in ROUTES)

    def test_unknown_station_rejected(self):
        with pytest.raises(ConfigurationError, match="unknown stations"):
            validate_route(("LA", "SEA"))

    def test_short_route_rejected(self):
        with pytest.raises(ConfigurationError):
            validate_route(("LA",))

    def test_repeated_station_rejected(self):
        with pytest.raises(ConfigurationError):
            validate_route(("LA", "KC", "LA"))

    def test_empty_catalog_rejected(self):
        with pytest.raises(ConfigurationError):
            validate_catalog([])

    def test_leg_count(self):
        assert leg_count(("LA", "KC", "CHI", "NYC")) == 3
        assert leg_count(("LA",)) == 0

    def test_next_leg_wraps_after_final_leg(self):
        route = ("LA", "KC", "CHI", "NYC")
        assert next_leg_index(route, 0) == 1
        assert next_leg_index(route, 1) == 2
        assert next_leg_index(route, 2) == 0

    def test_two_station_route_stays_on_leg_zero(self):
        assert next_leg_index(("LA", "KC"), 0) == 0
