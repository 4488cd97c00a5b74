"""Tests for approximate postal-code geocoding and distance math."""

import pytest

from homecare.geo.geocoding import (
    FSA_COORDINATES,
    JITTER_DEGREES,
    REGION_COORDINATES,
    GeoApproximator,
    distance_km,
    distance_meters,
    format_distance,
    postal_code_hash,
)
from homecare.schemas.geo_schema import Coordinate

TORONTO = Coordinate(lat=43.6532, lng=-79.3832)
OTTAWA = Coordinate(lat=45.4215, lng=-75.6972)


class TestPostalCodeResolution:
    def setup_method(self):
        self.geo = GeoApproximator()

    def test_spacing_does_not_change_result(self):
        assert self.geo.coordinates_from_postal_code("M5V1J9") == self.geo.coordinates_from_postal_code("M5V 1J9")

    def test_case_does_not_change_result(self):
        assert self.geo.coordinates_from_postal_code("m5v 1j9") == self.geo.coordinates_from_postal_code("M5V 1J9")

    def test_repeated_calls_are_stable(self):
        first = self.geo.coordinates_from_postal_code("K8N 1A1")
        assert all(self.geo.coordinates_from_postal_code("K8N 1A1") == first for _ in range(5))

    def test_known_fsa_stays_near_centroid(self):
        coords = self.geo.coordinates_from_postal_code("M5V 1J9")
        base_lat, base_lng = FSA_COORDINATES["M5V"]
        assert abs(coords.lat - base_lat) <= JITTER_DEGREES
        assert abs(coords.lng - base_lng) <= JITTER_DEGREES

    def test_unknown_fsa_falls_back_to_region(self):
        coords = self.geo.coordinates_from_postal_code("N6A 1A1")
        base_lat, base_lng = REGION_COORDINATES["N"]
        assert abs(coords.lat - base_lat) <= JITTER_DEGREES
        assert abs(coords.lng - base_lng) <= JITTER_DEGREES

    def test_distinct_codes_in_same_fsa_differ(self):
        a = self.geo.coordinates_from_postal_code("M5V 1J9")
        b = self.geo.coordinates_from_postal_code("M5V 2T6")
        assert a != b

    @pytest.mark.parametrize("code", ["", "90210", "M5V", "M5V 1J", "123 ABC"])
    def test_malformed_codes_return_none(self, code):
        assert self.geo.coordinates_from_postal_code(code) is None

    def test_unknown_region_returns_none(self):
        assert self.geo.coordinates_from_postal_code("D1A 1A1") is None

    def test_custom_tables(self):
        geo = GeoApproximator(fsa_table={}, region_table={"Z": (10.0, 20.0)})
        coords = geo.coordinates_from_postal_code("Z1Z 1Z1")
        assert coords.lat == pytest.approx(10.0, abs=JITTER_DEGREES)
        assert coords.lng == pytest.approx(20.0, abs=JITTER_DEGREES)

    def test_distance_between_postal_codes(self):
        distance = self.geo.distance_between_postal_codes("M5V 1J9", "K1P 1J1")
        assert distance == pytest.approx(350, abs=10)

    def test_distance_between_postal_codes_unresolved(self):
        assert self.geo.distance_between_postal_codes("M5V 1J9", "bogus") is None


class TestPostalCodeHash:
    def test_single_character(self):
        assert postal_code_hash("A") == 65

    def test_polynomial(self):
        assert postal_code_hash("AB") == 65 * 31 + 66

    def test_stays_within_32_bits(self):
        assert 0 <= postal_code_hash("Y1A9Z9" * 10) <= 0xFFFFFFFF


class TestDistance:
    def test_zero_to_self(self):
        assert distance_km(TORONTO, TORONTO) == 0.0

    def test_symmetric(self):
        assert distance_km(TORONTO, OTTAWA) == pytest.approx(distance_km(OTTAWA, TORONTO))

    def test_toronto_to_ottawa(self):
        assert distance_km(TORONTO, OTTAWA) == pytest.approx(352, abs=5)

    def test_meters_match_kilometres(self):
        assert distance_meters(TORONTO, OTTAWA) == pytest.approx(distance_km(TORONTO, OTTAWA) * 1000)

    def test_one_thousandth_degree_latitude(self):
        north = Coordinate(lat=TORONTO.lat + 0.001, lng=TORONTO.lng)
        assert distance_meters(TORONTO, north) == pytest.approx(111.2, abs=0.5)

    def test_attached_to_approximator(self):
        assert GeoApproximator.distance_km(TORONTO, OTTAWA) == distance_km(TORONTO, OTTAWA)


class TestFormatDistance:
    def test_metres(self):
        assert format_distance(850) == "850m"

    def test_kilometres(self):
        assert format_distance(1234) == "1.2km"

    def test_rounds_metres(self):
        assert format_distance(199.6) == "200m"
