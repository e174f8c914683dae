"""Value type validation and destination text parsing."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from navigation.types import Coordinate, DerivedState, Heading, Position, parse_destination


class TestCoordinate:
    def test_valid(self):
        c = Coordinate(latitude=35.6586, longitude=139.7454)
        assert c.latitude == 35.6586

    @pytest.mark.parametrize("lat, lon", [(90.5, 0.0), (-91.0, 0.0), (0.0, 180.5), (0.0, -181.0)])
    def test_out_of_range_rejected(self, lat, lon):
        with pytest.raises(ValidationError):
            Coordinate(latitude=lat, longitude=lon)

    def test_bounds_inclusive(self):
        Coordinate(latitude=90.0, longitude=180.0)
        Coordinate(latitude=-90.0, longitude=-180.0)

    def test_immutable(self):
        c = Coordinate(latitude=1.0, longitude=2.0)
        with pytest.raises(ValidationError):
            c.latitude = 3.0

    def test_equality_by_value(self):
        assert Coordinate(latitude=1.0, longitude=2.0) == Coordinate(latitude=1.0, longitude=2.0)


class TestPositionAndHeading:
    def test_position_at(self):
        p = Position.at(35.0, 139.0, timestamp=12.5)
        assert p.coordinate == Coordinate(latitude=35.0, longitude=139.0)
        assert p.timestamp == 12.5

    def test_position_default_timestamp(self):
        assert Position.at(0.0, 0.0).timestamp > 0

    @pytest.mark.parametrize("value", [-1.0, 360.0, 400.0])
    def test_heading_range(self, value):
        with pytest.raises(ValidationError):
            Heading(true_heading=value)

    def test_heading_alias(self):
        assert Heading(trueHeading=12.0).true_heading == 12.0


class TestParseDestination:
    def test_valid_pair(self):
        assert parse_destination("35.6586", "139.7454") == Coordinate(latitude=35.6586, longitude=139.7454)

    def test_surrounding_whitespace_allowed(self):
        assert parse_destination(" 35.5 ", "139") == Coordinate(latitude=35.5, longitude=139.0)

    @pytest.mark.parametrize(
        "lat, lon",
        [
            ("", ""),
            ("", "139.0"),
            ("35.0", ""),
            ("abc", "139.0"),
            ("35,5", "139.0"),
            ("nan", "139.0"),
            ("35.0", "inf"),
            ("95.0", "139.0"),
            ("35.0", "200"),
            (None, "139.0"),
        ],
    )
    def test_unusable_input_means_absent(self, lat, lon):
        assert parse_destination(lat, lon) is None


class TestDerivedState:
    def test_empty_by_default(self):
        state = DerivedState()
        assert not state.has_route
        assert not state.has_rotation

    def test_camel_case_dump(self):
        state = DerivedState(distance_m=1.0, bearing_deg=2.0, continuous_rotation=370.0, display_rotation=10.0)
        assert state.model_dump(by_alias=True) == {
            "distanceMeters": 1.0,
            "bearingDegrees": 2.0,
            "continuousRotation": 370.0,
            "displayRotation": 10.0,
        }
