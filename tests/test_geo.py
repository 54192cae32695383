"""
Tests for distance and radius search.

Run with: python -m pytest tests/test_geo.py
"""

import math
from unittest.mock import patch

from conftest import make_pin
from logic.geo import (
    EARTH_RADIUS_MILES,
    METERS_PER_MILE,
    SEARCH_RADIUS_MILES,
    find_pins_in_radius,
    format_search_message,
    haversine_miles,
    is_in_range,
    search_circle,
)


def lat_offset(miles):
    """Degrees of latitude spanning the given number of miles along a meridian."""
    return math.degrees(miles / EARTH_RADIUS_MILES)


def test_haversine_zero_distance():
    assert haversine_miles(30.0, -91.0, 30.0, -91.0) == 0


def test_haversine_one_degree_at_equator():
    expected = EARTH_RADIUS_MILES * math.pi / 180
    assert math.isclose(haversine_miles(0, 0, 1, 0), expected, rel_tol=1e-9)
    assert math.isclose(haversine_miles(0, 0, 0, 1), expected, rel_tol=1e-9)


def test_haversine_is_symmetric():
    a = haversine_miles(29.9511, -90.0715, 30.4515, -91.1871)
    b = haversine_miles(30.4515, -91.1871, 29.9511, -90.0715)
    assert math.isclose(a, b)
    # New Orleans to Baton Rouge is a little over 70 miles
    assert 70 < a < 80


def test_exactly_fifty_miles_is_in_range():
    pin = make_pin(1)
    with patch("logic.geo.haversine_miles", return_value=50.0):
        assert is_in_range(30.0, -91.0, pin) is True


def test_just_over_fifty_miles_is_out_of_range():
    pin = make_pin(1)
    with patch("logic.geo.haversine_miles", return_value=50.01):
        assert is_in_range(30.0, -91.0, pin) is False


def test_find_pins_in_radius_hand_computed():
    center_lat, center_lng = 30.0, -91.0
    inside = make_pin("inside", lat=center_lat + lat_offset(49.99), lng=center_lng)
    outside = make_pin("outside", lat=center_lat + lat_offset(50.01), lng=center_lng)
    same_spot = make_pin("same", lat=center_lat, lng=center_lng)

    assert math.isclose(haversine_miles(center_lat, center_lng, inside["lat"], inside["lng"]), 49.99)
    assert math.isclose(haversine_miles(center_lat, center_lng, outside["lat"], outside["lng"]), 50.01)

    result = find_pins_in_radius(center_lat, center_lng, [inside, outside, same_spot])
    assert [p["id"] for p in result] == ["inside", "same"]


def test_find_pins_in_radius_empty():
    assert find_pins_in_radius(30.0, -91.0, []) == []


def test_search_circle_radius_in_meters():
    circle = search_circle(30.0, -91.0)
    assert circle["center"] == [30.0, -91.0]
    assert circle["radius"] == SEARCH_RADIUS_MILES * METERS_PER_MILE


def test_format_search_message():
    assert format_search_message("70112", "New Orleans, Louisiana", 0) == (
        "✓ Found 70112 (New Orleans, Louisiana) — No pins within 50 miles"
    )
    assert format_search_message("70112", "New Orleans, Louisiana", 1) == (
        "✓ Found 70112 (New Orleans, Louisiana) — 1 pin within 50 miles"
    )
    assert format_search_message("70112", "New Orleans, Louisiana", 3) == (
        "✓ Found 70112 (New Orleans, Louisiana) — 3 pins within 50 miles"
    )
