"""Unit tests for region key derivation."""

from __future__ import annotations

import pytest

from landcalc.models import Location
from landcalc.pricing.regional import make_region_key


@pytest.mark.parametrize(
    ("location", "expected"),
    [
        (Location(zip="90001", state="CA", city="Los Angeles"), "90001"),
        (Location(state="CA", city="San Diego"), "US-CA-SanDiego"),
        (Location(state="ca", city="Los Angeles"), "US-CA-LosAngeles"),
        (Location(state="TX"), "US-TX"),
        (Location(city="Austin"), None),
        (Location(), None),
        (None, None),
    ],
)
def test_make_region_key(location, expected):
    assert make_region_key(location) == expected
