#!/usr/bin/env python3
"""Tests for the region/province lookup."""
from fleetcare.regions import REGION_PROVINCES, provinces_for, validate_province


class TestRegions:
    """Tests for provinces_for and validate_province."""

    def test_known_region(self):
        assert "Milano" in provinces_for("Lombardia")

    def test_unknown_region_has_no_provinces(self):
        assert provinces_for("Atlantis") == []

    def test_valid_pair(self):
        assert validate_province("Toscana", "Firenze") == []

    def test_province_of_other_region(self):
        problems = validate_province("Toscana", "Milano")
        assert len(problems) == 1
        assert "Toscana" in problems[0]

    def test_unknown_region(self):
        assert validate_province("Atlantis", "Milano") == ["Unknown region 'Atlantis'"]

    def test_every_region_has_provinces(self):
        assert len(REGION_PROVINCES) == 20
        assert all(REGION_PROVINCES.values())
