#!/usr/bin/env python3
"""Tests for Category and Usage enums."""
import pytest

from mecsentinel import Category, Usage


class TestCategory:
    """Tests for the fixed category enumeration."""

    def test_order(self):
        assert [c.value for c in Category] == ["oil", "tires", "brakes", "battery"]

    def test_every_category_has_name_and_description(self):
        for category in Category:
            assert category.display_name
            assert category.description

    def test_display_names(self):
        assert Category.OIL.display_name == "Engine oil"
        assert Category.BRAKES.display_name == "Brake pads"

    def test_unknown_value_rejected(self):
        with pytest.raises(ValueError):
            Category("wipers")


class TestUsage:
    def test_values(self):
        assert Usage("city") is Usage.CITY
        assert Usage("highway") is Usage.HIGHWAY
        assert Usage("mixed") is Usage.MIXED

    def test_unknown_value_rejected(self):
        with pytest.raises(ValueError):
            Usage("offroad")
