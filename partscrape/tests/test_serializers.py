"""Tests for generic and custom value serializers."""

import pytest

from partscrape.models import SerializationType
from partscrape.serializers import (
    parse_clock_mhz,
    parse_list,
    parse_memory_speed,
    parse_modules,
    parse_range,
    parse_size_mb,
    serialize,
    serialize_boolean,
    serialize_dimension,
)


class TestGeneric:
    def test_number_strips_units(self):
        assert serialize("750 W", SerializationType.NUMBER) == 750
        assert serialize("$0.156", SerializationType.NUMBER) == 0.156

    def test_number_without_digits(self):
        assert serialize("None", SerializationType.NUMBER) is None

    def test_string_collapses_whitespace(self):
        assert serialize("  Radeon   Graphics ", SerializationType.STRING) == "Radeon Graphics"
        assert serialize("   ", SerializationType.STRING) is None

    @pytest.mark.parametrize("raw,expected", [("Yes", True), ("no", False), ("Yes, with fan", True), ("Maybe", None)])
    def test_boolean(self, raw, expected):
        assert serialize_boolean(raw) is expected

    def test_dimension(self):
        assert serialize_dimension("158 mm") == 158
        assert serialize_dimension("+ 2.5 in") == 2.5
        assert serialize_dimension("Low profile") == "Low profile"

    def test_custom_has_no_generic_serializer(self):
        with pytest.raises(ValueError):
            serialize("x", SerializationType.CUSTOM)


class TestCustom:
    def test_clock_units(self):
        assert parse_clock_mhz("3.4 GHz") == 3400
        assert parse_clock_mhz("800 MHz") == 800
        assert parse_clock_mhz("4.75 GHz") == 4750

    def test_cache_sizes(self):
        assert parse_size_mb("32 MB") == 32
        assert parse_size_mb("6 x 1 MB") == 6
        assert parse_size_mb("512 KB") == 0.5
        assert parse_size_mb(["16 MB", "16 MB"]) == 32
        assert parse_size_mb("None") is None

    def test_ranges(self):
        assert parse_range("600 - 2000 RPM") == [600, 2000]
        assert parse_range("600-2000 RPM") == [600, 2000]
        assert parse_range("22.6 - 36 dB") == [22.6, 36]
        assert parse_range("1500 RPM") == [1500]
        assert parse_range("N/A") is None

    def test_lists(self):
        assert parse_list(("AM4", "AM5", "LGA1700")) == ["AM4", "AM5", "LGA1700"]
        assert parse_list("AM4, AM5") == ["AM4", "AM5"]
        assert parse_list(()) is None

    def test_memory(self):
        assert parse_memory_speed("DDR5-6000") == 6000
        assert parse_modules("2 x 16GB") == {"count": 2, "size_gb": 16}
        assert parse_modules("16GB") is None
