"""Tests for name, price, rating, pack count and dimension normalization."""

import pytest

from partscrape.normalize import (
    normalize_category_name,
    normalize_dimension,
    normalize_price,
    normalize_product_name,
    parse_pack_count,
    parse_user_rating,
    strip_to_number,
    to_snake_case,
)


class TestProductName:
    @pytest.mark.parametrize("raw,expected", [
        ("Widget (12)", "Widget"),
        ("AMD  Ryzen 7\n 7800X3D (55)", "AMD Ryzen 7 7800X3D"),
        ("Noctua NH-D15 (1)  ", "Noctua NH-D15"),
    ])
    def test_trailing_count_removed_and_whitespace_collapsed(self, raw, expected):
        assert normalize_product_name(raw) == expected

    def test_parenthetical_inside_name_is_kept(self):
        assert normalize_product_name("Fan (Black) 120mm") == "Fan (Black) 120mm"

    def test_empty(self):
        assert normalize_product_name("") is None
        assert normalize_product_name(None) is None


class TestCategoryName:
    def test_lowercase_and_underscores(self):
        assert normalize_category_name("  CPU Coolers ") == "cpu_coolers"
        assert normalize_category_name("Uninterruptible  Power Supplies") == "uninterruptible_power_supplies"

    def test_empty(self):
        assert normalize_category_name("   ") is None


class TestPrice:
    def test_currency_and_commas_stripped(self):
        assert normalize_price("$1,299.00") == "1299.00"
        assert normalize_price(" €37.90 ") == "37.90"

    def test_all_non_numeric_is_none(self):
        assert normalize_price("Out of stock") is None
        assert normalize_price(None) is None


class TestUserRating:
    def test_plural(self):
        assert parse_user_rating("(168 Ratings, 4.5 Average)") == (168, 4.5)

    def test_singular_and_case(self):
        assert parse_user_rating("(1 rating, 3.0 average)") == (1, 3.0)

    def test_no_match(self):
        assert parse_user_rating("No Ratings Yet") == (None, None)
        assert parse_user_rating(None) == (None, None)


class TestPackCount:
    @pytest.mark.parametrize("name", ["Arctic P12 3-Pack", "Arctic P12 3 Pack", "Arctic P12 3pack"])
    def test_pack_tokens(self, name):
        assert parse_pack_count(name) == 3

    def test_no_pack(self):
        assert parse_pack_count("Arctic P12 PWM PST") is None
        assert parse_pack_count(None) is None


class TestDimension:
    @pytest.mark.parametrize("raw,expected", [
        ("158 mm", "158"),
        ("+ 12 mm", "12"),
        ("5.25 in", "5.25"),
        ('3.5"', "3.5"),
        ("  40cm ", "40"),
    ])
    def test_units_and_signs_stripped(self, raw, expected):
        assert normalize_dimension(raw) == expected

    def test_idempotent(self):
        once = normalize_dimension("158 mm")
        assert normalize_dimension(once) == once
        assert normalize_dimension("Full Tower") == "Full Tower"

    @pytest.mark.parametrize("word", ["Twin", "Built-in", "Plugin", "Slim", "Custom mm"])
    def test_words_ending_like_units_are_kept(self, word):
        assert normalize_dimension(word) == word

    def test_empty_is_none(self):
        assert normalize_dimension(" mm ") is None
        assert normalize_dimension(None) is None


class TestStripToNumber:
    @pytest.mark.parametrize("raw,expected", [
        ("65 W", 65),
        ("1.35 V", 1.35),
        ("1,000 W", 1000),
        ("600 - 2000 RPM", 600),
        ("-5 C", -5),
    ])
    def test_numbers(self, raw, expected):
        assert strip_to_number(raw) == expected

    def test_non_numeric(self):
        assert strip_to_number("N/A") is None
        assert strip_to_number("-") is None
        assert strip_to_number(None) is None


def test_to_snake_case():
    assert to_snake_case("Price / GB") == "price_gb"
    assert to_snake_case("ECC Support") == "ecc_support"
