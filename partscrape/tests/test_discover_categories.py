"""Tests for category discovery and selection."""

import pytest

from partscrape.discover_categories import categories_from_anchors, discover_categories, select_categories
from partscrape.models import Category
from partscrape.surface import NavigationError
from partscrape.tests.html_pages import BASE, entry_html

ENTRY = f"{BASE}/"


def test_categories_from_anchors():
    anchors = [
        ("CPUs", "/products/cpu/"),
        ("CPU Coolers", "/products/cpu-cooler/"),
        ("»", "/products/memory/"),
        ("All Products", "/products/"),
        ("Builds", "/builds/"),
        ("CPUs", "/products/cpu/#deals"),
        ("Memory", "/products/memory/"),
    ]

    categories = categories_from_anchors(anchors, base_url=BASE)

    assert [c.name for c in categories] == ["cpus", "cpu_coolers", "memory"]
    assert categories[0] == Category(name="cpus", source_path="/products/cpu/", url=f"{BASE}/products/cpu/")


def test_no_matching_anchors():
    assert categories_from_anchors([("Home", "/"), ("Guides", "/guide/")]) == []


@pytest.mark.asyncio
async def test_discover_categories(make_surface):
    surface = make_surface({ENTRY: entry_html([
        ("CPUs", "/products/cpu/"),
        ("Power Supplies", "/products/power-supply/"),
        ("Forums", "/forums/"),
    ])})

    categories = await discover_categories(surface, ENTRY)

    assert [c.name for c in categories] == ["cpus", "power_supplies"]
    assert categories[1].url == f"{BASE}/products/power-supply/"
    assert surface.open_sessions == 0


@pytest.mark.asyncio
async def test_unreachable_entry_page(make_surface):
    surface = make_surface({})
    with pytest.raises(NavigationError):
        await discover_categories(surface, ENTRY)
    assert surface.open_sessions == 0


class TestSelectCategories:
    @pytest.fixture
    def discovered(self):
        return categories_from_anchors([
            ("CPUs", "/products/cpu/"),
            ("CPU Coolers", "/products/cpu-cooler/"),
            ("Memory", "/products/memory/"),
        ])

    def test_empty_selection_keeps_all(self, discovered):
        assert select_categories(discovered, None) == discovered
        assert select_categories(discovered, []) == discovered

    def test_names_are_normalized(self, discovered):
        selected = select_categories(discovered, ["CPU Coolers", "memory"])
        assert [c.name for c in selected] == ["cpu_coolers", "memory"]

    def test_unknown_names_ignored(self, discovered):
        assert [c.name for c in select_categories(discovered, ["gpus", "cpus"])] == ["cpus"]
