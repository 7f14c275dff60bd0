"""Shared fixtures for the crawler tests."""

import pytest

from partscrape.models import Category
from partscrape.schema import SchemaRegistry
from partscrape.shutdown import get_shutdown_handler
from partscrape.surface import StaticSurface
from partscrape.tests.html_pages import BASE


@pytest.fixture
def cpus():
    return Category(name="cpus", source_path="/products/cpu/", url=f"{BASE}/products/cpu/")


@pytest.fixture
def strict_schema():
    return SchemaRegistry.from_config(mode="strict")


@pytest.fixture
def lenient_schema():
    return SchemaRegistry.from_config(mode="lenient")


@pytest.fixture
def make_surface():
    def _make(pages, failing=()):
        return StaticSurface(pages, failing=failing)
    return _make


@pytest.fixture(autouse=True)
def reset_shutdown():
    """Make sure a test that requests shutdown does not leak into others."""
    handler = get_shutdown_handler()
    handler.reset()
    yield
    handler.reset()
