"""Tests for spec label discovery."""

from collections import Counter

import pytest

from partscrape.discover_fields import collect_labels, format_suggestions, suggest_schema
from partscrape.models import Category
from partscrape.surface import StaticSurface
from partscrape.tests.html_pages import BASE, detail_html, listing_html

WEBCAMS = Category(name="webcams", source_path="/products/webcam/", url=f"{BASE}/products/webcam/")


@pytest.fixture
def surface():
    rows = [(f"Cam {i}", f"/product/cam-{i}") for i in range(4)]
    pages = {WEBCAMS.url: listing_html(rows)}
    for i in range(4):
        specs = [("Resolution", "1080p"), ("Focus Type", "Auto" if i % 2 else "Fixed")]
        if i == 0:
            specs.append(("Interfaces", ["USB", "HDMI"]))
        pages[f"{BASE}/product/cam-{i}"] = detail_html(specs=specs)
    return StaticSurface(pages, failing=[f"{BASE}/product/cam-3"])


@pytest.mark.asyncio
async def test_collect_labels(surface):
    results = await collect_labels(surface, WEBCAMS, sample_size=10)

    assert results["products_sampled"] == 3
    assert results["label_counts"] == Counter({"Resolution": 3, "Focus Type": 3, "Interfaces": 1})
    assert results["sample_values"]["Interfaces"] == ["USB, HDMI"]
    assert surface.open_sessions == 0


@pytest.mark.asyncio
async def test_sample_size_limits_visits(surface):
    results = await collect_labels(surface, WEBCAMS, sample_size=2)

    assert results["products_sampled"] == 2
    assert f"{BASE}/product/cam-2" not in surface.visits


def test_suggest_schema_skips_mapped_labels(strict_schema):
    counts = Counter({"Socket": 5, "Secret Sauce": 2, "core count": 5})
    assert suggest_schema("cpus", counts, strict_schema) == {"Secret Sauce": ["secret_sauce", "string"]}


def test_format_suggestions_marks_unmapped():
    results = {
        "category": "webcams",
        "products_sampled": 2,
        "label_counts": Counter({"Resolution": 2, "Focus Type": 1}),
        "sample_values": {"Resolution": ["1080p"]},
    }
    report = format_suggestions(results, {"Focus Type": ["focus_type", "string"]})

    assert "webcams (2 products sampled)" in report
    assert "*Focus Type" in report
    assert " Resolution" in report
