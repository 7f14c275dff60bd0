"""Spec label discovery for building category schemas.

Samples detail pages from a category, tallies which spec labels appear and
how often, and suggests schema entries for the labels the current schema
does not map yet. Run it when a strict crawl stops on an unmapped label.
"""

from collections import Counter, defaultdict
from typing import Any, Dict, List, Optional

from partscrape.config import get_selectors
from partscrape.html_utils import extract_spec_groups
from partscrape.logging_config import get_logger
from partscrape.models import Category, ProductRef
from partscrape.normalize import to_snake_case
from partscrape.pagination import listing_urls, page_count
from partscrape.pool import run_batches
from partscrape.schema import SchemaRegistry
from partscrape.scraper import CrawlOptions, scrape_listing_page
from partscrape.serializers import as_text
from partscrape.surface import NavigationError, Surface

__all__ = [
    "collect_labels",
    "suggest_schema",
    "format_suggestions",
]

logger = get_logger("discover_fields")

MAX_SAMPLE_VALUES = 3


async def collect_labels(
    surface: Surface,
    category: Category,
    sample_size: int = 15,
    options: Optional[CrawlOptions] = None,
) -> Dict[str, Any]:
    """Visit up to ``sample_size`` detail pages and tally their spec labels.

    Returns:
        Dict with 'category', 'products_sampled', 'label_counts' (Counter)
        and 'sample_values' (label -> a few example values)
    """
    options = options or CrawlOptions()
    selectors = options.selectors_for(category.name)

    total = await page_count(surface, category.url, selectors, style=options.page_style,
                             ready_timeout=options.ready_timeout)
    refs: List[ProductRef] = []
    for url in listing_urls(category.url, total, options.max_pages, style=options.page_style):
        if len(refs) >= sample_size:
            break
        try:
            refs.extend(await scrape_listing_page(surface, url, selectors, options.base_url,
                                                  options.ready_timeout))
        except NavigationError as e:
            logger.warning(f"Skipping listing page {url}: {e.reason}")
    refs = refs[:sample_size]

    async def read_labels(ref: ProductRef):
        session = await surface.open_session()
        try:
            await session.navigate(ref.detail_url)
            if selectors.detail_ready:
                await session.wait_for(selectors.detail_ready, timeout=options.ready_timeout)
            return await extract_spec_groups(session, selectors)
        finally:
            await session.close()

    label_counts: Counter = Counter()
    sample_values: Dict[str, List[str]] = defaultdict(list)
    sampled = 0
    for groups in await run_batches(refs, read_labels, options.concurrency):
        if groups is None:
            continue
        sampled += 1
        for group in groups:
            label_counts[group.label] += 1
            if group.raw_value is not None and len(sample_values[group.label]) < MAX_SAMPLE_VALUES:
                sample_values[group.label].append(as_text(group.raw_value))

    logger.info(f"Sampled {sampled} products in {category.name}, found {len(label_counts)} labels")
    return {
        "category": category.name,
        "products_sampled": sampled,
        "label_counts": label_counts,
        "sample_values": dict(sample_values),
    }


def suggest_schema(
    category: str,
    label_counts: Counter,
    schema: Optional[SchemaRegistry] = None,
) -> Dict[str, List[str]]:
    """Suggest ``label -> [canonical_field, "string"]`` for unmapped labels.

    Labels are ordered by how often they were seen.
    """
    suggestions: Dict[str, List[str]] = {}
    for label, _ in label_counts.most_common():
        if schema is not None and schema.entry(category, label) is not None:
            continue
        suggestions[label] = [to_snake_case(label), "string"]
    return suggestions


def format_suggestions(results: Dict[str, Any], suggestions: Dict[str, List[str]]) -> str:
    """Render discovery results as a human-readable report."""
    sampled = results["products_sampled"] or 1
    lines = [
        f"Category: {results['category']} ({results['products_sampled']} products sampled)",
        "",
        f"{'Label':<35} {'Freq':>6}  Example",
    ]
    for label, count in results["label_counts"].most_common():
        examples = results["sample_values"].get(label) or ["-"]
        marker = "*" if label in suggestions else " "
        lines.append(f"{marker}{label:<34} {count / sampled:>6.0%}  {examples[0][:40]}")
    lines.append("")
    lines.append("* = not in the current schema")
    return "\n".join(lines)
