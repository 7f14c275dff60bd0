"""High-level crawl workflow: discover categories, crawl each, save each.

Categories are crawled strictly one after another. A failure inside one
category is reported and the crawl moves on to the next one.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from partscrape.config import ENTRY_URL, OUTPUT_DIR, OUTPUT_FORMAT, get_selectors
from partscrape.csv_utils import save_category
from partscrape.discover_categories import discover_categories, select_categories
from partscrape.logging_config import get_logger, log_crawl_event
from partscrape.models import Category
from partscrape.schema import SchemaRegistry, SchemaViolation
from partscrape.scraper import CrawlOptions, crawl_category
from partscrape.shutdown import shutdown_requested
from partscrape.surface import NavigationError, Surface

__all__ = [
    "CategoryOutcome",
    "CrawlSummary",
    "crawl_categories",
    "crawl_catalog",
]

logger = get_logger("workflows")


@dataclass
class CategoryOutcome:
    """What happened to one category."""

    name: str
    status: str  # complete | interrupted | schema_violation | failed
    products: int = 0
    failed_products: List[str] = field(default_factory=list)
    failed_pages: List[str] = field(default_factory=list)
    output_path: Optional[Path] = None
    error: Optional[str] = None


@dataclass
class CrawlSummary:
    outcomes: List[CategoryOutcome] = field(default_factory=list)

    @property
    def total_products(self) -> int:
        return sum(o.products for o in self.outcomes)

    @property
    def failed_categories(self) -> List[CategoryOutcome]:
        return [o for o in self.outcomes if o.status in ("schema_violation", "failed")]

    def outcome(self, name: str) -> Optional[CategoryOutcome]:
        for o in self.outcomes:
            if o.name == name:
                return o
        return None


async def crawl_categories(
    surface: Surface,
    categories: Sequence[Category],
    schema: SchemaRegistry,
    options: Optional[CrawlOptions] = None,
    output_dir: Optional[str] = OUTPUT_DIR,
    output_format: str = OUTPUT_FORMAT,
) -> CrawlSummary:
    """Crawl categories one at a time and hand each finished one to the sink.

    With ``output_dir=None`` nothing is written; results are only summarized.
    """
    options = options or CrawlOptions()
    summary = CrawlSummary()

    for index, category in enumerate(categories, start=1):
        if shutdown_requested():
            logger.info("Shutdown requested, not starting further categories")
            break

        logger.info(f"[{index}/{len(categories)}] {category.name}")
        try:
            result = await crawl_category(surface, category, schema, options)
        except SchemaViolation as e:
            logger.error(
                f"Unmapped spec label '{e.label}' in category '{e.category}'. "
                f"Add it to the schema; skipping the rest of this category."
            )
            log_crawl_event("schema_violation", {
                "category": e.category,
                "label": e.label,
            }, level=logging.ERROR)
            summary.outcomes.append(CategoryOutcome(category.name, "schema_violation", error=str(e)))
            continue
        except NavigationError as e:
            logger.error(f"Category {category.name} failed: {e}")
            log_crawl_event("category_complete", {
                "category": category.name,
                "status": "failed",
                "error": str(e),
            }, level=logging.ERROR)
            summary.outcomes.append(CategoryOutcome(category.name, "failed", error=str(e)))
            continue
        except Exception as e:
            # One broken category never aborts the catalog crawl
            logger.exception(f"Category {category.name} failed unexpectedly")
            log_crawl_event("category_complete", {
                "category": category.name,
                "status": "failed",
                "error": f"{type(e).__name__}: {e}",
            }, level=logging.ERROR)
            summary.outcomes.append(CategoryOutcome(category.name, "failed", error=f"{type(e).__name__}: {e}"))
            continue

        outcome = CategoryOutcome(
            name=category.name,
            status="interrupted" if result.interrupted else "complete",
            products=len(result.records),
            failed_products=list(result.failed_products),
            failed_pages=list(result.failed_pages),
        )
        if output_dir is not None:
            outcome.output_path = save_category(result, output_dir, output_format)
        summary.outcomes.append(outcome)

        if result.interrupted:
            break

    return summary


async def crawl_catalog(
    surface: Surface,
    schema: SchemaRegistry,
    options: Optional[CrawlOptions] = None,
    category_names: Optional[Sequence[str]] = None,
    entry_url: str = ENTRY_URL,
    output_dir: Optional[str] = OUTPUT_DIR,
    output_format: str = OUTPUT_FORMAT,
) -> CrawlSummary:
    """Discover categories on the entry page and crawl the selected ones.

    Args:
        surface: Rendering surface to load pages with
        schema: Schema registry, loaded before the crawl starts
        options: Concurrency, page cap and addressing
        category_names: Categories to crawl; empty or None crawls all
        entry_url: Page that links to every category
        output_dir: Where per-category files go (None disables writing)
        output_format: "csv" or "json"

    Raises:
        NavigationError: If the entry page cannot be loaded
    """
    options = options or CrawlOptions()
    discovered = await discover_categories(
        surface,
        entry_url,
        selectors=get_selectors(),
        base_url=options.base_url,
        ready_timeout=options.ready_timeout,
    )
    selected = select_categories(discovered, category_names)
    logger.info(f"Crawling {len(selected)} of {len(discovered)} categories")

    summary = await crawl_categories(surface, selected, schema, options, output_dir, output_format)

    logger.info(
        f"Crawl finished: {len(summary.outcomes)} categories, "
        f"{summary.total_products} products, {len(summary.failed_categories)} failed categories"
    )
    return summary
