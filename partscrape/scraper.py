"""Core crawl logic for one category.

``crawl_category`` walks a category's listing pages in order. For each page
it reads the product rows, then visits the detail pages through the
batch-barrier pool, one fresh session per product.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from partscrape.config import (
    BASE_URL,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_PAGES,
    PAGE_URL_STYLE,
    READY_TIMEOUT,
    SiteSelectors,
    get_selectors,
)
from partscrape.html_utils import (
    extract_price_text,
    extract_product_refs,
    extract_rating_text,
    extract_spec_groups,
)
from partscrape.logging_config import get_logger, log_crawl_event
from partscrape.models import Category, CategoryResult, ProductRecord, ProductRef
from partscrape.normalize import normalize_price, parse_pack_count, parse_user_rating
from partscrape.pagination import listing_urls, page_count
from partscrape.pool import run_batches
from partscrape.schema import SchemaRegistry, SchemaViolation
from partscrape.shutdown import shutdown_requested
from partscrape.surface import NavigationError, Surface

__all__ = [
    "CrawlOptions",
    "parse_product_page",
    "scrape_product",
    "scrape_listing_page",
    "crawl_category",
]

logger = get_logger("scraper")


@dataclass
class CrawlOptions:
    """Knobs for one crawl run."""

    concurrency: int = DEFAULT_CONCURRENCY
    max_pages: Optional[int] = DEFAULT_MAX_PAGES
    page_style: str = PAGE_URL_STYLE
    ready_timeout: float = READY_TIMEOUT
    base_url: str = BASE_URL
    selectors: Dict[str, SiteSelectors] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.concurrency <= 0:
            raise ValueError(f"concurrency must be positive, got {self.concurrency}")

    def selectors_for(self, category: str) -> SiteSelectors:
        return self.selectors.get(category) or get_selectors(category)


async def parse_product_page(
    session,
    category: Category,
    ref: ProductRef,
    schema: SchemaRegistry,
    selectors: SiteSelectors,
) -> ProductRecord:
    """Build a record from a loaded detail page.

    Raises:
        SchemaViolation: In strict mode, for a spec label the category's
            schema does not map
    """
    fields: Dict[str, object] = {}
    for group in await extract_spec_groups(session, selectors):
        canonical_field, value = schema.map(category.name, group.label, group.raw_value)
        # Two labels can share a canonical field; the first non-empty value wins
        if fields.get(canonical_field) is None:
            fields[canonical_field] = value

    num_ratings, avg_rating = parse_user_rating(await extract_rating_text(session, selectors))

    return ProductRecord(
        name=ref.normalized_name,
        pack_count=parse_pack_count(ref.normalized_name),
        user_rating_count=num_ratings,
        user_rating_avg=avg_rating,
        price=normalize_price(await extract_price_text(session, selectors)),
        fields=fields,
    )


async def scrape_product(
    surface: Surface,
    category: Category,
    ref: ProductRef,
    schema: SchemaRegistry,
    selectors: SiteSelectors,
    ready_timeout: float = READY_TIMEOUT,
) -> Optional[ProductRecord]:
    """Visit one detail page in its own session.

    Returns None when the page cannot be loaded. The session is closed
    whatever happens.
    """
    session = await surface.open_session()
    try:
        await session.navigate(ref.detail_url)
        if selectors.detail_ready:
            await session.wait_for(selectors.detail_ready, timeout=ready_timeout)
        record = await parse_product_page(session, category, ref, schema, selectors)
        logger.debug(f"      {ref.normalized_name}: {len(record.fields)} spec fields")
        return record
    except NavigationError as e:
        logger.error(f"        ERROR fetching {ref.detail_url}: {e.reason}")
        log_crawl_event("product_error", {
            "category": category.name,
            "url": ref.detail_url,
            "error": str(e),
        })
        return None
    finally:
        await session.close()


async def scrape_listing_page(
    surface: Surface,
    url: str,
    selectors: SiteSelectors,
    base_url: str = BASE_URL,
    ready_timeout: float = READY_TIMEOUT,
) -> List[ProductRef]:
    """Load one listing page and read its product references.

    Raises:
        NavigationError: If the page cannot be loaded
    """
    session = await surface.open_session()
    try:
        await session.navigate(url)
        if selectors.listing_ready:
            await session.wait_for(selectors.listing_ready, timeout=ready_timeout)
        return await extract_product_refs(session, selectors, base_url)
    finally:
        await session.close()


async def crawl_category(
    surface: Surface,
    category: Category,
    schema: SchemaRegistry,
    options: Optional[CrawlOptions] = None,
) -> CategoryResult:
    """Crawl every listing page of a category and collect its records.

    A listing page that fails to load is recorded and skipped; a product
    that fails is recorded and leaves no record.

    Raises:
        NavigationError: If the first listing page (used for the page count)
            cannot be loaded
        SchemaViolation: In strict mode, after the batch that hit an
            unmapped spec label completes
    """
    options = options or CrawlOptions()
    selectors = options.selectors_for(category.name)
    result = CategoryResult(category=category)

    logger.info(f"Scraping category {category.name}: {category.url}")
    log_crawl_event("category_start", {
        "category": category.name,
        "url": category.url,
        "max_pages": options.max_pages,
        "concurrency": options.concurrency,
    })

    result.total_pages = await page_count(
        surface, category.url, selectors, style=options.page_style, ready_timeout=options.ready_timeout
    )
    logger.info(f"  Found {result.total_pages} total pages")
    urls = listing_urls(category.url, result.total_pages, options.max_pages, style=options.page_style)

    async def worker(ref: ProductRef) -> Optional[ProductRecord]:
        return await scrape_product(surface, category, ref, schema, selectors, options.ready_timeout)

    for page_num, url in enumerate(urls, start=1):
        if shutdown_requested():
            logger.info("Shutdown requested, stopping category scrape gracefully")
            result.interrupted = True
            break

        logger.info(f"  Page {page_num}/{len(urls)}: {url}")
        try:
            refs = await scrape_listing_page(
                surface, url, selectors, options.base_url, options.ready_timeout
            )
        except NavigationError as e:
            logger.error(f"    ERROR loading listing page {url}: {e.reason}")
            log_crawl_event("page_error", {"category": category.name, "url": url, "error": str(e)})
            result.failed_pages.append(url)
            continue

        logger.info(f"    Found {len(refs)} products on page {page_num}")
        records = await run_batches(refs, worker, options.concurrency, fatal=(SchemaViolation,))

        for ref, record in zip(refs, records):
            if record is None:
                result.failed_products.append(ref.detail_url)
            else:
                result.records.append(record)
        result.pages_crawled += 1

    status = "interrupted" if result.interrupted else "complete"
    logger.info(
        f"  Category {category.name} {status}: {len(result.records)} products, "
        f"{len(result.failed_products)} failed products, {len(result.failed_pages)} failed pages"
    )
    log_crawl_event("category_complete", {
        "category": category.name,
        "status": status,
        "products_scraped": len(result.records),
        "pages_scraped": result.pages_crawled,
        "failed_products": result.failed_products,
        "failed_pages": result.failed_pages,
    })
    return result
