"""Catalog crawler: paginated listings to schema-normalized product records."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from partscrape.config import (
    BASE_URL,
    CATEGORY_SCHEMAS,
    DEFAULT_CONCURRENCY,
    get_selectors,
)
from partscrape.csv_utils import count_records, save_category
from partscrape.discover_categories import discover_categories
from partscrape.models import (
    Category,
    CategoryResult,
    ProductRecord,
    ProductRef,
    SchemaEntry,
    SerializationType,
    SpecGroup,
)
from partscrape.pagination import page_count, page_url
from partscrape.pool import run_batches
from partscrape.schema import SchemaRegistry, SchemaViolation
from partscrape.scraper import CrawlOptions, crawl_category
from partscrape.surface import HttpSurface, NavigationError, ReadyTimeout, StaticSurface
from partscrape.workflows import crawl_catalog

__all__ = [
    # Version
    "__version__",
    # Config
    "BASE_URL",
    "CATEGORY_SCHEMAS",
    "DEFAULT_CONCURRENCY",
    "get_selectors",
    # Models
    "Category",
    "CategoryResult",
    "ProductRecord",
    "ProductRef",
    "SchemaEntry",
    "SerializationType",
    "SpecGroup",
    # Errors
    "NavigationError",
    "ReadyTimeout",
    "SchemaViolation",
    # Core functions
    "discover_categories",
    "page_count",
    "page_url",
    "run_batches",
    "SchemaRegistry",
    "CrawlOptions",
    "crawl_category",
    "crawl_catalog",
    "save_category",
    "count_records",
    # Surfaces
    "HttpSurface",
    "StaticSurface",
]
