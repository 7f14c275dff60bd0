"""Configuration and constants for the catalog crawler."""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")

__all__ = [
    "BASE_URL",
    "ENTRY_URL",
    "CATALOG_PATH_PREFIX",
    "HEADERS",
    "REQUEST_TIMEOUT",
    "DELAY_MIN",
    "DELAY_MAX",
    "MAX_RETRIES",
    "RETRY_BACKOFF_BASE",
    "MAX_RETRY_BACKOFF",
    "RETRY_STATUS_CODES",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_MAX_PAGES",
    "PAGE_URL_STYLE",
    "PAGE_URL_STYLES",
    "READY_TIMEOUT",
    "NAVIGATION_TIMEOUT",
    "OUTPUT_DIR",
    "OUTPUT_FORMAT",
    "SCHEMA_MODE",
    "SCHEMA_MODES",
    "ALLOWED_DOMAINS",
    "SiteSelectors",
    "DEFAULT_SELECTORS",
    "CATEGORY_SELECTORS",
    "get_selectors",
    "CATEGORY_SCHEMAS",
]


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return int(raw)


BASE_URL = "https://pcpartpicker.com"
ENTRY_URL = BASE_URL + "/"

# Category anchors on the entry page all live under this path
CATALOG_PATH_PREFIX = "/products/"

# HTTP adapter settings
HEADERS = {
    "User-Agent": "partscrape catalog crawler (+https://pcpartpicker.com)",
}
REQUEST_TIMEOUT = 15
DELAY_MIN = 0.5
DELAY_MAX = 1.5
MAX_RETRIES = 3
RETRY_BACKOFF_BASE = 2.0
MAX_RETRY_BACKOFF = 30.0
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

# Concurrency: at most this many detail sessions are open at once
DEFAULT_CONCURRENCY = _env_int("PARTSCRAPE_CONCURRENCY", 5)

# Pagination cap. None means every page the pagination control reports.
DEFAULT_MAX_PAGES = _env_int("PARTSCRAPE_MAX_PAGES", None)

# How listing page k is addressed: "#page=k", "?page=k" or "/page/k/"
PAGE_URL_STYLES = ("hash", "query", "path")
PAGE_URL_STYLE = os.getenv("PARTSCRAPE_PAGE_STYLE", "hash")

# Timeouts (seconds)
READY_TIMEOUT = float(os.getenv("PARTSCRAPE_READY_TIMEOUT", "30"))
NAVIGATION_TIMEOUT = float(os.getenv("PARTSCRAPE_NAVIGATION_TIMEOUT", "60"))

# Output
OUTPUT_DIR = os.getenv("PARTSCRAPE_OUTPUT_DIR", str(_PROJECT_ROOT / "data"))
OUTPUT_FORMAT = os.getenv("PARTSCRAPE_OUTPUT_FORMAT", "csv")

# strict: an unmapped spec label halts the category
# lenient: the raw label is kept verbatim as a column
SCHEMA_MODES = ("strict", "lenient")
SCHEMA_MODE = os.getenv("PARTSCRAPE_SCHEMA_MODE", "strict")

ALLOWED_DOMAINS = frozenset({"pcpartpicker.com", "www.pcpartpicker.com"})


# =============================================================================
# Selectors
# =============================================================================

@dataclass(frozen=True)
class SiteSelectors:
    """CSS selectors for every DOM read the crawler performs."""

    category_links: str = 'a[href^="/products/"]'
    pagination_links: str = "#module-pagination ul.pagination li a"
    product_rows: str = ".tr__product"
    row_name_link: str = ".td__name a[href]"
    spec_groups: str = ".block.xs-block.md-hide.specs .group.group--spec"
    spec_title: str = ".group__title"
    spec_paragraph: str = ".group__content p"
    spec_items: str = ".group__content ul li"
    price: str = "#prices table tbody td.td__finalPrice a"
    rating: str = ".actionBox__ratings ul.product--rating li:last-child"
    # Ready conditions replace fixed post-navigation sleeps. None disables the wait.
    entry_ready: Optional[str] = None
    listing_ready: Optional[str] = "#category_content"
    detail_ready: Optional[str] = ".specs"


DEFAULT_SELECTORS = SiteSelectors()

# Per-category overrides of individual selectors, keyed by category name
CATEGORY_SELECTORS: Dict[str, Dict[str, Optional[str]]] = {
    "operating_systems": {"detail_ready": ".group--spec"},
}


def get_selectors(category: Optional[str] = None) -> SiteSelectors:
    """Return the selectors for a category, with its overrides applied."""
    overrides = CATEGORY_SELECTORS.get(category or "")
    if not overrides:
        return DEFAULT_SELECTORS
    return replace(DEFAULT_SELECTORS, **overrides)


# =============================================================================
# Category Schemas
# =============================================================================
# Each category maps a raw on-page spec label to
#   (canonical field name, serialization type)
# Serialization types: string, number, boolean, enum, dimension, custom.
# "custom" fields are converted by the serializer registered for
# (category, canonical field) in serializers.CUSTOM_SERIALIZERS.

SchemaConfig = Dict[str, Tuple[str, str]]

_COMMON: SchemaConfig = {
    "Manufacturer": ("manufacturer", "enum"),
    "Part #": ("part_number", "string"),
    "Color": ("color", "string"),
}

CATEGORY_SCHEMAS: Dict[str, SchemaConfig] = {
    "cpus": {
        **_COMMON,
        "Series": ("series", "string"),
        "Microarchitecture": ("microarchitecture", "enum"),
        "Core Family": ("core_family", "enum"),
        "Socket": ("socket", "enum"),
        "Core Count": ("core_count", "number"),
        "Thread Count": ("thread_count", "number"),
        "Performance Core Clock": ("core_clock_mhz", "custom"),
        "Performance Core Boost Clock": ("boost_clock_mhz", "custom"),
        "Efficiency Core Clock": ("efficiency_core_clock_mhz", "custom"),
        "Efficiency Core Boost Clock": ("efficiency_boost_clock_mhz", "custom"),
        "L2 Cache": ("l2_cache_mb", "custom"),
        "L3 Cache": ("l3_cache_mb", "custom"),
        "TDP": ("tdp_w", "number"),
        "Integrated Graphics": ("integrated_graphics", "string"),
        "Maximum Supported Memory": ("max_memory_gb", "number"),
        "ECC Support": ("ecc_support", "boolean"),
        "Includes Cooler": ("includes_cooler", "boolean"),
        "Packaging": ("packaging", "enum"),
        "Lithography": ("lithography_nm", "number"),
        "Simultaneous Multithreading": ("smt", "boolean"),
        "Includes CPU Cooler": ("includes_cooler", "boolean"),
    },
    "cpu_coolers": {
        **_COMMON,
        "Model": ("model", "string"),
        "Fan RPM": ("fan_rpm", "custom"),
        "Noise Level": ("noise_db", "custom"),
        "Height": ("height_mm", "dimension"),
        "CPU Socket": ("sockets", "custom"),
        "Water Cooled": ("water_cooled", "string"),
        "Fanless": ("fanless", "boolean"),
    },
    "memory": {
        **_COMMON,
        "Speed": ("speed_mts", "custom"),
        "Form Factor": ("form_factor", "enum"),
        "Modules": ("modules", "custom"),
        "Price / GB": ("price_per_gb", "number"),
        "First Word Latency": ("first_word_latency_ns", "number"),
        "CAS Latency": ("cas_latency", "number"),
        "Timing": ("timing", "string"),
        "Voltage": ("voltage", "number"),
        "ECC / Registered": ("ecc_registered", "string"),
        "Heat Spreader": ("heat_spreader", "boolean"),
    },
    "power_supplies": {
        **_COMMON,
        "Model": ("model", "string"),
        "Type": ("form_factor", "enum"),
        "Efficiency Rating": ("efficiency", "enum"),
        "Wattage": ("wattage_w", "number"),
        "Length": ("length_mm", "dimension"),
        "Modular": ("modular", "enum"),
        "Fanless": ("fanless", "boolean"),
    },
    "case_fans": {
        **_COMMON,
        "Model": ("model", "string"),
        "Size": ("size_mm", "dimension"),
        "Quantity": ("quantity", "number"),
        "RPM": ("fan_rpm", "custom"),
        "Airflow": ("airflow_cfm", "custom"),
        "Noise Level": ("noise_db", "custom"),
        "PWM": ("pwm", "boolean"),
        "LED": ("led", "string"),
        "Connector": ("connectors", "custom"),
    },
}
