"""Category discovery from the catalog's entry page.

The entry page links to every product category under the catalog path
prefix (``/products/cpu/``, ``/products/memory/`` ...). One fetch is enough:
there is no pagination at this level.
"""

from typing import List, Optional, Sequence

from partscrape.config import (
    BASE_URL,
    CATALOG_PATH_PREFIX,
    DEFAULT_SELECTORS,
    ENTRY_URL,
    READY_TIMEOUT,
    SiteSelectors,
)
from partscrape.html_utils import extract_anchors
from partscrape.logging_config import get_logger
from partscrape.models import Category
from partscrape.normalize import normalize_category_name
from partscrape.surface import Surface
from partscrape.url_validation import URLValidationError, resolve_url

__all__ = [
    "MIN_CATEGORY_TEXT_LENGTH",
    "categories_from_anchors",
    "discover_categories",
    "select_categories",
]

logger = get_logger("discover_categories")

# Anchor texts this short are icons, arrows or counters, not category names
MIN_CATEGORY_TEXT_LENGTH = 3


def categories_from_anchors(
    anchors: Sequence[tuple],
    base_url: str = BASE_URL,
    path_prefix: str = CATALOG_PATH_PREFIX,
) -> List[Category]:
    """Filter and normalize ``(text, href)`` anchors into categories.

    Drops anchors with trivial text or pointing at the bare catalog root,
    then de-duplicates by normalized name (first occurrence wins).
    """
    seen = set()
    categories: List[Category] = []
    for text, href in anchors:
        text = (text or "").strip()
        href = (href or "").strip()
        if len(text) < MIN_CATEGORY_TEXT_LENGTH:
            continue
        if not href.startswith(path_prefix) or href.rstrip("/") == path_prefix.rstrip("/"):
            continue

        name = normalize_category_name(text)
        if not name or name in seen:
            continue

        try:
            url = resolve_url(href, base_url)
        except URLValidationError as e:
            logger.warning(f"Skipping category link {href!r}: {e}")
            continue

        seen.add(name)
        categories.append(Category(name=name, source_path=href, url=url))
    return categories


async def discover_categories(
    surface: Surface,
    entry_url: str = ENTRY_URL,
    selectors: SiteSelectors = DEFAULT_SELECTORS,
    base_url: str = BASE_URL,
    ready_timeout: float = READY_TIMEOUT,
) -> List[Category]:
    """Load the entry page and return the catalog categories it links to.

    Raises:
        NavigationError: If the entry page cannot be loaded
    """
    session = await surface.open_session()
    try:
        await session.navigate(entry_url)
        if selectors.entry_ready:
            await session.wait_for(selectors.entry_ready, timeout=ready_timeout)
        anchors = await extract_anchors(session, selectors.category_links)
    finally:
        await session.close()

    categories = categories_from_anchors(anchors, base_url=base_url)
    logger.info(f"Discovered {len(categories)} categories on {entry_url}")
    return categories


def select_categories(categories: Sequence[Category], names: Optional[Sequence[str]]) -> List[Category]:
    """Keep the categories named in ``names``; an empty selection keeps all.

    Names are compared after normalization, so "CPU Coolers" selects
    ``cpu_coolers``. Unknown names are logged and ignored.
    """
    if not names:
        return list(categories)
    wanted = [normalize_category_name(n) for n in names]
    by_name = {c.name: c for c in categories}
    for name in wanted:
        if name not in by_name:
            logger.warning(f"Category '{name}' was not discovered. Available: {sorted(by_name)}")
    return [c for c in categories if c.name in set(wanted)]
