"""DOM extraction for listing and detail pages.

Each function reads from an already-navigated :class:`Session`. A missing
element is never an error here: it becomes ``None`` (or an empty list) and
the caller decides what that means.
"""

from typing import List, Optional, Tuple

from partscrape.config import BASE_URL, DEFAULT_SELECTORS, SiteSelectors
from partscrape.logging_config import get_logger
from partscrape.models import ProductRef, SpecGroup
from partscrape.normalize import normalize_product_name
from partscrape.surface import Session
from partscrape.url_validation import URLValidationError, resolve_url

__all__ = [
    "extract_anchors",
    "extract_page_numbers",
    "extract_product_refs",
    "extract_spec_groups",
    "extract_price_text",
    "extract_rating_text",
]

logger = get_logger("html_utils")


async def extract_anchors(session: Session, selector: str) -> List[Tuple[str, str]]:
    """Return ``(text, href)`` for every anchor matching ``selector``."""
    anchors: List[Tuple[str, str]] = []
    for handle in await session.query_selector_all(selector):
        text = await session.read_text(handle) or ""
        href = await session.read_attribute(handle, "href") or ""
        anchors.append((text, href))
    return anchors


async def extract_page_numbers(session: Session, selectors: SiteSelectors = DEFAULT_SELECTORS) -> List[int]:
    """Integers shown in the pagination control; non-numeric links are skipped."""
    numbers: List[int] = []
    for handle in await session.query_selector_all(selectors.pagination_links):
        text = (await session.read_text(handle) or "").strip()
        if text.isdecimal():
            numbers.append(int(text))
    return numbers


async def extract_product_refs(
    session: Session,
    selectors: SiteSelectors = DEFAULT_SELECTORS,
    base_url: str = BASE_URL,
) -> List[ProductRef]:
    """Read every product row's name anchor on a listing page.

    Rows without a resolvable anchor are skipped, so every returned
    reference has a non-empty detail URL.
    """
    refs: List[ProductRef] = []
    rows = await session.query_selector_all(selectors.product_rows)
    for index, row in enumerate(rows, start=1):
        anchor = await session.query_selector(selectors.row_name_link, within=row)
        if anchor is None:
            logger.debug(f"Row {index} on {session.url} has no name link, skipping")
            continue

        display_name = await session.read_text(anchor) or ""
        try:
            detail_url = resolve_url(await session.read_attribute(anchor, "href"), base_url)
        except URLValidationError as e:
            logger.warning(f"Row {index} on {session.url}: {e}")
            continue

        normalized = normalize_product_name(display_name)
        if not normalized:
            logger.debug(f"Row {index} on {session.url} has an empty name, skipping")
            continue
        refs.append(ProductRef(display_name=display_name, normalized_name=normalized, detail_url=detail_url))
    return refs


async def extract_spec_groups(session: Session, selectors: SiteSelectors = DEFAULT_SELECTORS) -> List[SpecGroup]:
    """Read labeled spec blocks from a detail page.

    A block's paragraph wins over its list items; a block with neither is
    kept with a ``None`` value. Blocks without a title are skipped.
    """
    groups: List[SpecGroup] = []
    for block in await session.query_selector_all(selectors.spec_groups):
        label = await session.read_text(await session.query_selector(selectors.spec_title, within=block))
        if not label:
            continue

        paragraph = await session.read_text(await session.query_selector(selectors.spec_paragraph, within=block))
        if paragraph:
            groups.append(SpecGroup(label, paragraph))
            continue

        items = []
        for item in await session.query_selector_all(selectors.spec_items, within=block):
            text = await session.read_text(item)
            if text:
                items.append(text)
        groups.append(SpecGroup(label, tuple(items) if items else None))
    return groups


async def extract_price_text(session: Session, selectors: SiteSelectors = DEFAULT_SELECTORS) -> Optional[str]:
    return await session.read_text(await session.query_selector(selectors.price))


async def extract_rating_text(session: Session, selectors: SiteSelectors = DEFAULT_SELECTORS) -> Optional[str]:
    return await session.read_text(await session.query_selector(selectors.rating))
