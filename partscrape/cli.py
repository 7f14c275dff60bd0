"""Command-line interface for the crawler."""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

__all__ = ["main", "parse_args", "build_surface", "run"]

from partscrape.config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_PAGES,
    ENTRY_URL,
    OUTPUT_DIR,
    OUTPUT_FORMAT,
    PAGE_URL_STYLE,
    PAGE_URL_STYLES,
    SCHEMA_MODE,
    SCHEMA_MODES,
    get_selectors,
)
from partscrape.csv_utils import OUTPUT_FORMATS, count_records
from partscrape.discover_categories import discover_categories, select_categories
from partscrape.discover_fields import collect_labels, format_suggestions, suggest_schema
from partscrape.logging_config import get_logger, setup_logging
from partscrape.schema import SchemaRegistry
from partscrape.scraper import CrawlOptions
from partscrape.shutdown import get_shutdown_handler
from partscrape.surface import HttpSurface, NavigationError, Surface
from partscrape.workflows import CrawlSummary, crawl_catalog

logger = get_logger("cli")


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="partscrape",
        description="Crawl a paginated product catalog into one normalized file per category",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Crawl every category with a real browser, 5 detail pages at a time
  partscrape

  # Only CPUs and memory, first 3 listing pages each, as JSON
  partscrape --categories cpus memory --max-pages 3 --format json

  # Keep unmapped spec labels as raw columns instead of stopping the category
  partscrape --categories cpu_coolers --schema-mode lenient

  # See which spec labels a category uses before writing its schema
  partscrape --discover-labels case_fans --sample-size 20

  # Count rows across previous outputs
  partscrape --count data/
        """,
    )

    parser.add_argument(
        "--categories",
        nargs="+",
        metavar="NAME",
        help="Categories to crawl by normalized name, e.g. cpus cpu_coolers (default: all discovered)",
    )
    parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=DEFAULT_CONCURRENCY,
        help=f"Detail pages fetched concurrently (default: {DEFAULT_CONCURRENCY})",
    )
    parser.add_argument(
        "--max-pages",
        type=_positive_int,
        default=DEFAULT_MAX_PAGES,
        help="Only crawl the first N listing pages of each category (default: all)",
    )
    parser.add_argument(
        "--page-style",
        choices=PAGE_URL_STYLES,
        default=PAGE_URL_STYLE,
        help=f"How listing pages are addressed (default: {PAGE_URL_STYLE})",
    )
    parser.add_argument(
        "--entry-url",
        default=ENTRY_URL,
        help=f"Page linking to every category (default: {ENTRY_URL})",
    )

    # Schema
    parser.add_argument(
        "--schema",
        metavar="PATH",
        help="JSON schema file merged over the built-in category schemas",
    )
    parser.add_argument(
        "--schema-mode",
        choices=SCHEMA_MODES,
        default=SCHEMA_MODE,
        help=f"strict: stop a category on an unmapped label; lenient: keep the raw label (default: {SCHEMA_MODE})",
    )

    # Output
    parser.add_argument(
        "--output-dir",
        default=OUTPUT_DIR,
        help=f"Directory for per-category files (default: {OUTPUT_DIR})",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default=OUTPUT_FORMAT,
        help=f"Output file format (default: {OUTPUT_FORMAT})",
    )

    # Surface
    parser.add_argument(
        "--surface",
        choices=["browser", "http"],
        default="browser",
        help="browser: headless Chromium via Playwright; http: plain requests (no scripts run)",
    )
    parser.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window (browser surface only)",
    )
    parser.add_argument(
        "--block-resources",
        action="store_true",
        help="Skip images, fonts and stylesheets (browser surface only)",
    )

    # Info commands
    parser.add_argument(
        "--list-categories",
        action="store_true",
        help="List discovered categories and exit",
    )
    parser.add_argument(
        "--discover-labels",
        metavar="CATEGORY",
        help="Sample a category's detail pages and suggest schema entries for its spec labels",
    )
    parser.add_argument(
        "--sample-size",
        type=_positive_int,
        default=15,
        help="Products to sample for --discover-labels (default: 15)",
    )
    parser.add_argument(
        "--count",
        metavar="DIR",
        help="Count rows in the CSV/JSON files of a directory and exit",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Debug output on the console")

    return parser.parse_args(argv)


def build_surface(args: argparse.Namespace) -> Surface:
    if args.surface == "http":
        return HttpSurface()
    from partscrape.browser import PlaywrightSurface

    return PlaywrightSurface(headless=not args.headful, block_resources=args.block_resources)


def print_summary(summary: CrawlSummary) -> None:
    print(f"\n{'='*60}")
    print("CRAWL COMPLETE")
    print(f"{'='*60}")
    for outcome in summary.outcomes:
        line = f"  {outcome.name}: {outcome.status}, {outcome.products} products"
        if outcome.failed_products:
            line += f", {len(outcome.failed_products)} failed products"
        if outcome.failed_pages:
            line += f", {len(outcome.failed_pages)} failed pages"
        if outcome.output_path:
            line += f" -> {outcome.output_path}"
        print(line)
        if outcome.error:
            print(f"      {outcome.error}")
        for url in outcome.failed_pages:
            print(f"      page failed: {url}")
        for url in outcome.failed_products:
            print(f"      product failed: {url}")
    print(f"\nTotal products: {summary.total_products}")


async def run(args: argparse.Namespace) -> int:
    schema = SchemaRegistry.from_config(mode=args.schema_mode, schema_path=args.schema)
    options = CrawlOptions(
        concurrency=args.concurrency,
        max_pages=args.max_pages,
        page_style=args.page_style,
    )

    async with build_surface(args) as surface:
        if args.list_categories:
            categories = await discover_categories(surface, args.entry_url, selectors=get_selectors())
            print("Available categories:")
            for category in categories:
                marker = "" if schema.has_schema(category.name) else "  (no schema)"
                print(f"  {category.name}: {category.url}{marker}")
            return 0

        if args.discover_labels:
            categories = select_categories(
                await discover_categories(surface, args.entry_url, selectors=get_selectors()),
                [args.discover_labels],
            )
            if not categories:
                print(f"Category '{args.discover_labels}' not found (see --list-categories)")
                return 1
            results = await collect_labels(surface, categories[0], args.sample_size, options)
            suggestions = suggest_schema(categories[0].name, results["label_counts"], schema)
            print(format_suggestions(results, suggestions))
            if suggestions:
                print("\nSuggested schema entries (merge into a --schema file):")
                print(json.dumps({categories[0].name: suggestions}, indent=2, ensure_ascii=False))
            return 0

        handler = get_shutdown_handler().install(asyncio.get_running_loop())
        try:
            summary = await crawl_catalog(
                surface,
                schema,
                options,
                category_names=args.categories,
                entry_url=args.entry_url,
                output_dir=args.output_dir,
                output_format=args.output_format,
            )
        finally:
            handler.uninstall()
    print_summary(summary)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.count:
        counts = count_records(args.count)
        for name, rows in counts.items():
            print(f"  {name}: {rows}")
        print(sum(counts.values()))
        return 0

    try:
        return asyncio.run(run(args))
    except NavigationError as e:
        logger.error(f"Could not load the catalog entry page: {e}")
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
