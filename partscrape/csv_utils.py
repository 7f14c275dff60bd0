"""CSV and JSON output for crawled categories."""

import csv
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Union

from partscrape.logging_config import get_logger, log_crawl_event
from partscrape.models import CategoryResult, ProductRecord

__all__ = [
    "OUTPUT_FORMATS",
    "record_to_row",
    "save_category_csv",
    "save_category_json",
    "save_category",
    "count_records",
]

logger = get_logger("csv_utils")

OUTPUT_FORMATS = ("csv", "json")

PathLike = Union[str, Path]


def _csv_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def record_to_row(record: ProductRecord, fieldnames: List[str], for_csv: bool = True) -> Dict[str, Any]:
    """Project a record onto ``fieldnames``; missing fields become empty/null."""
    data = record.to_dict()
    row = {name: data.get(name) for name in fieldnames}
    if for_csv:
        row = {name: _csv_cell(value) for name, value in row.items()}
    return row


def _output_path(output_dir: PathLike, category: str, ext: str) -> Path:
    path = Path(output_dir) / f"{category}.{ext}"
    os.makedirs(path.parent, exist_ok=True)
    return path


def save_category_csv(result: CategoryResult, output_dir: PathLike) -> Path:
    """Write one row per record; columns are the category's field union."""
    fieldnames = result.fieldnames()
    path = _output_path(output_dir, result.category.name, "csv")
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for record in result.records:
            writer.writerow(record_to_row(record, fieldnames))
    return path


def save_category_json(result: CategoryResult, output_dir: PathLike) -> Path:
    """Write a JSON array of records, every object carrying the full field union."""
    fieldnames = result.fieldnames()
    path = _output_path(output_dir, result.category.name, "json")
    rows = [record_to_row(record, fieldnames, for_csv=False) for record in result.records]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(rows, f, indent=2, ensure_ascii=False)
    return path


def save_category(result: CategoryResult, output_dir: PathLike, fmt: str = "csv") -> Path:
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format '{fmt}', expected one of {OUTPUT_FORMATS}")
    if fmt == "json":
        path = save_category_json(result, output_dir)
    else:
        path = save_category_csv(result, output_dir)

    logger.info(f"Saved {len(result.records)} rows to {path}")
    log_crawl_event("category_saved", {
        "category": result.category.name,
        "rows": len(result.records),
        "path": str(path),
    })
    return path


def count_records(directory: PathLike) -> Dict[str, int]:
    """Count rows per output file (``*.json`` and ``*.csv``) in a directory.

    Files that are not a JSON array are skipped with a warning.
    """
    counts: Dict[str, int] = {}
    for path in sorted(Path(directory).iterdir()):
        if path.suffix == ".json":
            with open(path, "r", encoding="utf-8") as f:
                try:
                    data = json.load(f)
                except json.JSONDecodeError as e:
                    logger.warning(f"Skipping {path.name}: {e}")
                    continue
            if not isinstance(data, list):
                logger.warning(f"Skipping {path.name}: not a JSON array")
                continue
            counts[path.name] = len(data)
        elif path.suffix == ".csv":
            with open(path, "r", newline="", encoding="utf-8") as f:
                counts[path.name] = sum(1 for _ in csv.DictReader(f))
    return counts
