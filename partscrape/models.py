"""Data models for categories, listing references and product records."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

__all__ = [
    "Category",
    "ProductRef",
    "SpecGroup",
    "SerializationType",
    "SchemaEntry",
    "ProductRecord",
    "CategoryResult",
    "BASE_FIELDS",
]

RawValue = Optional[Union[str, Sequence[str]]]

# Columns every record carries, in output order
BASE_FIELDS = ("name", "pack_count", "user_rating_count", "user_rating_avg", "price")


@dataclass(frozen=True)
class Category:
    """A top-level catalog grouping discovered on the entry page."""

    name: str
    source_path: str
    url: str


@dataclass(frozen=True)
class ProductRef:
    """A product row on a listing page."""

    display_name: str
    normalized_name: str
    detail_url: str


@dataclass(frozen=True)
class SpecGroup:
    """One labeled block on a detail page.

    ``raw_value`` is a paragraph string, a tuple of list-item strings, or
    None when the label is present without a value.
    """

    label: str
    raw_value: RawValue = None


class SerializationType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    DIMENSION = "dimension"
    CUSTOM = "custom"


@dataclass(frozen=True)
class SchemaEntry:
    canonical_field: str
    serialization_type: SerializationType


@dataclass(frozen=True)
class ProductRecord:
    """A normalized product. Immutable once built.

    ``fields`` maps canonical field names to typed values in the order the
    spec groups appeared on the page.
    """

    name: str
    pack_count: Optional[int] = None
    user_rating_count: Optional[int] = None
    user_rating_avg: Optional[float] = None
    price: Optional[str] = None
    fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def to_dict(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "name": self.name,
            "pack_count": self.pack_count,
            "user_rating_count": self.user_rating_count,
            "user_rating_avg": self.user_rating_avg,
            "price": self.price,
        }
        for key, value in self.fields.items():
            # A spec field never shadows a base column
            if key not in row:
                row[key] = value
        return row


@dataclass
class CategoryResult:
    """Records collected for one category, owned by the crawl driver.

    Append-only while the category is crawled; flushed to the sink once
    pagination is exhausted.
    """

    category: Category
    records: List[ProductRecord] = field(default_factory=list)
    failed_products: List[str] = field(default_factory=list)
    failed_pages: List[str] = field(default_factory=list)
    pages_crawled: int = 0
    total_pages: Optional[int] = None
    interrupted: bool = False

    def extend(self, records: Sequence[ProductRecord]) -> None:
        self.records.extend(records)

    def fieldnames(self) -> List[str]:
        """Base columns followed by every spec field seen, in first-seen order."""
        names: List[str] = list(BASE_FIELDS)
        seen = set(names)
        for record in self.records:
            for key in record.fields:
                if key not in seen:
                    seen.add(key)
                    names.append(key)
        return names

    def __len__(self) -> int:
        return len(self.records)
