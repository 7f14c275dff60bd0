"""Per-category schema mapping from raw spec labels to typed canonical fields.

A :class:`SchemaRegistry` is built once before the crawl and never changes
afterwards. ``map()`` resolves a ``(category, label)`` pair to its
:class:`SchemaEntry` and applies the matching serializer.

Policy for labels with no entry:

- the category has no schema at all: the raw label is kept verbatim
- strict mode: :class:`SchemaViolation` is raised
- lenient mode: the raw label is kept verbatim
"""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from partscrape.config import CATEGORY_SCHEMAS, SCHEMA_MODE, SCHEMA_MODES
from partscrape.logging_config import get_logger
from partscrape.models import SchemaEntry, SerializationType
from partscrape.serializers import CUSTOM_SERIALIZERS, RawValue, Serializer, as_text, serialize

__all__ = [
    "SchemaViolation",
    "SchemaRegistry",
    "load_schema_file",
    "parse_schema_config",
]

logger = get_logger("schema")

SchemaConfig = Mapping[str, Mapping[str, Union[Tuple[str, str], list]]]


class SchemaViolation(Exception):
    """A spec label has no configured canonical field for its category."""

    def __init__(self, category: str, label: str):
        super().__init__(f"No mapping found for spec '{label}' in category '{category}'")
        self.category = category
        self.label = label


def parse_schema_config(config: SchemaConfig) -> Dict[str, Dict[str, SchemaEntry]]:
    """Convert ``{category: {label: (field, type)}}`` into schema entries.

    Raises:
        ValueError: If an entry is malformed or names an unknown type
    """
    schemas: Dict[str, Dict[str, SchemaEntry]] = {}
    for category, labels in config.items():
        entries: Dict[str, SchemaEntry] = {}
        for label, spec in labels.items():
            try:
                canonical_field, type_name = spec
                serialization_type = SerializationType(str(type_name).lower())
            except (TypeError, ValueError) as e:
                raise ValueError(
                    f"Invalid schema entry for '{label}' in category '{category}': {spec!r}"
                ) from e
            entries[label] = SchemaEntry(canonical_field, serialization_type)
        schemas[category] = entries
    return schemas


def load_schema_file(path: Union[str, Path]) -> Dict[str, Dict[str, SchemaEntry]]:
    """Load a JSON schema file shaped like ``{"cpus": {"Socket": ["socket", "enum"]}}``."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Schema file {path} must contain a JSON object")
    return parse_schema_config(data)


class SchemaRegistry:
    """Read-only lookup of schema entries and custom converters."""

    def __init__(
        self,
        schemas: Mapping[str, Mapping[str, SchemaEntry]],
        mode: str = SCHEMA_MODE,
        converters: Optional[Mapping[Tuple[str, str], Serializer]] = None,
    ):
        if mode not in SCHEMA_MODES:
            raise ValueError(f"Unknown schema mode '{mode}', expected one of {SCHEMA_MODES}")
        self.mode = mode
        self._converters = MappingProxyType(dict(CUSTOM_SERIALIZERS if converters is None else converters))
        self._schemas = MappingProxyType(
            {category: MappingProxyType(dict(entries)) for category, entries in schemas.items()}
        )
        self._lower = {
            category: {label.lower(): entry for label, entry in entries.items()}
            for category, entries in self._schemas.items()
        }
        self._check_converters()

    @classmethod
    def from_config(
        cls,
        config: SchemaConfig = CATEGORY_SCHEMAS,
        mode: str = SCHEMA_MODE,
        schema_path: Optional[Union[str, Path]] = None,
        **kwargs,
    ) -> "SchemaRegistry":
        """Build from the built-in registry, with a schema file merged on top."""
        schemas = parse_schema_config(config)
        if schema_path:
            for category, entries in load_schema_file(schema_path).items():
                schemas.setdefault(category, {}).update(entries)
            logger.info(f"Loaded schema overrides from {schema_path}")
        return cls(schemas, mode=mode, **kwargs)

    def _check_converters(self) -> None:
        for category, entries in self._schemas.items():
            for label, entry in entries.items():
                if entry.serialization_type is not SerializationType.CUSTOM:
                    continue
                if (category, entry.canonical_field) not in self._converters:
                    raise ValueError(
                        f"Schema entry '{label}' in category '{category}' is custom "
                        f"but no converter is registered for '{entry.canonical_field}'"
                    )

    @property
    def strict(self) -> bool:
        return self.mode == "strict"

    def has_schema(self, category: str) -> bool:
        return category in self._schemas

    def entry(self, category: str, label: str) -> Optional[SchemaEntry]:
        """Look up a label, exact match first, then case-insensitively."""
        entries = self._schemas.get(category)
        if entries is None:
            return None
        found = entries.get(label)
        if found is None:
            found = self._lower[category].get(label.lower())
        return found

    def map(self, category: str, label: str, raw_value: Optional[RawValue]) -> Tuple[str, Any]:
        """Resolve a spec label to ``(canonical_field, typed_value)``.

        Raises:
            SchemaViolation: In strict mode, when a schema'd category has no
                entry for ``label``
        """
        entry = self.entry(category, label)
        if entry is None:
            if self.strict and self.has_schema(category):
                raise SchemaViolation(category, label)
            return label, (None if raw_value is None else as_text(raw_value))

        if raw_value is None:
            return entry.canonical_field, None

        if entry.serialization_type is SerializationType.CUSTOM:
            converter = self._converters[(category, entry.canonical_field)]
            try:
                return entry.canonical_field, converter(raw_value)
            except (TypeError, ValueError) as e:
                logger.debug(f"Converter for {category}.{entry.canonical_field} failed on {raw_value!r}: {e}")
                return entry.canonical_field, None

        return entry.canonical_field, serialize(raw_value, entry.serialization_type)
