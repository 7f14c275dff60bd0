"""Value serializers for spec fields.

Generic serializers handle one serialization type each. Custom serializers
are registered per ``(category, canonical_field)`` for values whose format
is specific to one kind of product, like clock speeds or socket lists.

Serializers are never called with ``None``; the schema mapper short-circuits
missing values before dispatching here.
"""

import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from partscrape.models import SerializationType
from partscrape.normalize import collapse_whitespace, normalize_dimension, strip_to_number

__all__ = [
    "as_text",
    "as_items",
    "serialize_string",
    "serialize_number",
    "serialize_boolean",
    "serialize_enum",
    "serialize_dimension",
    "serialize",
    "parse_clock_mhz",
    "parse_size_mb",
    "parse_range",
    "parse_list",
    "parse_memory_speed",
    "parse_modules",
    "CUSTOM_SERIALIZERS",
]

RawValue = Union[str, Sequence[str]]
Serializer = Callable[[RawValue], Any]

NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
CLOCK_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(GHz|MHz)", re.IGNORECASE)
SIZE_RE = re.compile(r"(?:(\d+)\s*x\s*)?(\d+(?:\.\d+)?)\s*(KB|MB|GB)", re.IGNORECASE)
MODULES_RE = re.compile(r"(\d+)\s*x\s*(\d+(?:\.\d+)?)\s*GB", re.IGNORECASE)
LIST_SPLIT_RE = re.compile(r"\s*[,\n]\s*")

_YES = {"yes", "true", "y"}
_NO = {"no", "false", "n", "none"}


def _tidy_number(value: float) -> Union[int, float]:
    return int(value) if float(value).is_integer() else round(value, 4)


def as_text(value: RawValue) -> str:
    """Join list items the way they read on the page."""
    if isinstance(value, str):
        return value
    return ", ".join(item for item in value if item)


def as_items(value: RawValue) -> List[str]:
    if isinstance(value, str):
        return [item for item in LIST_SPLIT_RE.split(value.strip()) if item]
    return [item.strip() for item in value if item and item.strip()]


# =============================================================================
# Generic serializers
# =============================================================================

def serialize_string(value: RawValue) -> Optional[str]:
    return collapse_whitespace(as_text(value)) or None


def serialize_number(value: RawValue) -> Optional[Union[int, float]]:
    return strip_to_number(as_text(value))


def serialize_boolean(value: RawValue) -> Optional[bool]:
    text = collapse_whitespace(as_text(value)).lower()
    if not text:
        return None
    head = text.split()[0].rstrip(",.")
    if head in _YES:
        return True
    if head in _NO:
        return False
    return None


def serialize_enum(value: RawValue) -> Optional[str]:
    return serialize_string(value)


def serialize_dimension(value: RawValue) -> Optional[Union[int, float, str]]:
    """Normalize a length or weight; numeric tokens become numbers."""
    token = normalize_dimension(as_text(value))
    if token is None:
        return None
    if NUMBER_RE.fullmatch(token):
        return strip_to_number(token)
    return token


GENERIC_SERIALIZERS: Dict[SerializationType, Serializer] = {
    SerializationType.STRING: serialize_string,
    SerializationType.NUMBER: serialize_number,
    SerializationType.BOOLEAN: serialize_boolean,
    SerializationType.ENUM: serialize_enum,
    SerializationType.DIMENSION: serialize_dimension,
}


def serialize(value: RawValue, serialization_type: SerializationType) -> Any:
    """Serialize with the generic serializer for ``serialization_type``."""
    try:
        serializer = GENERIC_SERIALIZERS[serialization_type]
    except KeyError:
        raise ValueError(f"No generic serializer for type '{serialization_type.value}'") from None
    return serializer(value)


# =============================================================================
# Custom serializers
# =============================================================================

def parse_clock_mhz(value: RawValue) -> Optional[Union[int, float]]:
    """"3.4 GHz" -> 3400, "800 MHz" -> 800."""
    match = CLOCK_RE.search(as_text(value))
    if not match:
        return strip_to_number(as_text(value))
    number = float(match.group(1))
    if match.group(2).lower() == "ghz":
        number *= 1000
    return _tidy_number(number)


def parse_size_mb(value: RawValue) -> Optional[Union[int, float]]:
    """Cache sizes in MB: "32 MB" -> 32, "6 x 1 MB" -> 6, "512 KB" -> 0.5."""
    total = 0.0
    found = False
    for item in as_items(value):
        match = SIZE_RE.search(item)
        if not match:
            continue
        found = True
        count = int(match.group(1)) if match.group(1) else 1
        size = float(match.group(2))
        unit = match.group(3).upper()
        if unit == "KB":
            size /= 1024
        elif unit == "GB":
            size *= 1024
        total += count * size
    return _tidy_number(total) if found else None


def parse_range(value: RawValue) -> Optional[List[Union[int, float]]]:
    """"600 - 2000 RPM" -> [600, 2000]; "1500 RPM" -> [1500]."""
    numbers = [_tidy_number(float(n)) for n in NUMBER_RE.findall(as_text(value).replace(",", ""))]
    # A hyphen between numbers is a range separator, not a sign
    numbers = [abs(n) for n in numbers]
    return numbers or None


def parse_list(value: RawValue) -> Optional[List[str]]:
    items = as_items(value)
    return items or None


def parse_memory_speed(value: RawValue) -> Optional[int]:
    """"DDR5-6000" -> 6000."""
    text = as_text(value)
    numbers = NUMBER_RE.findall(text.replace("-", " "))
    if not numbers:
        return None
    return int(float(numbers[-1]))


def parse_modules(value: RawValue) -> Optional[Dict[str, Union[int, float]]]:
    """"2 x 16GB" -> {"count": 2, "size_gb": 16}."""
    match = MODULES_RE.search(as_text(value))
    if not match:
        return None
    return {"count": int(match.group(1)), "size_gb": _tidy_number(float(match.group(2)))}


CUSTOM_SERIALIZERS: Dict[Tuple[str, str], Serializer] = {
    ("cpus", "core_clock_mhz"): parse_clock_mhz,
    ("cpus", "boost_clock_mhz"): parse_clock_mhz,
    ("cpus", "efficiency_core_clock_mhz"): parse_clock_mhz,
    ("cpus", "efficiency_boost_clock_mhz"): parse_clock_mhz,
    ("cpus", "l2_cache_mb"): parse_size_mb,
    ("cpus", "l3_cache_mb"): parse_size_mb,
    ("cpu_coolers", "fan_rpm"): parse_range,
    ("cpu_coolers", "noise_db"): parse_range,
    ("cpu_coolers", "sockets"): parse_list,
    ("memory", "speed_mts"): parse_memory_speed,
    ("memory", "modules"): parse_modules,
    ("case_fans", "fan_rpm"): parse_range,
    ("case_fans", "airflow_cfm"): parse_range,
    ("case_fans", "noise_db"): parse_range,
    ("case_fans", "connectors"): parse_list,
}
