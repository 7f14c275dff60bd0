"""URL resolution and validation for links read off catalog pages."""

import re
from typing import Optional, Set
from urllib.parse import urljoin, urlparse

from partscrape.config import ALLOWED_DOMAINS, BASE_URL

__all__ = [
    "URLValidationError",
    "sanitize_url",
    "validate_url",
    "resolve_url",
]


class URLValidationError(Exception):
    """Raised when URL validation fails."""


DANGEROUS_SCHEMES = {"javascript", "data", "vbscript", "file"}

SUSPICIOUS_PATTERNS = [
    r"\.\./",
    r"%2e%2e",
    r"<script",
]


def sanitize_url(url: Optional[str]) -> str:
    """Strip whitespace, control characters and null bytes."""
    if not url:
        return ""
    url = url.strip()
    url = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", url)
    return url.replace("%00", "")


def validate_url(url: str, allowed_domains: Optional[Set[str]] = None) -> str:
    """Validate an absolute URL.

    Args:
        url: URL to validate
        allowed_domains: Domains to accept (default: ALLOWED_DOMAINS).
            An empty set accepts any domain.

    Returns:
        The sanitized URL

    Raises:
        URLValidationError: If the URL is empty, malformed, uses a non-HTTP
            scheme, points at an untrusted domain, or looks like an injection
    """
    url = sanitize_url(url)
    if not url:
        raise URLValidationError("URL is empty")

    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme in DANGEROUS_SCHEMES:
        raise URLValidationError(f"Dangerous URL scheme: {scheme}")
    if scheme not in ("http", "https"):
        raise URLValidationError(f"Invalid URL scheme: {scheme or '(none)'}")

    host = (parsed.hostname or "").lower()
    if not host:
        raise URLValidationError("URL has no domain")

    domains = ALLOWED_DOMAINS if allowed_domains is None else allowed_domains
    if domains and host not in domains:
        raise URLValidationError(f"URL domain '{host}' not in allowed domains")

    lowered = url.lower()
    for pattern in SUSPICIOUS_PATTERNS:
        if re.search(pattern, lowered):
            raise URLValidationError(f"URL contains suspicious pattern: {pattern}")

    return url


def resolve_url(
    href: Optional[str],
    base_url: str = BASE_URL,
    allowed_domains: Optional[Set[str]] = None,
) -> str:
    """Resolve a link target read from a page into a validated absolute URL.

    Raises:
        URLValidationError: If there is no target or it fails validation
    """
    href = sanitize_url(href)
    if not href or href.startswith("#"):
        raise URLValidationError(f"No resolvable link target: {href!r}")
    return validate_url(urljoin(base_url, href), allowed_domains=allowed_domains)
