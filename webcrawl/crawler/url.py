"""URL canonicalization, fingerprinting and link extraction helpers."""

from __future__ import annotations

from hashlib import sha256
from typing import Sequence
from urllib.parse import (
    SplitResult,
    parse_qsl,
    quote,
    urlencode,
    urljoin,
    urlsplit,
    urlunsplit,
)

from bs4 import BeautifulSoup


DEFAULT_ALLOWED_SCHEMES = ("http", "https")
SKIP_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "data:")


def host_from_url(url: str) -> str:
    """Extract the lowercase host from URL (empty string when missing)."""

    parsed = urlsplit(url)
    return (parsed.hostname or "").strip().lower().rstrip(".")


def is_http_url(url: str, allowed_schemes: Sequence[str] = DEFAULT_ALLOWED_SCHEMES) -> bool:
    """Return True if URL is absolute and has an allowed HTTP-like scheme."""

    parsed = urlsplit(url)
    if not parsed.scheme or not parsed.netloc:
        return False
    return parsed.scheme.lower() in {scheme.lower() for scheme in allowed_schemes}


def with_default_path(url: str) -> str:
    """Return URL with an empty path replaced by `/`."""

    parsed = urlsplit(url)
    if parsed.path:
        return url
    return urlunsplit(parsed._replace(path="/"))


def _raw_port(parsed_url: SplitResult) -> str:
    hostport = parsed_url.netloc.rpartition("@")[2]
    if hostport.startswith("["):
        hostport = hostport.partition("]")[2]
    return hostport.partition(":")[2]


def _lowercase_netloc(parsed_url: SplitResult) -> str:
    host = (parsed_url.hostname or "").lower()
    if not host:
        return parsed_url.netloc.lower()

    if ":" in host:
        # IPv6 literal
        host = f"[{host}]"

    userinfo = ""
    if parsed_url.username:
        userinfo = quote(parsed_url.username, safe="")
        if parsed_url.password:
            userinfo += ":" + quote(parsed_url.password, safe="")
        userinfo += "@"

    port: int | str | None
    try:
        port = parsed_url.port
    except ValueError:
        # Unparsable ports stay part of the key.
        port = _raw_port(parsed_url)

    if port is not None and port != "":
        return f"{userinfo}{host}:{port}"
    return f"{userinfo}{host}"


def canonicalize_url(url: str) -> str:
    """Build the canonical form of URL used for deduplication.

    Scheme and host are lowercased, query params are sorted by key and then
    by value, and the fragment is dropped. The path is kept as-is.
    """

    parsed = urlsplit(url.strip())

    pairs = parse_qsl(parsed.query, keep_blank_values=True)
    pairs.sort(key=lambda item: (item[0], item[1]))
    query = urlencode(pairs)

    return urlunsplit(
        (
            parsed.scheme.lower(),
            _lowercase_netloc(parsed),
            parsed.path,
            query,
            "",
        )
    )


def create_url_fingerprint(url: str) -> str:
    """Return the SHA-256 hex digest of the canonical form of URL."""

    return sha256(canonicalize_url(url).encode("utf-8")).hexdigest()


def resolve_url(
    base_url: str,
    href: str | None,
    *,
    allowed_schemes: Sequence[str] = DEFAULT_ALLOWED_SCHEMES,
) -> str | None:
    """Resolve possibly relative link against base URL and validate scheme."""

    if href is None:
        return None

    candidate = href.strip()
    if not candidate or candidate.startswith("#"):
        return None

    lowered = candidate.lower()
    if any(lowered.startswith(prefix) for prefix in SKIP_HREF_PREFIXES):
        return None

    try:
        absolute = urljoin(base_url, candidate)
        if is_http_url(absolute, allowed_schemes=allowed_schemes):
            return absolute
    except ValueError:
        # e.g. an unbalanced IPv6 bracket in the host
        return None
    return None


def extract_links_from_html(
    html: str | bytes,
    *,
    base_url: str,
    include_nofollow: bool = False,
) -> list[str]:
    """Extract resolved links from HTML anchor/area tags.

    Returns links in document order with duplicates removed.
    """

    soup = BeautifulSoup(html, "lxml")

    out: list[str] = []
    seen: set[str] = set()

    for element in soup.find_all(["a", "area"]):
        href = element.get("href")
        if not href:
            continue

        rel_values = {value.lower() for value in (element.get("rel") or [])}
        if not include_nofollow and "nofollow" in rel_values:
            continue

        resolved = resolve_url(base_url, href)
        if not resolved or resolved in seen:
            continue

        seen.add(resolved)
        out.append(resolved)

    return out


__all__ = [
    "DEFAULT_ALLOWED_SCHEMES",
    "SKIP_HREF_PREFIXES",
    "canonicalize_url",
    "create_url_fingerprint",
    "extract_links_from_html",
    "host_from_url",
    "is_http_url",
    "resolve_url",
    "with_default_path",
]
