"""Allowed crawl domains and public-suffix aware domain helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import tldextract

from .errors import InvalidDomainError

# Bundled public suffix snapshot only: no network fetch, no on-disk cache.
_SUFFIX_EXTRACTOR = tldextract.TLDExtract(cache_dir=None, suffix_list_urls=())

_LABEL_RE = re.compile(r"^[a-z0-9_](?:[a-z0-9_-]{0,61}[a-z0-9_])?$")
_MAX_DOMAIN_LENGTH = 253


def normalize_domain_name(value: str) -> str:
    """Lowercase, IDNA-encode and syntax-check a domain name.

    Raises `InvalidDomainError` when the value is not a well-formed name.
    """

    raw = (value or "").strip().rstrip(".")
    if not raw:
        raise InvalidDomainError("Domain name cannot be empty")

    try:
        normalized = raw.encode("idna").decode("ascii").lower()
    except UnicodeError as exc:
        raise InvalidDomainError(f"Invalid domain name: {value!r}") from exc

    if len(normalized) > _MAX_DOMAIN_LENGTH:
        raise InvalidDomainError(f"Domain name is too long: {value!r}")

    labels = normalized.split(".")
    if not all(_LABEL_RE.match(label) for label in labels):
        raise InvalidDomainError(f"Invalid domain name: {value!r}")
    if labels[-1][0].isdigit():
        raise InvalidDomainError(f"Invalid top-level label in domain name: {value!r}")

    return normalized


def registrable_domain(host: str) -> str:
    """Return the registrable part of host (e.g. `example.co.uk`), or ''."""

    extracted = _SUFFIX_EXTRACTOR(host)
    if not extracted.domain or not extracted.suffix:
        return ""
    return f"{extracted.domain}.{extracted.suffix}"


def is_under_public_suffix(domain: str) -> bool:
    """True if domain is a registrable domain or one of its subdomains."""

    return bool(registrable_domain(domain))


@dataclass(frozen=True, slots=True)
class CrawlDomain:
    """An internet domain in which crawling is allowed.

    Instances built from the same textual domain compare equal, and a domain
    contains itself and all of its subdomains.
    """

    domain: str = field(compare=False)
    parts: tuple[str, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        normalized = normalize_domain_name(self.domain)
        if not is_under_public_suffix(normalized):
            raise InvalidDomainError(
                f"The domain ({self.domain!r}) is not under public suffix."
            )

        object.__setattr__(self, "domain", normalized)
        object.__setattr__(self, "parts", tuple(normalized.split(".")))

    def contains(self, other: "CrawlDomain | str") -> bool:
        """Indicate if `other` equals this domain or is a subdomain of it."""

        if isinstance(other, CrawlDomain):
            other_parts = other.parts
        else:
            host = (other or "").strip().lower().rstrip(".")
            if not host:
                return False
            if not host.isascii():
                try:
                    host = normalize_domain_name(host)
                except InvalidDomainError:
                    return False
            other_parts = tuple(host.split("."))

        if len(self.parts) > len(other_parts):
            return False
        return other_parts[len(other_parts) - len(self.parts):] == self.parts

    def __str__(self) -> str:
        return self.domain


__all__ = [
    "CrawlDomain",
    "is_under_public_suffix",
    "normalize_domain_name",
    "registrable_domain",
]
