from __future__ import annotations

import pytest

from webcrawl.crawler.domain import CrawlDomain, normalize_domain_name, registrable_domain
from webcrawl.crawler.errors import ConfigurationError, InvalidDomainError


def test_normalizes_case_whitespace_and_trailing_dot() -> None:
    assert CrawlDomain("  Example.COM. ").domain == "example.com"


def test_idna_encodes_unicode_names() -> None:
    assert normalize_domain_name("bücher.de") == "xn--bcher-kva.de"


@pytest.mark.parametrize(
    "value",
    ["", "-example.com", "example-.com", "exa mple.com", "example.123", "a" * 64 + ".com"],
)
def test_rejects_malformed_names(value: str) -> None:
    with pytest.raises(InvalidDomainError):
        normalize_domain_name(value)


@pytest.mark.parametrize("value", ["localhost", "com", "co.uk"])
def test_rejects_names_not_under_public_suffix(value: str) -> None:
    with pytest.raises(InvalidDomainError):
        CrawlDomain(value)


def test_invalid_domain_error_is_a_value_error() -> None:
    assert issubclass(InvalidDomainError, ConfigurationError)
    assert issubclass(InvalidDomainError, ValueError)


def test_equality_and_hash_use_normalized_labels() -> None:
    first = CrawlDomain("Example.com")
    second = CrawlDomain("example.com.")

    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second}) == 1
    assert CrawlDomain("example.com") != CrawlDomain("example.org")


def test_contains_itself_and_subdomains() -> None:
    domain = CrawlDomain("example.com")

    assert domain.contains("example.com")
    assert domain.contains("www.example.com")
    assert domain.contains("a.b.example.com")
    assert domain.contains(CrawlDomain("shop.example.com"))


def test_does_not_contain_lookalikes_or_parents() -> None:
    domain = CrawlDomain("shop.example.com")

    assert not domain.contains("example.com")
    assert not domain.contains("badexample.com")
    assert not domain.contains("shop.example.com.evil.org")
    assert not CrawlDomain("example.com").contains("")


def test_registrable_domain_uses_public_suffix_rules() -> None:
    assert registrable_domain("www.example.co.uk") == "example.co.uk"
    assert registrable_domain("a.b.example.com") == "example.com"
    assert registrable_domain("localhost") == ""


def test_contains_unicode_hosts() -> None:
    domain = CrawlDomain("bücher.de")

    assert domain.contains("shop.bücher.de")
    assert domain.contains("shop.xn--bcher-kva.de")
    assert not domain.contains("bücher.com")
