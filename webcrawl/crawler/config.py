"""Typed crawler configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml  # type: ignore

from .constants import (
    DEFAULT_DUPLICATE_REQUEST_FILTER_ENABLED,
    DEFAULT_FIXED_CRAWL_DELAY_MS,
    DEFAULT_MAX_CRAWL_DELAY_MS,
    DEFAULT_MAX_CRAWL_DEPTH,
    DEFAULT_MIN_CRAWL_DELAY_MS,
    DEFAULT_OFFSITE_REQUEST_FILTER_ENABLED,
    DEFAULT_PAGE_LOAD_TIMEOUT_MS,
    DEFAULT_PRIORITY,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    JSON_INDENT,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .domain import CrawlDomain
from .errors import ConfigurationError, InvalidRequestError
from .types import CrawlDelayStrategy, CrawlRequest, CrawlStrategy, JSONDict, JSONValue


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid int for '{key}': {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid int for '{key}': {value!r}") from exc


def _as_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid float for '{key}': {value!r}") from exc


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ConfigurationError(f"Invalid bool for '{key}': {value!r}")


def _to_crawl_strategy(value: Any) -> CrawlStrategy:
    if isinstance(value, CrawlStrategy):
        return value
    if isinstance(value, str):
        try:
            return CrawlStrategy(value.strip().lower())
        except ValueError as exc:
            raise ConfigurationError(f"Unsupported crawl strategy: {value!r}") from exc
    raise ConfigurationError(f"Invalid crawl strategy value: {value!r}")


def _to_crawl_delay_strategy(value: Any) -> CrawlDelayStrategy:
    if isinstance(value, CrawlDelayStrategy):
        return value
    if isinstance(value, str):
        try:
            return CrawlDelayStrategy(value.strip().lower())
        except ValueError as exc:
            raise ConfigurationError(f"Unsupported crawl delay strategy: {value!r}") from exc
    raise ConfigurationError(f"Invalid crawl delay strategy value: {value!r}")


def _coerce_crawl_seed(value: Any) -> CrawlRequest:
    if isinstance(value, CrawlRequest):
        return value

    try:
        if isinstance(value, str):
            return CrawlRequest(value)

        if isinstance(value, Mapping):
            url = value.get("url")
            if not url:
                raise ConfigurationError(f"Crawl seed missing 'url': {value!r}")
            return CrawlRequest(
                str(url),
                priority=_as_int(value.get("priority", DEFAULT_PRIORITY), "priority"),
                metadata=value.get("metadata"),
            )
    except InvalidRequestError as exc:
        raise ConfigurationError(f"Invalid crawl seed: {exc}") from exc

    raise ConfigurationError(f"Unsupported crawl seed value: {type(value)!r}")


def _coerce_domain_list(values: list[Any]) -> list[CrawlDomain]:
    dedup: dict[CrawlDomain, None] = {}
    for item in values:
        domain = item if isinstance(item, CrawlDomain) else CrawlDomain(str(item))
        dedup[domain] = None
    return list(dedup)


@dataclass(slots=True)
class CrawlConfig:
    """Top-level crawler configuration used by frontier, delay and crawl loop."""

    seeds: list[CrawlRequest] = field(default_factory=list)
    crawl_strategy: CrawlStrategy = CrawlStrategy.BREADTH_FIRST

    duplicate_request_filter_enabled: bool = DEFAULT_DUPLICATE_REQUEST_FILTER_ENABLED
    offsite_request_filter_enabled: bool = DEFAULT_OFFSITE_REQUEST_FILTER_ENABLED
    allowed_domains: list[CrawlDomain] = field(default_factory=list)
    max_crawl_depth: int = DEFAULT_MAX_CRAWL_DEPTH

    crawl_delay_strategy: CrawlDelayStrategy = CrawlDelayStrategy.FIXED
    fixed_crawl_delay_ms: int = DEFAULT_FIXED_CRAWL_DELAY_MS
    min_crawl_delay_ms: int = DEFAULT_MIN_CRAWL_DELAY_MS
    max_crawl_delay_ms: int = DEFAULT_MAX_CRAWL_DELAY_MS

    page_load_timeout_ms: int = DEFAULT_PAGE_LOAD_TIMEOUT_MS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT

    metadata: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.seeds = [_coerce_crawl_seed(seed) for seed in self.seeds]
        self.allowed_domains = _coerce_domain_list(list(self.allowed_domains))
        self.crawl_strategy = _to_crawl_strategy(self.crawl_strategy)
        self.crawl_delay_strategy = _to_crawl_delay_strategy(self.crawl_delay_strategy)

        if self.max_crawl_depth < 0:
            raise ConfigurationError("The maximum crawl depth cannot be negative.")
        if self.fixed_crawl_delay_ms < 0:
            raise ConfigurationError("The fixed crawl delay cannot be negative.")
        if self.min_crawl_delay_ms < 0:
            raise ConfigurationError("The minimum crawl delay cannot be negative.")
        if self.min_crawl_delay_ms >= self.max_crawl_delay_ms:
            raise ConfigurationError("The minimum crawl delay should be less than the maximum.")
        if self.page_load_timeout_ms <= 0:
            raise ConfigurationError("page_load_timeout_ms must be > 0")
        if self.request_timeout_seconds <= 0:
            raise ConfigurationError("request_timeout_seconds must be > 0")

    def is_in_allowed_domain(self, domain: str) -> bool:
        """Check a request domain against the allowed crawl domains."""

        return any(allowed.contains(domain) for allowed in self.allowed_domains)

    def to_dict(self) -> JSONDict:
        """Serialize config for manifests and reproducibility.

        Seed metadata is opaque and therefore not included.
        """

        return {
            "seeds": [
                {"url": seed.url, "priority": seed.priority} for seed in self.seeds
            ],
            "crawl_strategy": self.crawl_strategy.value,
            "duplicate_request_filter_enabled": self.duplicate_request_filter_enabled,
            "offsite_request_filter_enabled": self.offsite_request_filter_enabled,
            "allowed_domains": [domain.domain for domain in self.allowed_domains],
            "max_crawl_depth": self.max_crawl_depth,
            "crawl_delay_strategy": self.crawl_delay_strategy.value,
            "fixed_crawl_delay_ms": self.fixed_crawl_delay_ms,
            "min_crawl_delay_ms": self.min_crawl_delay_ms,
            "max_crawl_delay_ms": self.max_crawl_delay_ms,
            "page_load_timeout_ms": self.page_load_timeout_ms,
            "request_timeout_seconds": self.request_timeout_seconds,
            "user_agent": self.user_agent,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlConfig":
        """Build config from a parsed dictionary."""

        return cls(
            seeds=[_coerce_crawl_seed(seed) for seed in list(payload.get("seeds") or [])],
            crawl_strategy=_to_crawl_strategy(
                payload.get("crawl_strategy", CrawlStrategy.BREADTH_FIRST)
            ),
            duplicate_request_filter_enabled=_as_bool(
                payload.get(
                    "duplicate_request_filter_enabled",
                    DEFAULT_DUPLICATE_REQUEST_FILTER_ENABLED,
                ),
                "duplicate_request_filter_enabled",
            ),
            offsite_request_filter_enabled=_as_bool(
                payload.get(
                    "offsite_request_filter_enabled",
                    DEFAULT_OFFSITE_REQUEST_FILTER_ENABLED,
                ),
                "offsite_request_filter_enabled",
            ),
            allowed_domains=_coerce_domain_list(list(payload.get("allowed_domains") or [])),
            max_crawl_depth=_as_int(
                payload.get("max_crawl_depth", DEFAULT_MAX_CRAWL_DEPTH),
                "max_crawl_depth",
            ),
            crawl_delay_strategy=_to_crawl_delay_strategy(
                payload.get("crawl_delay_strategy", CrawlDelayStrategy.FIXED)
            ),
            fixed_crawl_delay_ms=_as_int(
                payload.get("fixed_crawl_delay_ms", DEFAULT_FIXED_CRAWL_DELAY_MS),
                "fixed_crawl_delay_ms",
            ),
            min_crawl_delay_ms=_as_int(
                payload.get("min_crawl_delay_ms", DEFAULT_MIN_CRAWL_DELAY_MS),
                "min_crawl_delay_ms",
            ),
            max_crawl_delay_ms=_as_int(
                payload.get("max_crawl_delay_ms", DEFAULT_MAX_CRAWL_DELAY_MS),
                "max_crawl_delay_ms",
            ),
            page_load_timeout_ms=_as_int(
                payload.get("page_load_timeout_ms", DEFAULT_PAGE_LOAD_TIMEOUT_MS),
                "page_load_timeout_ms",
            ),
            request_timeout_seconds=_as_float(
                payload.get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS),
                "request_timeout_seconds",
            ),
            user_agent=str(payload.get("user_agent", DEFAULT_USER_AGENT)),
            metadata=dict(payload.get("metadata", {})),
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"YAML config at {path} must be a mapping at top level")
    return data


def load_config(path: str | Path) -> CrawlConfig:
    """Load CrawlConfig from JSON/YAML path."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ConfigurationError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = _load_yaml(config_path)

    if not isinstance(payload, dict):
        raise ConfigurationError(f"Config at {config_path} must be a mapping")

    return CrawlConfig.from_dict(payload)


def save_config(config: CrawlConfig, path: str | Path) -> None:
    """Save CrawlConfig as JSON or YAML based on file extension."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = out_path.suffix.lower()
    payload = config.to_dict()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return

    if suffix in {".yaml", ".yml"}:
        out_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        return

    raise ConfigurationError(
        f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
    )


__all__ = [
    "CrawlConfig",
    "load_config",
    "save_config",
]
