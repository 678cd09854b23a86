"""Headless selenium browser construction."""

from __future__ import annotations

import logging
from enum import Enum

from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.firefox.options import Options as FirefoxOptions
from selenium.webdriver.remote.webdriver import WebDriver

from .config import CrawlConfig
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class BrowserType(str, Enum):
    """Browser used to render HTML pages."""

    AUTO = "auto"
    CHROME = "chrome"
    FIREFOX = "firefox"


def to_browser_type(value: BrowserType | str) -> BrowserType:
    if isinstance(value, BrowserType):
        return value
    try:
        return BrowserType(str(value).strip().lower())
    except ValueError as exc:
        raise ConfigurationError(f"Unsupported browser: {value!r}") from exc


def _create_chrome(user_agent: str) -> WebDriver:
    chrome_options = ChromeOptions()
    chrome_options.add_argument("--headless=new")
    chrome_options.add_argument("--disable-gpu")
    chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")
    chrome_options.add_argument(f"--user-agent={user_agent}")
    return webdriver.Chrome(options=chrome_options)


def _create_firefox(user_agent: str) -> WebDriver:
    firefox_options = FirefoxOptions()
    firefox_options.add_argument("-headless")
    firefox_options.set_preference("general.useragent.override", user_agent)
    return webdriver.Firefox(options=firefox_options)


def create_web_driver(browser: BrowserType | str, config: CrawlConfig) -> WebDriver:
    """Start a headless browser.

    `auto` tries Chrome first and falls back to Firefox.
    """

    browser_type = to_browser_type(browser)
    if browser_type == BrowserType.CHROME:
        candidates = [("Chrome", _create_chrome)]
    elif browser_type == BrowserType.FIREFOX:
        candidates = [("Firefox", _create_firefox)]
    else:
        candidates = [("Chrome", _create_chrome), ("Firefox", _create_firefox)]

    errors: list[str] = []
    for name, factory in candidates:
        try:
            driver = factory(config.user_agent)
        except Exception as exc:
            logger.debug("Could not start %s: %s", name, exc)
            errors.append(f"{name}: {exc}")
            continue

        logger.debug("Started headless %s", name)
        return driver

    raise RuntimeError("; ".join(errors) or "No usable Selenium driver found")


__all__ = ["BrowserType", "create_web_driver", "to_browser_type"]
