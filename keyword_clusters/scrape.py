"""Result page fetching and heading extraction."""
from __future__ import annotations

import logging
import os
from typing import Optional

import requests
from bs4 import BeautifulSoup

from .schemas import Heading, PageExtract

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; KeywordClusterBot/1.0)"
HEADING_TAGS = {"h1": 1, "h2": 2, "h3": 3}
PARAGRAPH_MIN_CHARS = 50
PARAGRAPH_MAX_CHARS = 320


def _request_timeout() -> float:
    default_timeout = 8.0
    raw = os.getenv("SCRAPE_TIMEOUT")
    if not raw:
        return default_timeout
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid SCRAPE_TIMEOUT value %s; falling back to %s", raw, default_timeout)
        return default_timeout
    return value if value > 0 else default_timeout


def fetch_page(url: str) -> Optional[str]:
    """Fetch a result page, returning its HTML or ``None`` on any failure."""

    try:
        response = requests.get(
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=_request_timeout(),
            allow_redirects=True,
        )
    except requests.RequestException as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        return None

    if response.status_code != 200:
        logger.info("Skipping %s due to status %s", url, response.status_code)
        return None
    return response.text


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return str(tag["content"]).strip()
    return ""


def _first_paragraph(soup: BeautifulSoup) -> str:
    for tag in soup.find_all("p"):
        text = tag.get_text(strip=True)
        if len(text) > PARAGRAPH_MIN_CHARS:
            return text[:PARAGRAPH_MAX_CHARS]
    return ""


def parse_page(url: str, html: str, snippet: str = "") -> PageExtract:
    """Extract title, H1-H3 headings and the best available description."""

    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""

    headings: list[Heading] = []
    # Document order, so an H3 follows the H2 it sits under.
    for tag in soup.find_all(list(HEADING_TAGS)):
        text = tag.get_text(strip=True)
        if 2 < len(text) < 160:
            headings.append(Heading(level=HEADING_TAGS[tag.name], text=text))

    candidates = [
        _meta_content(soup, name="description"),
        _meta_content(soup, property="og:description"),
        _meta_content(soup, name="twitter:description"),
        _first_paragraph(soup),
    ]
    # The longest candidate is least likely to be a truncated teaser.
    meta = max((text for text in candidates if text), key=len, default="")

    return PageExtract(url=url, title=title, meta=meta, headings=tuple(headings), snippet=snippet)


def extract_page(url: str, snippet: str = "") -> PageExtract:
    """Fetch and parse ``url``; failures yield an extract with only url and snippet."""

    html = fetch_page(url)
    if html is None:
        return PageExtract(url=url, snippet=snippet)
    try:
        return parse_page(url, html, snippet=snippet)
    except Exception as exc:  # pragma: no cover - parser edge cases
        logger.warning("Failed to parse %s: %s", url, exc)
        return PageExtract(url=url, snippet=snippet)
