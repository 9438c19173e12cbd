"""Web page capture for ``project:add-url``.

A page is fetched with httpx and parsed with BeautifulSoup.  Script, style,
nav, footer and iframe elements are dropped; the remaining body text is
collapsed and cached as ``web-<ms>.txt`` so prompts can quote it later.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

STRIPPED_TAGS = ("script", "style", "nav", "footer", "iframe")

_RUNS = re.compile(r"\s\s+")


@dataclass(frozen=True)
class WebPage:
    url: str
    title: str
    text: str


def extract_page(url: str, html: str) -> WebPage:
    """Title and readable body text of *html*.  The title falls back to *url*."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(list(STRIPPED_TAGS)):
        tag.decompose()
    title = soup.title.get_text(strip=True) if soup.title else ""
    root = soup.body or soup
    text = _RUNS.sub(" ", root.get_text(" ")).strip()
    return WebPage(url=url, title=title or url, text=text)


async def fetch_page(
    url: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = 15.0,
) -> WebPage:
    """Download and extract one page.

    Raises:
        RuntimeError: The page could not be fetched.
    """
    try:
        async with httpx.AsyncClient(
            transport=transport, timeout=timeout, follow_redirects=True
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        msg = f"Scrape failed for {url}: {exc}"
        raise RuntimeError(msg) from exc
    page = extract_page(url, response.text)
    logger.debug("Fetched %s (%d chars)", url, len(page.text))
    return page


def write_cache(cache_dir: Path, text: str) -> str:
    """Store *text* under a fresh ``web-<ms>.txt`` name; returns the name."""
    cache_dir.mkdir(parents=True, exist_ok=True)
    stamp = int(time.time() * 1000)
    while (cache_dir / f"web-{stamp}.txt").exists():
        stamp += 1
    name = f"web-{stamp}.txt"
    (cache_dir / name).write_text(text, encoding="utf-8")
    return name
