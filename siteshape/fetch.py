"""
Page fetching.

Pages are fetched in fixed-size batches, one batch at a time. Within a batch
every fetch runs to completion; a failure only affects its own page, which
comes back without HTML.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Mapping, Optional, TypeVar

import html2text
import httpx
from bs4 import BeautifulSoup

from .config import settings
from .models import PageFetchResult, ScrapedPage, new_id

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def make_client(timeout: Optional[float] = None) -> httpx.Client:
    return httpx.Client(
        follow_redirects=True,
        timeout=timeout or settings.TIMEOUT,
        headers={"User-Agent": settings.USER_AGENT},
    )


def settle_in_batches(fn: Callable[[T], R], items: Iterable[T],
                      batch_size: Optional[int] = None) -> list[tuple[T, Optional[R], Optional[Exception]]]:
    """Run ``fn`` over ``items`` in batches; return ``(item, result, error)`` in input order."""
    items = list(items)
    size = max(1, batch_size or settings.CONCURRENCY)
    settled = []
    with ThreadPoolExecutor(max_workers=size) as pool:
        for start in range(0, len(items), size):
            batch = items[start:start + size]
            futures = [pool.submit(fn, item) for item in batch]
            for item, future in zip(batch, futures):
                try:
                    settled.append((item, future.result(), None))
                except Exception as exc:
                    settled.append((item, None, exc))
    return settled


def extract_meta(html: str) -> dict[str, str]:
    """Collect ``<meta name|property=... content=...>`` pairs."""
    soup = BeautifulSoup(html, "html.parser")
    meta = {}
    for tag in soup.find_all("meta"):
        key = tag.get("name") or tag.get("property")
        content = tag.get("content")
        if key and content is not None:
            meta.setdefault(key, content)
    return meta


def fetch_pages(urls: Iterable[str], client: Optional[httpx.Client] = None,
                stored_metadata: Optional[Mapping[str, Mapping]] = None,
                batch_size: Optional[int] = None, html_only: bool = False) -> list[PageFetchResult]:
    """Fetch each URL for platform detection.

    ``stored_metadata`` maps a URL to metadata already known for it (from an
    earlier scrape); it is merged under whatever the fresh HTML yields. With
    ``html_only``, non-200 and non-HTML responses count as failed fetches.
    """
    stored_metadata = stored_metadata or {}
    owns_client = client is None
    client = client or make_client()

    def fetch(url: str) -> Optional[str]:
        resp = client.get(url)
        if html_only and (resp.status_code != 200 or "html" not in resp.headers.get("content-type", "")):
            return None
        return resp.text

    try:
        settled = settle_in_batches(fetch, urls, batch_size)
    finally:
        if owns_client:
            client.close()

    results = []
    for url, html, error in settled:
        known = dict(stored_metadata.get(url) or {})
        if error is not None or html is None:
            logger.warning("Failed to fetch %s: %s", url, error or "not an HTML page")
            results.append(PageFetchResult(url=url, metadata=known or None))
            continue
        metadata = {**known, **extract_meta(html)}
        results.append(PageFetchResult(url=url, html=html, metadata=metadata or None))
    return results


def extract_main_content(html: str) -> tuple[str, str]:
    """Return ``(title, markdown)`` for the main content of a page."""
    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.string.strip() if soup.title and soup.title.string else ""

    # Remove clutter
    for tag in soup.find_all(["nav", "aside", "script", "style", "header", "footer", "form", "noscript"]):
        tag.decompose()

    main = (
        soup.find("main")
        or soup.find("article")
        or soup.find("div", id=re.compile(r"^content|^main", re.I))
        or soup.body
    )

    h = html2text.HTML2Text()
    h.ignore_links = False
    h.ignore_images = True
    h.body_width = 0
    h.unicode_snob = True
    markdown = h.handle(str(main or soup))
    # Icon font entities (e.g. &#xf123;)
    markdown = re.sub(r"&#x[0-9a-fA-F]+;", "", markdown)
    markdown = re.sub(r"\n{3,}", "\n\n", markdown).strip()
    return title, markdown


def scrape_pages(urls: Iterable[str], client: Optional[httpx.Client] = None,
                 batch_size: Optional[int] = None) -> list[ScrapedPage]:
    """Fetch pages and turn the HTML ones into stored page rows."""
    pages = []
    for fetched in fetch_pages(urls, client=client, batch_size=batch_size, html_only=True):
        if not fetched.html:
            continue
        title, markdown = extract_main_content(fetched.html)
        pages.append(ScrapedPage(
            id=new_id(),
            url=fetched.url,
            title=title or None,
            content=markdown,
            metadata=fetched.metadata,
        ))
    logger.info("Scraped %d page(s)", len(pages))
    return pages
