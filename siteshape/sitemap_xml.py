"""
sitemap.xml import.

Reads ``<origin>/sitemap.xml``. A ``<sitemapindex>`` is resolved one level
deep: every child sitemap is fetched and their ``<loc>`` entries are
concatenated in index order. A child that fails is reported in ``errors``
and the rest of the import carries on.

Sitemaps that are not well-formed XML (an unescaped ``&`` in a URL is the
usual culprit) are read leniently by pulling out the ``<loc>`` text.
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import NamedTuple, Optional
from xml.sax.saxutils import unescape

import httpx

from .errors import SitemapFetchError
from .fetch import make_client, settle_in_batches
from .models import SitemapXmlResult
from .sitemap import parse_url

logger = logging.getLogger(__name__)

FETCH_ERRORS = (httpx.HTTPError, httpx.InvalidURL, ET.ParseError, SitemapFetchError)

LOC_RE = re.compile(r"<loc>\s*(.*?)\s*</loc>", re.S)


class SitemapDocument(NamedTuple):
    is_index: bool
    locs: list[str]


def is_sitemap_index(root: ET.Element) -> bool:
    return root.tag.endswith("sitemapindex")


def extract_locs(root: ET.Element) -> list[str]:
    # only direct <url>/<sitemap> locs; image/video extension locs sit deeper
    entry = "sitemap" if is_sitemap_index(root) else "url"
    return [
        loc.text.strip()
        for loc in root.findall(f"{{*}}{entry}/{{*}}loc")
        if loc.text and loc.text.strip()
    ]


def parse_sitemap(content: bytes) -> SitemapDocument:
    """Parse a sitemap body, falling back to a ``<loc>`` scan for broken XML.

    Raises ``ET.ParseError`` when the document is broken and has no locs.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as exc:
        text = content.decode("utf-8", errors="replace")
        locs = [unescape(loc, {"&quot;": '"', "&apos;": "'"}) for loc in LOC_RE.findall(text) if loc]
        if not locs:
            raise
        logger.debug("Malformed sitemap XML (%s); read %d loc(s) leniently", exc, len(locs))
        return SitemapDocument("<sitemapindex" in text, locs)
    return SitemapDocument(is_sitemap_index(root), extract_locs(root))


def fetch_xml(client: httpx.Client, url: str) -> SitemapDocument:
    resp = client.get(url)
    if not resp.is_success:
        raise SitemapFetchError(f"HTTP {resp.status_code} fetching {url}")
    return parse_sitemap(resp.content)


def sitemap_url_for(site_url: str) -> str:
    parsed = parse_url(site_url)
    if parsed is None:
        raise ValueError(f"Invalid site URL: {site_url!r}")
    return f"{parsed.scheme}://{parsed.netloc}/sitemap.xml"


def fetch_sitemap_xml(site_url: str, client: Optional[httpx.Client] = None,
                      batch_size: Optional[int] = None) -> SitemapXmlResult:
    """Collect every page URL listed by the site's sitemap.xml.

    Never raises for network or XML problems; they end up in ``errors``.
    """
    sitemap_url = sitemap_url_for(site_url)
    owns_client = client is None
    client = client or make_client()
    try:
        try:
            document = fetch_xml(client, sitemap_url)
        except FETCH_ERRORS as exc:
            logger.warning("Failed to fetch %s: %s", sitemap_url, exc)
            return SitemapXmlResult(errors=[f"Failed to fetch {sitemap_url}: {exc}"])

        if not document.is_index:
            logger.info("%s lists %d URL(s)", sitemap_url, len(document.locs))
            return SitemapXmlResult(urls=document.locs)

        children = document.locs
        urls, errors = [], []
        for child, child_document, error in settle_in_batches(lambda u: fetch_xml(client, u), children, batch_size):
            if error is None:
                urls.extend(child_document.locs)
            elif isinstance(error, FETCH_ERRORS):
                logger.warning("Failed to fetch child sitemap %s: %s", child, error)
                errors.append(f"Failed to fetch child sitemap {child}: {error}")
            else:
                raise error
    finally:
        if owns_client:
            client.close()

    logger.info("%s: %d child sitemap(s), %d URL(s), %d error(s)",
                sitemap_url, len(children), len(urls), len(errors))
    return SitemapXmlResult(urls=urls, child_sitemaps_found=len(children), errors=errors)
