"""
Sitemap tree construction.

A flat set of URLs becomes a path tree rooted at ``/``. Every prefix of a
path gets a node, so ``/blogs/news/launch`` also yields ``/blogs`` and
``/blogs/news`` even if those were never crawled. Paths are walked in sorted
order, so the same URL set always gives the same tree shape.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional
from urllib.parse import SplitResult, urlsplit

from .models import (
    PageType,
    ScrapedPage,
    SitemapData,
    SitemapNode,
    SitemapNodeMetadata,
)

logger = logging.getLogger(__name__)

PAGE_TYPE_PATTERNS: list[tuple[re.Pattern, PageType]] = [
    (re.compile(r"^/collections/?$", re.I), "collection"),
    (re.compile(r"^/collections/[^/]+/?$", re.I), "collection"),
    (re.compile(r"^/products/[^/]+/?$", re.I), "product"),
    (re.compile(r"^/pages/[^/]+/?$", re.I), "page"),
    (re.compile(r"^/blogs/?$", re.I), "blog"),
    (re.compile(r"^/blogs/[^/]+/?$", re.I), "blog"),
    (re.compile(r"^/blogs/[^/]+/[^/]+/?$", re.I), "article"),
]


def infer_page_type(path: str) -> PageType:
    if path in ("/", ""):
        return "homepage"
    for rx, page_type in PAGE_TYPE_PATTERNS:
        if rx.match(path):
            return page_type
    return "other"


def label_from_segment(segment: str) -> str:
    """``summer-sale`` -> ``Summer Sale``."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), segment.replace("-", " "), flags=re.ASCII)


def normalize_path(path: str) -> str:
    if path.endswith("/"):
        path = path[:-1]
    return path or "/"


def parse_url(raw: str) -> SplitResult | None:
    try:
        parsed = urlsplit(raw)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.hostname:
        return None
    return parsed


def _project_base(project_url: str) -> tuple[str, str]:
    parsed = parse_url(project_url)
    if parsed is None:
        raise ValueError(f"Invalid project URL: {project_url!r}")
    netloc = parsed.netloc.rpartition("@")[2].lower()
    return parsed.hostname, f"{parsed.scheme}://{netloc}"


def _same_host_paths(urls: Iterable[str], host: str) -> Iterator[tuple[str, str]]:
    """Yield ``(normalized_path, url)`` for URLs on ``host``; others are dropped."""
    for url in urls:
        parsed = parse_url(url)
        if parsed is None:
            logger.debug("Skipping unparseable URL %r", url)
            continue
        if parsed.hostname != host:
            logger.debug("Skipping off-host URL %s", url)
            continue
        yield normalize_path(parsed.path), url


def _index_pages(pages: Iterable[ScrapedPage], host: str) -> dict[str, ScrapedPage]:
    by_path: dict[str, ScrapedPage] = {}
    for page in pages:
        for path, _url in _same_host_paths([page.url], host):
            by_path.setdefault(path, page)
    return by_path


def _apply_page(node: SitemapNode, page: ScrapedPage, keep_url: bool = False) -> None:
    node.has_content = True
    if not keep_url:
        node.url = page.url
    metadata = node.metadata or SitemapNodeMetadata()
    if page.title:
        metadata.title = page.title
    if page.id:
        metadata.page_id = page.id
    node.metadata = metadata


# Tree walking

def iter_nodes(node: SitemapNode, depth: int = 0) -> Iterator[tuple[SitemapNode, int]]:
    """Depth-first, parents before children."""
    yield node, depth
    for child in node.children:
        yield from iter_nodes(child, depth + 1)


def tree_stats(root: SitemapNode) -> tuple[int, int]:
    """Return ``(node_count, max_depth)``; the root is depth 0."""
    total = max_depth = 0
    for _node, depth in iter_nodes(root):
        total += 1
        max_depth = max(max_depth, depth)
    return total, max_depth


def find_node(root: SitemapNode, node_id: str) -> Optional[SitemapNode]:
    for node, _depth in iter_nodes(root):
        if node.id == node_id:
            return node
    return None


# Building

def _build_tree(paths: Iterable[str], project_url: str, host: str, origin: str,
                pages_by_path: dict[str, ScrapedPage]) -> SitemapData:
    root = SitemapNode(label=host, path="/", url=project_url, page_type="homepage")
    if "/" in pages_by_path:
        _apply_page(root, pages_by_path["/"], keep_url=True)
    nodes = {"/": root}

    for path in sorted(set(paths)):
        if path == "/":
            continue
        segments = [s for s in path.split("/") if s]
        parent = root
        for i, segment in enumerate(segments):
            prefix = "/" + "/".join(segments[: i + 1])
            node = nodes.get(prefix)
            if node is None:
                node = SitemapNode(
                    label=label_from_segment(segment),
                    path=prefix,
                    url=f"{origin}{prefix}",
                    page_type=infer_page_type(prefix),
                )
                if prefix in pages_by_path:
                    _apply_page(node, pages_by_path[prefix])
                nodes[prefix] = node
                parent.children.append(node)
            parent = node

    total, max_depth = tree_stats(root)
    logger.info("Built sitemap for %s: %d node(s), depth %d", host, total, max_depth)
    return SitemapData(root_node=root, total_pages=total, max_depth=max_depth, project_url=project_url)


def build_from_url_list(urls: Iterable[str], project_url: str) -> SitemapData:
    """Build a tree from bare URLs (e.g. a sitemap.xml import). Nothing has content."""
    host, origin = _project_base(project_url)
    paths = [path for path, _url in _same_host_paths(urls, host)]
    return _build_tree(paths, project_url, host, origin, {})


def build_from_scraped_pages(pages: Iterable[ScrapedPage], project_url: str) -> SitemapData:
    """Build a tree from scraped page rows; scraped nodes carry the page's URL and title."""
    host, origin = _project_base(project_url)
    pages_by_path = _index_pages(pages, host)
    return _build_tree(pages_by_path.keys(), project_url, host, origin, pages_by_path)


def enrich_with_pages(data: SitemapData, pages: Iterable[ScrapedPage], project_url: str) -> SitemapData:
    """Return a copy of ``data`` with scraped pages applied to matching nodes.

    Used to refresh a stored tree (typically an XML import) after more pages
    were scraped. Nodes with no matching page are left as they are.
    """
    host, _origin = _project_base(project_url)
    pages_by_path = _index_pages(pages, host)
    enriched = data.model_copy(deep=True)
    for node, _depth in iter_nodes(enriched.root_node):
        page = pages_by_path.get(node.path)
        if page is not None:
            _apply_page(node, page, keep_url=node.path == "/")
    return enriched


def mark_scraped(node: SitemapNode, target_id: str, page_id: Optional[str] = None) -> SitemapNode:
    """Return a new tree where the node ``target_id`` has content.

    ``page_id``, when given, is merged into that node's metadata. The input
    tree is left untouched.
    """
    update = {"children": [mark_scraped(child, target_id, page_id) for child in node.children]}
    metadata = node.metadata.model_copy() if node.metadata else None
    if node.id == target_id:
        update["has_content"] = True
        if page_id:
            metadata = metadata or SitemapNodeMetadata()
            metadata.page_id = page_id
    update["metadata"] = metadata
    return node.model_copy(update=update)


# Diff annotations

@dataclass
class Annotation:
    path: str
    label: str
    changes: tuple[str, ...]
    moved_from: Optional[str] = None
    priority: Optional[str] = None
    notes: Optional[str] = None


def collect_annotations(root: SitemapNode) -> list[Annotation]:
    """List the recommender's annotations on a tree, in depth-first order.

    Nodes without any change flag, priority or note are left out.
    """
    found = []
    for node, _depth in iter_nodes(root):
        meta = node.metadata
        if meta is None:
            continue
        changes = tuple(
            name for name, flag in (("new", meta.is_new), ("removed", meta.is_removed), ("moved", meta.is_moved))
            if flag
        )
        if changes or meta.priority or meta.notes:
            found.append(Annotation(
                path=node.path,
                label=node.label,
                changes=changes,
                moved_from=meta.moved_from if meta.is_moved else None,
                priority=meta.priority,
                notes=meta.notes,
            ))
    return found


def restat(data: SitemapData) -> SitemapData:
    """Return ``data`` with ``totalPages``/``maxDepth`` recomputed from its tree."""
    total, max_depth = tree_stats(data.root_node)
    return data.model_copy(update={"total_pages": total, "max_depth": max_depth})
