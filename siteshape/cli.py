#!/usr/bin/env python3
"""
siteshape CLI
-------------
Scrape a site into a local project, detect the platform it runs on, and
build its sitemap tree (from scraped pages or from sitemap.xml). Also
flattens design-kit token files and product lists for display or prompt use.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import settings
from .errors import NoPagesError, NoUrlsFoundError, SiteshapeError
from .fetch import fetch_pages, scrape_pages
from .models import Product, SitemapData
from .platform import detect_platform
from .products import format_products_for_prompt
from .sitemap import (
    build_from_scraped_pages,
    build_from_url_list,
    collect_annotations,
    enrich_with_pages,
    find_node,
    mark_scraped,
    restat,
)
from .sitemap_xml import fetch_sitemap_xml
from .store import ProjectStore
from .tokens import flatten, format_for_prompt, set_value_at_path
from .tui import bold, dim, green, red, render_annotations, render_platform, render_sitemap, render_tokens, yellow


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="siteshape",
        description="Infer platform, sitemap and design tokens of a website",
    )
    parser.add_argument(
        "--store", default=settings.STORE_DIR, help=f"Project store folder (default: {settings.STORE_DIR})"
    )
    parser.add_argument("--json", action="store_true", help="Print raw JSON instead of a tree/summary")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", help="Create a project for a site")
    p.add_argument("url", help="Site URL (e.g., https://example.com)")
    p.add_argument("--project", help="Project id (default: random)")

    p = sub.add_parser("scrape", help="Fetch pages and store them in the project")
    p.add_argument("project")
    p.add_argument("--url", "-u", action="append", help="Page URL to scrape (repeatable)")
    p.add_argument("--from-sitemap", action="store_true", help="Scrape every URL listed in sitemap.xml")

    p = sub.add_parser("detect", help="Detect the hosting platform from stored pages")
    p.add_argument("project")

    p = sub.add_parser("sitemap", help="Build and store a sitemap tree")
    p.add_argument("project")
    p.add_argument("--type", choices=["current", "recommended"], default="current")
    p.add_argument("--source", choices=["scrape", "import-xml"], default="scrape")
    p.add_argument("--from-file", help="Load a recommended sitemap JSON produced by the recommender")

    p = sub.add_parser("show", help="Print a stored sitemap")
    p.add_argument("project")
    p.add_argument("--type", choices=["current", "recommended"], default="current")

    p = sub.add_parser("mark", help="Mark a sitemap node of the current tree as scraped")
    p.add_argument("project")
    p.add_argument("node_id")
    p.add_argument("--page-id", help="Stored page id to link to the node")

    p = sub.add_parser("tokens", help="Flatten a design-token JSON file")
    p.add_argument("file")
    p.add_argument("--prompt", action="store_true", help="Render the prompt block instead of a table")
    p.add_argument("--set", nargs=2, metavar=("PATH", "VALUE"), help="Write VALUE (JSON or text) at a dot-path")
    p.add_argument("--out", "-o", help="Where to write the updated token file (default: stdout)")

    p = sub.add_parser("products", help="Render a product JSON list as a prompt block")
    p.add_argument("file")
    return parser.parse_args(argv)


def print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def cmd_init(store: ProjectStore, args) -> None:
    project = store.create_project(args.url, args.project)
    if args.json:
        print_json(project)
    else:
        print(f"{green('✓')} Project {bold(project['id'])} for {project['url']}")


def cmd_scrape(store: ProjectStore, args) -> None:
    project = store.get_project(args.project)
    urls = list(args.url or [])
    if args.from_sitemap:
        result = fetch_sitemap_xml(project["url"])
        for error in result.errors:
            print(yellow(f"! {error}"), file=sys.stderr)
        if not result.urls:
            raise NoUrlsFoundError(result.errors)
        print(f"\n{yellow('Sitemap found!')} {green(str(len(result.urls)))} pages to fetch...", flush=True)
        urls.extend(result.urls)
    if not urls:
        urls = [project["url"]]

    pages = scrape_pages(urls)
    for idx, page in enumerate(pages, start=1):
        print(f"[{green(str(idx))}/{green(str(len(pages)))}] {page.url}", flush=True)
    stored = store.save_pages(args.project, pages)
    print(f"{green('✓')} {len(pages)} of {len(urls)} page(s) scraped, {len(stored)} stored")


def cmd_detect(store: ProjectStore, args) -> None:
    store.get_project(args.project)
    pages = store.get_pages(args.project)
    if not pages:
        raise NoPagesError("No scraped pages to detect platform from")
    fetched = fetch_pages(
        [page.url for page in pages],
        stored_metadata={page.url: page.metadata for page in pages if page.metadata},
    )
    info = detect_platform(fetched)
    store.save_platform_info(args.project, info)
    if args.json:
        print_json(info.to_json_dict())
    else:
        print(render_platform(info))


def read_json_file(path: str, model=None):
    """Load a JSON file, optionally validated into ``model``; problems become a SiteshapeError."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return model.model_validate(data) if model else data
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise SiteshapeError(f"Cannot read {path}: {exc}") from exc


def _load_recommended(path: str) -> SitemapData:
    return restat(read_json_file(path, SitemapData))


def cmd_sitemap(store: ProjectStore, args) -> None:
    project = store.get_project(args.project)
    pages = store.get_pages(args.project)

    if args.from_file:
        data = _load_recommended(args.from_file)
    elif args.type == "recommended":
        raise SiteshapeError("Recommended sitemaps come from the recommender; load one with --from-file")
    elif args.source == "import-xml":
        result = fetch_sitemap_xml(project["url"])
        if not result.urls:
            raise NoUrlsFoundError(result.errors)
        for error in result.errors:
            print(yellow(f"! {error}"), file=sys.stderr)
        data = build_from_url_list(result.urls, project["url"])
        if pages:
            data = enrich_with_pages(data, pages, project["url"])
        print(dim(f"{len(result.urls)} URL(s) from {result.child_sitemaps_found} child sitemap(s)"), file=sys.stderr)
    else:
        if not pages:
            raise NoPagesError("No scraped pages found. Scrape the website first.")
        data = build_from_scraped_pages(pages, project["url"])

    store.save_sitemap(args.project, args.type, data)
    show_sitemap(data, args.type, args.json)


def show_sitemap(data: SitemapData, variant: str, as_json: bool) -> None:
    if as_json:
        print_json(data.to_json_dict())
        return
    print(render_sitemap(data, variant))
    if variant == "recommended":
        print()
        print(render_annotations(collect_annotations(data.root_node)))


def cmd_show(store: ProjectStore, args) -> None:
    project = store.get_project(args.project)
    data = store.get_sitemap(args.project, args.type)
    if data is None:
        raise SiteshapeError(f"No {args.type} sitemap stored for {args.project}")
    if args.type == "current":
        pages = store.get_pages(args.project)
        if pages:
            data = enrich_with_pages(data, pages, project["url"])
    show_sitemap(data, args.type, args.json)


def cmd_mark(store: ProjectStore, args) -> None:
    data = store.get_sitemap(args.project, "current")
    if data is None or find_node(data.root_node, args.node_id) is None:
        raise SiteshapeError(f"No node {args.node_id} in the current sitemap of {args.project}")
    root = mark_scraped(data.root_node, args.node_id, args.page_id)
    data = data.model_copy(update={"root_node": root})
    store.save_sitemap(args.project, "current", data)
    print(f"{green('✓')} Marked {args.node_id} as scraped")


def _parse_value(raw: str):
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def cmd_tokens(args) -> None:
    tree = read_json_file(args.file)
    if not isinstance(tree, dict):
        raise SiteshapeError(f"{args.file} is not a token file (expected a JSON object)")

    if args.set:
        path, raw = args.set
        updated = set_value_at_path(tree, path, _parse_value(raw))
        text = json.dumps(updated, indent=2, ensure_ascii=False)
        if args.out:
            Path(args.out).write_text(text + "\n", encoding="utf-8")
            print(f"{green('✓')} {path} written to {args.out}")
        else:
            print(text)
        return

    tokens = flatten(tree)
    if args.json:
        print_json([t.to_json_dict() for t in tokens])
    elif args.prompt:
        print(format_for_prompt(tokens))
    else:
        print(render_tokens(tokens))


def cmd_products(args) -> None:
    rows = read_json_file(args.file)
    if not isinstance(rows, list):
        raise SiteshapeError(f"{args.file} is not a product list (expected a JSON array)")
    try:
        products = [Product.model_validate(row) for row in rows]
    except ValidationError as exc:
        raise SiteshapeError(f"Cannot read {args.file}: {exc}") from exc
    print(format_products_for_prompt(products))


COMMANDS = {
    "init": cmd_init,
    "scrape": cmd_scrape,
    "detect": cmd_detect,
    "sitemap": cmd_sitemap,
    "show": cmd_show,
    "mark": cmd_mark,
}


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.LOG_LEVEL.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        if args.command == "tokens":
            cmd_tokens(args)
        elif args.command == "products":
            cmd_products(args)
        else:
            COMMANDS[args.command](ProjectStore(args.store), args)
    except SiteshapeError as exc:
        print(f"\n  {red('✖ Error:')} {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
