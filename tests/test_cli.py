import json

import pytest

from siteshape import cli
from siteshape.models import PageFetchResult, SitemapXmlResult
from siteshape.sitemap import iter_nodes
from siteshape.store import ProjectStore

from .conftest import SHOPIFY_HTML


@pytest.fixture
def store(tmp_path, scraped_pages):
    s = ProjectStore(tmp_path)
    s.create_project("https://example.com", "acme")
    s.create_project("https://empty.example.com", "empty")
    s.save_pages("acme", scraped_pages)
    return s


def run(store, *argv):
    return cli.main(["--store", str(store.root), *argv])


def test_tokens_prompt(tmp_path, capsys):
    path = tmp_path / "kit.json"
    path.write_text(json.dumps({"color": {"$type": "color", "ink": {"$value": "#111"}}}), encoding="utf-8")

    assert cli.main(["tokens", str(path), "--prompt"]) == 0
    assert capsys.readouterr().out == "BRAND COLORS:\n- color.ink: #111\n"


def test_tokens_set_writes_file(tmp_path):
    path = tmp_path / "kit.json"
    out = tmp_path / "out.json"
    path.write_text(json.dumps({"space": {"md": {"$type": "dimension", "$value": "8px"}}}), encoding="utf-8")

    assert cli.main(["tokens", str(path), "--set", "space.md", "12", "--out", str(out)]) == 0
    assert json.loads(out.read_text(encoding="utf-8"))["space"]["md"]["$value"] == 12
    assert json.loads(path.read_text(encoding="utf-8"))["space"]["md"]["$value"] == "8px"


def test_sitemap_from_scraped_pages(store, capsys):
    assert run(store, "--json", "sitemap", "acme") == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["totalPages"] == 8
    assert store.get_sitemap("acme", "current").total_pages == 8


def test_sitemap_without_pages_fails(store, capsys):
    assert run(store, "sitemap", "empty") == 1
    assert "No scraped pages found" in capsys.readouterr().err


def test_sitemap_import_xml(store, monkeypatch, capsys):
    monkeypatch.setattr(cli, "fetch_sitemap_xml", lambda url: SitemapXmlResult(
        urls=["https://example.com/products/red-shirt", "https://example.com/pages/faq"],
        child_sitemaps_found=2,
        errors=["Failed to fetch child sitemap https://example.com/x.xml: HTTP 500"],
    ))
    assert run(store, "sitemap", "acme", "--source", "import-xml") == 0
    data = store.get_sitemap("acme", "current")
    nodes = {node.path: node for node, _ in iter_nodes(data.root_node)}
    assert nodes["/products/red-shirt"].has_content is True
    assert nodes["/pages/faq"].has_content is False
    assert "/blogs" not in nodes


def test_sitemap_import_xml_with_no_urls(store, monkeypatch, capsys):
    monkeypatch.setattr(cli, "fetch_sitemap_xml", lambda url: SitemapXmlResult(errors=["Failed to fetch x: HTTP 404"]))
    assert run(store, "sitemap", "acme", "--source", "import-xml") == 1
    assert "Failed to fetch x: HTTP 404" in capsys.readouterr().err


def test_recommended_from_file_and_show(store, tmp_path, capsys):
    rec = tmp_path / "rec.json"
    rec.write_text(json.dumps({
        "rootNode": {"id": "r", "label": "example.com", "path": "/", "children": [
            {"id": "n", "label": "FAQ", "path": "/pages/faq", "pageType": "page", "children": [],
             "metadata": {"isNew": True, "priority": "high", "notes": "Missing"}},
        ]},
        "totalPages": 0, "maxDepth": 0, "projectUrl": "https://example.com",
    }), encoding="utf-8")

    assert run(store, "sitemap", "acme", "--type", "recommended", "--from-file", str(rec)) == 0
    assert store.get_sitemap("acme", "recommended").total_pages == 2

    capsys.readouterr()
    assert run(store, "show", "acme", "--type", "recommended") == 0
    out = capsys.readouterr().out
    assert "/pages/faq" in out
    assert "NEW" in out


def test_mark_node(store):
    run(store, "sitemap", "acme")
    data = store.get_sitemap("acme", "current")
    blogs = next(node for node, _ in iter_nodes(data.root_node) if node.path == "/blogs")

    assert run(store, "mark", "acme", blogs.id, "--page-id", "p-9") == 0
    marked = next(node for node, _ in iter_nodes(store.get_sitemap("acme", "current").root_node) if node.id == blogs.id)
    assert marked.has_content is True
    assert marked.metadata.page_id == "p-9"

    assert run(store, "mark", "acme", "no-such-node") == 1


def test_detect(store, monkeypatch, capsys):
    def fake_fetch(urls, stored_metadata=None):
        return [PageFetchResult(url=url, html=SHOPIFY_HTML) for url in urls]

    monkeypatch.setattr(cli, "fetch_pages", fake_fetch)
    assert run(store, "--json", "detect", "acme") == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["platform"] == "shopify"
    assert printed["shopifyDetails"]["templates"][0]["count"] == 4
    assert store.get_platform_info("acme").confidence == "high"


def test_detect_without_pages(store):
    assert run(store, "detect", "empty") == 1


def test_products_prompt(tmp_path, capsys):
    path = tmp_path / "products.json"
    path.write_text(json.dumps([{"name": "Cap", "price": "12.00", "currency": "EUR"}]), encoding="utf-8")

    assert cli.main(["products", str(path)]) == 0
    out = capsys.readouterr().out
    assert 'Product 1: "Cap"' in out
    assert "- Price: 12.00 EUR" in out


def test_products_rejects_invalid_rows(tmp_path, capsys):
    path = tmp_path / "products.json"
    path.write_text(json.dumps([{"price": "12.00"}]), encoding="utf-8")

    assert cli.main(["products", str(path)]) == 1
    assert "✖ Error:" in capsys.readouterr().err


def test_missing_token_file_is_reported(tmp_path, capsys):
    assert cli.main(["tokens", str(tmp_path / "nope.json")]) == 1
    assert "Cannot read" in capsys.readouterr().err


def test_malformed_recommended_file_is_reported(store, tmp_path, capsys):
    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{not json", encoding="utf-8")
    wrong_shape = tmp_path / "shape.json"
    wrong_shape.write_text(json.dumps({"rootNode": {"label": "x"}}), encoding="utf-8")

    for path in (bad_json, wrong_shape):
        assert run(store, "sitemap", "acme", "--type", "recommended", "--from-file", str(path)) == 1
        assert "Cannot read" in capsys.readouterr().err
    assert store.get_sitemap("acme", "recommended") is None
