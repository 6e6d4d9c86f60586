import httpx

from siteshape.fetch import extract_main_content, extract_meta, fetch_pages, scrape_pages, settle_in_batches

PAGE = """<html><head><title> Red Shirt </title>
<meta name="shopify-checkout-api-token" content="abc123">
<meta property="og:type" content="product">
</head><body>
<nav><a href="/">Menu</a></nav>
<main><h1>Red Shirt</h1><p>Soft cotton tee.</p><script>var x = 1;</script></main>
<footer>Copyright</footer>
</body></html>"""


def test_settle_in_batches_keeps_order_and_failures():
    def work(n):
        if n == 3:
            raise RuntimeError("three")
        return n * 10

    settled = settle_in_batches(work, range(6), batch_size=4)
    assert [item for item, _, _ in settled] == [0, 1, 2, 3, 4, 5]
    assert [result for _, result, _ in settled] == [0, 10, 20, None, 40, 50]
    assert isinstance(settled[3][2], RuntimeError)


def test_extract_meta():
    assert extract_meta(PAGE) == {"shopify-checkout-api-token": "abc123", "og:type": "product"}


def test_extract_main_content():
    title, markdown = extract_main_content(PAGE)
    assert title == "Red Shirt"
    assert "# Red Shirt" in markdown
    assert "Soft cotton tee." in markdown
    assert "Menu" not in markdown
    assert "Copyright" not in markdown
    assert "var x" not in markdown


def test_fetch_pages_merges_metadata_and_tolerates_failures(mock_client):
    client = mock_client({
        "https://example.com/products/red-shirt": PAGE,
        "https://example.com/down": httpx.ConnectError("boom"),
    }, content_type="text/html; charset=utf-8")

    results = fetch_pages(
        ["https://example.com/products/red-shirt", "https://example.com/down"],
        client=client,
        stored_metadata={
            "https://example.com/products/red-shirt": {"language": "en"},
            "https://example.com/down": {"statusCode": 200},
        },
    )

    ok, down = results
    assert ok.html == PAGE
    assert ok.metadata == {"language": "en", "shopify-checkout-api-token": "abc123", "og:type": "product"}
    assert down.url == "https://example.com/down"
    assert down.html is None
    assert down.metadata == {"statusCode": 200}


def test_scrape_pages_keeps_only_html(mock_client):
    client = mock_client({"https://example.com/products/red-shirt": PAGE}, content_type="text/html")
    pages = scrape_pages(["https://example.com/products/red-shirt", "https://example.com/missing"], client=client)

    assert len(pages) == 1
    page = pages[0]
    assert page.url == "https://example.com/products/red-shirt"
    assert page.title == "Red Shirt"
    assert "Soft cotton tee." in page.content
    assert page.id
    assert page.metadata["og:type"] == "product"
