import httpx
import pytest

from siteshape.models import ScrapedPage

SHOPIFY_HTML = """<html><head>
<script src="https://cdn.shopify.com/s/files/1/theme.js"></script>
<script>Shopify.theme = {"name":"Dawn","id":123456789,"role":"main"};</script>
</head><body class="template-product product-page">
<div id="shopify-section-header" class="shopify-section">Header</div>
</body></html>"""

WORDPRESS_HTML = """<html><head>
<meta name="generator" content="WordPress 6.4.2">
<link rel="stylesheet" href="/wp-content/themes/astra/style.css">
<link rel="https://api.w.org/" href="https://example.com/wp-json/">
<script src="/wp-includes/js/jquery/jquery.min.js"></script>
<script src="/wp-content/plugins/woocommerce/assets/js/frontend.js"></script>
<script src="/wp-content/plugins/elementor/assets/js/frontend.js"></script>
</head><body class="home"></body></html>"""


@pytest.fixture
def scraped_pages():
    return [
        ScrapedPage(id="p-home", url="https://example.com/", title="Home"),
        ScrapedPage(id="p-shirt", url="https://example.com/products/red-shirt", title="Red Shirt"),
        ScrapedPage(id="p-launch", url="https://example.com/blogs/news/summer-launch/", title="Launch"),
        ScrapedPage(id="p-about", url="https://example.com/pages/about-us", title="About us"),
    ]


@pytest.fixture
def mock_client():
    """Build an httpx client answering from a ``{url: body}`` table; unknown URLs 404."""
    clients = []

    def make(routes, content_type="application/xml"):
        def handler(request):
            body = routes.get(str(request.url))
            if body is None:
                return httpx.Response(404, text="not found")
            if isinstance(body, Exception):
                raise body
            return httpx.Response(200, content=body.encode("utf-8"), headers={"content-type": content_type})

        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield make
    for client in clients:
        client.close()
