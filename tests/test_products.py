from siteshape.models import Product, ProductVariant
from siteshape.products import format_products_for_prompt


def test_empty():
    assert format_products_for_prompt([]) == ""


def test_product_block():
    product = Product(
        name="Red Shirt",
        price="29.00",
        currency="EUR",
        description="x" * 160,
        variants=[
            ProductVariant(name="Size", options=["S", "M", "L"]),
            ProductVariant(name="Color", options=[str(i) for i in range(6)]),
        ],
        specifications={f"k{i}": f"v{i}" for i in range(7)},
        brand="Acme",
        availability="In stock",
    )
    text = format_products_for_prompt([product])
    assert text.splitlines() == [
        "REAL PRODUCT DATA (use exact names, prices, descriptions):",
        "",
        'Product 1: "Red Shirt"',
        "- Price: 29.00 EUR",
        "- Description: " + "x" * 150 + "...",
        "- Variants: Size (3 options: S, M, L), Color (6 options)",
        "- Key specs: k0: v0, k1: v1, k2: v2, k3: v3, k4: v4",
        "- Brand: Acme",
        "- Availability: In stock",
    ]


def test_usd_has_no_suffix():
    text = format_products_for_prompt([Product(name="Cap", price="$10", currency="USD")])
    assert "- Price: $10\n" in text


def test_output_is_capped():
    products = [Product(name=f"Product {i}", description="d" * 140) for i in range(30)]
    text = format_products_for_prompt(products)
    assert len(text) == 2000
    assert text.endswith("...")
