import json

import httpx
import pytest

from sales_scout.storage import Database


def render_page(product: dict, assignment: str = "var product = ") -> str:
    """Product page with the product object embedded the way shops ship it."""
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>{product.get("title", "")}</title>
  <script src="/assets/app.js"></script>
  <script>window.dataLayer = window.dataLayer || [];</script>
</head>
<body>
  <div class="product">{product.get("title", "")}</div>
  <script>
    {assignment}{json.dumps(product)};
    document.addEventListener("DOMContentLoaded", function () {{ init(product); }});
  </script>
</body>
</html>"""


@pytest.fixture
def page():
    return render_page


@pytest.fixture
def db():
    return Database("sqlite:///:memory:")


@pytest.fixture
def shop_transport():
    """MockTransport serving product pages keyed by URL; other URLs get 500."""

    def build(pages: dict) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            body = pages.get(str(request.url))
            if body is None:
                return httpx.Response(500, text="upstream error")
            return httpx.Response(200, text=body)

        return httpx.MockTransport(handler)

    return build
