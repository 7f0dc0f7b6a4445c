import asyncio

import httpx
import pytest

from sales_scout.exceptions import FetchError
from sales_scout.scraping import PageFetcher


URL = "https://shop.test/products/lightstick"


def fetch(fetcher, url=URL):
    return asyncio.run(fetcher.fetch(url))


def test_returns_markup_and_sends_browser_headers():
    seen = {}

    def handler(request):
        seen["headers"] = request.headers
        return httpx.Response(200, text="<html>ok</html>")

    fetcher = PageFetcher(
        {"accept_language": "zh-TW,zh;q=0.9"}, transport=httpx.MockTransport(handler)
    )

    assert fetch(fetcher) == "<html>ok</html>"
    assert seen["headers"]["user-agent"].startswith("Mozilla/5.0")
    assert seen["headers"]["accept-language"] == "zh-TW,zh;q=0.9"
    assert seen["headers"]["accept-encoding"] == "gzip, deflate"
    assert seen["headers"]["connection"] == "keep-alive"


def test_non_2xx_status_raises_fetch_error():
    fetcher = PageFetcher(transport=httpx.MockTransport(lambda r: httpx.Response(404)))

    with pytest.raises(FetchError) as excinfo:
        fetch(fetcher)

    assert excinfo.value.status_code == 404
    assert excinfo.value.url == URL


def test_timeout_raises_fetch_error():
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    fetcher = PageFetcher({"timeout": 5}, transport=httpx.MockTransport(handler))

    with pytest.raises(FetchError) as excinfo:
        fetch(fetcher)

    assert "timed out" in excinfo.value.reason
    assert excinfo.value.status_code is None


def test_transport_error_raises_fetch_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = PageFetcher(transport=httpx.MockTransport(handler))

    with pytest.raises(FetchError):
        fetch(fetcher)


def test_follows_a_few_redirects():
    def handler(request):
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": URL})
        return httpx.Response(200, text="moved here")

    fetcher = PageFetcher(transport=httpx.MockTransport(handler))

    assert fetch(fetcher, "https://shop.test/old") == "moved here"


def test_redirect_loop_is_capped():
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(302, headers={"Location": URL})

    fetcher = PageFetcher({"max_redirects": 5}, transport=httpx.MockTransport(handler))

    with pytest.raises(FetchError) as excinfo:
        fetch(fetcher)

    assert "redirects" in excinfo.value.reason
    assert len(calls) == 6


@pytest.mark.parametrize("url", ["", "not a url", "/products/1", "ftp://shop.test/file"])
def test_invalid_url_fails_before_any_request(url):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200)

    fetcher = PageFetcher(transport=httpx.MockTransport(handler))

    with pytest.raises(FetchError):
        fetch(fetcher, url)

    assert calls == []
