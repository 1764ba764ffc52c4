# adgen-backend/tests/test_scraper.py

import pytest
import requests

from exceptions import ScrapeError
from scraper import ProductScraper, detect_offer

PRODUCT_PAGE = """
<html>
  <head>
    <title>Widget | Example Shop</title>
    <meta property="og:title" content="  Super Widget  ">
    <meta name="description" content="The best widget money can buy.">
  </head>
  <body>
    <h1>Widget heading</h1>
    <span class="product-price">
        $9.99
    </span>
    <span class="old-price">$14.99</span>
    <p>Limited deal: 30% off this week only.</p>
    <a href="tel:+15551234567">Call us</a>
    <div class="store-location">Springfield</div>
  </body>
</html>
"""


class FakeResponse:
    def __init__(self, text="", status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response


def test_parse_prefers_first_matching_extractor():
    product = ProductScraper().parse(PRODUCT_PAGE, "https://example.com/widget")

    assert product.url == "https://example.com/widget"
    assert product.product_name == "Super Widget"
    assert product.description == "The best widget money can buy."
    assert product.price == "$9.99"
    assert product.original_price == "$14.99"
    assert product.offer == "30% OFF"
    assert product.phone == "+15551234567"
    assert product.location == "Springfield"
    assert "Limited deal" in product.body_text


def test_parse_falls_back_when_preferred_sources_missing():
    html = """
    <html><head><title> Plain Page </title></head>
    <body><div class="item-cost">12 EUR</div><p>First paragraph.</p></body></html>
    """
    product = ProductScraper().parse(html, "https://example.com/plain")

    assert product.product_name == "Plain Page"
    assert product.price == "12 EUR"
    assert product.description == "First paragraph."
    assert product.offer == ""


def test_parse_defaults_product_name():
    product = ProductScraper().parse("<html><body></body></html>", "https://example.com/empty")
    assert product.product_name == "Product"
    assert product.price == ""


def test_body_text_is_capped():
    html = "<html><body><p>" + "word " * 1000 + "</p></body></html>"
    product = ProductScraper().parse(html, "https://example.com/long")
    assert len(product.body_text) == 2000


@pytest.mark.parametrize("body, price, original, expected", [
    ("Summer deal: save 20% today", "$5", "", "20% OFF"),
    ("Big sale on now", "$5", "$8", "SPECIAL OFFER"),
    ("Big sale on now", "$5", "", "ON SALE"),
    ("A regular product page", "$5", "$8", ""),
])
def test_detect_offer(body, price, original, expected):
    assert detect_offer(body, price, original) == expected


def test_scrape_fetches_with_timeout_and_user_agent():
    session = FakeSession(response=FakeResponse(PRODUCT_PAGE))
    product = ProductScraper(timeout=10, session=session).scrape("https://example.com/widget")

    url, kwargs = session.calls[0]
    assert url == "https://example.com/widget"
    assert kwargs["timeout"] == 10
    assert "Mozilla" in kwargs["headers"]["User-Agent"]
    assert product.product_name == "Super Widget"


def test_timeout_is_a_scrape_error():
    session = FakeSession(error=requests.exceptions.Timeout("read timed out"))
    with pytest.raises(ScrapeError, match="Timed out"):
        ProductScraper(timeout=10, session=session).scrape("https://example.com/widget")


def test_non_2xx_is_a_scrape_error():
    session = FakeSession(response=FakeResponse(status_code=404))
    with pytest.raises(ScrapeError, match="HTTP 404"):
        ProductScraper(session=session).scrape("https://example.com/widget")


def test_connection_error_is_a_scrape_error():
    session = FakeSession(error=requests.exceptions.ConnectionError("refused"))
    with pytest.raises(ScrapeError):
        ProductScraper(session=session).scrape("https://example.com/widget")
