"""
Product page scraper.

Each field is looked up through an ordered list of extractors; the first one
that yields a non-empty string wins. Layouts vary wildly between shops, so
every field is best-effort.
"""

import logging
import re

import requests
from bs4 import BeautifulSoup

from config import BODY_TEXT_LIMIT, OFFER_KEYWORDS, SCRAPE_TIMEOUT_SECONDS, SCRAPER_USER_AGENT
from exceptions import ScrapeError
from schemas import ProductInfo


def _attr(selector: str, attribute: str):
    def extract(soup):
        element = soup.select_one(selector)
        return element.get(attribute, "") if element else ""
    return extract


def _text(selector: str):
    def extract(soup):
        element = soup.select_one(selector)
        return element.get_text() if element else ""
    return extract


def _all_text(selector: str):
    def extract(soup):
        return " ".join(el.get_text() for el in soup.select(selector))
    return extract


def _title(soup):
    return soup.title.get_text() if soup.title else ""


def _tel_link(soup):
    element = soup.select_one('a[href^="tel:"]')
    return element["href"][len("tel:"):] if element else ""


PRODUCT_NAME_EXTRACTORS = (
    _attr('meta[property="og:title"]', "content"),
    _text("h1"),
    _text('[class*="product-title"]'),
    _text('[class*="product-name"]'),
    _title,
)

PRICE_EXTRACTORS = (
    _attr('[itemprop="price"]', "content"),
    _text('[class*="price"]'),
    _text('[id*="price"]'),
    _attr("[data-price]", "data-price"),
    _text('[class*="cost"]'),
)

ORIGINAL_PRICE_EXTRACTORS = (
    _text('[class*="original-price"]'),
    _text('[class*="old-price"]'),
    _text('[class*="was-price"]'),
)

DESCRIPTION_EXTRACTORS = (
    _attr('meta[name="description"]', "content"),
    _attr('meta[property="og:description"]', "content"),
    _text('[class*="product-description"]'),
    _text("p"),
)

PHONE_EXTRACTORS = (
    _tel_link,
    _text('[class*="phone"]'),
)

LOCATION_EXTRACTORS = (
    _text('[class*="location"]'),
    _text('[class*="address"]'),
    _all_text('[itemprop="address"]'),
)

DISCOUNT_PATTERNS = (
    re.compile(r"(\d+)%\s*(?:off|discount|sale)", re.IGNORECASE),
    re.compile(r"(?:save|get)\s*(\d+)%", re.IGNORECASE),
)


def first_match(soup, extractors) -> str:
    """Run extractors in order and return the first non-empty, stripped result."""
    for extract in extractors:
        value = (extract(soup) or "").strip()
        if value:
            return value
    return ""


def collapse_whitespace(value: str) -> str:
    return re.sub(r"\s+", " ", value or "").strip()


def detect_offer(body_text: str, price: str, original_price: str) -> str:
    """Turn discount wording on the page into a short badge text."""
    lowered = body_text.lower()
    if not any(keyword in lowered for keyword in OFFER_KEYWORDS):
        return ""

    for pattern in DISCOUNT_PATTERNS:
        match = pattern.search(body_text)
        if match:
            return f"{match.group(1)}% OFF"

    if original_price and price:
        return "SPECIAL OFFER"
    return "ON SALE"


class ProductScraper:
    """Fetches a product page and extracts what an ad needs from it."""

    def __init__(self, timeout: float = SCRAPE_TIMEOUT_SECONDS, session=None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str) -> str:
        try:
            response = self.session.get(
                url,
                headers={"User-Agent": SCRAPER_USER_AGENT},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise ScrapeError(f"Timed out fetching product page after {self.timeout:g}s") from e
        except requests.exceptions.HTTPError as e:
            raise ScrapeError(f"Product page returned HTTP {e.response.status_code}") from e
        except requests.RequestException as e:
            raise ScrapeError(f"Could not fetch product page: {e}") from e
        return response.text

    def parse(self, html: str, url: str) -> ProductInfo:
        try:
            soup = BeautifulSoup(html, "html.parser")
        except Exception as e:
            raise ScrapeError(f"Could not parse product page: {e}") from e

        body = soup.body or soup
        body_text = collapse_whitespace(body.get_text(" "))[:BODY_TEXT_LIMIT]

        product_name = first_match(soup, PRODUCT_NAME_EXTRACTORS)
        price = collapse_whitespace(first_match(soup, PRICE_EXTRACTORS))
        original_price = first_match(soup, ORIGINAL_PRICE_EXTRACTORS)

        return ProductInfo(
            url=url,
            product_name=product_name or "Product",
            description=first_match(soup, DESCRIPTION_EXTRACTORS),
            price=price,
            original_price=original_price,
            offer=detect_offer(body_text, price, original_price),
            phone=first_match(soup, PHONE_EXTRACTORS),
            location=first_match(soup, LOCATION_EXTRACTORS),
            body_text=body_text,
        )

    def scrape(self, url: str) -> ProductInfo:
        logging.info(f"🔎 Scraping product page: {url}")
        product = self.parse(self.fetch(url), url)
        logging.info(f"🛒 Scraped '{product.product_name}' (price: {product.price or 'n/a'})")
        return product
