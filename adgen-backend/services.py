"""
Service classes for the Product Ad Image Generator.
Contains PromptBuilder, ImageSynthesizer and the image byte helpers.
"""

import base64
import binascii
import logging
import re
import time
from dataclasses import dataclass
from typing import Optional

from openai import APIConnectionError, APIError, APITimeoutError, OpenAI, RateLimitError

from config import (
    CTA_BUY,
    CTA_DEFAULT,
    CTA_REAL_ESTATE,
    CTA_SERVICE,
    METADATA_MAX_LENGTH,
    OPENAI_API_KEY,
    OPENAI_IMAGE_MODEL,
    OPENAI_RETRY_WAIT,
    OVERLAY_CTA,
    OVERLAY_INTRO,
    OVERLAY_NAME,
    OVERLAY_OFFER,
    OVERLAY_PRICE,
    PROCESSING_DEADLINE_SECONDS,
    PROMPT_INTRO,
    PROMPT_OUTRO,
    REAL_ESTATE_KEYWORDS,
    SERVICE_KEYWORDS,
    STYLE_PRODUCT,
    STYLE_REAL_ESTATE,
    STYLE_SERVICE,
)
from exceptions import SynthesisError
from schemas import ProductInfo

NO_IMAGE_MESSAGE = "No image returned from AI"
CONTEXT_LIMIT = 500

JPEG = ("jpg", "image/jpeg")
PNG = ("png", "image/png")


def detect_image_format(data: bytes) -> tuple:
    """Return (extension, content_type) from the leading bytes. Unknown formats count as JPEG."""
    if data[:2] == b"\xff\xd8":
        return JPEG
    if data[:2] == b"\x89\x50":
        return PNG
    return JPEG


def sanitize_metadata(value: Optional[str]) -> str:
    """Make a value safe for object store metadata headers (printable ASCII, capped length)."""
    if not value:
        return ""
    value = re.sub(r"[\r\n\t]", " ", value)
    value = re.sub(r"[^\x20-\x7E]", "", value)
    return value[:METADATA_MAX_LENGTH].strip()


@dataclass
class AdPrompt:
    text: str
    overlay_text: str
    call_to_action: str


class PromptBuilder:
    """Turns scraped product info into an image prompt with text overlay instructions."""

    def classify(self, product: ProductInfo) -> str:
        body = product.body_text.lower()
        if product.location or any(k in body for k in REAL_ESTATE_KEYWORDS):
            return "real_estate"
        if any(k in body for k in SERVICE_KEYWORDS):
            return "service"
        return "product"

    def call_to_action(self, category: str, product: ProductInfo) -> str:
        if category == "real_estate":
            return CTA_REAL_ESTATE
        if category == "service":
            return CTA_SERVICE
        if product.price:
            return CTA_BUY
        return CTA_DEFAULT

    def build(self, product: ProductInfo) -> AdPrompt:
        category = self.classify(product)
        cta = self.call_to_action(category, product)

        parts = [PROMPT_INTRO, f"Product Name: {product.product_name}. "]
        if product.description:
            parts.append(f"Description: {product.description}. ")

        parts.append({
            "real_estate": STYLE_REAL_ESTATE,
            "service": STYLE_SERVICE,
        }.get(category, STYLE_PRODUCT))

        if product.body_text:
            parts.append(f"Context: {product.body_text[:CONTEXT_LIMIT]}. ")

        parts.append(OVERLAY_INTRO)
        if product.product_name:
            parts.append(OVERLAY_NAME.format(name=product.product_name))
        if product.price:
            parts.append(OVERLAY_PRICE.format(price=product.price))
        if product.offer:
            parts.append(OVERLAY_OFFER.format(offer=product.offer))
        parts.append(OVERLAY_CTA.format(cta=cta))
        parts.append(PROMPT_OUTRO)

        overlay = [v for v in (product.product_name, product.price, product.offer, cta) if v]
        return AdPrompt(text="".join(parts), overlay_text=" | ".join(overlay), call_to_action=cta)


def build_openai_client(timeout: float = PROCESSING_DEADLINE_SECONDS, http_client=None) -> OpenAI:
    # One HTTP attempt per call; ImageSynthesizer does its own single retry
    return OpenAI(api_key=OPENAI_API_KEY, timeout=timeout, max_retries=0, http_client=http_client)


class ImageSynthesizer:
    """Handles AI model communication for ad image generation."""

    RETRY_ONCE = (RateLimitError, APIConnectionError)

    def __init__(self, client: OpenAI, model: str = OPENAI_IMAGE_MODEL):
        self.client = client
        self.model = model

    def _create(self, prompt: str, timeout: Optional[float]):
        options = {"timeout": timeout} if timeout else {}
        return self.client.responses.create(
            model=self.model,
            input=prompt,
            tools=[{"type": "image_generation"}],
            **options,
        )

    def _create_with_retry(self, prompt: str, timeout: Optional[float]):
        try:
            return self._create(prompt, timeout)
        except APITimeoutError:
            raise
        except self.RETRY_ONCE as e:
            logging.warning(f"OpenAI retry after {type(e).__name__}: {e}")
            time.sleep(OPENAI_RETRY_WAIT)
            return self._create(prompt, timeout)

    @staticmethod
    def _extract_image(response) -> Optional[str]:
        for item in getattr(response, "output", None) or []:
            if getattr(item, "type", None) == "image_generation_call" and getattr(item, "result", None):
                return item.result
        return None

    def generate(self, prompt: str, timeout: Optional[float] = None) -> bytes:
        """Generate an image for the prompt and return its raw bytes."""
        logging.info(f"🎨 Requesting ad image from {self.model}")
        try:
            response = self._create_with_retry(prompt, timeout)
        except APIError as e:
            raise SynthesisError(f"AI image generation failed: {e}") from e

        image_b64 = self._extract_image(response)
        if not image_b64:
            raise SynthesisError(NO_IMAGE_MESSAGE)

        try:
            image = base64.b64decode(image_b64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SynthesisError(f"AI returned an undecodable image: {e}") from e
        if not image:
            raise SynthesisError(NO_IMAGE_MESSAGE)
        return image
