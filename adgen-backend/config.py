"""
Configuration file for the Product Ad Image Generator.
Contains all global constants and prompt engineering templates.
"""

import os

# --- Constants ---
PROJECT_ROOT = os.getcwd()
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(PROJECT_ROOT, 'adgen.db')}")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",") if o.strip()]

# Object store
BUCKET_NAME = os.getenv("BUCKET_NAME", "adgen-images")
AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL") or None

# AI image generation
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_IMAGE_MODEL = os.getenv("OPENAI_IMAGE_MODEL", "gpt-5")
OPENAI_RETRY_WAIT = 1.5

# Timing (seconds)
SCRAPE_TIMEOUT_SECONDS = float(os.getenv("SCRAPE_TIMEOUT_SECONDS", "10"))
ACCESS_LINK_TTL_SECONDS = int(os.getenv("ACCESS_LINK_TTL_SECONDS", "3600"))
LINK_REFRESH_MARGIN_SECONDS = int(os.getenv("LINK_REFRESH_MARGIN_SECONDS", "300"))
JOB_RETENTION_SECONDS = int(os.getenv("JOB_RETENTION_SECONDS", "86400"))
# Host ceiling is 15 minutes; leave room to record the failure before it hits.
PROCESSING_DEADLINE_SECONDS = int(os.getenv("PROCESSING_DEADLINE_SECONDS", "870"))
MAX_DELIVERY_ATTEMPTS = int(os.getenv("MAX_DELIVERY_ATTEMPTS", "3"))

# Scraping
SCRAPER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
BODY_TEXT_LIMIT = 2000
METADATA_MAX_LENGTH = 200

# --- Prompt Engineering Section ---

PROMPT_INTRO = "Create a highly realistic, professional product photograph for advertising on Facebook and Instagram. "

STYLE_REAL_ESTATE = (
    "Create a stunning real estate photograph with professional composition, "
    "natural lighting, wide angle view. Show the property in its best light. "
    "Architectural photography style, high-end real estate marketing quality. "
)
STYLE_SERVICE = (
    "Professional service-oriented imagery, clean and modern aesthetic. "
    "The image should be photorealistic with professional lighting, clean background. "
)
STYLE_PRODUCT = (
    "The image should be photorealistic with professional lighting, clean background, "
    "showing the product prominently. High-resolution commercial photography style. "
)

OVERLAY_INTRO = "IMPORTANT: Add text overlays directly on the image for social media advertising. "
OVERLAY_NAME = (
    'Display the product name "{name}" prominently at the top center of the image in large, bold, '
    "white text with a dark semi-transparent background for readability. "
)
OVERLAY_PRICE = (
    'Display the price "{price}" in the top right corner in large, bold, eye-catching text '
    "(use gold or bright color) with a dark background. "
)
OVERLAY_OFFER = 'Display "{offer}" as a badge or banner in the top right corner in red or bright color with bold text. '
OVERLAY_CTA = (
    "Add an appropriate call-to-action button at the bottom center of the image. "
    'Use "{cta}" as the call-to-action. '
    "Make the call-to-action button visually appealing with a contrasting color "
    "(like orange, red, or bright blue), bold text, and rounded corners. "
)
PROMPT_OUTRO = (
    "Ensure all text is highly readable with proper contrast, shadows, and backgrounds. "
    "The text should be professional, modern, and optimized for social media advertising. "
    "Photorealistic quality with text integrated naturally into the image composition."
)

CTA_REAL_ESTATE = "View Property"
CTA_SERVICE = "Book Now"
CTA_BUY = "Buy Now"
CTA_DEFAULT = "Learn More"

REAL_ESTATE_KEYWORDS = ("property", "house", "apartment")
SERVICE_KEYWORDS = ("service", "consulting", "booking")
OFFER_KEYWORDS = ("discount", "off", "sale", "deal", "promo", "offer")
