"""
Pydantic models for data validation in the Product Ad Image Generator.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerateRequest(BaseModel):
    """Request model for submitting a product page."""
    model_config = ConfigDict(populate_by_name=True)

    # Loosely typed so missing or non-string values reach the controller's own validation
    product_url: Optional[Any] = Field(default=None, alias="productUrl")


class JobResponse(BaseModel):
    """Response when submitting a background generation job."""
    job_id: str
    status: str
    message: str
    status_url: str


class StatusResponse(BaseModel):
    """Response for checking background job status. Fields depend on the status."""
    job_id: str
    status: str  # "pending" | "processing" | "completed" | "failed"
    created_at: datetime
    message: Optional[str] = None
    image_url: Optional[str] = None
    url_expires_at: Optional[datetime] = None
    content_type: Optional[str] = None
    completed_at: Optional[datetime] = None
    file_name: Optional[str] = None
    product_name: Optional[str] = None
    price: Optional[str] = None
    offer: Optional[str] = None
    overlay_text: Optional[str] = None
    error: Optional[str] = None
    failed_at: Optional[datetime] = None


class ProductInfo(BaseModel):
    """What the scraper could find on a product page. Every field is best-effort."""
    url: str
    product_name: str = "Product"
    description: str = ""
    price: str = ""
    original_price: str = ""
    offer: str = ""
    phone: str = ""
    location: str = ""
    body_text: str = ""
