"""
Pydantic models for the PDF relay.

These models define the JSON bodies returned by the relay and the static
service metadata exposed by the health endpoint.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

SERVICE_NAME = "MikTeX PDF Proxy"
PDF_CONTENT_TYPE = "application/pdf"

ROUTES = ["/", "/proxy-pdf", "/proxy-pdf-base64", "/proxy-pdf-to-image"]


class ServiceMetadata(BaseModel):
    """Process-wide, read-only description of the service."""

    model_config = ConfigDict(frozen=True)

    service: str = SERVICE_NAME
    version: str
    endpoints: List[str] = Field(
        default_factory=lambda: [
            "/",
            "/proxy-pdf?url=http://your-pdf-url",
            "/proxy-pdf-base64?url=http://your-pdf-url",
            "/proxy-pdf-to-image?url=http://your-pdf-url",
        ]
    )
    cors: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str
    version: str
    endpoints: List[str]
    cors: str
    timestamp: datetime


class Base64PdfResponse(BaseModel):
    """Successful base64 relay payload."""

    success: bool = True
    base64Data: str = Field(..., description="Standard base64 encoding of the PDF bytes")
    contentType: str = PDF_CONTENT_TYPE
    source: str = Field(..., description="Upstream URL the PDF was fetched from")
    timestamp: datetime


class ProxyErrorResponse(BaseModel):
    """Upstream failure or missing-parameter error body."""

    success: Optional[bool] = None
    error: str
    details: Optional[str] = None
    url: Optional[str] = None


class ConversionStubResponse(BaseModel):
    """Fixed answer of the unimplemented PDF-to-image route."""

    success: bool = False
    message: str = "PDF to image conversion is not implemented"
    alternatives: List[str] = Field(
        default_factory=lambda: [
            "Use /proxy-pdf?url=... to embed the PDF directly",
            "Use /proxy-pdf-base64?url=... to embed the PDF as a data URI",
        ]
    )


class NotFoundResponse(BaseModel):
    """Helper body for unmatched routes."""

    error: str = "Not Found"
    message: str
    availableEndpoints: List[str] = Field(default_factory=lambda: list(ROUTES))
