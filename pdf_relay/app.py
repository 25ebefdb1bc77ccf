"""
PDF Relay - FastAPI application.

Fetches PDFs from an upstream rendering service and re-serves them so they
can be embedded from another origin, either as binary content or as a
base64 JSON payload.
"""

import base64
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import RelaySettings, get_settings, validate_config_on_startup
from .fetcher import PdfFetcher, UpstreamFetchError
from .models import (
    PDF_CONTENT_TYPE,
    Base64PdfResponse,
    ConversionStubResponse,
    HealthResponse,
    NotFoundResponse,
    ProxyErrorResponse,
    ServiceMetadata,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

MISSING_URL_MESSAGE = "URL parameter is required"

router = APIRouter()


def get_fetcher(settings: RelaySettings = Depends(get_settings)) -> PdfFetcher:
    """Fetcher bound to the configured upstream timeout."""
    return PdfFetcher(timeout=settings.upstream_timeout_seconds)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _pdf_headers(settings: RelaySettings) -> dict:
    """Headers for a relayed PDF body."""
    headers = {
        "Content-Disposition": f'inline; filename="{settings.pdf_filename}"',
        "Cache-Control": f"public, max-age={settings.cache_max_age_seconds}",
    }
    policy = settings.cors_policy
    if policy.allows_all_origins:
        # Allow any viewer to fetch and frame the document
        headers.update({
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": ", ".join(policy.allowed_methods),
            "Access-Control-Allow-Headers": ", ".join(policy.allowed_headers),
            "X-Frame-Options": "ALLOWALL",
            "Content-Security-Policy": "frame-ancestors *",
        })
    return headers


# ============================================================================
# Health Check Endpoint
# ============================================================================

@router.get("/", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Static service description plus the current time.
    """
    metadata: ServiceMetadata = request.app.state.metadata
    return HealthResponse(
        status="ok",
        service=metadata.service,
        version=metadata.version,
        endpoints=list(metadata.endpoints),
        cors=metadata.cors,
        timestamp=_now(),
    )


# ============================================================================
# Relay Endpoints
# ============================================================================

@router.get("/proxy-pdf")
async def proxy_pdf(
    url: Optional[str] = Query(None, description="Upstream URL of the PDF"),
    settings: RelaySettings = Depends(get_settings),
    fetcher: PdfFetcher = Depends(get_fetcher),
):
    """
    Relay a PDF as binary content.

    Returns:
        The upstream bytes with PDF, inline disposition, cache and
        embedding headers

    Errors:
        400 when ``url`` is missing, 500 when the upstream fetch fails
    """
    if not url:
        return JSONResponse(
            status_code=400,
            content=ProxyErrorResponse(error=MISSING_URL_MESSAGE).model_dump(exclude_none=True),
        )

    logger.info(f"Proxying PDF from: {url}")
    try:
        pdf_bytes = await fetcher.fetch(url)
    except UpstreamFetchError as e:
        logger.error(f"Error proxying PDF: {e.message}")
        return JSONResponse(
            status_code=500,
            content=ProxyErrorResponse(
                error="Failed to proxy PDF",
                details=e.message,
                url=url,
            ).model_dump(exclude_none=True),
        )

    logger.info(f"Successfully served PDF from {url}")
    return Response(
        content=pdf_bytes,
        media_type=PDF_CONTENT_TYPE,
        headers=_pdf_headers(settings),
    )


@router.get("/proxy-pdf-base64", response_model=Base64PdfResponse)
async def proxy_pdf_base64(
    url: Optional[str] = Query(None, description="Upstream URL of the PDF"),
    fetcher: PdfFetcher = Depends(get_fetcher),
):
    """
    Relay a PDF as a base64 JSON payload, for embedding as a data URI.
    """
    if not url:
        return JSONResponse(
            status_code=400,
            content=ProxyErrorResponse(success=False, error=MISSING_URL_MESSAGE).model_dump(
                exclude_none=True
            ),
        )

    try:
        pdf_bytes = await fetcher.fetch(url)
    except UpstreamFetchError as e:
        logger.error(f"Error creating base64 PDF: {e.message}")
        return JSONResponse(
            status_code=500,
            content=ProxyErrorResponse(
                success=False,
                error="Failed to create base64 PDF",
                details=e.message,
                url=url,
            ).model_dump(exclude_none=True),
        )

    logger.info(f"Encoded {len(pdf_bytes)} byte PDF from {url} as base64")
    return Base64PdfResponse(
        base64Data=base64.b64encode(pdf_bytes).decode("ascii"),
        source=url,
        timestamp=_now(),
    )


@router.get("/proxy-pdf-to-image", response_model=ConversionStubResponse)
async def proxy_pdf_to_image(
    url: Optional[str] = Query(None, description="Upstream URL of the PDF (unused)"),
) -> ConversionStubResponse:
    """Conversion to images is not supported; points callers at the working routes."""
    return ConversionStubResponse()


# ============================================================================
# Application Factory
# ============================================================================

def create_app(settings: Optional[RelaySettings] = None) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Explicit settings; defaults to the cached environment settings

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = get_settings()

    application = FastAPI(
        title="PDF Relay",
        version=__version__,
        description="Cross-origin relay for PDFs from an upstream rendering service",
    )
    application.dependency_overrides[get_settings] = lambda: settings

    policy = settings.cors_policy
    application.state.metadata = ServiceMetadata(version=__version__, cors=policy.describe())

    application.add_middleware(
        CORSMiddleware,
        allow_origins=policy.allowed_origins,
        allow_origin_regex=policy.origin_regex,
        allow_credentials=policy.allow_credentials,
        allow_methods=policy.allowed_methods,
        allow_headers=policy.allowed_headers,
        max_age=policy.preflight_max_age_seconds,
    )

    application.include_router(router)

    @application.exception_handler(StarletteHTTPException)
    async def route_not_found_handler(request: Request, exc: StarletteHTTPException):
        # Unsupported methods on known paths are reported as missing routes too
        if exc.status_code not in (404, 405):
            return await http_exception_handler(request, exc)
        body = NotFoundResponse(message=f"Route {request.method} {request.url.path} not found")
        return JSONResponse(status_code=404, content=body.model_dump())

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        # Runs outside CORSMiddleware, so the policy headers are added here
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "message": "Something went wrong"},
            headers=policy.response_headers(request.headers.get("origin")),
        )

    return application


_settings = validate_config_on_startup()
logging.getLogger().setLevel(_settings.log_level)

app = create_app(_settings)


def main() -> None:
    """Run the relay with uvicorn on the configured host and port."""
    import uvicorn

    settings = get_settings()
    logger.info(f"PDF Proxy API running on port {settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
