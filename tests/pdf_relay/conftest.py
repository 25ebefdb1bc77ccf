"""
Pytest fixtures for PDF relay tests.
"""

import os

# IMPORTANT: Set environment variables BEFORE any imports from pdf_relay
# so RelaySettings is configured correctly when first loaded.
os.environ["CORS_MODE"] = "open"
os.environ["CORS_ORIGINS"] = ""
os.environ["UPSTREAM_TIMEOUT_SECONDS"] = "10"

import httpx
import pytest
from fastapi.testclient import TestClient

PDF_BYTES = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n"


class FakeUpstream:
    """Records outbound requests and answers them with a canned response."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.content = PDF_BYTES
        self.error = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(
            self.status_code,
            content=self.content,
            headers={"Content-Type": "application/pdf"},
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream():
    """Fake upstream PDF service."""
    return FakeUpstream()


def _client_for(application, upstream):
    from pdf_relay.app import get_fetcher
    from pdf_relay.fetcher import PdfFetcher

    application.dependency_overrides[get_fetcher] = lambda: PdfFetcher(
        timeout=10.0, transport=upstream.transport
    )
    return TestClient(application)


@pytest.fixture
def client(upstream):
    """Test client for the default (open CORS) relay wired to the fake upstream."""
    from pdf_relay.app import app, get_fetcher

    yield _client_for(app, upstream)
    app.dependency_overrides.pop(get_fetcher, None)


@pytest.fixture
def allowlist_client(upstream):
    """Test client for a relay running the allow-list CORS policy."""
    from pdf_relay.app import create_app
    from pdf_relay.config import RelaySettings

    application = create_app(RelaySettings(cors_mode="allowlist"))
    return _client_for(application, upstream)


@pytest.fixture
def pdf_bytes():
    """Bytes served by the fake upstream."""
    return PDF_BYTES
