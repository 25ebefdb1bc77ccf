"""
PDF Relay - Cross-origin relay for PDFs produced by a rendering service.

Fetches a PDF from an upstream URL and re-serves it either as binary content
with permissive embedding headers or as a base64 JSON payload, so pages on a
different origin can embed documents from the renderer.
"""

__version__ = "1.1.0"
