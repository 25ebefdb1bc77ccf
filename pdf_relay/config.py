"""
PDF Relay Configuration Module

Centralized configuration management with Pydantic validation.
All environment variables are validated at startup to catch misconfigurations early.
"""

import logging
import re
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

WILDCARD = "*"


class CorsPolicy(BaseModel):
    """
    Cross-origin policy applied to every response.

    ``allowed_origins`` is either a list of literal origins or ``["*"]``.
    ``allowed_origin_patterns`` holds regexes for origin families
    (e.g. every subdomain of a parent domain).
    """

    allowed_origins: List[str] = Field(default_factory=lambda: [WILDCARD])
    allowed_origin_patterns: List[str] = Field(default_factory=list)
    allowed_methods: List[str] = Field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    allowed_headers: List[str] = Field(default_factory=lambda: [WILDCARD])
    allow_credentials: bool = True
    preflight_max_age_seconds: int = Field(default=86400, ge=0)

    @classmethod
    def open(cls) -> "CorsPolicy":
        """Every origin, credentialed requests, preflight cached for 24 hours."""
        return cls()

    @classmethod
    def allow_list(cls) -> "CorsPolicy":
        """Google Apps Script hosts only."""
        return cls(
            allowed_origins=[
                "https://script.google.com",
                "https://script.googleusercontent.com",
            ],
            allowed_origin_patterns=[
                r"^https://[a-z0-9-]+\.googleusercontent\.com$",
                r"^https://[a-z0-9-]+\.google\.com$",
            ],
            allowed_methods=["GET", "POST", "OPTIONS"],
            allowed_headers=["Content-Type", "Authorization"],
            allow_credentials=False,
            preflight_max_age_seconds=600,
        )

    @property
    def allows_all_origins(self) -> bool:
        return WILDCARD in self.allowed_origins

    @property
    def origin_regex(self) -> Optional[str]:
        """Combine the origin patterns into a single regex for CORSMiddleware."""
        if not self.allowed_origin_patterns:
            return None
        return "|".join(f"(?:{pattern})" for pattern in self.allowed_origin_patterns)

    def allows_origin(self, origin: str) -> bool:
        """Whether a request from ``origin`` may read the response."""
        if self.allows_all_origins or origin in self.allowed_origins:
            return True
        regex = self.origin_regex
        return bool(regex and re.fullmatch(regex, origin))

    def response_headers(self, origin: Optional[str]) -> dict:
        """CORS headers for a response built outside CORSMiddleware."""
        if not origin or not self.allows_origin(origin):
            return {}
        headers = {"Vary": "Origin"}
        if self.allows_all_origins and not self.allow_credentials:
            headers["Access-Control-Allow-Origin"] = WILDCARD
        else:
            headers["Access-Control-Allow-Origin"] = origin
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        return headers

    def describe(self) -> str:
        """Short note on which origins are currently permitted."""
        if self.allows_all_origins:
            return "All origins allowed"
        families = len(self.allowed_origin_patterns)
        note = f"Allowed origins: {', '.join(self.allowed_origins)}"
        if families:
            note += f" (+{families} origin pattern{'s' if families > 1 else ''})"
        return note


class RelaySettings(BaseSettings):
    """
    PDF relay configuration with validation.

    All settings can be overridden via environment variables.
    Validation happens at startup to fail fast on misconfiguration.
    """

    # === Server ===
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Listening port")
    log_level: str = Field(default="INFO", description="Root logging level")

    # === Upstream ===
    upstream_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="Timeout for the outbound PDF fetch in seconds"
    )

    # === Response shaping ===
    pdf_filename: str = Field(
        default="tikz-diagram.pdf",
        min_length=1,
        description="Filename advertised in the inline Content-Disposition"
    )
    cache_max_age_seconds: int = Field(
        default=86400,
        ge=0,
        description="max-age for the Cache-Control header on relayed PDFs"
    )

    # === CORS ===
    cors_mode: str = Field(
        default="open",
        description="CORS preset: open, allowlist"
    )
    cors_origins: str = Field(
        default="",
        description="Comma-separated origins overriding the preset list ('*' for all)"
    )

    @field_validator("cors_mode")
    @classmethod
    def validate_cors_mode(cls, v: str) -> str:
        """Validate the CORS preset is a known value."""
        allowed = {"open", "allowlist"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"cors_mode must be one of: {', '.join(sorted(allowed))}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return v_upper

    @field_validator("pdf_filename")
    @classmethod
    def validate_pdf_filename(cls, v: str) -> str:
        """Reject characters that would break the quoted header value."""
        if any(ch in v for ch in '"\r\n'):
            raise ValueError("pdf_filename must not contain quotes or newlines")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if not self.cors_origins:
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def cors_policy(self) -> CorsPolicy:
        """Build the active CORS policy from the preset and any origin override."""
        policy = CorsPolicy.allow_list() if self.cors_mode == "allowlist" else CorsPolicy.open()
        if self.cors_origins_list:
            policy = policy.model_copy(update={"allowed_origins": self.cors_origins_list})
        return policy

    class Config:
        env_prefix = ""  # No prefix, use exact env var names
        case_sensitive = False  # PORT = port


@lru_cache()
def get_settings() -> RelaySettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for performance.
    Use this function to access configuration throughout the app.
    """
    return RelaySettings()


def validate_config_on_startup() -> RelaySettings:
    """
    Validate configuration at application startup.

    Raises ValueError with details if config is invalid.
    """
    try:
        settings = get_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}") from e

    policy = settings.cors_policy
    if policy.allows_all_origins and settings.cors_mode == "allowlist":
        logger.warning("CORS_MODE=allowlist but CORS_ORIGINS contains '*': all origins allowed")

    logger.info(f"Configuration loaded: port={settings.port}")
    logger.info(f"  upstream_timeout={settings.upstream_timeout_seconds}s")
    logger.info(f"  cors_mode={settings.cors_mode} ({policy.describe()})")
    return settings
