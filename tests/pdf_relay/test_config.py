"""
Unit tests for relay settings and the CORS policy presets.
"""

import pytest
from pydantic import ValidationError

from pdf_relay.config import CorsPolicy, RelaySettings


class TestRelaySettings:
    """Tests for RelaySettings defaults and validation."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PORT", raising=False)
        settings = RelaySettings()

        assert settings.port == 3000
        assert settings.upstream_timeout_seconds == 10.0
        assert settings.pdf_filename == "tikz-diagram.pdf"
        assert settings.cache_max_age_seconds == 86400
        assert settings.cors_mode == "open"

    def test_port_from_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")

        assert RelaySettings().port == 8080

    def test_rejects_unknown_cors_mode(self):
        with pytest.raises(ValidationError):
            RelaySettings(cors_mode="sometimes")

    def test_cors_mode_is_case_insensitive(self):
        assert RelaySettings(cors_mode="AllowList").cors_mode == "allowlist"

    def test_rejects_invalid_port(self):
        with pytest.raises(ValidationError):
            RelaySettings(port=70000)

    def test_rejects_quoted_filename(self):
        with pytest.raises(ValidationError):
            RelaySettings(pdf_filename='bad".pdf')

    def test_cors_origins_list_parsing(self):
        settings = RelaySettings(cors_origins=" https://a.example , ,https://b.example")

        assert settings.cors_origins_list == ["https://a.example", "https://b.example"]

    def test_origin_override_replaces_preset_list(self):
        settings = RelaySettings(cors_mode="allowlist", cors_origins="https://a.example")
        policy = settings.cors_policy

        assert policy.allowed_origins == ["https://a.example"]
        assert policy.allowed_headers == ["Content-Type", "Authorization"]


class TestCorsPolicy:
    """Tests for the open and allow-list presets."""

    def test_open_preset(self):
        policy = CorsPolicy.open()

        assert policy.allows_all_origins
        assert policy.allow_credentials is True
        assert policy.preflight_max_age_seconds == 86400
        assert policy.origin_regex is None
        assert policy.describe() == "All origins allowed"

    def test_allow_list_preset(self):
        policy = CorsPolicy.allow_list()

        assert not policy.allows_all_origins
        assert "https://script.google.com" in policy.allowed_origins
        assert policy.allowed_methods == ["GET", "POST", "OPTIONS"]
        assert policy.allowed_headers == ["Content-Type", "Authorization"]

    @pytest.mark.parametrize("origin,allowed", [
        ("https://abc-123.googleusercontent.com", True),
        ("https://docs.google.com", True),
        ("http://docs.google.com", False),
        ("https://a.b.google.com", False),
        ("https://google.com.evil.io", False),
    ])
    def test_allow_list_origin_regex(self, origin, allowed):
        import re

        regex = CorsPolicy.allow_list().origin_regex

        assert bool(re.fullmatch(regex, origin)) is allowed

    def test_describe_mentions_patterns(self):
        note = CorsPolicy.allow_list().describe()

        assert "https://script.googleusercontent.com" in note
        assert "2 origin patterns" in note

    def test_allows_origin_literal_and_pattern(self):
        policy = CorsPolicy.allow_list()

        assert policy.allows_origin("https://script.google.com")
        assert policy.allows_origin("https://docs.google.com")
        assert not policy.allows_origin("https://evil.example.com")

    def test_response_headers_open_policy_echoes_origin(self):
        headers = CorsPolicy.open().response_headers("https://viewer.example.org")

        assert headers["Access-Control-Allow-Origin"] == "https://viewer.example.org"
        assert headers["Access-Control-Allow-Credentials"] == "true"
        assert headers["Vary"] == "Origin"

    def test_response_headers_wildcard_without_credentials(self):
        policy = CorsPolicy(allow_credentials=False)

        assert policy.response_headers("https://a.example")["Access-Control-Allow-Origin"] == "*"

    def test_response_headers_empty_for_rejected_or_missing_origin(self):
        policy = CorsPolicy.allow_list()

        assert policy.response_headers("https://evil.example.com") == {}
        assert policy.response_headers(None) == {}
