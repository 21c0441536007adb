"""Tests for web.backend.core.config and shared.config — application configuration."""
import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from shared.config import CLOUDFLARE_API_BASE_URL, SharedSettings
from web.backend.core.config import WebSettings


class TestWebSettings:
    """Configuration parsing and validation."""

    def _make_settings(self, **overrides):
        """Create settings with required fields + overrides."""
        env = {"WEB_SECRET_KEY": "test-key"}
        env.update(overrides)
        with patch.dict(os.environ, env, clear=False):
            return WebSettings(**env)

    def test_default_values(self):
        s = self._make_settings()
        assert s.host == "0.0.0.0"
        assert s.port == 8081
        assert s.jwt_algorithm == "HS256"
        assert s.jwt_expire_minutes == 30

    def test_debug_flag(self):
        s = self._make_settings(WEB_DEBUG="false")
        assert s.debug is False
        s = self._make_settings(WEB_DEBUG="true")
        assert s.debug is True

    def test_cors_origins_parsing(self):
        s = self._make_settings(WEB_CORS_ORIGINS="http://a.com, http://b.com")
        assert s.cors_origins == ["http://a.com", "http://b.com"]

    def test_cors_origins_empty(self):
        s = self._make_settings(WEB_CORS_ORIGINS="")
        assert s.cors_origins == []

    def test_rejects_asymmetric_jwt_algorithm(self):
        with pytest.raises(ValidationError):
            self._make_settings(WEB_JWT_ALGORITHM="RS256")

    def test_password_auth_requires_login_and_password(self):
        s = self._make_settings(WEB_ADMIN_LOGIN="admin", WEB_ADMIN_PASSWORD="")
        assert s.password_auth_enabled is False
        s = self._make_settings(WEB_ADMIN_LOGIN="admin", WEB_ADMIN_PASSWORD="pw")
        assert s.password_auth_enabled is True


class TestSharedSettings:

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            s = SharedSettings()
        assert s.cloudflare_api_base_url == CLOUDFLARE_API_BASE_URL
        assert s.db_pool_min_size == 2
        assert s.db_pool_max_size == 10
        assert s.database_enabled is False

    def test_database_enabled(self):
        s = SharedSettings(DATABASE_URL="postgresql://u:p@localhost/db")
        assert s.database_enabled is True
