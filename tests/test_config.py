"""
Tests for configuration management

Ensures configuration loading and environment handling work correctly.
"""
import os
from unittest.mock import patch

from multinet.config import MultinetConfig, get_config, DEFAULT_API_URL


class TestMultinetConfig:
    """Test configuration loading."""

    def test_config_has_default_values(self):
        with patch.dict(os.environ, {}, clear=True):
            config = MultinetConfig(_env_file=None)

        assert config.api_url == DEFAULT_API_URL
        assert config.api_token is None
        assert config.request_timeout == 30
        assert config.connect_timeout == 10
        assert config.log_level == "INFO"
        assert config.log_file is None

    def test_config_overrides_defaults_from_env(self):
        with patch.dict(os.environ, {
            'MULTINET_API_URL': 'https://multinet.example.com/api',
            'MULTINET_API_TOKEN': 'abc',
            'MULTINET_REQUEST_TIMEOUT': '5',
            'MULTINET_LOG_LEVEL': 'DEBUG',
            'MULTINET_ENVIRONMENT': 'production',
        }, clear=True):
            config = MultinetConfig(_env_file=None)

        assert config.api_url == 'https://multinet.example.com/api'
        assert config.api_token == 'abc'
        assert config.request_timeout == 5
        assert config.log_level == 'DEBUG'
        assert config.environment == 'production'

    def test_config_ignores_unprefixed_and_extra_vars(self):
        with patch.dict(os.environ, {
            'API_URL': 'https://wrong.example.com',
            'MULTINET_SOMETHING_ELSE': 'ignored',
        }, clear=True):
            config = MultinetConfig(_env_file=None)

        assert config.api_url == DEFAULT_API_URL

    def test_get_config_is_cached(self):
        assert get_config() is get_config()
