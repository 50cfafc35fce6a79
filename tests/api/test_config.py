"""Tests for configuration classes."""

import os
import pytest
from decimal import Decimal
from unittest.mock import patch

from config import (
    AppConfig,
    CORSConfig,
    GameConfig,
    LoggingConfig,
    RateLimitConfig,
    RedisConfig,
    SecurityConfig,
    StorageConfig,
    _parse_cors_origins,
)
from core.rules import RuleSet


class TestCORSConfig:
    """Tests for CORSConfig class."""

    def test_cors_default_origins(self):
        with patch.dict(os.environ, {}, clear=True):
            cors = CORSConfig()
            assert cors.allowed_origins == ["http://localhost:8000"]

    def test_cors_parses_env_var_with_whitespace(self):
        """Origins are comma separated; blanks and padding are dropped."""
        env_origins = "  http://example.com , http://localhost:3000,, "
        with patch.dict(os.environ, {"CORS_ORIGINS": env_origins}):
            assert _parse_cors_origins() == ["http://example.com", "http://localhost:3000"]

    def test_cors_defaults_allow_everything(self):
        cors = CORSConfig()
        assert cors.allow_credentials is True
        assert cors.allow_methods == ["*"]
        assert cors.allow_headers == ["*"]


class TestRateLimitConfig:
    """Tests for RateLimitConfig class."""

    def test_rate_limit_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            limits = RateLimitConfig()
            assert limits.enabled is True
            assert limits.requests_per_minute == 60

    def test_rate_limit_from_env(self):
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": "False", "RATE_LIMIT_RPM": "120"}):
            limits = RateLimitConfig()
            assert limits.enabled is False
            assert limits.requests_per_minute == 120

    @pytest.mark.parametrize("value", ["0", "no", "off"])
    def test_only_true_enables(self, value):
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": value}):
            assert RateLimitConfig().enabled is False


class TestSecurityConfig:
    """Tests for SecurityConfig class."""

    def test_secret_key_auto_generates(self):
        """Without SECRET_KEY a random key is generated per instance."""
        with patch.dict(os.environ, {}, clear=True):
            first = SecurityConfig()
            second = SecurityConfig()
            assert len(first.secret_key) > 20
            assert first.secret_key != second.secret_key

    def test_secret_key_from_env(self):
        with patch.dict(os.environ, {"SECRET_KEY": "my-super-secret-key-12345"}):
            assert SecurityConfig().secret_key == "my-super-secret-key-12345"

    def test_auth_token_ttl(self):
        with patch.dict(os.environ, {}, clear=True):
            assert SecurityConfig().auth_token_ttl == 7 * 24 * 3600
        with patch.dict(os.environ, {"AUTH_TOKEN_TTL": "60"}):
            assert SecurityConfig().auth_token_ttl == 60

    def test_min_password_length(self):
        assert SecurityConfig().min_password_length == 6


class TestRedisConfig:
    """Tests for RedisConfig class."""

    def test_redis_url_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            assert RedisConfig().url == "redis://localhost:6379/0"

    def test_redis_url_from_env(self):
        env = {
            "REDIS_HOST": "redis.example.com",
            "REDIS_PORT": "6380",
            "REDIS_DB": "1",
            "REDIS_PASSWORD": "secret123",
        }
        with patch.dict(os.environ, env):
            redis_config = RedisConfig()
            assert redis_config.port == 6380
            assert redis_config.url == "redis://:secret123@redis.example.com:6380/1"


class TestStorageConfig:
    """Tests for StorageConfig class."""

    def test_defaults_to_auto(self):
        with patch.dict(os.environ, {}, clear=True):
            assert StorageConfig().backend == "auto"

    @pytest.mark.parametrize("value,expected", [("memory", "memory"), (" Redis ", "redis")])
    def test_backend_from_env(self, value, expected):
        with patch.dict(os.environ, {"STORAGE_BACKEND": value}):
            assert StorageConfig().backend == expected

    def test_unknown_backend_raises(self):
        with patch.dict(os.environ, {"STORAGE_BACKEND": "postgres"}):
            with pytest.raises(ValueError):
                StorageConfig()


class TestLoggingConfig:
    """Tests for LoggingConfig class."""

    def test_level_from_env_is_uppercased(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "debug"}):
            assert LoggingConfig().level == "DEBUG"

    def test_default_level(self):
        with patch.dict(os.environ, {}, clear=True):
            assert LoggingConfig().level == "INFO"


class TestGameConfig:
    """Tests for GameConfig class."""

    def test_game_config_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            game = GameConfig()

        assert game.starting_chips == 500
        assert game.default_bet == 10
        assert game.max_refill == 10_000
        assert game.blackjack_payout == Decimal("1.5")
        assert game.dealer_stand_threshold == 17
        assert game.num_decks == 1
        assert game.reshuffle_threshold == 20
        assert game.auto_stand_on_21 is False
        assert game.dealer_pace_seconds == 0.6

    def test_game_config_from_env(self):
        env = {
            "BLACKJACK_PAYOUT": "2",
            "DEALER_STAND_THRESHOLD": "16",
            "DEALER_PACE_SECONDS": "0",
        }
        with patch.dict(os.environ, env):
            game = GameConfig()

        assert game.blackjack_payout == Decimal("2")
        assert game.dealer_stand_threshold == 16
        assert game.dealer_pace_seconds == 0

    def test_rules_built_from_config(self):
        with patch.dict(os.environ, {"BLACKJACK_PAYOUT": "2"}):
            rules = GameConfig().rules()

        assert isinstance(rules, RuleSet)
        assert rules == RuleSet.two_to_one()

    def test_game_config_frozen(self):
        game = GameConfig()
        with pytest.raises(Exception):  # dataclasses.FrozenInstanceError
            game.starting_chips = 1


class TestAppConfig:
    """Tests for AppConfig class."""

    def test_app_config_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            app_config = AppConfig()

        assert app_config.debug is False
        assert app_config.host == "0.0.0.0"
        assert app_config.port == 8000
        assert app_config.session_ttl == 3600

    def test_app_config_debug_from_env(self):
        with patch.dict(os.environ, {"DEBUG": "true"}):
            assert AppConfig().debug is True

    def test_app_config_has_nested_configs(self):
        app_config = AppConfig()

        assert isinstance(app_config.storage, StorageConfig)
        assert isinstance(app_config.logging, LoggingConfig)
        assert isinstance(app_config.game, GameConfig)
        assert isinstance(app_config.security, SecurityConfig)
