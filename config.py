"""Configuration management with environment variable support."""

import os
import secrets
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

from core.rules import RuleSet


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


def _parse_storage_backend() -> Literal["auto", "memory", "redis"]:
    """Parse STORAGE_BACKEND, falling back to auto-detection."""
    backend = os.getenv("STORAGE_BACKEND", "auto").strip().lower()
    if backend not in ("auto", "memory", "redis"):
        raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")
    return backend  # type: ignore[return-value]


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting configuration."""

    enabled: bool = field(
        default_factory=lambda: os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    )
    requests_per_minute: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_RPM", "60"))
    )


@dataclass(frozen=True)
class SecurityConfig:
    """Security configuration."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
    )
    auth_token_ttl: int = field(
        default_factory=lambda: int(os.getenv("AUTH_TOKEN_TTL", str(7 * 24 * 3600)))
    )
    min_password_length: int = 6


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection configuration."""

    host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    db: int = field(default_factory=lambda: int(os.getenv("REDIS_DB", "0")))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    @property
    def url(self) -> str:
        """Build Redis connection URL."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class StorageConfig:
    """Where sessions and player profiles are kept."""

    backend: Literal["auto", "memory", "redis"] = field(default_factory=_parse_storage_backend)


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class GameConfig:
    """Default table configuration."""

    starting_chips: int = 500
    default_bet: int = 10
    max_refill: int = 10_000
    history_limit: int = 25
    blackjack_payout: Decimal = field(
        default_factory=lambda: Decimal(os.getenv("BLACKJACK_PAYOUT", "1.5"))
    )
    dealer_stand_threshold: int = field(
        default_factory=lambda: int(os.getenv("DEALER_STAND_THRESHOLD", "17"))
    )
    num_decks: int = 1
    reshuffle_threshold: int = 20
    auto_stand_on_21: bool = False
    dealer_pace_seconds: float = field(
        default_factory=lambda: float(os.getenv("DEALER_PACE_SECONDS", "0.6"))
    )

    def rules(self) -> RuleSet:
        """Build the table rules for a new round resolver."""
        return RuleSet(
            blackjack_payout_multiplier=self.blackjack_payout,
            dealer_stand_threshold=self.dealer_stand_threshold,
            num_decks=self.num_decks,
            reshuffle_threshold=self.reshuffle_threshold,
            auto_stand_on_21=self.auto_stand_on_21,
        )


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    session_ttl: int = 3600  # Session timeout in seconds

    redis: RedisConfig = field(default_factory=RedisConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    game: GameConfig = field(default_factory=GameConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global configuration instance
config = AppConfig()
