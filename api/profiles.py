"""Player accounts: chip balances and hand history, Redis-backed or in memory."""

import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

import redis.asyncio as redis

from api.session import connect_redis
from core.ledger import HistoryEntry, check_balance


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass
class Profile:
    """A registered player."""

    email: str
    password_hash: str
    salt: str
    balance: int
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        return cls(
            email=data["email"],
            password_hash=data["password_hash"],
            salt=data["salt"],
            balance=int(data["balance"]),
            created_at=data["created_at"],
        )


class ProfileStore(ABC):
    """Abstract profile store."""

    @abstractmethod
    async def get(self, email: str) -> Profile | None:
        """Get a profile by email."""
        ...

    @abstractmethod
    async def create(self, profile: Profile) -> bool:
        """Store a new profile; False if the email is taken."""
        ...

    @abstractmethod
    async def save(self, profile: Profile) -> None:
        """Overwrite an existing profile."""
        ...

    @abstractmethod
    async def append_history(self, email: str, entry: HistoryEntry) -> None:
        """Record a settled round."""
        ...

    @abstractmethod
    async def list_history(self, email: str, limit: int) -> list[HistoryEntry]:
        """Return up to ``limit`` rounds, newest first."""
        ...

    async def set_balance(self, email: str, balance: int) -> Profile | None:
        """Update only the balance of an existing profile."""
        profile = await self.get(email)
        if profile is None:
            return None
        profile.balance = check_balance(balance)
        await self.save(profile)
        return profile


class InMemoryProfileStore(ProfileStore):
    """Profiles kept in process memory."""

    def __init__(self, max_history: int = 500) -> None:
        self._profiles: dict[str, dict[str, Any]] = {}
        self._history: dict[str, list[dict[str, Any]]] = {}
        self._max_history = max_history

    async def get(self, email: str) -> Profile | None:
        data = self._profiles.get(normalize_email(email))
        return Profile.from_dict(data) if data else None

    async def create(self, profile: Profile) -> bool:
        key = normalize_email(profile.email)
        if key in self._profiles:
            return False
        self._profiles[key] = profile.to_dict()
        return True

    async def save(self, profile: Profile) -> None:
        self._profiles[normalize_email(profile.email)] = profile.to_dict()

    async def append_history(self, email: str, entry: HistoryEntry) -> None:
        entries = self._history.setdefault(normalize_email(email), [])
        entries.insert(0, entry.to_dict())
        del entries[self._max_history:]

    async def list_history(self, email: str, limit: int) -> list[HistoryEntry]:
        entries = self._history.get(normalize_email(email), [])
        return [HistoryEntry.from_dict(e) for e in entries[:limit]]


class RedisProfileStore(ProfileStore):
    """Redis-backed profile store; history is a capped list, newest first."""

    def __init__(self, redis_client: redis.Redis, max_history: int = 500) -> None:
        self._redis = redis_client
        self._prefix = "blackjack_table:"
        self._max_history = max_history

    def _profile_key(self, email: str) -> str:
        return f"{self._prefix}profile:{normalize_email(email)}"

    def _history_key(self, email: str) -> str:
        return f"{self._prefix}history:{normalize_email(email)}"

    async def get(self, email: str) -> Profile | None:
        data = await self._redis.get(self._profile_key(email))
        if data is None:
            return None
        return Profile.from_dict(json.loads(data))

    async def create(self, profile: Profile) -> bool:
        created = await self._redis.set(
            self._profile_key(profile.email),
            json.dumps(profile.to_dict()),
            nx=True,
        )
        return bool(created)

    async def save(self, profile: Profile) -> None:
        await self._redis.set(self._profile_key(profile.email), json.dumps(profile.to_dict()))

    async def append_history(self, email: str, entry: HistoryEntry) -> None:
        key = self._history_key(email)
        await self._redis.lpush(key, json.dumps(entry.to_dict()))
        await self._redis.ltrim(key, 0, self._max_history - 1)

    async def list_history(self, email: str, limit: int) -> list[HistoryEntry]:
        if limit <= 0:
            return []
        raw = await self._redis.lrange(self._history_key(email), 0, limit - 1)
        return [HistoryEntry.from_dict(json.loads(item)) for item in raw]


# Global profile store instance
_profile_store: ProfileStore | None = None


async def get_profile_store() -> ProfileStore:
    """Get or create the profile store."""
    global _profile_store

    if _profile_store is None:
        client = await connect_redis()
        if client is not None:
            _profile_store = RedisProfileStore(client)
        else:
            _profile_store = InMemoryProfileStore()
    return _profile_store
