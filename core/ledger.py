"""Chip balance and hand history collaborator used by the round resolver."""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from core.errors import LedgerError


@dataclass(frozen=True)
class HistoryEntry:
    """One settled round as recorded in a player's hand history."""

    wager: int
    outcome: str
    payout_delta: int
    resulting_balance: int
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        return cls(
            wager=int(data["wager"]),
            outcome=str(data["outcome"]),
            payout_delta=int(data["payout_delta"]),
            resulting_balance=int(data["resulting_balance"]),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


class BalanceLedger(ABC):
    """
    Persistence collaborator for balances and hand history.

    The resolver debits the wager at round start and credits the settlement
    plus a history entry at round end; it never stores anything itself.
    """

    @abstractmethod
    def get_balance(self, player_id: str) -> int:
        """Return the player's chip balance."""
        ...

    @abstractmethod
    def set_balance(self, player_id: str, amount: int) -> None:
        """Overwrite the player's chip balance."""
        ...

    @abstractmethod
    def append_history(self, player_id: str, entry: HistoryEntry) -> None:
        """Record a settled round."""
        ...


def check_balance(amount: int) -> int:
    """Validate a balance before it is written."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise LedgerError(f"Balance must be an integer, got {amount!r}")
    if amount < 0:
        raise LedgerError(f"Balance cannot be negative: {amount}")
    return amount


class InMemoryLedger(BalanceLedger):
    """Ledger kept in process memory."""

    def __init__(
        self,
        balances: dict[str, int] | None = None,
        default_balance: int = 0,
    ) -> None:
        self._balances: dict[str, int] = {
            pid: check_balance(amount) for pid, amount in (balances or {}).items()
        }
        self._default_balance = check_balance(default_balance)
        self._history: dict[str, list[HistoryEntry]] = {}

    def get_balance(self, player_id: str) -> int:
        return self._balances.get(player_id, self._default_balance)

    def set_balance(self, player_id: str, amount: int) -> None:
        self._balances[player_id] = check_balance(amount)

    def append_history(self, player_id: str, entry: HistoryEntry) -> None:
        self._history.setdefault(player_id, []).append(entry)

    def history(self, player_id: str) -> list[HistoryEntry]:
        """Return the player's history, oldest first."""
        return list(self._history.get(player_id, []))

    def drain_history(self, player_id: str) -> list[HistoryEntry]:
        """Return and forget the entries recorded since the last drain."""
        return self._history.pop(player_id, [])
