"""Core blackjack engine - 100% UI-agnostic."""

from core.cards import Card, Shoe, Rank, Suit
from core.errors import InvalidWager, LedgerError
from core.hand import Hand, hand_value
from core.ledger import BalanceLedger, HistoryEntry, InMemoryLedger
from core.rules import RuleSet

__all__ = [
    "Card",
    "Shoe",
    "Rank",
    "Suit",
    "Hand",
    "hand_value",
    "InvalidWager",
    "LedgerError",
    "BalanceLedger",
    "HistoryEntry",
    "InMemoryLedger",
    "RuleSet",
]
