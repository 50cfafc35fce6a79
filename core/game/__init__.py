"""Round engine and state management."""

from core.game.events import EventEmitter, EventType, GameEvent
from core.game.state import RoundState
from core.game.outcome import RoundOutcome, Settlement, determine_outcome, settle
from core.game.snapshot import RoundSnapshot
from core.game.dealer import play_dealer_hand
from core.game.engine import BET_OUT_OF_TURN, RoundResolver, validate_wager
from core.game.pacing import DealerPacer

__all__ = [
    "EventEmitter",
    "EventType",
    "GameEvent",
    "RoundState",
    "RoundOutcome",
    "Settlement",
    "determine_outcome",
    "settle",
    "RoundSnapshot",
    "play_dealer_hand",
    "BET_OUT_OF_TURN",
    "RoundResolver",
    "validate_wager",
    "DealerPacer",
]
