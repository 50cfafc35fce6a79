"""Read-only view of a round for the presentation layer."""

from dataclasses import dataclass
from typing import Any

from core.cards import Card
from core.hand import hand_value
from core.game.outcome import RoundOutcome
from core.game.state import RoundState

HIDDEN_CARD = {"rank": "?", "suit": "?", "value": 0, "hidden": True}


def card_to_dict(card: Card) -> dict[str, Any]:
    return {
        "rank": str(card.rank),
        "suit": str(card.suit),
        "value": card.value,
        "hidden": False,
    }


@dataclass(frozen=True)
class RoundSnapshot:
    """Everything needed to render cards and the result banner."""

    state: RoundState
    player_hand: tuple[Card, ...]
    dealer_hand: tuple[Card, ...]
    dealer_hand_fully_visible: bool
    wager: int = 0
    balance: int = 0
    outcome: RoundOutcome | None = None
    message: str | None = None

    @property
    def player_value(self) -> int:
        return hand_value(self.player_hand)

    @property
    def dealer_visible_cards(self) -> tuple[Card, ...]:
        """Dealer cards the player may see; the hole card stays hidden until revealed."""
        if self.dealer_hand_fully_visible:
            return self.dealer_hand
        return self.dealer_hand[:1]

    @property
    def dealer_value(self) -> int:
        """Value of the visible dealer cards."""
        return hand_value(self.dealer_visible_cards)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON, masking the dealer's hole card while hidden."""
        dealer_cards = []
        for i, card in enumerate(self.dealer_hand):
            if i == 1 and not self.dealer_hand_fully_visible:
                dealer_cards.append(dict(HIDDEN_CARD))
            else:
                dealer_cards.append(card_to_dict(card))

        return {
            "state": self.state.name,
            "player_hand": {
                "cards": [card_to_dict(c) for c in self.player_hand],
                "value": self.player_value,
            },
            "dealer_hand": {
                "cards": dealer_cards,
                "value": self.dealer_value,
            },
            "dealer_hand_fully_visible": self.dealer_hand_fully_visible,
            "wager": self.wager,
            "balance": self.balance,
            "outcome": self.outcome.value if self.outcome else None,
            "message": self.message,
        }
