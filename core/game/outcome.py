"""Round outcomes and payout calculation."""

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from enum import Enum

from core.hand import Hand
from core.rules import RuleSet


class RoundOutcome(Enum):
    """How a round ended."""

    PLAYER_BLACKJACK = "player-blackjack"
    DEALER_BLACKJACK = "dealer-blackjack"
    PUSH = "push"
    PLAYER_BUST = "player-bust"
    DEALER_BUST = "dealer-bust"
    PLAYER_WIN = "player-win"
    DEALER_WIN = "dealer-win"

    def __str__(self) -> str:
        return self.value

    @property
    def player_wins(self) -> bool:
        return self in (
            RoundOutcome.PLAYER_BLACKJACK,
            RoundOutcome.DEALER_BUST,
            RoundOutcome.PLAYER_WIN,
        )

    @property
    def player_loses(self) -> bool:
        return self in (
            RoundOutcome.DEALER_BLACKJACK,
            RoundOutcome.PLAYER_BUST,
            RoundOutcome.DEALER_WIN,
        )


MESSAGES: dict[RoundOutcome, str] = {
    RoundOutcome.PLAYER_BLACKJACK: "Blackjack! Player wins!",
    RoundOutcome.DEALER_BLACKJACK: "Dealer has Blackjack. Dealer wins.",
    RoundOutcome.PUSH: "Push! Bet returned.",
    RoundOutcome.PLAYER_BUST: "Player busts! Dealer wins.",
    RoundOutcome.DEALER_BUST: "Dealer busts! Player wins!",
    RoundOutcome.PLAYER_WIN: "Player wins!",
    RoundOutcome.DEALER_WIN: "Dealer wins!",
}


def determine_outcome(player_hand: Hand, dealer_hand: Hand) -> RoundOutcome:
    """
    Compare the two hands; the first matching rule wins.

    Naturals are checked before busts, so this gives the right answer both
    straight after the deal and after the dealer has played.
    """
    player_bj = player_hand.is_blackjack
    dealer_bj = dealer_hand.is_blackjack

    if player_bj and dealer_bj:
        return RoundOutcome.PUSH
    if player_bj:
        return RoundOutcome.PLAYER_BLACKJACK
    if dealer_bj:
        return RoundOutcome.DEALER_BLACKJACK

    if player_hand.is_busted:
        return RoundOutcome.PLAYER_BUST
    if dealer_hand.is_busted:
        return RoundOutcome.DEALER_BUST

    player_value = player_hand.value
    dealer_value = dealer_hand.value
    if player_value > dealer_value:
        return RoundOutcome.PLAYER_WIN
    if player_value < dealer_value:
        return RoundOutcome.DEALER_WIN
    return RoundOutcome.PUSH


@dataclass(frozen=True)
class Settlement:
    """
    Chips moved when a round settles.

    ``credit`` is returned to the balance (the wager was already debited);
    ``payout_delta`` is the player's net result for the round.
    """

    outcome: RoundOutcome
    wager: int
    credit: int

    @property
    def payout_delta(self) -> int:
        return self.credit - self.wager

    @property
    def message(self) -> str:
        return MESSAGES[self.outcome]


def blackjack_bonus(wager: int, rules: RuleSet) -> int:
    """Net win on a natural, rounded down to whole chips."""
    bonus = Decimal(wager) * rules.blackjack_payout_multiplier
    return int(bonus.to_integral_value(rounding=ROUND_FLOOR))


def settle(outcome: RoundOutcome, wager: int, rules: RuleSet) -> Settlement:
    """Compute the credit owed for an outcome."""
    if outcome == RoundOutcome.PLAYER_BLACKJACK:
        credit = wager + blackjack_bonus(wager, rules)
    elif outcome in (RoundOutcome.DEALER_BUST, RoundOutcome.PLAYER_WIN):
        credit = wager * 2
    elif outcome == RoundOutcome.PUSH:
        credit = wager
    else:
        credit = 0
    return Settlement(outcome=outcome, wager=wager, credit=credit)
