"""Dealer drawing policy."""

from typing import Callable

from core.cards import Card
from core.hand import Hand

DEFAULT_STAND_THRESHOLD = 17


def dealer_should_hit(hand: Hand, stand_threshold: int = DEFAULT_STAND_THRESHOLD) -> bool:
    """Dealer draws below the threshold and stands on it, soft totals included."""
    return hand.value < stand_threshold


def play_dealer_hand(
    hand: Hand,
    draw: Callable[[], Card],
    stand_threshold: int = DEFAULT_STAND_THRESHOLD,
    on_draw: Callable[[Card], None] | None = None,
) -> int:
    """
    Draw cards into the dealer's hand until it reaches the stand threshold.

    Args:
        hand: Dealer hand, extended in place
        draw: Source of the next card (the resolver reshuffles on exhaustion)
        stand_threshold: Lowest total the dealer stands on
        on_draw: Called with each drawn card after it joins the hand

    Returns:
        The dealer's final hand value
    """
    while dealer_should_hit(hand, stand_threshold):
        card = draw()
        hand.add_card(card)
        if on_draw is not None:
            on_draw(card)
    return hand.value
