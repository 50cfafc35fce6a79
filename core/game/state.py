"""Round state enumeration."""

from enum import Enum, auto


class RoundState(Enum):
    """
    Round state machine states.

    Flow: BETTING → DEALT → PLAYER_TURN → DEALER_TURN → SETTLED
    """

    # Waiting for a wager, hands empty
    BETTING = auto()

    # Wager debited, two cards each dealt
    DEALT = auto()

    # Player hits or stands
    PLAYER_TURN = auto()

    # Dealer draws to the stand threshold
    DEALER_TURN = auto()

    # Outcome decided and paid; terminal until the next round
    SETTLED = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


# Valid state transitions
VALID_TRANSITIONS: dict[RoundState, list[RoundState]] = {
    RoundState.BETTING: [RoundState.DEALT],
    RoundState.DEALT: [RoundState.PLAYER_TURN, RoundState.SETTLED],  # SETTLED on a natural
    RoundState.PLAYER_TURN: [RoundState.DEALER_TURN, RoundState.SETTLED],  # SETTLED on a bust
    RoundState.DEALER_TURN: [RoundState.SETTLED],
    RoundState.SETTLED: [RoundState.BETTING],
}


def is_valid_transition(from_state: RoundState, to_state: RoundState) -> bool:
    """
    Check if a state transition is valid.

    Args:
        from_state: Current state
        to_state: Desired state

    Returns:
        True if the transition is allowed
    """
    return to_state in VALID_TRANSITIONS.get(from_state, [])
