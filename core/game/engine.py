"""Round resolver: one blackjack round as an explicit state machine."""

import logging
import re
from random import Random
from typing import Callable

from transitions import Machine

from core.cards import Card, Shoe
from core.errors import InvalidWager
from core.hand import BLACKJACK, Hand
from core.ledger import BalanceLedger, HistoryEntry, InMemoryLedger
from core.rules import RuleSet
from core.game.dealer import play_dealer_hand
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.outcome import RoundOutcome, Settlement, determine_outcome, settle
from core.game.snapshot import RoundSnapshot
from core.game.state import RoundState

logger = logging.getLogger(__name__)

# ASCII digits only
_WHOLE_NUMBER = re.compile(r"-?[0-9]+")

BET_OUT_OF_TURN = "Cannot bet in current state"


def validate_wager(amount: object, balance: int) -> int:
    """
    Check a requested bet against the balance.

    Accepts ints, integral floats and digit strings.

    Raises:
        InvalidWager: if the amount is non-numeric, not positive, or over the balance
    """
    if isinstance(amount, bool):
        raise InvalidWager("Bet must be a whole number of chips.", amount)
    if isinstance(amount, str):
        text = amount.strip()
        if not _WHOLE_NUMBER.fullmatch(text):
            raise InvalidWager("Bet must be a whole number of chips.", amount)
        value = int(text)
    elif isinstance(amount, float):
        if not amount.is_integer():
            raise InvalidWager("Bet must be a whole number of chips.", amount)
        value = int(amount)
    elif isinstance(amount, int):
        value = amount
    else:
        raise InvalidWager("Bet must be a whole number of chips.", amount)

    if value <= 0:
        raise InvalidWager("Bet must be greater than zero.", amount)
    if value > balance:
        raise InvalidWager(
            f"Not enough chips to bet ${value}! Please buy more chips.", amount
        )
    return value


class RoundResolver:
    """
    Deals and settles blackjack rounds for one player.

    This is the core game logic, completely UI-agnostic.
    Communication happens through events, snapshots and return values only.
    Hit and stand requests outside the player's turn are ignored.
    """

    # State machine states
    STATES = [s.name.lower() for s in RoundState]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "wager_accepted", "source": "betting", "dest": "dealt"},
        {"trigger": "open_player_turn", "source": "dealt", "dest": "player_turn"},
        {"trigger": "natural_dealt", "source": "dealt", "dest": "settled"},
        {"trigger": "player_done", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "player_busted", "source": "player_turn", "dest": "settled"},
        {"trigger": "dealer_done", "source": "dealer_turn", "dest": "settled"},
        {"trigger": "reset_round", "source": "settled", "dest": "betting"},
    ]

    def __init__(
        self,
        player_id: str = "guest",
        ledger: BalanceLedger | None = None,
        rules: RuleSet | None = None,
        shoe: Shoe | None = None,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize a resolver in the betting state.

        Args:
            player_id: Key used for every ledger call
            ledger: Balance and history collaborator (in-memory if not provided)
            rules: Table rules (uses defaults if not provided)
            shoe: Shoe to deal from (a freshly shuffled one if not provided)
            rng: Random number generator for the default shoe
        """
        self.player_id = player_id
        self.rules = rules or RuleSet()
        self.ledger = ledger or InMemoryLedger()
        if shoe is None:
            shoe = Shoe(
                num_decks=self.rules.num_decks,
                reshuffle_threshold=self.rules.reshuffle_threshold,
                rng=rng,
            )
            shoe.shuffle()
        self.shoe = shoe

        self.player_hand = Hand()
        self.dealer_hand = Hand()
        self.wager = 0
        self.settlement: Settlement | None = None
        self.message: str | None = None
        self.events = EventEmitter()

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="betting",
            auto_transitions=False,
            model_attribute="_machine_state",
            after_state_change="_publish_state",
        )

    @property
    def state(self) -> RoundState:
        """Get current round state as enum."""
        return RoundState[self._machine_state.upper()]  # type: ignore

    @property
    def balance(self) -> int:
        return self.ledger.get_balance(self.player_id)

    @property
    def outcome(self) -> RoundOutcome | None:
        return self.settlement.outcome if self.settlement else None

    @property
    def dealer_hand_fully_visible(self) -> bool:
        """The hole card is shown once the dealer's turn begins."""
        return self.state in (RoundState.DEALER_TURN, RoundState.SETTLED)

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to round events."""
        self.events.subscribe(handler, event_type)

    def snapshot(self) -> RoundSnapshot:
        """Return an immutable view of the round for rendering."""
        return RoundSnapshot(
            state=self.state,
            player_hand=tuple(self.player_hand.cards),
            dealer_hand=tuple(self.dealer_hand.cards),
            dealer_hand_fully_visible=self.dealer_hand_fully_visible,
            wager=self.wager,
            balance=self.balance,
            outcome=self.outcome,
            message=self.message,
        )

    def place_wager(self, amount: object) -> bool:
        """
        Lock in a wager and deal the opening cards.

        Args:
            amount: Requested bet

        Returns:
            True if the wager was accepted; a rejected amount leaves the reason
            in ``message``, a bet outside BETTING leaves it untouched
        """
        if self.state != RoundState.BETTING:
            self.events.emit_new(
                EventType.INVALID_ACTION,
                action="bet",
                message=BET_OUT_OF_TURN,
                state=self.state.name,
            )
            return False

        balance = self.balance
        try:
            wager = validate_wager(amount, balance)
        except InvalidWager as exc:
            self.message = exc.message
            self.events.emit_new(
                EventType.INVALID_WAGER,
                amount=repr(amount),
                balance=balance,
                message=exc.message,
            )
            logger.info("Rejected wager %r for %s: %s", amount, self.player_id, exc.message)
            return False

        if self.shoe.needs_shuffle:
            self._reshuffle()

        self.ledger.set_balance(self.player_id, balance - wager)
        self.wager = wager
        self.message = None
        self.events.emit_new(EventType.WAGER_PLACED, amount=wager, balance=balance - wager)
        logger.info("Round started for %s with wager %d", self.player_id, wager)

        # Deal: player, dealer, player, dealer (face down)
        self._deal_card_to_hand(self.player_hand)
        self._deal_card_to_hand(self.dealer_hand)
        self._deal_card_to_hand(self.player_hand)
        self._deal_card_to_hand(self.dealer_hand, face_up=False)

        self.wager_accepted()
        self.events.emit_new(EventType.ROUND_STARTED, wager=wager)

        player_bj = self.player_hand.is_blackjack
        dealer_bj = self.dealer_hand.is_blackjack
        if player_bj:
            self.events.emit_new(EventType.PLAYER_BLACKJACK)
        if dealer_bj:
            self.events.emit_new(EventType.DEALER_BLACKJACK)

        if player_bj or dealer_bj:
            self._settle(self.natural_dealt)
        else:
            self.open_player_turn()
        return True

    def hit(self) -> bool:
        """Player takes another card."""
        if self.state != RoundState.PLAYER_TURN:
            return False

        self._deal_card_to_hand(self.player_hand)
        value = self.player_hand.value
        self.events.emit_new(EventType.PLAYER_HIT, hand_value=value)

        if self.player_hand.is_busted:
            self.events.emit_new(EventType.PLAYER_BUSTS, hand_value=value)
            self._settle(self.player_busted)
            return True

        if value == BLACKJACK and self.rules.auto_stand_on_21:
            self.events.emit_new(EventType.PLAYER_STAND, hand_value=value, automatic=True)
            self._play_dealer()
        return True

    def stand(self) -> bool:
        """Player keeps the current hand; the dealer plays it out."""
        if self.state != RoundState.PLAYER_TURN:
            return False

        self.events.emit_new(EventType.PLAYER_STAND, hand_value=self.player_hand.value)
        self._play_dealer()
        return True

    def new_round(self) -> bool:
        """Clear the table and return to betting after a settled round."""
        if self.state != RoundState.SETTLED:
            return False

        self.player_hand = Hand()
        self.dealer_hand = Hand()
        self.wager = 0
        self.settlement = None
        self.message = None
        self.reset_round()
        return True

    @property
    def can_hit(self) -> bool:
        """Check if hitting is allowed."""
        return self.state == RoundState.PLAYER_TURN and not self.player_hand.is_busted

    @property
    def can_stand(self) -> bool:
        """Check if standing is allowed."""
        return self.state == RoundState.PLAYER_TURN

    def _publish_state(self) -> None:
        """Hand the presentation layer a snapshot after every transition."""
        self.events.emit_new(
            EventType.STATE_CHANGED,
            state=self.state.name,
            snapshot=self.snapshot(),
        )

    def _reshuffle(self) -> None:
        in_play = self.player_hand.cards + self.dealer_hand.cards
        remaining = self.shoe.cards_remaining
        self.shoe.shuffle(in_play=in_play)
        logger.info("Reshuffled shoe with %d cards left", remaining)
        self.events.emit_new(EventType.SHOE_SHUFFLED, cards_remaining=self.shoe.cards_remaining)

    def _draw(self) -> Card:
        """Draw from the shoe, reshuffling first if it ran dry."""
        if not self.shoe.cards_remaining:
            self._reshuffle()
        return self.shoe.draw()

    def _deal_card_to_hand(self, hand: Hand, face_up: bool = True) -> Card:
        card = self._draw()
        hand.add_card(card)
        self.events.emit_new(
            EventType.CARD_DEALT,
            card=str(card) if face_up else "??",
            hand="dealer" if hand is self.dealer_hand else "player",
            hand_value=hand.value if face_up else None,
        )
        return card

    def _play_dealer(self) -> None:
        """Reveal the hole card and draw to the stand threshold."""
        self.player_done()
        self.events.emit_new(
            EventType.DEALER_REVEALS,
            card=str(self.dealer_hand.cards[1]),
            hand_value=self.dealer_hand.value,
        )

        def on_draw(card: Card) -> None:
            self.events.emit_new(
                EventType.DEALER_HITS,
                card=str(card),
                cards=[str(c) for c in self.dealer_hand.cards],
                hand_value=self.dealer_hand.value,
            )

        final_value = play_dealer_hand(
            self.dealer_hand,
            self._draw,
            stand_threshold=self.rules.dealer_stand_threshold,
            on_draw=on_draw,
        )

        if self.dealer_hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=final_value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=final_value)

        self._settle(self.dealer_done)

    def _settle(self, transition: Callable[[], bool]) -> None:
        """Decide the outcome, pay it out through the ledger, then enter SETTLED."""
        outcome = determine_outcome(self.player_hand, self.dealer_hand)
        settlement = settle(outcome, self.wager, self.rules)

        balance = self.balance + settlement.credit
        self.ledger.set_balance(self.player_id, balance)
        self.ledger.append_history(
            self.player_id,
            HistoryEntry(
                wager=self.wager,
                outcome=outcome.value,
                payout_delta=settlement.payout_delta,
                resulting_balance=balance,
            ),
        )

        self.settlement = settlement
        self.message = settlement.message
        transition()

        self.events.emit_new(
            EventType.ROUND_SETTLED,
            outcome=outcome.value,
            payout_delta=settlement.payout_delta,
            balance=balance,
        )
        logger.info(
            "Round settled for %s: %s (%+d), balance %d",
            self.player_id,
            outcome.value,
            settlement.payout_delta,
            balance,
        )
