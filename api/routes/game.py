"""Game API endpoints."""

import logging
import time
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Header

from api.auth import optional_user
from api.profiles import Profile, get_profile_store
from api.schemas import (
    ActionRequest,
    BetRequest,
    NewGameResponse,
    RoundStateResponse,
)
from api.session import create_session, extract_session_id, get_session_store
from config import config
from core.cards import Card, Rank, Shoe, Suit
from core.game import BET_OUT_OF_TURN, RoundOutcome, RoundResolver, RoundState, settle
from core.hand import Hand
from core.ledger import InMemoryLedger
from core.rules import RuleSet

logger = logging.getLogger(__name__)

router = APIRouter()

GUEST = "guest"

# Session data keys
SESSION_KEY_GAME = "game"
SESSION_KEY_GUEST_BALANCE = "guest_balance"
SESSION_KEY_CREATED_AT = "created_at"
SESSION_KEY_LAST_ACTIVITY = "last_activity"

# A round in one of these states has a wager on the table
IN_PROGRESS = (RoundState.DEALT, RoundState.PLAYER_TURN, RoundState.DEALER_TURN)


def _serialize_card(card: Card) -> dict[str, int]:
    """Serialize a card to a dict."""
    return {"rank": card.rank.value, "suit": card.suit.value}


def _deserialize_card(data: dict[str, int]) -> Card:
    """Deserialize a card from a dict."""
    return Card(Rank(data["rank"]), Suit(data["suit"]))


def _serialize_hand(hand: Hand) -> dict[str, Any]:
    return {"cards": [_serialize_card(c) for c in hand.cards]}


def _deserialize_hand(data: dict[str, Any]) -> Hand:
    return Hand(cards=[_deserialize_card(c) for c in data["cards"]])


def _serialize_game(game: RoundResolver) -> dict[str, Any]:
    """Serialize round state for session storage."""
    return {
        "state": game._machine_state,
        "player_id": game.player_id,
        "wager": game.wager,
        "outcome": game.outcome.value if game.outcome else None,
        "message": game.message,
        "shoe_cards": [_serialize_card(c) for c in game.shoe],
        "player_hand": _serialize_hand(game.player_hand),
        "dealer_hand": _serialize_hand(game.dealer_hand),
        "rules": game.rules.to_dict(),
    }


def _deserialize_game(
    data: dict[str, Any],
    ledger: InMemoryLedger,
    player_id: str | None = None,
) -> RoundResolver:
    """Restore a round from session data."""
    rules = RuleSet.from_dict(data["rules"])
    shoe = Shoe(num_decks=rules.num_decks, reshuffle_threshold=rules.reshuffle_threshold)
    shoe._cards = [_deserialize_card(c) for c in data["shoe_cards"]]

    game = RoundResolver(
        player_id=player_id or data["player_id"],
        ledger=ledger,
        rules=rules,
        shoe=shoe,
    )

    # Restore state machine state
    game._machine_state = data["state"]

    game.wager = data["wager"]
    game.message = data["message"]
    game.player_hand = _deserialize_hand(data["player_hand"])
    game.dealer_hand = _deserialize_hand(data["dealer_hand"])
    if data["outcome"] is not None:
        game.settlement = settle(RoundOutcome(data["outcome"]), game.wager, rules)

    return game


@dataclass
class Table:
    """A round loaded for one request, with the ledger it settles against."""

    session_id: str
    session_data: dict[str, Any]
    game: RoundResolver
    ledger: InMemoryLedger

    @property
    def player_id(self) -> str:
        return self.game.player_id


async def _load_balance(player_id: str, session_data: dict[str, Any]) -> int:
    """Chip balance for a player: the session for guests, the profile otherwise."""
    if player_id == GUEST:
        return session_data.get(SESSION_KEY_GUEST_BALANCE, config.game.starting_chips)
    store = await get_profile_store()
    profile = await store.get(player_id)
    if profile is None:
        raise HTTPException(status_code=401, detail="Account no longer exists.")
    return profile.balance


async def _new_table(
    session_id: str,
    session_data: dict[str, Any],
    player_id: str,
) -> Table:
    balance = await _load_balance(player_id, session_data)
    ledger = InMemoryLedger({player_id: balance})
    game = RoundResolver(player_id=player_id, ledger=ledger, rules=config.game.rules())
    return Table(session_id, session_data, game, ledger)


def require_signed_session(session_id: str) -> None:
    """Reject session ids this server did not sign."""
    if extract_session_id(session_id) is None:
        logger.info("Rejected unsigned session id")
        raise HTTPException(status_code=400, detail="Invalid session.")


async def _open_table(session_id: str, profile: Profile | None) -> Table:
    """
    Load the session's round for the current player.

    A round with a wager on the table stays with the player who placed it,
    even if the caller logged in or out since.
    """
    require_signed_session(session_id)
    store = await get_session_store()
    session_data = await store.get(session_id) or {}
    player_id = profile.email if profile else GUEST

    game_data = session_data.get(SESSION_KEY_GAME)
    if game_data is None:
        return await _new_table(session_id, session_data, player_id)

    if RoundState[game_data["state"].upper()] in IN_PROGRESS:
        player_id = game_data["player_id"]

    balance = await _load_balance(player_id, session_data)
    ledger = InMemoryLedger({player_id: balance})
    game = _deserialize_game(game_data, ledger, player_id=player_id)
    return Table(session_id, session_data, game, ledger)


async def _save_table(table: Table) -> None:
    """Write the round, balance and new history entries back to storage."""
    player_id = table.player_id
    balance = table.ledger.get_balance(player_id)
    settled = table.ledger.drain_history(player_id)

    if player_id == GUEST:
        table.session_data[SESSION_KEY_GUEST_BALANCE] = balance
    else:
        profiles = await get_profile_store()
        await profiles.set_balance(player_id, balance)
        for entry in settled:
            await profiles.append_history(player_id, entry)

    store = await get_session_store()
    table.session_data[SESSION_KEY_GAME] = _serialize_game(table.game)
    table.session_data[SESSION_KEY_LAST_ACTIVITY] = int(time.time())
    table.session_data.setdefault(SESSION_KEY_CREATED_AT, int(time.time()))
    await store.set(table.session_id, table.session_data)


def _round_state_response(table: Table) -> RoundStateResponse:
    """Convert round state to response."""
    game = table.game
    snapshot = game.snapshot().to_dict()
    return RoundStateResponse(
        **snapshot,
        can_hit=game.can_hit,
        can_stand=game.can_stand,
        player=None if table.player_id == GUEST else table.player_id,
    )


@router.post("/new")
async def new_game(
    profile: Annotated[Profile | None, Depends(optional_user)],
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> NewGameResponse:
    """
    Create a session or clear its table; the balance carries over.

    A missing or unsigned session id gets a new session.
    """
    if session_id is None or extract_session_id(session_id) is None:
        session_id = await create_session()

    table = await _open_table(session_id, profile)
    if table.game.state in IN_PROGRESS:
        raise HTTPException(status_code=409, detail="Finish the current round first.")

    table = await _new_table(session_id, table.session_data, profile.email if profile else GUEST)
    await _save_table(table)
    return NewGameResponse(session_id=session_id)


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
    profile: Annotated[Profile | None, Depends(optional_user)],
) -> RoundStateResponse:
    """Get current round state."""
    table = await _open_table(session_id, profile)
    return _round_state_response(table)


@router.post("/bet")
async def place_bet(
    request: BetRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
    profile: Annotated[Profile | None, Depends(optional_user)],
) -> RoundStateResponse:
    """Place a bet and deal cards."""
    table = await _open_table(session_id, profile)

    game = table.game
    if not game.place_wager(request.amount):
        # Only a rejected amount sets the message; a settled round still shows its result
        detail = game.message if game.state == RoundState.BETTING else BET_OUT_OF_TURN
        raise HTTPException(status_code=400, detail=detail)

    await _save_table(table)
    return _round_state_response(table)


@router.post("/action")
async def player_action(
    request: ActionRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
    profile: Annotated[Profile | None, Depends(optional_user)],
) -> RoundStateResponse:
    """
    Hit or stand.

    Outside the player's turn the request is ignored and the unchanged
    round is returned.
    """
    table = await _open_table(session_id, profile)

    actions = {
        "hit": table.game.hit,
        "stand": table.game.stand,
    }
    if actions[request.action]():
        await _save_table(table)
    else:
        logger.debug("Ignored %s in state %s", request.action, table.game.state.name)

    return _round_state_response(table)


@router.post("/next-round")
async def next_round(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
    profile: Annotated[Profile | None, Depends(optional_user)],
) -> RoundStateResponse:
    """Clear a settled round and return to betting."""
    table = await _open_table(session_id, profile)

    if table.game.state == RoundState.SETTLED:
        # Let a player who logged in or out since the deal take the next seat
        player_id = profile.email if profile else GUEST
        if player_id != table.player_id:
            table = await _new_table(session_id, table.session_data, player_id)
        else:
            table.game.new_round()
    elif table.game.state != RoundState.BETTING:
        raise HTTPException(status_code=400, detail="Cannot start a new round now")

    await _save_table(table)
    return _round_state_response(table)
