"""Pytest fixtures for blackjack table tests."""

import os

# Tests never talk to a real Redis and must not trip the rate limiter
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DEALER_PACE_SECONDS", "0")

import pytest
import pytest_asyncio
from random import Random

from httpx import AsyncClient, ASGITransport
from hypothesis import strategies as st

import api.profiles
import api.session
from api.main import app
from api.routes.game import SESSION_KEY_GAME, _serialize_game
from core.cards import Card, Shoe, Rank, Suit
from core.hand import Hand
from core.ledger import InMemoryLedger
from core.rules import RuleSet
from core.game import RoundResolver


def make_hand(*cards: str) -> Hand:
    """Build a hand from strings like '10♠', 'AH'."""
    return Hand(cards=[Card.from_string(c) for c in cards])


def stacked_resolver(
    *cards: str,
    balance: int = 100,
    rules: RuleSet | None = None,
    player_id: str = "player",
) -> RoundResolver:
    """
    A resolver whose shoe deals the given cards first.

    Deal order is player, dealer, player, dealer, then hits and dealer draws.
    """
    rules = rules or RuleSet()
    ledger = InMemoryLedger({player_id: balance})
    shoe = Shoe.stacked(
        cards,
        rng=Random(7),
        num_decks=rules.num_decks,
        reshuffle_threshold=rules.reshuffle_threshold,
    )
    return RoundResolver(player_id=player_id, ledger=ledger, rules=rules, shoe=shoe)


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def shoe(rng):
    """A shuffled single-deck shoe."""
    s = Shoe(rng=rng)
    s.shuffle()
    return s


@pytest.fixture
def empty_hand():
    """An empty hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return make_hand("A♠", "K♥")


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return make_hand("A♠", "6♥")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return make_hand("10♠", "6♥")


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return make_hand("10♠", "6♥", "K♣")


@pytest.fixture
def rules():
    """Default ruleset."""
    return RuleSet()


@pytest.fixture
def ledger():
    """Ledger holding 100 chips for 'player'."""
    return InMemoryLedger({"player": 100})


@pytest.fixture
def game(rng, ledger):
    """A new resolver in the betting state."""
    return RoundResolver(player_id="player", ledger=ledger, rng=rng)


# Hypothesis strategies for property-based testing
@st.composite
def card_strategy(draw, ranks=tuple(Rank)):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(ranks)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def cards_strategy(draw, min_cards=0, max_cards=8, ranks=tuple(Rank)):
    """Generate a list of cards."""
    return draw(st.lists(card_strategy(ranks=ranks), min_size=min_cards, max_size=max_cards))


# API fixtures
@pytest_asyncio.fixture
async def client():
    """HTTP client against the app with empty session and profile stores."""
    api.session._session_store = None
    api.profiles._profile_store = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def stack_table(session_id: str, *cards: str, player_id: str = "guest") -> None:
    """Replace a session's round with one dealt from a stacked shoe."""
    store = await api.session.get_session_store()
    data = await store.get(session_id) or {}
    data[SESSION_KEY_GAME] = _serialize_game(stacked_resolver(*cards, player_id=player_id))
    await store.set(session_id, data)
