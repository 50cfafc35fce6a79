"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr
from typing import Literal

from config import config


# Game schemas
class BetRequest(BaseModel):
    """
    Request to place a bet; the engine validates the amount itself.

    Strict types pass values through uncoerced, so a JSON boolean reaches
    the engine and is rejected. Omitting the amount bets the table default.
    """

    amount: StrictInt | StrictFloat | StrictStr | StrictBool = Field(
        default=config.game.default_bet,
        description="Bet amount in chips",
    )


class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand"]


class CardResponse(BaseModel):
    """Card representation; the dealer's hole card is hidden until revealed."""

    rank: str
    suit: str
    value: int
    hidden: bool = False


class HandResponse(BaseModel):
    """Hand representation."""

    cards: list[CardResponse]
    value: int


class RoundStateResponse(BaseModel):
    """Current round as seen by the player."""

    state: str
    player_hand: HandResponse
    dealer_hand: HandResponse
    dealer_hand_fully_visible: bool
    wager: int
    balance: int
    outcome: str | None = None
    message: str | None = None
    can_hit: bool
    can_stand: bool
    player: str | None = Field(default=None, description="Email when logged in")


class NewGameResponse(BaseModel):
    """Session created for a new table."""

    session_id: str


# Account schemas
_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SignupRequest(BaseModel):
    """Request to create an account."""

    email: str = Field(..., pattern=_EMAIL_PATTERN)
    password: str
    confirm_password: str


class LoginRequest(BaseModel):
    """Request to log in."""

    email: str = Field(..., pattern=_EMAIL_PATTERN)
    password: str


class AuthResponse(BaseModel):
    """Token returned after signup or login."""

    token: str
    email: str
    balance: int


class ProfileResponse(BaseModel):
    """Logged-in player profile."""

    email: str
    balance: int
    created_at: datetime


class RefillRequest(BaseModel):
    """Request to buy chips."""

    amount: int = Field(..., ge=1, description="Chips to add")


class BalanceResponse(BaseModel):
    """Balance after a refill."""

    balance: int


class HistoryEntryResponse(BaseModel):
    """One settled round."""

    model_config = ConfigDict(from_attributes=True)

    wager: int
    outcome: str
    payout_delta: int
    resulting_balance: int
    created_at: datetime


class HistoryResponse(BaseModel):
    """Recent rounds, newest first."""

    entries: list[HistoryEntryResponse]
