"""Account API endpoints: signup, login, chip refills and hand history."""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Header, Request

from api.auth import hash_password, issue_token, optional_user, require_user, verify_password
from api.limiter import DEFAULT_LIMIT, limiter
from api.profiles import Profile, get_profile_store, normalize_email
from api.routes.game import SESSION_KEY_GUEST_BALANCE, require_signed_session
from api.schemas import (
    AuthResponse,
    BalanceResponse,
    HistoryEntryResponse,
    HistoryResponse,
    LoginRequest,
    ProfileResponse,
    RefillRequest,
    SignupRequest,
)
from api.session import get_session_store
from config import config

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup")
@limiter.limit(DEFAULT_LIMIT)
async def signup(request: Request, body: SignupRequest) -> AuthResponse:
    """Create an account with the starting chip balance and log it in."""
    if len(body.password) < config.security.min_password_length:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {config.security.min_password_length} characters.",
        )
    if body.password != body.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match.")

    email = normalize_email(body.email)
    password_hash, salt = hash_password(body.password)
    profile = Profile(
        email=email,
        password_hash=password_hash,
        salt=salt,
        balance=config.game.starting_chips,
    )

    store = await get_profile_store()
    if not await store.create(profile):
        raise HTTPException(status_code=409, detail="An account with this email already exists.")

    logger.info("Created account %s", email)
    return AuthResponse(token=issue_token(email), email=email, balance=profile.balance)


@router.post("/login")
@limiter.limit(DEFAULT_LIMIT)
async def login(request: Request, body: LoginRequest) -> AuthResponse:
    """Exchange email and password for an auth token."""
    store = await get_profile_store()
    profile = await store.get(body.email)
    if profile is None or not verify_password(body.password, profile):
        raise HTTPException(status_code=401, detail="Invalid email or password.")

    return AuthResponse(token=issue_token(profile.email), email=profile.email, balance=profile.balance)


@router.get("/profile")
async def get_profile(
    profile: Annotated[Profile, Depends(require_user)],
) -> ProfileResponse:
    """Get the logged-in player's profile."""
    return ProfileResponse(
        email=profile.email,
        balance=profile.balance,
        created_at=datetime.fromisoformat(profile.created_at),
    )


@router.post("/refill")
async def refill_chips(
    body: RefillRequest,
    profile: Annotated[Profile | None, Depends(optional_user)],
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> BalanceResponse:
    """
    Buy chips.

    Logged-in players refill their account; guests refill the balance kept
    in their session.
    """
    if body.amount > config.game.max_refill:
        raise HTTPException(
            status_code=400,
            detail=f"Refill amount must be between 1 and {config.game.max_refill}.",
        )

    if profile is not None:
        store = await get_profile_store()
        updated = await store.set_balance(profile.email, profile.balance + body.amount)
        logger.info("Refilled %d chips for %s", body.amount, profile.email)
        return BalanceResponse(balance=updated.balance if updated else profile.balance)

    if session_id is None:
        raise HTTPException(status_code=400, detail="A session is required to refill as a guest.")
    require_signed_session(session_id)

    sessions = await get_session_store()
    session_data = await sessions.get(session_id) or {}
    balance = session_data.get(SESSION_KEY_GUEST_BALANCE, config.game.starting_chips) + body.amount
    session_data[SESSION_KEY_GUEST_BALANCE] = balance
    await sessions.set(session_id, session_data)
    return BalanceResponse(balance=balance)


@router.get("/history")
async def get_history(
    profile: Annotated[Profile, Depends(require_user)],
) -> HistoryResponse:
    """Most recent settled rounds, newest first."""
    store = await get_profile_store()
    entries = await store.list_history(profile.email, config.game.history_limit)
    return HistoryResponse(
        entries=[HistoryEntryResponse.model_validate(e) for e in entries],
    )
