"""Tests for accounts: signup, login, refills and hand history."""

import pytest
from uuid import uuid4

from conftest import stack_table
from api.auth import hash_password, issue_token, read_token, verify_password
from api.profiles import Profile


def unique_email() -> str:
    return f"player-{uuid4().hex[:8]}@example.com"


async def signup(client, email=None, password="hunter22"):
    email = email or unique_email()
    response = await client.post(
        "/api/account/signup",
        json={"email": email, "password": password, "confirm_password": password},
    )
    assert response.status_code == 200
    return response.json()


class TestPasswords:
    """Tests for password hashing."""

    def test_verify_correct_password(self):
        digest, salt = hash_password("correct horse")
        profile = Profile(email="a@example.com", password_hash=digest, salt=salt, balance=0)

        assert verify_password("correct horse", profile)
        assert not verify_password("wrong horse", profile)

    def test_salt_changes_digest(self):
        first, _ = hash_password("same")
        second, _ = hash_password("same")
        assert first != second

    def test_same_salt_same_digest(self):
        digest, salt = hash_password("same")
        assert hash_password("same", salt) == (digest, salt)

    def test_token_carries_normalized_email(self):
        assert read_token(issue_token("  Someone@Example.COM ")) == "someone@example.com"
        assert read_token("not-a-token") is None


@pytest.mark.asyncio
async def test_signup_returns_token_and_starting_chips(client):
    data = await signup(client, email="New.Player@Example.com")

    assert data["email"] == "new.player@example.com"
    assert data["balance"] == 500
    assert data["token"]


@pytest.mark.asyncio
async def test_signup_duplicate_email(client):
    email = unique_email()
    await signup(client, email=email)

    response = await client.post(
        "/api/account/signup",
        json={"email": email.upper(), "password": "hunter22", "confirm_password": "hunter22"},
    )
    assert response.status_code == 409


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "password,confirm,status",
    [
        ("short", "short", 400),
        ("hunter22", "hunter23", 400),
    ],
)
async def test_signup_password_rules(client, password, confirm, status):
    response = await client.post(
        "/api/account/signup",
        json={"email": unique_email(), "password": password, "confirm_password": confirm},
    )
    assert response.status_code == status


@pytest.mark.asyncio
async def test_signup_rejects_malformed_email(client):
    response = await client.post(
        "/api/account/signup",
        json={"email": "not-an-email", "password": "hunter22", "confirm_password": "hunter22"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login(client):
    email = unique_email()
    await signup(client, email=email)

    ok = await client.post("/api/account/login", json={"email": email, "password": "hunter22"})
    bad = await client.post("/api/account/login", json={"email": email, "password": "wrong-one"})
    unknown = await client.post(
        "/api/account/login", json={"email": unique_email(), "password": "hunter22"}
    )

    assert ok.status_code == 200
    assert read_token(ok.json()["token"]) == email
    assert bad.status_code == 401
    assert unknown.status_code == 401


@pytest.mark.asyncio
async def test_profile_requires_login(client):
    assert (await client.get("/api/account/profile")).status_code == 401
    response = await client.get("/api/account/profile", headers={"X-Auth-Token": "forged"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_profile(client):
    account = await signup(client)

    response = await client.get("/api/account/profile", headers={"X-Auth-Token": account["token"]})

    assert response.status_code == 200
    assert response.json()["email"] == account["email"]
    assert response.json()["balance"] == 500


@pytest.mark.asyncio
async def test_refill_account(client):
    account = await signup(client)
    headers = {"X-Auth-Token": account["token"]}

    response = await client.post("/api/account/refill", json={"amount": 250}, headers=headers)

    assert response.json() == {"balance": 750}
    profile = (await client.get("/api/account/profile", headers=headers)).json()
    assert profile["balance"] == 750


@pytest.mark.asyncio
@pytest.mark.parametrize("amount,status", [(0, 422), (-10, 422), (10_001, 400)])
async def test_refill_limits(client, amount, status):
    account = await signup(client)
    response = await client.post(
        "/api/account/refill",
        json={"amount": amount},
        headers={"X-Auth-Token": account["token"]},
    )
    assert response.status_code == status


@pytest.mark.asyncio
async def test_guest_refill_needs_session(client):
    response = await client.post("/api/account/refill", json={"amount": 10})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_logged_in_round_uses_account_balance_and_records_history(client):
    account = await signup(client)
    auth = {"X-Auth-Token": account["token"]}

    session_id = (await client.post("/api/game/new", headers=auth)).json()["session_id"]
    await stack_table(session_id, "10♠", "9♦", "A♥", "7♣", player_id=account["email"])
    headers = {**auth, "X-Session-ID": session_id}

    data = (await client.post("/api/game/bet", json={"amount": 10}, headers=headers)).json()
    assert data["player"] == account["email"]
    assert data["outcome"] == "player-blackjack"
    assert data["balance"] == 515

    profile = (await client.get("/api/account/profile", headers=auth)).json()
    assert profile["balance"] == 515

    history = (await client.get("/api/account/history", headers=auth)).json()["entries"]
    assert len(history) == 1
    assert history[0]["outcome"] == "player-blackjack"
    assert history[0]["payout_delta"] == 15
    assert history[0]["resulting_balance"] == 515


@pytest.mark.asyncio
async def test_history_newest_first(client):
    account = await signup(client)
    auth = {"X-Auth-Token": account["token"]}
    session_id = (await client.post("/api/game/new", headers=auth)).json()["session_id"]
    headers = {**auth, "X-Session-ID": session_id}

    await stack_table(session_id, "10♠", "10♦", "9♥", "8♣", player_id=account["email"])
    await client.post("/api/game/bet", json={"amount": 10}, headers=headers)
    await client.post("/api/game/action", json={"action": "stand"}, headers=headers)

    await stack_table(session_id, "10♠", "10♦", "8♥", "9♣", player_id=account["email"])
    await client.post("/api/game/bet", json={"amount": 20}, headers=headers)
    await client.post("/api/game/action", json={"action": "stand"}, headers=headers)

    history = (await client.get("/api/account/history", headers=auth)).json()["entries"]

    assert [e["outcome"] for e in history] == ["dealer-win", "player-win"]
    assert history[0]["resulting_balance"] == 490


@pytest.mark.asyncio
async def test_round_in_progress_stays_with_its_player(client):
    """Logging in mid-round does not move a guest's wager onto the account."""
    session_id = (await client.post("/api/game/new")).json()["session_id"]
    await stack_table(session_id, "10♠", "10♦", "9♥", "8♣")
    await client.post("/api/game/bet", json={"amount": 10}, headers={"X-Session-ID": session_id})

    account = await signup(client)
    headers = {"X-Auth-Token": account["token"], "X-Session-ID": session_id}
    data = (await client.post("/api/game/action", json={"action": "stand"}, headers=headers)).json()

    assert data["player"] is None
    assert data["balance"] == 510
    profile = (await client.get("/api/account/profile", headers=headers)).json()
    assert profile["balance"] == 500

    data = (await client.post("/api/game/next-round", headers=headers)).json()
    assert data["player"] == account["email"]
    assert data["balance"] == 500


@pytest.mark.asyncio
async def test_guest_refill_rejects_unsigned_session(client):
    response = await client.post(
        "/api/account/refill",
        json={"amount": 100},
        headers={"X-Session-ID": "attacker-chosen-id"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid session."
