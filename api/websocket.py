"""WebSocket play with paced dealer reveals."""

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from api.auth import resolve_user
from api.routes.game import Table, _open_table, _save_table
from api.session import extract_session_id
from config import config
from core.game import BET_OUT_OF_TURN, DealerPacer, GameEvent, RoundState
from core.game.snapshot import RoundSnapshot

logger = logging.getLogger(__name__)

router = APIRouter()


class ConnectionManager:
    """Track open sockets and the dealer replay running for each."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._pacers: dict[str, DealerPacer] = {}

    async def connect(self, websocket: WebSocket, session_id: str) -> None:
        """Accept and register a new connection."""
        await websocket.accept()
        self._connections[session_id] = websocket

    def disconnect(self, session_id: str) -> None:
        """Remove a connection and stop its replay."""
        self._connections.pop(session_id, None)
        pacer = self._pacers.pop(session_id, None)
        if pacer is not None:
            pacer.cancel()

    def new_pacer(self, session_id: str) -> DealerPacer:
        """Start a fresh replay for a session, cancelling any still running."""
        previous = self._pacers.get(session_id)
        if previous is not None:
            previous.cancel()
        pacer = DealerPacer(delay=config.game.dealer_pace_seconds)
        self._pacers[session_id] = pacer
        return pacer

    async def send_message(self, session_id: str, message: dict[str, Any]) -> None:
        """Send a message to a specific session."""
        websocket = self._connections.get(session_id)
        if websocket is not None:
            await websocket.send_json(message)

    @property
    def active_connections(self) -> int:
        """Return number of active connections."""
        return len(self._connections)


# Global connection manager
manager = ConnectionManager()


def _table_state(table: Table) -> dict[str, Any]:
    state = table.game.snapshot().to_dict()
    state["can_hit"] = table.game.can_hit
    state["can_stand"] = table.game.can_stand
    return state


def _event_to_message(event: GameEvent) -> dict[str, Any]:
    """Convert a round event to a WebSocket message."""
    data = dict(event.data)
    snapshot = data.pop("snapshot", None)
    message: dict[str, Any] = {
        "type": "event",
        "event_type": event.event_type.name,
        "data": data,
    }
    if isinstance(snapshot, RoundSnapshot):
        message["state"] = snapshot.to_dict()
    return message


@router.websocket("/game/{session_id}")
async def game_websocket(websocket: WebSocket, session_id: str, token: str | None = None) -> None:
    """
    WebSocket endpoint for real-time play.

    Messages from client:
    - {"type": "bet", "amount": 100} (amount defaults to the table default bet)
    - {"type": "hit"} / {"type": "stand"}
    - {"type": "next_round"}
    - {"type": "get_state"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "event", "event_type": "...", "data": {...}, "state": {...}}
    - {"type": "error", "message": "..."}

    Events from one action are replayed in order with a pause before each
    dealer reveal and draw. A session id this server did not sign is
    refused before the socket is accepted.
    """
    if extract_session_id(session_id) is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket, session_id)
    profile = await resolve_user(token)

    async def deliver(event: GameEvent) -> None:
        await manager.send_message(session_id, _event_to_message(event))

    async def send_state(table: Table) -> None:
        await manager.send_message(session_id, {"type": "state_update", "state": _table_state(table)})

    try:
        await send_state(await _open_table(session_id, profile))

        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await manager.send_message(session_id, {"type": "error", "message": "Invalid JSON"})
                continue
            msg_type = message.get("type") if isinstance(message, dict) else None

            table = await _open_table(session_id, profile)
            game = table.game
            start = len(game.events.history)

            if msg_type == "get_state":
                await send_state(table)
                continue

            if msg_type == "bet":
                if not game.place_wager(message.get("amount", config.game.default_bet)):
                    error = game.message if game.state == RoundState.BETTING else BET_OUT_OF_TURN
                    await manager.send_message(session_id, {"type": "error", "message": error})
                    continue
            elif msg_type in ("hit", "stand"):
                action = game.hit if msg_type == "hit" else game.stand
                if not action():
                    # Ignored outside the player's turn
                    await send_state(table)
                    continue
            elif msg_type == "next_round":
                if game.state == RoundState.SETTLED:
                    game.new_round()
            else:
                await manager.send_message(session_id, {
                    "type": "error",
                    "message": f"Unknown message type: {msg_type}",
                })
                continue

            await _save_table(table)
            pacer = manager.new_pacer(session_id)
            await pacer.replay(game.events.history[start:], deliver)
            await send_state(table)

    except WebSocketDisconnect:
        logger.debug("WebSocket %s disconnected", session_id)
    finally:
        manager.disconnect(session_id)
