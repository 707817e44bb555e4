# saferide/services/realtime/routes.py
"""
WebSocket endpoint realtime-канала.

Подключение: /ws?token=<jwt>

Исходящие кадры: {"event": <имя>, "data": {...}}

Входящие кадры:
- {"event": "join_ride", "data": {"ride_id": "<uuid>"}}
- {"event": "chat_message", "data": {"ride_id": "<uuid>", "message": "..."}}
- {"event": "ping"}
"""

from __future__ import annotations

import json
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from saferide.common.constants import RealtimeEvent, ride_room
from saferide.common.errors import Conflict, Forbidden, InvalidInput, SafeRideError, Unauthorized
from saferide.common.logger import log_debug, log_info
from saferide.core.auth.service import Principal
from saferide.shared.events.ride_events import ChatMessagePayload

router = APIRouter()

MAX_CHAT_MESSAGE_LENGTH = 2000


def _decode(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise InvalidInput("Frame must be JSON") from e


def _parse_ride_id(data: dict[str, Any]) -> UUID:
    try:
        return UUID(str(data["ride_id"]))
    except (KeyError, ValueError) as e:
        raise InvalidInput("ride_id must be a valid ride identifier") from e


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    token: str | None = Query(default=None),
) -> None:
    app_state = websocket.app.state

    try:
        principal: Principal = await app_state.auth.verify(token)
    except Unauthorized:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    registry = app_state.registry
    connection_id = await registry.connect(websocket, principal.user_id, principal.role)
    await log_info(f"WebSocket подключён: user={principal.user_id} ({principal.role})")

    try:
        # Реестр удаляет соединение, если доставка ему не удалась
        while registry.get(connection_id) is not None:
            raw = await websocket.receive_text()
            try:
                await _handle_frame(websocket, connection_id, principal, _decode(raw))
            except SafeRideError as e:
                if websocket.application_state is not WebSocketState.CONNECTED:
                    break
                await websocket.send_json(
                    {"event": "error", "data": {"error_code": e.error_code, "message": e.message}}
                )
    except WebSocketDisconnect:
        pass
    finally:
        registry.disconnect(connection_id)
        await log_debug(f"WebSocket отключён: user={principal.user_id}")


async def _handle_frame(
    websocket: WebSocket,
    connection_id: str,
    principal: Principal,
    frame: Any,
) -> None:
    if not isinstance(frame, dict):
        raise InvalidInput("Frame must be a JSON object")

    event = frame.get("event")
    data = frame.get("data") or {}
    if not isinstance(data, dict):
        raise InvalidInput("Frame data must be a JSON object")

    app_state = websocket.app.state

    match event:
        case "join_ride":
            room = ride_room(_parse_ride_id(data))
            if not app_state.hub.join_room(connection_id, room):
                raise Conflict("Connection is no longer registered")
            await websocket.send_json({"event": "joined", "data": {"room": room}})

        case RealtimeEvent.CHAT_MESSAGE.value:
            ride_id = _parse_ride_id(data)
            room = ride_room(ride_id)
            if not app_state.registry.is_member(connection_id, room):
                raise Forbidden("Join the ride room before sending messages")

            message = data.get("message")
            if not isinstance(message, str) or not message.strip():
                raise InvalidInput("message must be a non-empty string")
            if len(message) > MAX_CHAT_MESSAGE_LENGTH:
                raise InvalidInput("message is too long")

            payload = ChatMessagePayload(message=message)
            app_state.hub.send_to_room(room, RealtimeEvent.CHAT_MESSAGE.value, payload.model_dump())
            await app_state.chat.save_message_quietly(ride_id, principal.user_id, message)

        case "ping":
            await websocket.send_json({"event": "pong", "data": {}})

        case _:
            raise InvalidInput(f"Unknown event: {event}")
