"""WebSocket endpoint for room presence, chat and live status."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from streamcircle.api.relay import (
    ACK,
    CHAT_MESSAGE,
    Relay,
    SendResult,
    ViewerSession,
)
from streamcircle.errors import AuthorizationFailure, RelayError, ValidationFailure

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])

CLOSE_UNAUTHORIZED = 4001
CLOSE_TOO_SLOW = 4008


async def _pump(ws: WebSocket, session: ViewerSession) -> None:
    """Forward queued frames to the socket until evicted or disconnected."""
    try:
        while True:
            payload = await session.outbox.get()
            if payload is None:
                await ws.close(code=CLOSE_TOO_SLOW, reason="too slow")
                return
            await ws.send_text(json.dumps(payload))
    except WebSocketDisconnect:
        pass
    except Exception:
        # Transport already gone; the receive loop handles teardown
        logger.debug("Stopped sending to %s", session.display_name, exc_info=True)


async def _handle_frame(relay: Relay, session: ViewerSession, raw: str) -> None:
    try:
        message = json.loads(raw)
    except ValueError:
        logger.debug("Ignoring non-JSON frame from %s", session.display_name)
        return
    if not isinstance(message, dict):
        return

    event = message.get("event")
    if event == CHAT_MESSAGE:
        result = await relay.send_chat(session, message.get("data"))
    else:
        result = SendResult(False, ValidationFailure(f"unknown event: {event!r}"))

    ack_id = message.get("id")
    if ack_id is not None:
        relay.deliver(session, {"event": ACK, "id": ack_id, "data": result.as_ack()})


@router.websocket("/ws")
async def ws_room(
    ws: WebSocket,
    slug: str = Query(""),
    token: str = Query(""),
    display_name: str = Query("", alias="displayName"),
) -> None:
    """Join a room's channel.

    Connect: ws://host:port/ws?slug=<slug>&token=<playbackKey>&displayName=<name>
    Receives, in order: chat:history, stream:status; then chat:message,
    stream:status and ack frames as JSON ``{"event", "data"}``.
    Sends: ``{"event": "chat:message", "data": {"content"}, "id": <ack id>}``.
    """
    relay: Relay = ws.app.state.relay

    try:
        session = await relay.authenticate(slug, token, display_name)
        await relay.join(session)
    except (AuthorizationFailure, ValidationFailure) as exc:
        logger.info("Rejected viewer for room %r: %s", slug, exc.message)
        await ws.close(code=CLOSE_UNAUTHORIZED, reason="unauthorized")
        return
    except RelayError as exc:
        logger.warning("Could not join room %r: %s", slug, exc.message)
        await ws.close(code=1011, reason=exc.message)
        return

    pump: asyncio.Task | None = None
    try:
        await ws.accept()
        pump = asyncio.create_task(_pump(ws, session), name=f"ws-pump-{slug}")
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                logger.debug("Ignoring binary frame from %s", session.display_name)
                continue
            await _handle_frame(relay, session, raw)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.debug("WebSocket error", exc_info=True)
        with contextlib.suppress(Exception):
            await ws.close(code=1011)
    finally:
        relay.leave(session)
        if pump is not None:
            pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump
        logger.debug("%s left %s", session.display_name, session.slug)
