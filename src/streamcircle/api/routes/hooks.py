"""Media server webhooks (nginx-rtmp on_publish / on_publish_done)."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from streamcircle.api.ingest import WebhookResult, on_publish, on_unpublish
from streamcircle.errors import PersistenceFailure

logger = logging.getLogger(__name__)

router = APIRouter(tags=["hooks"])

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def _read_body(request: Request) -> Mapping:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except (ValueError, UnicodeDecodeError):
            return {}
        return body if isinstance(body, Mapping) else {}
    if content_type.startswith(_FORM_TYPES):
        return await request.form()
    return {}


async def extract_stream_key(request: Request) -> str | None:
    """Stream key from the ``name`` body field or query parameter, first non-empty wins."""
    body = await _read_body(request)
    for candidate in (body.get("name"), request.query_params.get("name")):
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


@router.post("/publish", response_class=PlainTextResponse)
async def publish(request: Request) -> PlainTextResponse:
    """Authorize an incoming RTMP stream and mark its room live."""
    stream_key = await extract_stream_key(request)
    if not stream_key:
        return PlainTextResponse("missing stream key", status_code=400)

    try:
        result = await on_publish(request.app.state.status_bus, stream_key)
    except PersistenceFailure:
        return PlainTextResponse("store unavailable", status_code=503)

    if result is WebhookResult.REJECTED:
        return PlainTextResponse("stream key rejected", status_code=403)
    return PlainTextResponse("ok")


@router.post("/done", response_class=PlainTextResponse)
async def done(request: Request) -> PlainTextResponse:
    """Mark a room offline. Always acknowledged."""
    stream_key = await extract_stream_key(request)
    if stream_key:
        await on_unpublish(request.app.state.status_bus, stream_key)
    return PlainTextResponse("ok")
