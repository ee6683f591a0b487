"""Liveness probe."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def health(request: Request) -> dict:
    """Process is up; includes the number of rooms with connected viewers."""
    return {
        "status": "ok",
        "active_channels": request.app.state.relay.channel_count,
    }
