"""HTTP and WebSocket endpoints of the relay."""

from __future__ import annotations

import logging
import secrets
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse

from ..references import canonicalize
from ..schemas.messages import BulkInjectRequest, InjectRequest, ReadRequest
from ..services.broadcast import ConnectionManager

logger = logging.getLogger(__name__)
router = APIRouter()

HELP_TEXT = (
    "TikTok Verse Relay\n"
    "WS: /ws\n"
    "Health: /health\n"
    "POST /inject  (Authorization: Bearer <ADMIN_TOKEN>)\n"
    "POST /inject/bulk  (Authorization: Bearer <ADMIN_TOKEN>)\n"
    "POST /clear  (Authorization: Bearer <ADMIN_TOKEN>)\n"
)


def get_manager(request: Request) -> ConnectionManager:
    return request.app.state.connection_manager


def require_admin(
    request: Request, authorization: str | None = Header(default=None)
) -> None:
    """Reject the request unless it carries the configured bearer token."""
    token = request.app.state.settings.admin_token
    expected = token.get_secret_value().strip() if token is not None else ""
    if not expected or not secrets.compare_digest(
        (authorization or "").encode(), f"Bearer {expected}".encode()
    ):
        raise HTTPException(status_code=401, detail="unauthorized")


def _to_read_request(body: InjectRequest) -> ReadRequest:
    reference = canonicalize(body.reference)
    if not reference:
        raise HTTPException(status_code=400, detail="missing reference")
    return ReadRequest(
        reference=reference,
        text=body.text or None,
        audio_url=body.audio_url or None,
        source_user=body.source_user or "admin",
    )


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    return HELP_TEXT


@router.get("/health", tags=["health"])
async def healthcheck() -> dict[str, bool]:
    return {"ok": True}


@router.post("/inject", dependencies=[Depends(require_admin)], tags=["admin"])
async def inject(
    body: InjectRequest, manager: ConnectionManager = Depends(get_manager)
) -> dict[str, Any]:
    """Broadcast a read request without going through chat admission."""
    request = _to_read_request(body)
    delivered = await manager.send_read(request)
    logger.info("Injected %s from %s", request.reference, request.source_user)
    return {"ok": True, "delivered": delivered}


@router.post("/inject/bulk", dependencies=[Depends(require_admin)], tags=["admin"])
async def inject_bulk(
    body: BulkInjectRequest, manager: ConnectionManager = Depends(get_manager)
) -> dict[str, Any]:
    if not body.items:
        raise HTTPException(status_code=400, detail="missing items")
    requests = [_to_read_request(item) for item in body.items]
    delivered = await manager.send_bulk(requests)
    logger.info("Injected %d references in bulk", len(requests))
    return {"ok": True, "delivered": delivered, "count": len(requests)}


@router.post("/clear", dependencies=[Depends(require_admin)], tags=["admin"])
async def clear(manager: ConnectionManager = Depends(get_manager)) -> dict[str, Any]:
    delivered = await manager.send_clear()
    logger.info("Sent clear to %d players", delivered)
    return {"ok": True, "delivered": delivered}


@router.websocket("/ws")
async def player_socket(websocket: WebSocket) -> None:
    """Players only listen; anything they send is ignored."""
    manager: ConnectionManager = websocket.app.state.connection_manager
    client_id = await manager.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    except Exception as exc:
        logger.warning("Player socket %s failed: %s", client_id, exc)
    finally:
        manager.disconnect(client_id)


__all__ = ["HELP_TEXT", "router"]
