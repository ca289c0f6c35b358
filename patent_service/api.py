"""
Patent service HTTP and WebSocket API.

This module exposes:
- POST /function: execute one function call envelope
- GET /session, GET /session/events: read the active patent session
- GET /token: mint an ephemeral realtime session for the browser
- WS /relay: in-process relay bridge between the browser's model channel
  and the function executor

Implementation notes:
- The executor, registry and config live on ``app.state`` (see server.py).
- An unknown function name is rejected with 400 before any side effect;
  operation failures are ordinary 200 results with ``success: false``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from logging_setup import get_logger, Component
from observability.event_store import event_store
from voice_session.bootstrap import SessionBootstrap
from voice_session.relay import ChannelState, EventRelay
from .errors import UnknownOperationError
from .functions import FunctionExecutor
from .realtime_token import RealtimeTokenError, mint_realtime_session
from .session import SessionRegistry


router = APIRouter(tags=["patent"])
logger = get_logger(Component.API_SERVER)


class FunctionCallRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Function name from the dispatch table")
    arguments: Any = Field(default=None, description="JSON string or object")
    call_id: Optional[str] = None


def _executor(app) -> FunctionExecutor:
    return app.state.executor


def _registry(app) -> SessionRegistry:
    return app.state.registry


@router.post("/function")
async def execute_function(req: FunctionCallRequest, request: Request):
    """Execute a function call on the active patent session."""
    executor = _executor(request.app)
    logger.info("Received function call", function=req.name, call_id=req.call_id)

    try:
        result = await asyncio.to_thread(
            executor.execute, req.name, req.arguments, call_id=req.call_id
        )
    except UnknownOperationError as e:
        logger.error("Unknown function", function=req.name)
        return JSONResponse(status_code=400, content={"error": e.message})
    except Exception as e:
        # Don't crash - log and return error
        logger.error(
            "Error executing function",
            function=req.name,
            error=str(e),
            exception_type=type(e).__name__,
        )
        return JSONResponse(status_code=500, content={"error": str(e)})

    return result


@router.get("/session")
async def get_session(request: Request) -> dict:
    session = _registry(request.app).current()
    if session is None:
        raise HTTPException(status_code=404, detail="No active patent session found")
    return session.to_dict()


@router.get("/session/events")
async def get_session_events(
    request: Request,
    event_type: Optional[str] = Query(None, description="Filter by event_type"),
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Max events to return"),
) -> dict:
    """Events recorded for the active patent session."""
    session = _registry(request.app).current()
    if session is None:
        raise HTTPException(status_code=404, detail="No active patent session found")

    events = event_store.query(
        session_id=session.session_id,
        event_type=event_type,
        limit=limit,
    )
    return {
        "session_id": session.session_id,
        "events": events,
        "count": len(events),
    }


@router.get("/token")
async def get_token(request: Request):
    config = request.app.state.config
    if not config.openai_api_key:
        logger.warning("Token requested but OPENAI_API_KEY is not set")
        return JSONResponse(status_code=503, content={"error": "OPENAI_API_KEY is not configured"})

    try:
        return await mint_realtime_session(config)
    except RealtimeTokenError as e:
        logger.error("Token generation error", error=str(e))
        return JSONResponse(status_code=500, content={"error": "Failed to generate token"})


@router.websocket("/relay")
async def relay_socket(websocket: WebSocket):
    """
    Relay bridge.

    Opening the socket is the channel's readiness signal; every inbound
    JSON message is a model event; outbound messages are session.update and
    function.response events for the browser to forward to the model.
    Closing the socket deactivates the channel but keeps the patent session.
    """
    await websocket.accept()
    registry = _registry(websocket.app)

    def current_session_id() -> Optional[str]:
        session = registry.current()
        return session.session_id if session else None

    relay = EventRelay(
        send=websocket.send_json,
        call_function=_executor(websocket.app).as_caller(),
        bootstrap=SessionBootstrap(scenario=websocket.query_params.get("scenario")),
        session_id=current_session_id,
    )
    await relay.on_channel_ready()

    try:
        while True:
            try:
                event = await websocket.receive_json()
            except (ValueError, KeyError):
                logger.warning("Ignoring relay message that is not a JSON text frame")
                continue
            if not isinstance(event, dict):
                continue
            if relay.state != ChannelState.ACTIVE:
                await relay.on_channel_ready()
            relay.handle_event(event)
    except WebSocketDisconnect:
        logger.info("Relay socket closed", pending=relay.pending)
    finally:
        relay.deactivate()
