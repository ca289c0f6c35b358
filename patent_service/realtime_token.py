"""
Ephemeral realtime session minting.

The browser never sees the long-lived API key: it asks /token, and the
service creates a short-lived realtime session with the configured model,
voice and the executor's tool definitions.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict

import aiohttp

from logging_setup import get_logger, Component
from .config import ServiceConfig
from .functions import tool_definitions


logger = get_logger(Component.API_SERVER)


class RealtimeTokenError(Exception):
    """The realtime sessions endpoint refused or could not be reached."""


def build_session_request(config: ServiceConfig) -> Dict[str, Any]:
    return {
        "model": config.realtime_model,
        "voice": config.realtime_voice,
        "tools": tool_definitions(),
        "tool_choice": "auto",
    }


async def mint_realtime_session(config: ServiceConfig, *, timeout_seconds: float = 10.0) -> Dict[str, Any]:
    """
    Create a realtime session and return the provider's JSON (including the
    ephemeral client secret).

    Raises:
        RealtimeTokenError: non-2xx answer or transport failure
    """
    if not config.openai_api_key:
        raise RealtimeTokenError("OPENAI_API_KEY is not configured")

    headers = {
        "Authorization": f"Bearer {config.openai_api_key}",
        "Content-Type": "application/json",
    }
    start_ts = time.time()
    try:
        async with aiohttp.ClientSession() as s:
            async with s.post(
                config.realtime_sessions_url,
                json=build_session_request(config),
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout_seconds),
            ) as resp:
                data = await resp.json(content_type=None)
                latency_ms = int((time.time() - start_ts) * 1000)
                logger.info(
                    "Realtime session response",
                    status=resp.status,
                    model=config.realtime_model,
                    latency_ms=latency_ms,
                )
                if resp.status >= 400:
                    raise RealtimeTokenError(f"realtime sessions endpoint returned {resp.status}")
                return data
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise RealtimeTokenError(f"realtime sessions request failed: {e}") from e
