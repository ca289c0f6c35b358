"""
Voice session -> patent service client.

Used when the relay runs outside the patent service process: function calls
are POSTed to the service's /function endpoint. Failures never raise; they
come back as ``success: false`` results so the model can tell the user.

The service's own WS /relay uses the in-process executor caller instead.
``http_function_caller`` is the hook for embedding an ``EventRelay`` in a
separate process, e.g.::

    relay = EventRelay(channel.send, http_function_caller())
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Optional

import aiohttp

from logging_setup import get_logger, Component as LogComponent
from .config import RelayConfig
from .relay import FunctionCaller


logger = get_logger(LogComponent.FUNCTION_CLIENT)


def _failure(message: str, error: str) -> Dict[str, Any]:
    return {"success": False, "message": message, "error": error}


def _decode_arguments(arguments: Any) -> Any:
    # The model sends a JSON string; the service accepts either form.
    if isinstance(arguments, str) and arguments.strip():
        try:
            return json.loads(arguments)
        except json.JSONDecodeError:
            return arguments
    return arguments or {}


async def call_function_endpoint(
    base_url: Optional[str],
    name: str,
    arguments: Any,
    call_id: Optional[str] = None,
    *,
    timeout_seconds: float = 10.0,
) -> Dict[str, Any]:
    """
    Execute one function call on the patent service.

    Returns the service's result, or a failure result when the service is
    unreachable, rejects the name, or answers with a non-JSON body.
    """
    if not base_url:
        logger.warning("FUNCTION_SERVICE_URL not set; cannot execute function call", function=name)
        return _failure("The patent service is not configured", "function_service_url_missing")

    endpoint = f"{base_url.rstrip('/')}/function"
    payload = {"name": name, "arguments": _decode_arguments(arguments), "call_id": call_id}
    start_ts = time.time()
    logger.info("Executing function call", endpoint=endpoint, function=name, call_id=call_id)

    try:
        async with aiohttp.ClientSession() as s:
            async with s.post(
                endpoint,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=timeout_seconds),
            ) as resp:
                body = await resp.json(content_type=None)
                latency_ms = int((time.time() - start_ts) * 1000)
                logger.info(
                    "Function call response",
                    endpoint=endpoint,
                    function=name,
                    status=resp.status,
                    latency_ms=latency_ms,
                )
    except Exception as e:
        logger.warning(
            "Function call request failed",
            endpoint=endpoint,
            function=name,
            error=str(e),
            error_type=type(e).__name__,
            latency_ms=int((time.time() - start_ts) * 1000),
        )
        return _failure("Could not reach the patent service", str(e))

    if not isinstance(body, dict):
        return _failure("Unexpected response from the patent service", f"status {resp.status}")
    if resp.status >= 400:
        error = body.get("error") or body.get("detail") or f"HTTP error! status: {resp.status}"
        return _failure(str(error), str(error))
    return body


def http_function_caller(config: Optional[RelayConfig] = None) -> FunctionCaller:
    """Relay caller bound to the configured patent service URL."""
    config = config or RelayConfig.from_env()

    async def call(name: str, arguments: Any, call_id: Optional[str] = None) -> Dict[str, Any]:
        return await call_function_endpoint(
            config.function_service_url,
            name,
            arguments,
            call_id,
            timeout_seconds=config.function_timeout_seconds,
        )

    return call
