"""
Session bootstrap: configure the realtime model once per activation.

No retries of its own. If the send fails the bootstrap stays unconfigured
and the relay tries again on the next readiness signal.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

from logging_setup import get_logger, Component
from .instructions import build_session_update, get_instructions


EventSender = Callable[[Dict[str, Any]], Awaitable[None]]


class SessionBootstrap:
    """Tracks whether the current activation has received its session.update."""

    def __init__(self, instructions: Optional[str] = None, *, scenario: Optional[str] = None):
        self.instructions = instructions or get_instructions(scenario)
        self.configured = False
        self._lock = asyncio.Lock()
        self.logger = get_logger(Component.SESSION_BOOTSTRAP)

    def build_event(self) -> Dict[str, Any]:
        return build_session_update(self.instructions)

    async def configure(self, send: EventSender) -> bool:
        """
        Send the configuration event unless this activation already has it.

        Returns True only when an event was actually sent now. Overlapping
        calls wait for the attempt in progress instead of sending again.
        """
        async with self._lock:
            if self.configured:
                return False

            self.logger.info("Channel ready, sending initial configuration")
            try:
                await send(self.build_event())
            except Exception as e:
                self.logger.warning(
                    "Sending session configuration failed; will retry on next readiness signal",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return False

            self.configured = True
            return True

    def reset(self) -> None:
        self.configured = False
