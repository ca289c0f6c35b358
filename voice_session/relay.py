"""
Event relay between the realtime model's channel and the function executor.

Channel states cycle ``inactive -> configuring -> active -> inactive``.

Inbound events are handled in arrival order. Only ``response.done`` events
are inspected, and within them only outputs of type ``function_call``.
Two guards keep a call from running twice:

- repeated delivery: each call's serialized form is compared with the single
  most recent one; an identical call is dropped. A duplicate that comes back
  after a different call in between is NOT caught here (the executor's
  time-windowed ledger covers the side-effecting functions).
- in-flight marker: a call that is still executing is not started again if
  it is delivered a second time (e.g. re-rendered by a UI).

Executions run as tasks so the inbound stream never waits on them. Each
finished execution sends exactly one ``function.response`` event, in
completion order. A result that finishes after its activation ended is
dropped.
"""
from __future__ import annotations

import asyncio
import json
from enum import Enum
from typing import Any, AsyncIterable, Awaitable, Callable, Dict, FrozenSet, List, Optional, Set

from logging_setup import get_logger, Component
from observability.events import Component as ObsComponent, EventEmitter
from .bootstrap import EventSender, SessionBootstrap


RESPONSE_DONE = "response.done"
FUNCTION_CALL = "function_call"
FUNCTION_RESPONSE = "function.response"

FunctionCaller = Callable[[str, Any, Optional[str]], Awaitable[Dict[str, Any]]]


class ChannelState(str, Enum):
    INACTIVE = "inactive"
    CONFIGURING = "configuring"
    ACTIVE = "active"


def call_signature(output: Dict[str, Any]) -> str:
    """Serialized form of a function call output, in the order it was received."""
    return json.dumps(output, separators=(",", ":"), ensure_ascii=False)


def build_function_response(function_call: Dict[str, Any], output: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": FUNCTION_RESPONSE,
        "response": {
            "function_call": function_call,
            "output": output,
        },
    }


class EventRelay:
    """One logical channel to the realtime model."""

    def __init__(
        self,
        send: EventSender,
        call_function: FunctionCaller,
        *,
        bootstrap: Optional[SessionBootstrap] = None,
        session_id: Optional[Callable[[], Optional[str]]] = None,
        emitter: Optional[EventEmitter] = None,
    ):
        self._send = send
        self._call_function = call_function
        self.bootstrap = bootstrap or SessionBootstrap()
        self._session_id = session_id or (lambda: None)
        self.emitter = emitter or EventEmitter(ObsComponent.EVENT_RELAY)
        self.logger = get_logger(Component.EVENT_RELAY)

        self._state = ChannelState.INACTIVE
        self._activation = 0
        self._last_signature: Optional[str] = None
        self._in_flight: Set[str] = set()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def activation_id(self) -> str:
        return f"activation_{self._activation}"

    @property
    def configured(self) -> bool:
        return self.bootstrap.configured

    @property
    def last_signature(self) -> Optional[str]:
        return self._last_signature

    @property
    def in_flight(self) -> FrozenSet[str]:
        return frozenset(self._in_flight)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _set_state(self, new_state: ChannelState) -> None:
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        self.logger.info(
            "Relay state changed",
            from_state=old_state.value,
            to_state=new_state.value,
            activation_id=self.activation_id,
        )
        self.emitter.relay_state_changed(
            self._session_id(), old_state.value, new_state.value, self.activation_id
        )

    # --- channel lifecycle ---

    async def on_channel_ready(self) -> bool:
        """
        Readiness signal from the channel.

        Starts a new activation when inactive and sends the configuration at
        most once per activation. Returns True when a configuration event
        was sent by this call.
        """
        if self._state == ChannelState.ACTIVE:
            self.logger.debug("Readiness signal while already configured; ignoring")
            return False

        if self._state == ChannelState.INACTIVE:
            self._activation += 1
            self._set_state(ChannelState.CONFIGURING)

        activation = self._activation
        sent = await self.bootstrap.configure(self._send)

        if activation != self._activation or self._state == ChannelState.INACTIVE:
            # Deactivated while the configuration was in transit.
            if self._state == ChannelState.INACTIVE:
                self.bootstrap.reset()
            return sent

        if self.bootstrap.configured:
            self._set_state(ChannelState.ACTIVE)
            if sent:
                self.emitter.relay_configured(self._session_id(), self.activation_id)
        return sent

    def deactivate(self) -> None:
        """
        Channel went away: forget configuration and the last call signature.

        Running executions are left to finish; their results are dropped.
        The patent session itself is untouched so it can be resumed.
        """
        if self._state == ChannelState.INACTIVE:
            return
        self._set_state(ChannelState.INACTIVE)
        self.bootstrap.reset()
        self._last_signature = None

    # --- inbound events ---

    def handle_event(self, event: Dict[str, Any]) -> List[asyncio.Task]:
        """
        Inspect one inbound event and start executions for new function calls.

        Must run inside the event loop. Returns the tasks started.
        """
        if self._state == ChannelState.INACTIVE:
            self.logger.debug("Ignoring event on inactive channel", event_type=event.get("type"))
            return []

        if event.get("type") != RESPONSE_DONE:
            return []

        response = event.get("response")
        outputs = response.get("output") if isinstance(response, dict) else None
        if not isinstance(outputs, list):
            self.logger.debug("Ignoring response.done without an output list")
            return []

        tasks = []
        for output in outputs:
            if not isinstance(output, dict) or output.get("type") != FUNCTION_CALL:
                continue

            signature = call_signature(output)
            if signature == self._last_signature:
                self.logger.info(
                    "Preventing duplicate function call",
                    function=output.get("name"),
                    call_id=output.get("call_id"),
                )
                self.emitter.function_call_suppressed(
                    self._session_id(), output.get("name", ""), "repeated_delivery",
                    call_id=output.get("call_id"),
                )
                continue

            self._last_signature = signature
            task = self.deliver(output, signature=signature)
            if task is not None:
                tasks.append(task)
        return tasks

    async def consume(self, events: AsyncIterable[Dict[str, Any]]) -> None:
        """Handle an ordered stream of inbound events until it ends."""
        async for event in events:
            self.handle_event(event)

    def deliver(self, output: Dict[str, Any], *, signature: Optional[str] = None) -> Optional[asyncio.Task]:
        """
        Start executing one function call unless that same call is running.

        The in-flight key is the call_id, or the serialized call when the
        model did not send one.
        """
        key = output.get("call_id") or signature or call_signature(output)
        if key in self._in_flight:
            self.logger.info("Preventing duplicate function execution", call_id=key)
            self.emitter.function_call_suppressed(
                self._session_id(), output.get("name", ""), "in_flight", call_id=output.get("call_id"),
            )
            return None

        self._in_flight.add(key)
        self.logger.info("Received function call", function=output.get("name"), call_id=output.get("call_id"))

        task = asyncio.get_running_loop().create_task(self._execute(output, key, self._activation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _execute(self, output: Dict[str, Any], key: str, activation: int) -> Dict[str, Any]:
        name = output.get("name", "")
        call_id = output.get("call_id")
        try:
            result = await self._call_function(name, output.get("arguments"), call_id)
        except Exception as e:
            self.logger.error(
                "Function call failed",
                function=name,
                call_id=call_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            result = {"success": False, "message": "Function call failed", "error": str(e)}
        finally:
            self._in_flight.discard(key)

        if activation != self._activation or self._state == ChannelState.INACTIVE:
            self.logger.warning("Dropping result for a closed channel", function=name, call_id=call_id)
            self.emitter.relay_result_dropped(self._session_id(), name, call_id=call_id)
            return result

        try:
            await self._send(build_function_response(output, result))
        except Exception as e:
            self.logger.warning(
                "Sending function result failed",
                function=name,
                call_id=call_id,
                error=str(e),
                error_type=type(e).__name__,
            )
        return result

    async def drain(self) -> None:
        """Wait for every running execution to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
