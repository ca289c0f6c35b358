"""
Time-windowed duplicate ledger.

Maps ``operation + serialized arguments`` to the last time that exact call
was accepted. A repeat inside the window is reported as a duplicate; every
check also evicts entries older than the window, so the ledger stays small.
"""
import json
import time
from typing import Any, Callable, Dict


DEFAULT_WINDOW_MS = 2000


def ledger_key(operation: str, arguments: Any) -> str:
    return f"{operation}-{json.dumps(arguments, separators=(',', ':'), ensure_ascii=False, default=str)}"


class DuplicateLedger:
    """
    Rolling-window ledger of recently accepted calls.

    The clock is injectable (seconds, monotonic by default) so tests can
    move time without sleeping.
    """

    def __init__(
        self,
        window_ms: int = DEFAULT_WINDOW_MS,
        *,
        now: Callable[[], float] = time.monotonic,
    ):
        if window_ms < 0:
            raise ValueError("window_ms must be >= 0")
        self.window_ms = window_ms
        self._now = now
        self._seen: Dict[str, float] = {}

    def is_duplicate(self, operation: str, arguments: Any) -> bool:
        """
        Check-and-record.

        Returns True when the same call was accepted less than ``window_ms``
        ago (the original timestamp is kept, so the window is not extended).
        Otherwise records the call and returns False.
        """
        key = ledger_key(operation, arguments)
        now = self._now()
        window_s = self.window_ms / 1000.0

        last_seen = self._seen.get(key)
        if last_seen is not None and (now - last_seen) < window_s:
            return True

        self._seen[key] = now
        self._evict(now, window_s)
        return False

    def _evict(self, now: float, window_s: float) -> None:
        expired = [k for k, seen in self._seen.items() if now - seen > window_s]
        for k in expired:
            del self._seen[k]

    def __len__(self) -> int:
        return len(self._seen)

    def clear(self) -> None:
        self._seen.clear()
