"""Shared fixtures for the patent service and voice session tests."""
import pytest

from observability.event_store import event_store
from patent_service.document_store import DocumentStore
from patent_service.functions import FunctionExecutor
from patent_service.ledger import DuplicateLedger
from patent_service.session import SessionRegistry


class FakeClock:
    """Monotonic clock in seconds that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance_ms(self, ms: float) -> None:
        self.t += ms / 1000.0


@pytest.fixture(autouse=True)
def clear_events():
    """Each test starts with an empty event store."""
    event_store.clear()
    yield
    event_store.clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return DocumentStore(tmp_path / "patents")


@pytest.fixture
def registry(store):
    return SessionRegistry(store)


@pytest.fixture
def executor(registry, clock):
    return FunctionExecutor(registry, DuplicateLedger(2000, now=clock))
