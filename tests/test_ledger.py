"""
Duplicate ledger tests.
Tests the rolling time window and lazy eviction.
"""
import pytest

from patent_service.ledger import DuplicateLedger, ledger_key


def test_first_call_is_not_duplicate(clock):
    ledger = DuplicateLedger(2000, now=clock)
    assert ledger.is_duplicate("create_template", {"title": "Widget"}) is False


def test_repeat_inside_window_is_duplicate(clock):
    ledger = DuplicateLedger(2000, now=clock)
    ledger.is_duplicate("create_template", {"title": "Widget"})

    clock.advance_ms(1500)
    assert ledger.is_duplicate("create_template", {"title": "Widget"}) is True


def test_repeat_after_window_is_accepted(clock):
    ledger = DuplicateLedger(2000, now=clock)
    ledger.is_duplicate("create_template", {"title": "Widget"})

    clock.advance_ms(2100)
    assert ledger.is_duplicate("create_template", {"title": "Widget"}) is False


def test_duplicate_does_not_extend_window(clock):
    ledger = DuplicateLedger(2000, now=clock)
    ledger.is_duplicate("create_template", {"title": "Widget"})
    clock.advance_ms(1500)
    assert ledger.is_duplicate("create_template", {"title": "Widget"}) is True

    # 2100ms after the accepted call, 600ms after the suppressed one
    clock.advance_ms(600)
    assert ledger.is_duplicate("create_template", {"title": "Widget"}) is False


def test_different_arguments_are_distinct(clock):
    ledger = DuplicateLedger(2000, now=clock)
    ledger.is_duplicate("create_template", {"title": "Widget"})

    assert ledger.is_duplicate("create_template", {"title": "Gadget"}) is False
    assert ledger.is_duplicate("resume_patent_creation", {"title": "Widget"}) is False


def test_old_entries_evicted_on_check(clock):
    ledger = DuplicateLedger(2000, now=clock)
    for i in range(10):
        ledger.is_duplicate("create_template", {"title": f"Invention {i}"})
    assert len(ledger) == 10

    clock.advance_ms(2500)
    ledger.is_duplicate("resume_patent_creation", {})

    assert len(ledger) == 1


def test_key_uses_operation_and_exact_payload():
    assert ledger_key("create_template", {"title": "Widget"}) == 'create_template-{"title":"Widget"}'


def test_negative_window_rejected():
    with pytest.raises(ValueError):
        DuplicateLedger(-1)
