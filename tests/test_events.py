"""
Tests for ledger event records and sinks
"""

import logging

import pytest

from token_ledger.accounts import AccountId
from token_ledger.events import (
    Approval, EventDispatcher, EventLog, EventSink, Transfer, event_from_dict
)


ALICE = AccountId.derive("alice")
BOB = AccountId.derive("bob")


class TestEventRecords:
    """Test Transfer and Approval records"""

    def test_mint_transfer(self):
        event = Transfer(from_account=None, to_account=ALICE, value=100)
        assert event.is_mint
        assert event.event_type == "Transfer"

    def test_transfer_to_dict(self):
        event = Transfer(from_account=ALICE, to_account=BOB, value=2 ** 100)
        assert not event.is_mint
        assert event.to_dict() == {
            'event_type': "Transfer",
            'from': ALICE.hex(),
            'to': BOB.hex(),
            'value': str(2 ** 100)
        }

    def test_approval_from_dict(self):
        data = Approval(owner=ALICE, spender=BOB, allowance=7).to_dict()
        assert data['owner'] == ALICE.hex()
        assert event_from_dict(data) == Approval(owner=ALICE, spender=BOB, allowance=7)

    def test_mint_from_dict(self):
        data = Transfer(from_account=None, to_account=ALICE, value=1).to_dict()
        assert data['from'] is None
        assert event_from_dict(data).from_account is None

    def test_unknown_event_type(self):
        with pytest.raises(ValueError, match="Unknown event type"):
            event_from_dict({'event_type': "Burn"})

    def test_records_are_immutable(self):
        event = Approval(owner=ALICE, spender=BOB, allowance=7)
        with pytest.raises(AttributeError):
            event.allowance = 8


class TestEventLog:
    """Test the append-only in-memory sink"""

    def test_preserves_order(self):
        log = EventLog()
        first = Transfer(None, ALICE, 10)
        second = Approval(ALICE, BOB, 5)
        log.emit(first)
        log.emit(second)

        assert log.records == [first, second]
        assert list(log) == [first, second]
        assert len(log) == 2
        assert isinstance(log, EventSink)

    def test_of_type(self):
        log = EventLog()
        log.emit(Transfer(None, ALICE, 10))
        log.emit(Approval(ALICE, BOB, 5))
        log.emit(Transfer(ALICE, BOB, 1))

        assert [e.value for e in log.of_type(Transfer)] == [10, 1]
        assert len(log.of_type(Approval)) == 1

    def test_records_copy_cannot_alter_log(self):
        log = EventLog()
        log.emit(Transfer(None, ALICE, 10))
        log.records.clear()
        assert len(log) == 1

    def test_to_dicts(self):
        log = EventLog()
        log.emit(Approval(ALICE, BOB, 5))
        assert log.to_dicts()[0]['event_type'] == "Approval"


class TestEventDispatcher:
    """Test publish/subscribe delivery"""

    def test_typed_and_global_handlers(self):
        dispatcher = EventDispatcher()
        transfers, everything = [], []
        dispatcher.subscribe(Transfer, transfers.append)
        dispatcher.subscribe_all(everything.append)

        transfer = Transfer(ALICE, BOB, 3)
        approval = Approval(ALICE, BOB, 4)
        dispatcher.emit(transfer)
        dispatcher.publish(approval)

        assert transfers == [transfer]
        assert everything == [transfer, approval]
        assert dispatcher.history.records == [transfer, approval]
        assert dispatcher.get_handler_count() == 2
        assert dispatcher.get_handler_count(Transfer) == 1

    def test_failing_handler_is_isolated(self, caplog):
        dispatcher = EventDispatcher()
        received = []

        def broken(event):
            raise RuntimeError("handler failed")

        dispatcher.subscribe(Transfer, broken)
        dispatcher.subscribe(Transfer, received.append)

        with caplog.at_level(logging.ERROR, logger="token_ledger.events"):
            dispatcher.emit(Transfer(ALICE, BOB, 1))

        assert len(received) == 1
        assert "handler failed" in caplog.text

    def test_unsubscribe(self, caplog):
        dispatcher = EventDispatcher()
        received = []
        dispatcher.subscribe(Approval, received.append)
        dispatcher.unsubscribe(Approval, received.append)
        dispatcher.emit(Approval(ALICE, BOB, 1))
        assert received == []

        with caplog.at_level(logging.WARNING, logger="token_ledger.events"):
            dispatcher.unsubscribe(Approval, received.append)
            dispatcher.unsubscribe_all(received.append)
        assert "was not subscribed" in caplog.text

    def test_clear(self):
        dispatcher = EventDispatcher()
        dispatcher.subscribe_all(lambda event: None)
        dispatcher.clear()
        assert dispatcher.get_handler_count() == 0
