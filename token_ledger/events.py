"""
Event System Module

Transfer and Approval records emitted by the ledger, and the sinks that
receive them: an append-only in-memory log and a publish/subscribe
dispatcher.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Type, Union
import logging

from .accounts import AccountId
from .amounts import amount_to_string, amount_from_string


def _id_to_hex(account: Optional[AccountId]) -> Optional[str]:
    return account.hex() if account is not None else None


def _id_from_hex(value: Optional[str]) -> Optional[AccountId]:
    return AccountId.from_hex(value) if value is not None else None


@dataclass(frozen=True)
class Transfer:
    """
    Tokens moved between accounts.
    `from_account` is None only for the mint at construction.
    """
    from_account: Optional[AccountId]
    to_account: Optional[AccountId]
    value: int

    event_type = "Transfer"

    @property
    def is_mint(self) -> bool:
        return self.from_account is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'event_type': self.event_type,
            'from': _id_to_hex(self.from_account),
            'to': _id_to_hex(self.to_account),
            'value': amount_to_string(self.value)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transfer':
        return cls(
            from_account=_id_from_hex(data['from']),
            to_account=_id_from_hex(data['to']),
            value=amount_from_string(data['value'])
        )


@dataclass(frozen=True)
class Approval:
    """An owner set the amount a spender may move on its behalf"""
    owner: Optional[AccountId]
    spender: Optional[AccountId]
    allowance: int

    event_type = "Approval"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'event_type': self.event_type,
            'owner': _id_to_hex(self.owner),
            'spender': _id_to_hex(self.spender),
            'allowance': amount_to_string(self.allowance)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Approval':
        return cls(
            owner=_id_from_hex(data['owner']),
            spender=_id_from_hex(data['spender']),
            allowance=amount_from_string(data['allowance'])
        )


LedgerEvent = Union[Transfer, Approval]

EVENT_TYPES: Dict[str, Type] = {
    Transfer.event_type: Transfer,
    Approval.event_type: Approval,
}


def event_from_dict(data: Dict[str, Any]) -> LedgerEvent:
    """Rebuild an event from its to_dict() form"""
    try:
        event_cls = EVENT_TYPES[data['event_type']]
    except KeyError:
        raise ValueError(f"Unknown event type: {data.get('event_type')!r}")
    return event_cls.from_dict(data)


class EventSink(ABC):
    """Receives ledger events in the order they are emitted"""

    @abstractmethod
    def emit(self, event: LedgerEvent) -> None:
        pass


class EventLog(EventSink):
    """Ordered, append-only record of emitted events"""

    def __init__(self):
        self._records: List[LedgerEvent] = []

    def emit(self, event: LedgerEvent) -> None:
        self._records.append(event)

    @property
    def records(self) -> List[LedgerEvent]:
        return list(self._records)

    def of_type(self, event_cls: Type) -> List[LedgerEvent]:
        """Events of one record class, in emission order"""
        return [event for event in self._records if isinstance(event, event_cls)]

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [event.to_dict() for event in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[LedgerEvent]:
        return iter(list(self._records))


class EventDispatcher(EventSink):
    """Publish/subscribe sink; handlers never affect ledger state"""

    def __init__(self):
        self._handlers: Dict[Type, List[Callable]] = {}
        self._global_handlers: List[Callable] = []  # catch-all handlers
        self._history = EventLog()
        self.logger = logging.getLogger("token_ledger.events")

    def subscribe(self, event_cls: Type, handler: Callable) -> None:
        """Subscribe to one event class"""
        self._handlers.setdefault(event_cls, []).append(handler)
        self.logger.debug(f"Subscribed handler {getattr(handler, '__name__', repr(handler))} to {event_cls.event_type}")

    def subscribe_all(self, handler: Callable) -> None:
        """Subscribe to ALL events"""
        self._global_handlers.append(handler)
        self.logger.debug(f"Subscribed global handler {getattr(handler, '__name__', repr(handler))}")

    def unsubscribe(self, event_cls: Type, handler: Callable) -> None:
        """Unsubscribe from one event class"""
        try:
            self._handlers.get(event_cls, []).remove(handler)
        except ValueError:
            self.logger.warning(f"Handler {getattr(handler, '__name__', repr(handler))} was not subscribed to {event_cls.event_type}")

    def unsubscribe_all(self, handler: Callable) -> None:
        """Remove a catch-all handler"""
        try:
            self._global_handlers.remove(handler)
        except ValueError:
            self.logger.warning(f"Global handler {getattr(handler, '__name__', repr(handler))} was not subscribed")

    def emit(self, event: LedgerEvent) -> None:
        """Record the event, then deliver it to subscribers"""
        self._history.emit(event)
        self.logger.debug(f"Publishing {event.event_type} event")

        for handler in list(self._handlers.get(type(event), [])) + list(self._global_handlers):
            try:
                handler(event)
            except Exception as e:
                # Log but don't break the ledger operation that emitted it
                self.logger.error(f"Error in event handler {getattr(handler, '__name__', repr(handler))} for {event.event_type}: {e}")

    publish = emit

    @property
    def history(self) -> EventLog:
        return self._history

    def get_handler_count(self, event_cls: Optional[Type] = None) -> int:
        """Get count of handlers for one event class or all"""
        if event_cls is not None:
            return len(self._handlers.get(event_cls, []))
        return sum(len(handlers) for handlers in self._handlers.values()) + len(self._global_handlers)

    def clear(self) -> None:
        """Clear all handlers"""
        self._handlers.clear()
        self._global_handlers.clear()
