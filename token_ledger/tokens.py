"""
Token Ledger Facade

Composes the balance ledger and the allowance registry into the externally
callable token operations. The host supplies an already-verified caller id
to every mutating call; each call either applies its mutation and emits its
event records, or raises and leaves state unchanged.
"""

from typing import List, Optional

from .accounts import AccountId
from .allowances import AllowanceRegistry
from .amounts import MAX_AMOUNT, max_amount_for_bits, validate_amount
from .config import TokenLedgerConfig, get_config
from .errors import TokenError
from .events import Approval, EventDispatcher, EventLog, EventSink, LedgerEvent, Transfer
from .ledger import Ledger
from .logging_config import get_logger, log_action, setup_logging
from .storage import InMemoryStorage, StorageInterface


class TokenLedger:
    """
    Fungible token with a fixed total supply.

    The full supply is credited to the deployer at construction; no further
    minting or burning exists.
    """

    def __init__(
        self,
        total_supply: int,
        deployer: AccountId,
        storage: Optional[StorageInterface] = None,
        event_sink: Optional[EventSink] = None,
        max_amount: int = MAX_AMOUNT
    ):
        validate_amount(total_supply, max_amount)

        self.storage = storage if storage is not None else InMemoryStorage()
        self.ledger = Ledger(self.storage, max_amount=max_amount)
        self.allowances = AllowanceRegistry(self.ledger)
        self.event_sink = event_sink if event_sink is not None else EventLog()
        self.logger = get_logger("token_ledger.token")

        for table in (self.ledger.table_name, self.allowances.table_name):
            if self.storage.count(table):
                raise ValueError(f"Storage table '{table}' already holds ledger state")

        self._total_supply = total_supply
        if total_supply:
            self.ledger.mint(deployer, total_supply)

        self._emit([Transfer(from_account=None, to_account=deployer, value=total_supply)])
        log_action(
            self.logger, "info", f"Token created with supply {total_supply}",
            user_id=deployer.hex(), action="construct", resource=f"account:{deployer.hex()}",
            extra={"total_supply": str(total_supply), "max_amount": str(max_amount)}
        )

    def total_supply(self) -> int:
        """Fixed number of tokens in existence"""
        return self._total_supply

    def balance_of(self, owner: AccountId) -> int:
        return self.ledger.balance_of(owner)

    def get_allowance(self, owner: AccountId, spender: AccountId) -> int:
        return self.allowances.get_allowance(owner, spender)

    def transfer(self, caller: AccountId, to: AccountId, value: int) -> List[LedgerEvent]:
        """
        Move `value` of the caller's tokens to `to`

        Returns:
            Events emitted by the call

        Raises:
            InsufficientBalance: If the caller holds less than value
            AmountOverflow: If the recipient's balance would overflow
            InvalidAmount: If value is out of range
        """
        try:
            self.ledger.transfer(caller, to, value)
        except TokenError as e:
            self._log_rejected("transfer", caller, e)
            raise

        log_action(
            self.logger, "info", f"Transfer of {value}",
            user_id=caller.hex(), action="transfer", resource=f"account:{to.hex()}",
            extra={"from": caller.hex(), "to": to.hex(), "value": str(value)}
        )
        return self._emit([Transfer(from_account=caller, to_account=to, value=value)])

    def approve(self, caller: AccountId, spender: AccountId, value: int) -> List[LedgerEvent]:
        """
        Let `spender` move up to `value` of the caller's tokens

        Overwrites any previous allowance. The caller must currently hold at
        least `value`.

        Raises:
            InsufficientBalance: If the caller holds less than value
            InvalidAmount: If value is out of range
        """
        try:
            self.allowances.approve(caller, spender, value)
        except TokenError as e:
            self._log_rejected("approve", caller, e)
            raise

        log_action(
            self.logger, "info", f"Approval of {value}",
            user_id=caller.hex(), action="approve", resource=f"account:{spender.hex()}",
            extra={"owner": caller.hex(), "spender": spender.hex(), "allowance": str(value)}
        )
        return self._emit([Approval(owner=caller, spender=spender, allowance=value)])

    def transfer_from(self, caller: AccountId, owner: AccountId, to: AccountId,
                      value: int) -> List[LedgerEvent]:
        """
        Move `value` of `owner`'s tokens to `to` using the caller's allowance

        Runs in two phases: the allowance is consumed first, then the balance
        transfer runs. If the balance transfer fails, the consumed allowance
        is NOT restored.

        Raises:
            InsufficientAllowance: If the caller's allowance is below value
            InsufficientBalance: If owner holds less than value (allowance
                already consumed)
            AmountOverflow: If the recipient's balance would overflow
                (allowance already consumed)
        """
        try:
            self.allowances.consume(owner, caller, value)
        except TokenError as e:
            self._log_rejected("transfer_from", caller, e)
            raise

        try:
            self.ledger.transfer(owner, to, value)
        except TokenError as e:
            self._log_rejected("transfer_from", caller, e, allowance_consumed=value)
            raise

        log_action(
            self.logger, "info", f"Delegated transfer of {value}",
            user_id=caller.hex(), action="transfer_from", resource=f"account:{owner.hex()}",
            extra={"spender": caller.hex(), "from": owner.hex(), "to": to.hex(), "value": str(value)}
        )
        return self._emit([Transfer(from_account=owner, to_account=to, value=value)])

    def verify_supply(self) -> bool:
        """Check that stored balances add up to the total supply"""
        circulating = self.ledger.circulating_supply()
        if circulating != self._total_supply:
            self.logger.error(
                f"Supply mismatch: circulating {circulating}, total {self._total_supply}"
            )
            return False
        return True

    @property
    def events(self) -> List[LedgerEvent]:
        """Events recorded by the sink, for sinks that keep a history"""
        if isinstance(self.event_sink, EventLog):
            return self.event_sink.records
        if isinstance(self.event_sink, EventDispatcher):
            return self.event_sink.history.records
        raise AttributeError("Event sink does not keep a readable record")

    def _emit(self, events: List[LedgerEvent]) -> List[LedgerEvent]:
        """Deliver events after the state change has been applied"""
        for event in events:
            try:
                self.event_sink.emit(event)
            except Exception as e:
                # State is already committed; a sink failure must not report the call as failed
                self.logger.error(f"Error delivering {event.event_type} event to sink: {e}")
        return events

    def _log_rejected(self, action: str, caller: AccountId, error: TokenError,
                      allowance_consumed: Optional[int] = None) -> None:
        extra = {"error": type(error).__name__, "detail": str(error)}
        if allowance_consumed is not None:
            extra["allowance_consumed"] = str(allowance_consumed)
        log_action(
            self.logger, "warning", f"{action} rejected: {type(error).__name__}",
            user_id=caller.hex(), action=action, extra=extra
        )


class _NullSink(EventSink):
    def emit(self, event: LedgerEvent) -> None:
        pass


def create_token_ledger(
    total_supply: int,
    deployer: AccountId,
    config: Optional[TokenLedgerConfig] = None,
    storage: Optional[StorageInterface] = None,
    event_sink: Optional[EventSink] = None
) -> TokenLedger:
    """
    Build a TokenLedger from configuration

    Sets up logging, derives the amount range from `amount_bits` and, when
    `record_events` is off and no sink is given, discards events.
    """
    config = config or get_config()
    setup_logging(config.log_level, "token_ledger", config.log_format)

    if event_sink is None and not config.record_events:
        event_sink = _NullSink()

    return TokenLedger(
        total_supply,
        deployer,
        storage=storage,
        event_sink=event_sink,
        max_amount=max_amount_for_bits(config.amount_bits)
    )
