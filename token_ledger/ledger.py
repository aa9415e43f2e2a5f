"""
Balance Ledger

Account balances and the only primitive that changes two balances together.
The sum of stored balances always equals the total supply; a rejected
transfer leaves the store untouched.
"""

from typing import Dict

from .accounts import AccountId
from .amounts import (
    MAX_AMOUNT, validate_amount, checked_add, checked_sub,
    amount_to_string, amount_from_string
)
from .errors import InsufficientBalance
from .storage import StorageInterface


class Ledger:
    """
    Account -> balance mapping over a key-value store.
    A missing record means a zero balance, and zero balances are never stored.
    """

    def __init__(self, storage: StorageInterface, max_amount: int = MAX_AMOUNT,
                 table_name: str = "balances"):
        self.storage = storage
        self.max_amount = max_amount
        self.table_name = table_name

    def balance_of(self, account: AccountId) -> int:
        """Balance of `account`, 0 if it holds nothing"""
        record = self.storage.load(self.table_name, account.hex())
        if record is None:
            return 0
        return amount_from_string(record['balance'])

    def transfer(self, sender: AccountId, recipient: AccountId, value: int) -> None:
        """
        Move `value` from `sender` to `recipient` in one step

        Args:
            sender: Account to debit
            recipient: Account to credit (may equal sender)
            value: Amount to move

        Raises:
            InvalidAmount: If value is not a valid amount
            InsufficientBalance: If sender holds less than value
            AmountOverflow: If the credit would exceed the amount range
        """
        validate_amount(value, self.max_amount)

        sender_balance = self.balance_of(sender)
        if sender_balance < value:
            raise InsufficientBalance(sender, sender_balance, value)

        # Debit and credit cancel out
        if sender == recipient:
            return

        # Compute both sides before writing anything
        new_sender_balance = checked_sub(sender_balance, value)
        new_recipient_balance = checked_add(
            self.balance_of(recipient), value, self.max_amount
        )

        with self.storage.atomic():
            self._store(sender, new_sender_balance)
            self._store(recipient, new_recipient_balance)

    def mint(self, account: AccountId, value: int) -> None:
        """Credit newly issued tokens to `account`"""
        validate_amount(value, self.max_amount)
        new_balance = checked_add(self.balance_of(account), value, self.max_amount)
        with self.storage.atomic():
            self._store(account, new_balance)

    def holders(self) -> Dict[AccountId, int]:
        """All accounts with a non-zero balance"""
        return {
            AccountId.from_hex(record['account']): amount_from_string(record['balance'])
            for record in self.storage.load_all(self.table_name)
        }

    def circulating_supply(self) -> int:
        """Sum of every stored balance"""
        return sum(self.holders().values())

    def _store(self, account: AccountId, balance: int) -> None:
        if balance == 0:
            self.storage.delete(self.table_name, account.hex())
            return
        self.storage.save(self.table_name, account.hex(), {
            'account': account.hex(),
            'balance': amount_to_string(balance)
        })
