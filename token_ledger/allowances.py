"""
Allowance Registry

Tracks how much each spender may move on an owner's behalf and consumes
those rights as delegated transfers happen.
"""

from typing import Dict

from .accounts import AccountId
from .amounts import validate_amount, checked_sub, amount_to_string, amount_from_string
from .errors import InsufficientAllowance, InsufficientBalance
from .ledger import Ledger


class AllowanceRegistry:
    """
    (owner, spender) -> approved amount over a key-value store.

    Approval is gated on the owner's current balance: an owner cannot
    approve more than it holds at the time of approval. Balances may later
    shrink below an existing allowance; nothing re-checks that.
    """

    def __init__(self, ledger: Ledger, table_name: str = "allowances"):
        self.ledger = ledger
        self.storage = ledger.storage
        self.table_name = table_name

    def get_allowance(self, owner: AccountId, spender: AccountId) -> int:
        """Remaining amount `spender` may move for `owner`, 0 if none"""
        record = self.storage.load(self.table_name, self._key(owner, spender))
        if record is None:
            return 0
        return amount_from_string(record['allowance'])

    def approve(self, owner: AccountId, spender: AccountId, value: int) -> None:
        """
        Overwrite the allowance for (owner, spender) with `value`

        The previous allowance is replaced regardless of how much of it was
        used. Approving 0 removes the entry.

        Raises:
            InvalidAmount: If value is not a valid amount
            InsufficientBalance: If owner currently holds less than value
        """
        validate_amount(value, self.ledger.max_amount)

        owner_balance = self.ledger.balance_of(owner)
        if owner_balance < value:
            raise InsufficientBalance(owner, owner_balance, value)

        with self.storage.atomic():
            self._store(owner, spender, value)

    def consume(self, owner: AccountId, spender: AccountId, value: int) -> None:
        """
        Use up `value` of the allowance for (owner, spender)

        Raises:
            InvalidAmount: If value is not a valid amount
            InsufficientAllowance: If the remaining allowance is below value
        """
        validate_amount(value, self.ledger.max_amount)

        remaining = self.get_allowance(owner, spender)
        if remaining < value:
            raise InsufficientAllowance(owner, spender, remaining, value)

        with self.storage.atomic():
            self._store(owner, spender, checked_sub(remaining, value))

    def allowances_of(self, owner: AccountId) -> Dict[AccountId, int]:
        """Every spender with a non-zero allowance from `owner`"""
        owner_hex = owner.hex()
        return {
            AccountId.from_hex(record['spender']): amount_from_string(record['allowance'])
            for record in self.storage.load_all(self.table_name)
            if record['owner'] == owner_hex
        }

    @staticmethod
    def _key(owner: AccountId, spender: AccountId) -> str:
        return f"{owner.hex()}:{spender.hex()}"

    def _store(self, owner: AccountId, spender: AccountId, value: int) -> None:
        key = self._key(owner, spender)
        if value == 0:
            self.storage.delete(self.table_name, key)
            return
        self.storage.save(self.table_name, key, {
            'owner': owner.hex(),
            'spender': spender.hex(),
            'allowance': amount_to_string(value)
        })
