"""
Token Ledger Errors

Domain failures are reported as ValueError subclasses so callers can catch
either the precise condition or any rejected operation.
"""


class TokenError(ValueError):
    """Base class for every rejected ledger operation"""


class InsufficientBalance(TokenError):
    """A debit or a balance-gated approval exceeds the available balance"""

    def __init__(self, account, available: int, requested: int):
        self.account = account
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient balance for {account}: "
            f"available {available}, requested {requested}"
        )


class InsufficientAllowance(TokenError):
    """A delegated transfer exceeds the remaining approved amount"""

    def __init__(self, owner, spender, available: int, requested: int):
        self.owner = owner
        self.spender = spender
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient allowance from {owner} to {spender}: "
            f"available {available}, requested {requested}"
        )


class AmountOverflow(TokenError):
    """A checked increment would exceed the largest representable amount"""

    def __init__(self, current: int, increment: int, max_amount: int):
        self.current = current
        self.increment = increment
        self.max_amount = max_amount
        super().__init__(
            f"Amount overflow: {current} + {increment} exceeds {max_amount}"
        )


class InvalidAmount(TokenError):
    """Value is not an integer inside the representable range"""


class InvalidAccountId(TokenError):
    """Account identifier is malformed"""
