"""
Account Identifier Module

Opaque fixed-size account identifiers. The ledger never interprets the
bytes; it only compares them and uses their hex form as a storage key.
"""

from dataclasses import dataclass
import hashlib

from .errors import InvalidAccountId

# Size of an account identifier in bytes
ACCOUNT_ID_LENGTH = 32


@dataclass(frozen=True)
class AccountId:
    """
    Immutable 32-byte account identifier.
    Equality and hashing follow the raw bytes, so it is usable as a map key.
    """
    raw: bytes

    def __post_init__(self):
        if not isinstance(self.raw, (bytes, bytearray)):
            raise InvalidAccountId(
                f"Account id must be bytes, got {type(self.raw).__name__}"
            )
        if len(self.raw) != ACCOUNT_ID_LENGTH:
            raise InvalidAccountId(
                f"Account id must be {ACCOUNT_ID_LENGTH} bytes, got {len(self.raw)}"
            )
        if isinstance(self.raw, bytearray):
            object.__setattr__(self, 'raw', bytes(self.raw))

    @classmethod
    def from_hex(cls, value: str) -> 'AccountId':
        """Parse the 64-character hex form produced by hex()"""
        candidate = value[2:] if value.startswith("0x") else value
        try:
            raw = bytes.fromhex(candidate)
        except ValueError:
            raise InvalidAccountId(f"Account id is not valid hex: {value!r}")
        return cls(raw)

    @classmethod
    def derive(cls, label: str) -> 'AccountId':
        """Deterministic id for a human-readable label (fixtures, demos)"""
        return cls(hashlib.sha256(label.encode('utf-8')).digest())

    def hex(self) -> str:
        """Hex encoding, used as the storage key"""
        return self.raw.hex()

    def short(self) -> str:
        """Abbreviated form for log lines"""
        return f"{self.raw[:4].hex()}..{self.raw[-2:].hex()}"

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"AccountId({self.short()})"
