"""
Tests for account identifiers
"""

import pytest

from token_ledger.accounts import AccountId, ACCOUNT_ID_LENGTH
from token_ledger.errors import InvalidAccountId


class TestAccountId:
    """Test AccountId construction and equality"""

    def test_from_raw_bytes(self):
        account = AccountId(b"\x01" * ACCOUNT_ID_LENGTH)
        assert account.raw == b"\x01" * 32
        assert account.hex() == "01" * 32

    def test_bytearray_is_frozen_to_bytes(self):
        account = AccountId(bytearray(32))
        assert isinstance(account.raw, bytes)
        assert hash(account) == hash(AccountId(bytes(32)))

    def test_wrong_length_rejected(self):
        with pytest.raises(InvalidAccountId, match="32 bytes"):
            AccountId(b"\x01" * 20)

    def test_non_bytes_rejected(self):
        with pytest.raises(InvalidAccountId, match="must be bytes"):
            AccountId("alice")

    def test_hex_round_trip(self):
        account = AccountId.derive("alice")
        assert AccountId.from_hex(account.hex()) == account
        assert AccountId.from_hex("0x" + account.hex()) == account

    def test_invalid_hex_rejected(self):
        with pytest.raises(InvalidAccountId, match="not valid hex"):
            AccountId.from_hex("zz" * 32)

    def test_derive_is_deterministic(self):
        assert AccountId.derive("alice") == AccountId.derive("alice")
        assert AccountId.derive("alice") != AccountId.derive("bob")

    def test_usable_as_map_key(self):
        balances = {AccountId.derive("alice"): 5}
        assert balances[AccountId.derive("alice")] == 5

    def test_immutable(self):
        account = AccountId.derive("alice")
        with pytest.raises(AttributeError):
            account.raw = bytes(32)

    def test_string_forms(self):
        account = AccountId(bytes(range(32)))
        assert str(account) == account.hex()
        assert repr(account) == "AccountId(00010203..1e1f)"
