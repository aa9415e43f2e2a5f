#!/usr/bin/env python3
"""
Example: deploying a token and moving funds with allowances

Walks through minting, a direct transfer, an approval and a delegated
transfer, printing balances and the emitted events along the way.
"""

import os
import sys

# Add the token ledger package to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from token_ledger.accounts import AccountId
from token_ledger.config import TokenLedgerConfig
from token_ledger.errors import TokenError
from token_ledger.events import EventDispatcher
from token_ledger.tokens import create_token_ledger


def main():
    alice = AccountId.derive("alice")
    bob = AccountId.derive("bob")
    carol = AccountId.derive("carol")

    dispatcher = EventDispatcher()
    dispatcher.subscribe_all(lambda event: print(f"   event: {event.to_dict()}"))

    print("1. Deploy with a supply of 1000")
    token = create_token_ledger(
        1000, alice, config=TokenLedgerConfig(log_level="WARNING"), event_sink=dispatcher
    )

    print("\n2. Alice sends 250 to Bob")
    token.transfer(alice, bob, 250)

    print("\n3. Bob lets Carol spend 100")
    token.approve(bob, carol, 100)

    print("\n4. Carol moves 60 of Bob's tokens to herself")
    token.transfer_from(carol, bob, carol, 60)

    print("\n5. Carol tries to move another 60")
    try:
        token.transfer_from(carol, bob, carol, 60)
    except TokenError as e:
        print(f"   rejected: {e}")

    print("\nBalances")
    for name, account in (("alice", alice), ("bob", bob), ("carol", carol)):
        print(f"   {name}: {token.balance_of(account)}")
    print(f"   remaining allowance bob -> carol: {token.get_allowance(bob, carol)}")
    print(f"   supply conserved: {token.verify_supply()}")


if __name__ == "__main__":
    main()
