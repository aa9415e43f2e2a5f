"""
Token Ledger

A fungible-token ledger with supply conservation, checked 128-bit
arithmetic and a delegated-spending (allowance) layer.
"""

__version__ = "1.0.0"
