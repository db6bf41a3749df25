"""Accounts, transactions, blocks, pools and partitioning algorithms for a sharded-chain emulator."""

__version__ = "0.1.0"