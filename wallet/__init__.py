"""
Wallet Ledger - In-Memory Accounts, Payments and Favorites

This package provides:
1. An entity store for accounts, payments and favorite payment templates
2. Ledger operations (register, deposit, pay, reject, repeat, favorite)
3. Two flat-text serialization schemes (single file, dump directory)
4. A parallel aggregation engine over the payment list

Concurrency contract: single writer, read-mostly. The ledger does not lock
its mutating operations; callers serialize mutations against aggregation.
"""

__version__ = "1.0.0"

from wallet.service import Service

__all__ = ["Service", "__version__"]
