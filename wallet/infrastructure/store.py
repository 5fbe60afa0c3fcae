"""
Entity Store

Owns the three entity collections and the account-ID sequence.

Payments and favorites are dicts keyed by entity ID. Python dicts keep
insertion order, so one mapping serves O(1) lookup and ordered iteration
for export and aggregation.

Accounts are kept as an ordered list plus an ID index. The legacy
single-file import appends accounts verbatim and may introduce a second
account with an existing ID; the list keeps both for export while the
index keeps resolving to the first one, as a linear scan would.

Invariant: account IDs handed out by next_account_id() strictly increase
and are never reused, including after an import inserts explicit IDs.
"""

from __future__ import annotations

from wallet.domain.models import Account, Favorite, Payment


class EntityStore:
    """In-memory store. Not thread-safe for writes."""

    def __init__(self) -> None:
        self._last_account_id = 0
        self._accounts: list[Account] = []
        self._account_index: dict[int, Account] = {}
        self._payments: dict[str, Payment] = {}
        self._favorites: dict[str, Favorite] = {}

    # ------------------------------------------------------------------
    # Account sequence
    # ------------------------------------------------------------------

    def next_account_id(self) -> int:
        self._last_account_id += 1
        return self._last_account_id

    def reserve_account_id(self, account_id: int) -> None:
        """Advance the sequence so an externally supplied ID is never reissued."""
        if account_id > self._last_account_id:
            self._last_account_id = account_id

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def add_account(self, account: Account) -> None:
        self._accounts.append(account)
        self._account_index.setdefault(account.id, account)
        self.reserve_account_id(account.id)

    def get_account(self, account_id: int) -> Account | None:
        return self._account_index.get(account_id)

    def account_by_phone(self, phone: str) -> Account | None:
        for account in self._accounts:
            if account.phone == phone:
                return account
        return None

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def add_payment(self, payment: Payment) -> None:
        self._payments[payment.id] = payment

    def get_payment(self, payment_id: str) -> Payment | None:
        return self._payments.get(payment_id)

    @property
    def payments(self) -> list[Payment]:
        return list(self._payments.values())

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    def add_favorite(self, favorite: Favorite) -> None:
        self._favorites[favorite.id] = favorite

    def get_favorite(self, favorite_id: str) -> Favorite | None:
        return self._favorites.get(favorite_id)

    @property
    def favorites(self) -> list[Favorite]:
        return list(self._favorites.values())
