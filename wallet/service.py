"""
Ledger Service - The Mutation and Query API

This is the entry point to the ledger. It owns one EntityStore and exposes:

1. Ledger operations: register, deposit, pay, reject, repeat, favorite
2. Lookups by ID
3. File export/import (delegated to LedgerCodec)
4. Parallel sums and filters over payments (delegated to ParallelAggregator)

Invariants enforced here:
- Phone numbers are unique at registration time
- Every payment and favorite amount is > 0 (checked in pay)
- No operation leaves a balance negative
- reject fully reverses the debit of an INPROGRESS payment, once

Concurrency contract: single writer, read-mostly. Mutating operations take
no lock. Aggregations only read payments, and the caller must not run a
mutation while an aggregation is in progress.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from wallet.config import WalletSettings, get_settings
from wallet.domain.errors import (
    AccountNotFoundError,
    AmountMustBePositiveError,
    FavoriteNotFoundError,
    NotEnoughBalanceError,
    PaymentAlreadyRejectedError,
    PaymentNotFoundError,
    PhoneAlreadyRegisteredError,
)
from wallet.domain.models import (
    Account,
    Favorite,
    Money,
    Payment,
    PaymentCategory,
    PaymentStatus,
    Phone,
    new_entity_id,
)
from wallet.infrastructure.aggregator import ParallelAggregator, PaymentPredicate
from wallet.infrastructure.codec import LedgerCodec
from wallet.infrastructure.store import EntityStore
from wallet.logging_config import get_logger

logger = get_logger(__name__)


class Service:
    """
    In-memory wallet ledger.

    Example:
        svc = Service()
        account = svc.register_account("+992000000000")
        svc.deposit(account.id, 10)
        payment = svc.pay(account.id, 4, "auto")   # balance 6
        svc.reject(payment.id)                     # balance 10, status FAIL
    """

    def __init__(self, settings: WalletSettings | None = None):
        self.settings = settings or get_settings()
        self.store = EntityStore()
        self.codec = LedgerCodec(self.store)

    # ========================================================================
    # ACCOUNTS
    # ========================================================================

    def register_account(self, phone: Phone) -> Account:
        """
        Open a new account with balance 0.

        Raises:
            PhoneAlreadyRegisteredError: another account already has `phone`
        """
        if self.store.account_by_phone(phone) is not None:
            raise PhoneAlreadyRegisteredError(phone)

        account = Account(id=self.store.next_account_id(), phone=phone, balance=0)
        self.store.add_account(account)

        logger.info("ledger.account_registered", account_id=account.id)
        return account

    def deposit(self, account_id: int, amount: Money) -> None:
        """
        Credit `amount` to an account.

        The amount is checked before the account is resolved.
        """
        if amount <= 0:
            raise AmountMustBePositiveError(amount)

        account = self.find_account_by_id(account_id)
        account.balance += amount

        logger.info("ledger.deposit", account_id=account_id, amount=amount, balance=account.balance)

    # ========================================================================
    # PAYMENTS
    # ========================================================================

    def pay(self, account_id: int, amount: Money, category: PaymentCategory) -> Payment:
        """
        Debit an account and record an INPROGRESS payment.

        Checks, in order: amount > 0, account exists, balance >= amount.
        The debit and the payment record happen together or not at all.
        """
        if amount <= 0:
            raise AmountMustBePositiveError(amount)

        account = self.find_account_by_id(account_id)
        if account.balance < amount:
            raise NotEnoughBalanceError(account_id, account.balance, amount)

        payment = Payment(
            id=new_entity_id(),
            account_id=account_id,
            amount=amount,
            category=category,
            status=PaymentStatus.IN_PROGRESS,
        )
        account.balance -= amount
        self.store.add_payment(payment)

        logger.info(
            "ledger.payment_created",
            payment_id=payment.id,
            account_id=account_id,
            amount=amount,
            category=category,
        )
        return payment

    def reject(self, payment_id: str) -> None:
        """
        Fail a payment and refund its amount to the owning account.

        Raises:
            PaymentNotFoundError / AccountNotFoundError: unresolved references
            PaymentAlreadyRejectedError: status is already FAIL (no second refund)
        """
        payment, account = self._resolve_payment(payment_id)
        if payment.status is PaymentStatus.FAIL:
            raise PaymentAlreadyRejectedError(payment_id)

        payment.status = PaymentStatus.FAIL
        account.balance += payment.amount

        logger.info(
            "ledger.payment_rejected",
            payment_id=payment_id,
            account_id=account.id,
            refunded=payment.amount,
        )

    def repeat(self, payment_id: str) -> Payment:
        """Pay again with the same account, amount and category. The original is untouched."""
        payment, account = self._resolve_payment(payment_id)
        return self.pay(account.id, payment.amount, payment.category)

    # ========================================================================
    # FAVORITES
    # ========================================================================

    def favorite_payment(self, payment_id: str, name: str) -> Favorite:
        """Snapshot a payment's amount and category into a named favorite."""
        payment, account = self._resolve_payment(payment_id)

        favorite = Favorite(
            id=new_entity_id(),
            account_id=account.id,
            name=name,
            amount=payment.amount,
            category=payment.category,
        )
        self.store.add_favorite(favorite)

        logger.info("ledger.favorite_created", favorite_id=favorite.id, payment_id=payment_id)
        return favorite

    def pay_from_favorite(self, favorite_id: str) -> Payment:
        favorite = self.find_favorite_by_id(favorite_id)
        return self.pay(favorite.account_id, favorite.amount, favorite.category)

    # ========================================================================
    # LOOKUPS
    # ========================================================================

    def find_account_by_id(self, account_id: int) -> Account:
        account = self.store.get_account(account_id)
        if account is None:
            logger.debug("ledger.account_not_found", account_id=account_id)
            raise AccountNotFoundError(account_id)
        return account

    def find_payment_by_id(self, payment_id: str) -> Payment:
        payment = self.store.get_payment(payment_id)
        if payment is None:
            logger.debug("ledger.payment_not_found", payment_id=payment_id)
            raise PaymentNotFoundError(payment_id)
        return payment

    def find_favorite_by_id(self, favorite_id: str) -> Favorite:
        favorite = self.store.get_favorite(favorite_id)
        if favorite is None:
            logger.debug("ledger.favorite_not_found", favorite_id=favorite_id)
            raise FavoriteNotFoundError(favorite_id)
        return favorite

    def _resolve_payment(self, payment_id: str) -> tuple[Payment, Account]:
        payment = self.find_payment_by_id(payment_id)
        account = self.find_account_by_id(payment.account_id)
        return payment, account

    @property
    def accounts(self) -> list[Account]:
        return self.store.accounts

    @property
    def payments(self) -> list[Payment]:
        return self.store.payments

    @property
    def favorites(self) -> list[Favorite]:
        return self.store.favorites

    # ========================================================================
    # FILES
    # ========================================================================

    def export_to_file(self, path: str | Path) -> None:
        """Write all accounts to one file in the "ID;Phone;Balance|" format."""
        self.codec.export_to_file(path)

    def import_from_file(self, path: str | Path) -> int:
        """Append the accounts of a single-file export. Returns the count appended."""
        return self.codec.import_from_file(path)

    def export(self, directory: str | Path | None = None) -> list[Path]:
        """Write accounts.dump, payments.dump and favorites.dump (non-empty ones only)."""
        return self.codec.export_dir(self.settings.dump_dir if directory is None else directory)

    def import_(self, directory: str | Path | None = None) -> None:
        """Upsert the dump files of `directory` into the ledger."""
        self.codec.import_dir(self.settings.dump_dir if directory is None else directory)

    def export_account_history(self, account_id: int) -> list[Payment]:
        """
        Copies of an account's payments, in ledger order.

        Raises:
            AccountNotFoundError: unknown account
            PaymentNotFoundError: the account has no payments
        """
        self.find_account_by_id(account_id)

        history = [p.copy() for p in self.store.payments if p.account_id == account_id]
        if not history:
            logger.info("ledger.history_empty", account_id=account_id)
            raise PaymentNotFoundError(account_id=account_id)
        return history

    def history_to_files(
        self,
        payments: Sequence[Payment],
        directory: str | Path,
        records: int | None = None,
    ) -> list[Path]:
        """Write `payments` as payments.dump or payments1.dump, payments2.dump, ..."""
        if records is None:
            records = self.settings.history_records_per_file
        return self.codec.history_to_files(payments, directory, records)

    # ========================================================================
    # AGGREGATION
    # ========================================================================

    def _aggregator(self) -> ParallelAggregator:
        return ParallelAggregator(self.store.payments)

    def _workers(self, workers: int | None) -> int:
        return self.settings.worker_count if workers is None else workers

    def sum_payments(self, workers: int | None = None) -> Money:
        """Total amount of all payments, computed by `workers` concurrent workers."""
        return self._aggregator().sum(self._workers(workers))

    def filter_payments(self, account_id: int, workers: int | None = None) -> list[Payment]:
        """Copies of every payment of `account_id`. Raises AccountNotFoundError first."""
        account = self.find_account_by_id(account_id)
        return self._aggregator().filter(
            lambda payment: payment.account_id == account.id,
            self._workers(workers),
        )

    def filter_payments_by_fn(
        self, predicate: PaymentPredicate, workers: int | None = None
    ) -> list[Payment]:
        """Copies of every payment for which `predicate` returns True."""
        return self._aggregator().filter(predicate, self._workers(workers))
