"""
Test: Ledger Operations

Covers registration, deposits, payments, rejection, repetition and
favorites, including every failure kind the ledger can raise.
"""

import inspect

import pytest

from wallet.domain import errors, models
from wallet.domain.errors import (
    AccountNotFoundError,
    AmountMustBePositiveError,
    ErrorKind,
    FavoriteNotFoundError,
    NotEnoughBalanceError,
    PaymentAlreadyRejectedError,
    PaymentNotFoundError,
    PhoneAlreadyRegisteredError,
    WalletError,
)
from wallet.domain.models import Account, PaymentStatus
from wallet.infrastructure.store import EntityStore


class TestRegisterAccount:
    def test_first_account_gets_id_one_and_zero_balance(self, service):
        account = service.register_account("+992000000000")

        assert account == Account(id=1, phone="+992000000000", balance=0)

    def test_ids_are_sequential(self, service):
        first = service.register_account("+992000000001")
        second = service.register_account("+992000000002")

        assert (first.id, second.id) == (1, 2)

    def test_duplicate_phone_rejected(self, service):
        first = service.register_account("+992000000000")
        service.deposit(first.id, 50)

        with pytest.raises(PhoneAlreadyRegisteredError) as exc_info:
            service.register_account("+992000000000")

        assert exc_info.value.kind is ErrorKind.PHONE_ALREADY_REGISTERED
        assert service.accounts == [Account(id=1, phone="+992000000000", balance=50)]

    def test_failed_registration_does_not_consume_an_id(self, service):
        service.register_account("+992000000000")
        with pytest.raises(PhoneAlreadyRegisteredError):
            service.register_account("+992000000000")

        assert service.register_account("+992000000001").id == 2


class TestDeposit:
    @pytest.mark.parametrize("amount", [0, -1, -100])
    def test_non_positive_amount_rejected_even_for_unknown_account(self, service, amount):
        with pytest.raises(AmountMustBePositiveError):
            service.deposit(42, amount)

    def test_unknown_account(self, service):
        with pytest.raises(AccountNotFoundError) as exc_info:
            service.deposit(1, 1)

        assert exc_info.value.kind is ErrorKind.ACCOUNT_NOT_FOUND

    def test_increases_balance(self, service):
        account = service.register_account("+992000000000")

        service.deposit(account.id, 10)

        assert service.find_account_by_id(account.id).balance == 10


class TestPay:
    def test_non_positive_amount(self, service):
        with pytest.raises(AmountMustBePositiveError):
            service.pay(1, 0, "auto")

    def test_unknown_account(self, service):
        with pytest.raises(AccountNotFoundError):
            service.pay(1, 1, "auto")

    def test_not_enough_balance(self, service):
        account = service.register_account("+992000000000")

        with pytest.raises(NotEnoughBalanceError) as exc_info:
            service.pay(account.id, 1, "auto")

        assert exc_info.value.kind is ErrorKind.NOT_ENOUGH_BALANCE
        assert service.payments == []

    def test_debits_and_records_in_progress_payment(self, service):
        account = service.register_account("+992000000000")
        service.deposit(account.id, 10)

        payment = service.pay(account.id, 4, "auto")

        assert account.balance == 6
        assert payment.account_id == account.id
        assert payment.amount == 4
        assert payment.category == "auto"
        assert payment.status is PaymentStatus.IN_PROGRESS
        assert service.payments == [payment]

    def test_exact_balance_can_be_spent(self, service, funded_account):
        service.pay(funded_account.id, 1000, "auto")

        assert funded_account.balance == 0

    def test_payment_ids_are_unique(self, service, funded_account):
        ids = {service.pay(funded_account.id, 1, "auto").id for _ in range(20)}

        assert len(ids) == 20


class TestLookups:
    def test_find_account(self, service):
        account = service.register_account("+992000000000")

        assert service.find_account_by_id(account.id) is account

    def test_find_account_missing(self, service):
        service.register_account("+992000000000")

        with pytest.raises(AccountNotFoundError):
            service.find_account_by_id(2)

    def test_find_payment(self, service, funded_account):
        payment = service.pay(funded_account.id, 500, "auto")

        assert service.find_payment_by_id(payment.id) == payment

    def test_find_payment_missing(self, service):
        with pytest.raises(PaymentNotFoundError) as exc_info:
            service.find_payment_by_id("missing")

        assert exc_info.value.kind is ErrorKind.PAYMENT_NOT_FOUND

    def test_find_favorite_missing(self, service):
        with pytest.raises(FavoriteNotFoundError):
            service.find_favorite_by_id("missing")


class TestReject:
    def test_refunds_and_fails_payment(self, service):
        account = service.register_account("+992000000000")
        service.deposit(account.id, 10)
        payment = service.pay(account.id, 4, "auto")

        service.reject(payment.id)

        assert account.balance == 10
        assert service.find_payment_by_id(payment.id).status is PaymentStatus.FAIL

    def test_unknown_payment(self, service):
        with pytest.raises(PaymentNotFoundError):
            service.reject("missing")

    def test_second_reject_does_not_refund_twice(self, service, funded_account):
        payment = service.pay(funded_account.id, 300, "auto")
        service.reject(payment.id)

        with pytest.raises(PaymentAlreadyRejectedError) as exc_info:
            service.reject(payment.id)

        assert exc_info.value.kind is ErrorKind.PAYMENT_ALREADY_REJECTED
        assert funded_account.balance == 1000


class TestRepeat:
    def test_creates_independent_payment(self, service, funded_account):
        original = service.pay(funded_account.id, 100, "mobile")

        repeated = service.repeat(original.id)

        assert repeated.id != original.id
        assert (repeated.account_id, repeated.amount, repeated.category) == (
            original.account_id,
            original.amount,
            original.category,
        )
        assert funded_account.balance == 800
        assert len(service.payments) == 2

    def test_repeat_of_rejected_payment_pays_again(self, service, funded_account):
        original = service.pay(funded_account.id, 100, "mobile")
        service.reject(original.id)

        repeated = service.repeat(original.id)

        assert repeated.status is PaymentStatus.IN_PROGRESS
        assert service.find_payment_by_id(original.id).status is PaymentStatus.FAIL
        assert funded_account.balance == 900

    def test_unknown_payment(self, service):
        with pytest.raises(PaymentNotFoundError):
            service.repeat("missing")

    def test_insufficient_balance_propagates(self, service, funded_account):
        original = service.pay(funded_account.id, 600, "auto")

        with pytest.raises(NotEnoughBalanceError):
            service.repeat(original.id)


class TestFavorites:
    def test_favorite_snapshots_payment(self, service, funded_account):
        payment = service.pay(funded_account.id, 250, "internet")

        favorite = service.favorite_payment(payment.id, "home internet")

        assert favorite.account_id == funded_account.id
        assert favorite.name == "home internet"
        assert (favorite.amount, favorite.category) == (250, "internet")
        assert service.find_favorite_by_id(favorite.id) is favorite

    def test_favorite_is_not_a_live_reference(self, service, funded_account):
        payment = service.pay(funded_account.id, 250, "internet")
        favorite = service.favorite_payment(payment.id, "home internet")

        payment.amount = 1
        payment.category = "changed"

        assert (favorite.amount, favorite.category) == (250, "internet")

    def test_favorite_unknown_payment(self, service):
        with pytest.raises(PaymentNotFoundError):
            service.favorite_payment("missing", "name")

    def test_pay_from_favorite(self, service, funded_account):
        payment = service.pay(funded_account.id, 250, "internet")
        favorite = service.favorite_payment(payment.id, "home internet")

        new_payment = service.pay_from_favorite(favorite.id)

        assert new_payment.id != payment.id
        assert (new_payment.amount, new_payment.category) == (250, "internet")
        assert funded_account.balance == 500

    def test_pay_from_unknown_favorite(self, service):
        with pytest.raises(FavoriteNotFoundError) as exc_info:
            service.pay_from_favorite("missing")

        assert exc_info.value.kind is ErrorKind.FAVORITE_NOT_FOUND


class TestAccountHistory:
    def test_returns_copies_of_account_payments_in_order(self, service, funded_account):
        other = service.register_account("+992000000001")
        service.deposit(other.id, 100)

        first = service.pay(funded_account.id, 10, "a")
        service.pay(other.id, 20, "b")
        second = service.pay(funded_account.id, 30, "c")

        history = service.export_account_history(funded_account.id)

        assert [p.id for p in history] == [first.id, second.id]
        history[0].amount = 999
        assert service.find_payment_by_id(first.id).amount == 10

    def test_unknown_account(self, service):
        with pytest.raises(AccountNotFoundError):
            service.export_account_history(7)

    def test_account_without_payments(self, service, funded_account):
        with pytest.raises(PaymentNotFoundError):
            service.export_account_history(funded_account.id)


class TestErrorShape:
    def test_every_error_is_a_wallet_error_with_context(self, service):
        with pytest.raises(WalletError) as exc_info:
            service.deposit(5, 10)

        assert exc_info.value.to_dict() == {
            "kind": "account_not_found",
            "message": "account not found: 5",
            "account_id": 5,
        }


class TestLayering:
    def test_service_runs_on_infrastructure_store(self, service):
        assert isinstance(service.store, EntityStore)

    @pytest.mark.parametrize("module", [models, errors])
    def test_domain_does_not_import_infrastructure(self, module):
        assert "wallet.infrastructure" not in inspect.getsource(module)
