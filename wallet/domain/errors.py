"""
Ledger Errors - A Closed Set of Failure Kinds

Every failure raised by the ledger is a WalletError carrying an ErrorKind.
Callers branch on `exc.kind` (or on the concrete class), never on message
text:

    try:
        service.pay(account_id, 500, "auto")
    except WalletError as exc:
        if exc.kind is ErrorKind.NOT_ENOUGH_BALANCE:
            ...

Errors propagate to the immediate caller unchanged. The ledger never
retries and never rolls back.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    PHONE_ALREADY_REGISTERED = "phone_already_registered"
    AMOUNT_MUST_BE_POSITIVE = "amount_must_be_positive"
    ACCOUNT_NOT_FOUND = "account_not_found"
    NOT_ENOUGH_BALANCE = "not_enough_balance"
    PAYMENT_NOT_FOUND = "payment_not_found"
    PAYMENT_ALREADY_REJECTED = "payment_already_rejected"
    FAVORITE_NOT_FOUND = "favorite_not_found"
    FILE_NOT_FOUND = "file_not_found"
    RECORD_PARSE = "record_parse"
    RECORD_FORMAT = "record_format"


class WalletError(Exception):
    """
    Base error for ledger operations.

    Subclasses fix `kind`; extra keyword context (account_id, path, ...) is
    kept on `context` for logging.
    """

    kind: ErrorKind

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, **self.context}


# ============================================================================
# LEDGER OPERATION ERRORS
# ============================================================================


class PhoneAlreadyRegisteredError(WalletError):
    kind = ErrorKind.PHONE_ALREADY_REGISTERED

    def __init__(self, phone: str):
        super().__init__(f"phone already registered: {phone}", phone=phone)


class AmountMustBePositiveError(WalletError):
    kind = ErrorKind.AMOUNT_MUST_BE_POSITIVE

    def __init__(self, amount: int):
        super().__init__(f"amount must be greater than zero, got {amount}", amount=amount)


class AccountNotFoundError(WalletError):
    kind = ErrorKind.ACCOUNT_NOT_FOUND

    def __init__(self, account_id: int):
        super().__init__(f"account not found: {account_id}", account_id=account_id)


class NotEnoughBalanceError(WalletError):
    kind = ErrorKind.NOT_ENOUGH_BALANCE

    def __init__(self, account_id: int, balance: int, amount: int):
        super().__init__(
            f"not enough balance on account {account_id}: have {balance}, need {amount}",
            account_id=account_id,
            balance=balance,
            amount=amount,
        )


class PaymentNotFoundError(WalletError):
    kind = ErrorKind.PAYMENT_NOT_FOUND

    def __init__(self, payment_id: str | None = None, account_id: int | None = None):
        if payment_id is not None:
            message = f"payment not found: {payment_id}"
        else:
            message = f"no payments for account {account_id}"
        super().__init__(message, payment_id=payment_id, account_id=account_id)


class PaymentAlreadyRejectedError(WalletError):
    """
    Raised when rejecting a payment whose status is already FAIL.

    Without this guard a second reject would refund the amount again.
    """

    kind = ErrorKind.PAYMENT_ALREADY_REJECTED

    def __init__(self, payment_id: str):
        super().__init__(f"payment already rejected: {payment_id}", payment_id=payment_id)


class FavoriteNotFoundError(WalletError):
    kind = ErrorKind.FAVORITE_NOT_FOUND

    def __init__(self, favorite_id: str):
        super().__init__(f"favorite not found: {favorite_id}", favorite_id=favorite_id)


# ============================================================================
# CODEC ERRORS
# ============================================================================


class LedgerFileNotFoundError(WalletError, FileNotFoundError):
    kind = ErrorKind.FILE_NOT_FOUND

    def __init__(self, path: str):
        super().__init__(f"file not found: {path}", path=path)


class RecordParseError(WalletError):
    """A stored record has the wrong shape or a field that does not parse."""

    kind = ErrorKind.RECORD_PARSE

    def __init__(self, path: str, record: str, reason: str):
        super().__init__(
            f"cannot parse record {record!r} in {path}: {reason}",
            path=path,
            record=record,
        )


class RecordFormatError(WalletError):
    """A value cannot be written because it contains a format delimiter."""

    kind = ErrorKind.RECORD_FORMAT

    def __init__(self, field: str, value: str):
        super().__init__(
            f"field {field} contains a reserved delimiter: {value!r}",
            field=field,
            value=value,
        )
