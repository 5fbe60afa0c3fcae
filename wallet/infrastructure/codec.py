"""
File Codec - Flat-Text Serialization of the Ledger

Two independent, incompatible on-disk formats:

1. Single file (export_to_file / import_from_file)
   Accounts only, one line, every record terminated by "|":

       1;+992000000000;10|2;+992000000001;0|

   An empty ledger produces an empty file.
   Import APPENDS every record as a new account (no reconciliation).

2. Dump directory (export_dir / import_dir)
   Three files, one record per line, fields separated by ";":

       accounts.dump   ID;Phone;Balance
       payments.dump   ID;AccountID;Amount;Category;Status
       favorites.dump  ID;AccountID;Name;Amount;Category

   A file is only written when its collection is non-empty.
   Import is an UPSERT keyed by ID. Missing files are skipped. Reading a
   dump file stops at the first empty line.

There is no escaping in either format. Values holding ";", "|" or a
newline are refused at export time with RecordFormatError.

Numbers are plain ASCII decimals with an optional sign. Files must be
valid UTF-8.

Failure model:
- A bad record or an undecodable file aborts the file being imported
  (RecordParseError).
  Records already upserted, from this file or an earlier one, stay.
- A failed write leaves a partially written file behind.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Sequence

from wallet.domain.errors import (
    LedgerFileNotFoundError,
    PhoneAlreadyRegisteredError,
    RecordFormatError,
    RecordParseError,
    WalletError,
)
from wallet.domain.models import Account, Favorite, Payment, PaymentStatus
from wallet.infrastructure.store import EntityStore
from wallet.logging_config import get_logger

logger = get_logger(__name__)

FIELD_SEPARATOR = ";"
RECORD_SEPARATOR = "|"
LINE_SEPARATOR = "\n"
RESERVED = (FIELD_SEPARATOR, RECORD_SEPARATOR, LINE_SEPARATOR)

ACCOUNTS_DUMP = "accounts.dump"
PAYMENTS_DUMP = "payments.dump"
FAVORITES_DUMP = "favorites.dump"

DECIMAL = re.compile(r"[+-]?[0-9]+")


# ============================================================================
# RECORD ENCODING
# ============================================================================


def _checked(field: str, value: str) -> str:
    for delimiter in RESERVED:
        if delimiter in value:
            raise RecordFormatError(field, value)
    return value


def encode_account(account: Account) -> str:
    return FIELD_SEPARATOR.join(
        [str(account.id), _checked("phone", account.phone), str(account.balance)]
    )


def encode_payment(payment: Payment) -> str:
    return FIELD_SEPARATOR.join(
        [
            _checked("payment_id", payment.id),
            str(payment.account_id),
            str(payment.amount),
            _checked("category", payment.category),
            payment.status.value,
        ]
    )


def encode_favorite(favorite: Favorite) -> str:
    return FIELD_SEPARATOR.join(
        [
            _checked("favorite_id", favorite.id),
            str(favorite.account_id),
            _checked("name", favorite.name),
            str(favorite.amount),
            _checked("category", favorite.category),
        ]
    )


def encode_lines(records: Iterable[str]) -> str:
    """Newline-terminated records, as used by every .dump file."""
    return "".join(record + LINE_SEPARATOR for record in records)


# ============================================================================
# RECORD DECODING
# ============================================================================


def _split(path: Path, record: str, expected: int) -> list[str]:
    fields = record.split(FIELD_SEPARATOR)
    if len(fields) != expected:
        raise RecordParseError(
            str(path), record, f"expected {expected} fields, got {len(fields)}"
        )
    return fields


def _parse_decimal(value: str) -> int:
    """Plain ASCII decimal with an optional sign. No padding, no underscores."""
    if DECIMAL.fullmatch(value) is None:
        raise ValueError(f"invalid decimal literal: {value!r}")
    return int(value)


def _to_int(path: Path, record: str, field: str, value: str) -> int:
    try:
        return _parse_decimal(value)
    except ValueError as e:
        logger.error("codec.parse_failed", path=str(path), field=field, value=value)
        raise RecordParseError(str(path), record, f"{field} is not an integer") from e


def _to_status(path: Path, record: str, value: str) -> PaymentStatus:
    try:
        return PaymentStatus(value)
    except ValueError as e:
        logger.error("codec.parse_failed", path=str(path), field="status", value=value)
        raise RecordParseError(str(path), record, f"unknown status {value!r}") from e


def decode_account(path: Path, record: str) -> Account:
    account_id, phone, balance = _split(path, record, 3)
    return Account(
        id=_to_int(path, record, "id", account_id),
        phone=phone,
        balance=_to_int(path, record, "balance", balance),
    )


def decode_payment(path: Path, record: str) -> Payment:
    payment_id, account_id, amount, category, status = _split(path, record, 5)
    return Payment(
        id=payment_id,
        account_id=_to_int(path, record, "account_id", account_id),
        amount=_to_int(path, record, "amount", amount),
        category=category,
        status=_to_status(path, record, status),
    )


def decode_favorite(path: Path, record: str) -> Favorite:
    favorite_id, account_id, name, amount, category = _split(path, record, 5)
    return Favorite(
        id=favorite_id,
        account_id=_to_int(path, record, "account_id", account_id),
        name=name,
        amount=_to_int(path, record, "amount", amount),
        category=category,
    )


# ============================================================================
# FILE ACCESS
# ============================================================================


def write_file(path: Path, data: str) -> None:
    """Create or truncate `path` and write `data`. No atomic rename."""
    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(data)
    except OSError as e:
        logger.error("codec.write_failed", path=str(path), error=str(e))
        raise


def _read_file(path: Path) -> str:
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        logger.error("codec.decode_failed", path=str(path), position=e.start)
        raise RecordParseError(str(path), "", "invalid UTF-8") from e


def _read_dump(path: Path) -> list[str] | None:
    """
    Lines of a dump file up to the first empty one, or None if the file
    does not exist. Anything after an empty line is ignored.
    """
    try:
        data = _read_file(path)
    except FileNotFoundError:
        logger.warning("codec.dump_file_missing", path=str(path))
        return None
    lines = data.split(LINE_SEPARATOR)
    if "" in lines:
        lines = lines[: lines.index("")]
    return lines


# ============================================================================
# CODEC
# ============================================================================


class LedgerCodec:
    """
    Reads and writes an EntityStore's collections as delimited text.

    Import mutates the store directly; it is a write operation and falls
    under the ledger's single-writer contract.
    """

    def __init__(self, store: EntityStore):
        self.store = store

    # ------------------------------------------------------------------
    # Single-file format
    # ------------------------------------------------------------------

    def export_to_file(self, path: str | Path) -> None:
        path = Path(path)
        data = "".join(
            encode_account(account) + RECORD_SEPARATOR for account in self.store.accounts
        )
        write_file(path, data)
        logger.info("codec.accounts_exported", path=str(path), accounts=len(self.store.accounts))

    def import_from_file(self, path: str | Path) -> int:
        """
        Append every account found in a single-file export.

        Returns the number of accounts appended. IDs are taken literally, so
        importing into a non-empty ledger can produce duplicate IDs.
        """
        path = Path(path)
        try:
            data = _read_file(path)
        except FileNotFoundError as e:
            logger.error("codec.file_missing", path=str(path))
            raise LedgerFileNotFoundError(str(path)) from e

        # Parse everything first: a bad record leaves the store untouched.
        accounts = [
            decode_account(path, record)
            for record in data.split(RECORD_SEPARATOR)
            if record
        ]
        for account in accounts:
            self.store.add_account(account)

        logger.info("codec.accounts_imported", path=str(path), accounts=len(accounts))
        return len(accounts)

    # ------------------------------------------------------------------
    # Dump directory format
    # ------------------------------------------------------------------

    def export_dir(self, directory: str | Path) -> list[Path]:
        """Write the non-empty collections; returns the files written."""
        directory = Path(directory)
        written: list[Path] = []

        sections: list[tuple[str, Sequence[str]]] = [
            (ACCOUNTS_DUMP, [encode_account(a) for a in self.store.accounts]),
            (PAYMENTS_DUMP, [encode_payment(p) for p in self.store.payments]),
            (FAVORITES_DUMP, [encode_favorite(f) for f in self.store.favorites]),
        ]
        for filename, records in sections:
            if not records:
                continue
            path = directory / filename
            write_file(path, encode_lines(records))
            written.append(path)

        logger.info(
            "codec.dump_exported",
            directory=str(directory),
            files=[p.name for p in written],
        )
        return written

    def import_dir(self, directory: str | Path) -> None:
        """
        Upsert accounts, then payments, then favorites.

        A failure stops the import at that file; earlier upserts remain.
        """
        directory = Path(directory)
        steps = [
            (ACCOUNTS_DUMP, self._upsert_accounts),
            (PAYMENTS_DUMP, self._upsert_payments),
            (FAVORITES_DUMP, self._upsert_favorites),
        ]
        for filename, upsert in steps:
            path = directory / filename
            try:
                upsert(path)
            except (WalletError, OSError) as e:
                logger.error("codec.dump_import_failed", path=str(path), error=str(e))
                raise

    def _upsert_accounts(self, path: Path) -> None:
        lines = _read_dump(path)
        if lines is None:
            return

        for line in lines:
            record = decode_account(path, line)
            account = self.store.get_account(record.id)
            if account is not None:
                account.phone = record.phone
                account.balance = record.balance
                continue

            if self.store.account_by_phone(record.phone) is not None:
                raise PhoneAlreadyRegisteredError(record.phone)
            self.store.add_account(record)

        logger.info("codec.accounts_upserted", path=str(path), records=len(lines))

    def _upsert_payments(self, path: Path) -> None:
        lines = _read_dump(path)
        if lines is None:
            return

        for line in lines:
            record = decode_payment(path, line)
            payment = self.store.get_payment(record.id)
            if payment is None:
                self.store.add_payment(record)
                continue

            payment.account_id = record.account_id
            payment.amount = record.amount
            payment.category = record.category
            payment.status = record.status

        logger.info("codec.payments_upserted", path=str(path), records=len(lines))

    def _upsert_favorites(self, path: Path) -> None:
        lines = _read_dump(path)
        if lines is None:
            return

        for line in lines:
            record = decode_favorite(path, line)
            favorite = self.store.get_favorite(record.id)
            if favorite is None:
                self.store.add_favorite(record)
                continue

            favorite.account_id = record.account_id
            favorite.name = record.name
            favorite.amount = record.amount
            favorite.category = record.category

        logger.info("codec.favorites_upserted", path=str(path), records=len(lines))

    # ------------------------------------------------------------------
    # Payment history
    # ------------------------------------------------------------------

    def history_to_files(
        self, payments: Sequence[Payment], directory: str | Path, records: int
    ) -> list[Path]:
        """
        Write a payment list as one or more dump files of at most `records` lines.

        - empty list: nothing written
        - len(payments) <= records: a single payments.dump
        - otherwise: payments1.dump, payments2.dump, ... (last one holds the rest)
        """
        if records < 1:
            raise ValueError(f"records must be at least 1, got {records}")

        directory = Path(directory)
        if not payments:
            logger.info("codec.history_empty", directory=str(directory))
            return []

        if len(payments) <= records:
            path = directory / PAYMENTS_DUMP
            write_file(path, encode_lines(encode_payment(p) for p in payments))
            return [path]

        written: list[Path] = []
        for number, start in enumerate(range(0, len(payments), records), start=1):
            chunk = payments[start:start + records]
            path = directory / f"payments{number}.dump"
            write_file(path, encode_lines(encode_payment(p) for p in chunk))
            written.append(path)

        logger.info(
            "codec.history_exported",
            directory=str(directory),
            payments=len(payments),
            files=len(written),
        )
        return written
