"""
Ledger Entities

Three entity types, all mutable in place and owned by the entity store:

- Account: sequential int ID, unique phone, non-negative balance
- Payment: random string ID, owning account, positive amount, category, status
- Favorite: random string ID plus a SNAPSHOT of a payment's amount/category

Amounts are opaque integer currency units. No currency conversion happens
anywhere in the ledger.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from enum import Enum

Phone = str
Money = int
PaymentCategory = str


class PaymentStatus(str, Enum):
    """
    Payment lifecycle states.

    State machine:
    INPROGRESS → FAIL   (via reject)

    There is no success state: a payment that is never rejected stays
    INPROGRESS. The value is the literal written to payments.dump.
    """

    IN_PROGRESS = "INPROGRESS"
    FAIL = "FAIL"


def new_entity_id() -> str:
    """Random unique token used for payment and favorite IDs."""
    return str(uuid.uuid4())


@dataclass
class Account:
    id: int
    phone: Phone
    balance: Money = 0


@dataclass
class Payment:
    """
    A debit against one account.

    Invariant: amount > 0, fixed at creation.
    Invariant: account_id refers to an account in the same store.
    """

    id: str
    account_id: int
    amount: Money
    category: PaymentCategory
    status: PaymentStatus = PaymentStatus.IN_PROGRESS

    def copy(self) -> Payment:
        """Detached copy, used for history export and aggregation results."""
        return replace(self)


@dataclass
class Favorite:
    """
    A reusable payment template.

    Amount and category are copied from the source payment when the
    favorite is created; later changes to that payment do not reach it.
    """

    id: str
    account_id: int
    name: str
    amount: Money
    category: PaymentCategory
