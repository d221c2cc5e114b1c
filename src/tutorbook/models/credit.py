"""
Credit balance and transaction models.

Credits are the platform's internal currency: bookings debit them,
cancellations refund them, payments and admins add them.
"""

from typing import List, Literal, Optional, TypedDict


OperationType = Literal["add", "deduct", "refund"]

DEFAULT_TRANSACTION_LIMIT = 50
MAX_TRANSACTION_LIMIT = 500
MAX_BALANCE = 10000


class CreditBalance(TypedDict):
    """Balance of a single user."""

    balance: int


class UserBalance(TypedDict):
    """Entry of ``GET /credits/all``."""

    user_id: str
    balance: int


class AllBalances(TypedDict):
    """Normalized response of ``GET /credits/all``."""

    balances: List[UserBalance]


class CreditTransaction(TypedDict, total=False):
    """
    Ledger entry from ``GET /credits/history``.

    ``amount`` is signed: deductions are negative.
    """

    id: str
    user_id: str
    amount: int
    operation_type: OperationType
    reason: str
    performed_by: Optional[str]
    booking_id: Optional[str]
    balance_before: int
    balance_after: int
    created_at: str


class CreditUpdate(TypedDict, total=False):
    """Response of ``POST /users/{id}/credits``."""

    user_id: str
    balance: int
    transaction_id: str
