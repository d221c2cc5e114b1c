"""
Credit endpoints.

Balances, admin adjustments and the transaction history. Response
shapes differ between backend versions; everything is normalized to
``{"balance": n}``, ``{"balances": [...]}`` and plain transaction lists.
"""

import logging
from typing import Any, Dict, List, Optional

from .client import CancelToken, ResourceAPI
from ..models.credit import (
    AllBalances,
    CreditBalance,
    CreditTransaction,
    CreditUpdate,
    MAX_TRANSACTION_LIMIT,
)
from ..utils.logger import mask_user_id


logger = logging.getLogger(__name__)


HISTORY_FILTERS = ("user_id", "start_date", "end_date", "type", "limit", "offset")


def _balance_of(response: Any) -> CreditBalance:
    balance = response.get("balance") if isinstance(response, dict) else None
    if not isinstance(balance, (int, float)) or isinstance(balance, bool):
        logger.warning("Credits response missing balance field, using 0")
        return {"balance": 0}
    return {"balance": balance}


def extract_history(response: Any) -> List[CreditTransaction]:
    """
    Normalize a history response.

    Accepts a bare list, ``{"transactions"}``, ``{"history"}`` or a
    paginated ``{"data"}``; anything else yields [].
    """
    if isinstance(response, list):
        return response
    if isinstance(response, dict):
        return (response.get("transactions") or response.get("history")
                or response.get("data") or [])
    return []


def _history_params(filters: Optional[Dict[str, Any]], allowed) -> Dict[str, Any]:
    filters = filters or {}
    params = {key: filters.get(key) for key in allowed if filters.get(key)}

    limit = params.get("limit")
    if isinstance(limit, int) and limit > MAX_TRANSACTION_LIMIT:
        logger.warning(f"History limit {limit} capped at {MAX_TRANSACTION_LIMIT}")
        params["limit"] = MAX_TRANSACTION_LIMIT

    return params


class CreditsAPI(ResourceAPI):
    """
    Wrapper for ``/credits`` and ``/users/{id}/credits``.

    Examples:
        >>> credits = CreditsAPI(client)
        >>> credits.get_credits()
        {'balance': 10}
        >>> credits.add_credits("user-uuid", 5, "Bonus")["balance"]
        15
    """

    def get_credits(self, cancel_token: Optional[CancelToken] = None) -> CreditBalance:
        """Balance of the current user."""
        return _balance_of(self.client.get("/credits", cancel_token=cancel_token))

    def get_all_credits(self, cancel_token: Optional[CancelToken] = None) -> AllBalances:
        """
        Balances of every student (admin only).

        Returns:
            ``{"balances": [{"user_id", "balance"}, ...]}``
        """
        response = self.client.get("/credits/all", cancel_token=cancel_token)

        balances: list = []
        response_format = "unknown"

        if isinstance(response, list):
            balances, response_format = response, "array"
        elif isinstance(response, dict) and response.get("data"):
            data = response["data"]
            if isinstance(data, list):
                balances, response_format = data, "paginated"
            elif isinstance(data, dict) and isinstance(data.get("data"), list):
                balances, response_format = data["data"], "nested_paginated"
        elif isinstance(response, dict) and isinstance(response.get("balances"), list):
            balances, response_format = response["balances"], "balances"

        logger.debug(f"Received all credits: format={response_format}, count={len(balances)}")
        return {"balances": balances}

    def get_user_credits(self, user_id: str,
                         cancel_token: Optional[CancelToken] = None) -> CreditBalance:
        """Balance of one user (admin only)."""
        logger.debug(f"Fetching credits for user {mask_user_id(user_id)}")
        return _balance_of(self.client.get(f"/credits/user/{user_id}", cancel_token=cancel_token))

    def add_credits(self, user_id: str, amount: int, reason: str = "") -> CreditUpdate:
        """
        Add credits to a user (admin only).

        Returns:
            ``{"user_id", "balance", "transaction_id"}``
        """
        response = self.client.post(f"/users/{user_id}/credits",
                                    {"amount": amount, "reason": reason})
        logger.info(f"Added {amount} credits to user {mask_user_id(user_id)}")
        return response

    def deduct_credits(self, user_id: str, amount: int, reason: str = "") -> CreditUpdate:
        """
        Deduct credits from a user (admin only).

        Args:
            amount: Positive number of credits to take away
        """
        response = self.client.post(f"/users/{user_id}/credits",
                                    {"amount": -amount, "reason": reason})
        logger.info(f"Deducted {amount} credits from user {mask_user_id(user_id)}")
        return response

    def get_history(self, filters: Optional[Dict[str, Any]] = None,
                    cancel_token: Optional[CancelToken] = None) -> List[CreditTransaction]:
        """
        Transaction history with optional filters.

        Args:
            filters: Any of user_id, start_date, end_date (YYYY-MM-DD),
                type (add/deduct/refund), limit, offset
        """
        response = self.client.get(
            "/credits/history",
            params=_history_params(filters, HISTORY_FILTERS),
            cancel_token=cancel_token,
        )
        history = extract_history(response)
        logger.debug(f"Received credit history: {len(history)} transactions")
        return history

    def get_my_history(self, filters: Optional[Dict[str, Any]] = None,
                       cancel_token: Optional[CancelToken] = None) -> List[CreditTransaction]:
        """History of the current user; ``user_id`` in filters is ignored."""
        response = self.client.get(
            "/credits/history",
            params=_history_params(filters, HISTORY_FILTERS[1:]),
            cancel_token=cancel_token,
        )
        return extract_history(response)
