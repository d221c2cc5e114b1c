"""
Payment endpoints.

Credits are bought through YooKassa: the backend creates a payment and
returns a confirmation URL the user must open. That URL is checked
against the provider's domains before it is handed out.
"""

import logging
from typing import Any, Dict, List, Optional

from .client import CancelToken, ResourceAPI
from .errors import APIError
from ..models.payment import MAX_CREDITS, MIN_CREDITS, PaymentData, credits_price
from ..validation.forms import validate_payment_redirect_url


logger = logging.getLogger(__name__)


class PaymentsAPI(ResourceAPI):
    """Wrapper for ``/payments`` and the admin payment settings."""

    def create_payment(self, credits: int) -> PaymentData:
        """
        Start a credit purchase.

        Args:
            credits: Number of credits (1..100)

        Returns:
            Payment whose ``confirmation_url`` is the validated redirect

        Raises:
            ValueError: If credits is out of range
            APIError: If the backend returns a redirect to a foreign domain
        """
        if isinstance(credits, bool) or not isinstance(credits, int) \
                or not MIN_CREDITS <= credits <= MAX_CREDITS:
            raise ValueError(f"credits must be between {MIN_CREDITS} and {MAX_CREDITS}")

        logger.info(f"Creating payment for {credits} credits ({credits_price(credits)} RUB)")
        payment = self.client.post("/payments/create", {"credits": credits})

        url = payment.get("confirmation_url") if isinstance(payment, dict) else None
        check = validate_payment_redirect_url(url)
        if not check.is_valid:
            raise APIError(f"Unsafe payment redirect: {check.error}", 0, payment)

        payment["confirmation_url"] = check.sanitized_url
        return payment

    def get_history(self, cancel_token: Optional[CancelToken] = None) -> List[PaymentData]:
        response = self.client.get("/payments/history", cancel_token=cancel_token)
        if isinstance(response, dict):
            return response.get("payments") or []
        return response or []

    def get_payment_settings(self, cancel_token: Optional[CancelToken] = None) -> Any:
        """Payment status of every student (admin only)."""
        return self.client.get("/admin/payment-settings", cancel_token=cancel_token)

    def update_payment_settings(self, user_id: str, payment_enabled: bool) -> Dict[str, Any]:
        return self.client.put(f"/admin/users/{user_id}/payment-settings",
                               {"payment_enabled": payment_enabled})
