"""
Telegram linking and notification endpoints.

Users link their account by opening the bot with a one-time token;
admins can inspect and manage the links of other users.
"""

import logging
from typing import Any, Dict, List, Optional

from .client import CancelToken, ResourceAPI
from .errors import APIError
from ..models.broadcast import LinkToken, TelegramUser
from ..utils.logger import mask_user_id


logger = logging.getLogger(__name__)


class TelegramAPI(ResourceAPI):
    """
    Wrapper for ``/telegram`` and the admin ``/users/{id}/telegram`` routes.

    Examples:
        >>> telegram = TelegramAPI(client)
        >>> token = telegram.generate_link_token()
        >>> print(f"https://t.me/{token['bot_username']}?start={token['token']}")
    """

    def generate_link_token(self, cancel_token: Optional[CancelToken] = None) -> LinkToken:
        """
        Get a one-time token for linking Telegram.

        Raises:
            APIError: If the request fails or the response lacks
                ``token`` / ``bot_username``
        """
        try:
            response = self.client.get("/telegram/link-token", cancel_token=cancel_token)
        except APIError as e:
            logger.error(f"Telegram API error ({e.status or 'unknown'}): {e.message}")
            raise

        if not isinstance(response, dict) or not response.get("token") \
                or not response.get("bot_username"):
            raise APIError("Invalid server response: missing required fields", 0, response)

        return response

    def get_my_link(self, cancel_token: Optional[CancelToken] = None) -> Optional[TelegramUser]:
        """Link of the current user, or None when not linked."""
        return self.client.get("/telegram/me", cancel_token=cancel_token)

    def unlink(self) -> Any:
        result = self.client.delete("/telegram/link")
        logger.info("Telegram unlinked")
        return result

    def subscribe(self) -> Any:
        return self.client.post("/telegram/subscribe", {})

    def unsubscribe(self) -> Any:
        return self.client.post("/telegram/unsubscribe", {})

    # ---- Admin ----

    def get_all_telegram_users(self, cancel_token: Optional[CancelToken] = None
                               ) -> List[Dict[str, Any]]:
        response = self.client.get("/users/telegram", cancel_token=cancel_token)
        if isinstance(response, dict):
            return response.get("users") or []
        return response or []

    def get_user_telegram(self, user_id: str) -> Dict[str, Any]:
        return self.client.get(f"/users/{user_id}/telegram")

    def update_user_telegram(self, user_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Set telegram fields (e.g. ``telegram_username``) of a user."""
        return self.client.put(f"/users/{user_id}/telegram", updates)

    def unlink_user_telegram(self, user_id: str) -> Any:
        logger.info(f"Unlinking Telegram for user {mask_user_id(user_id)}")
        return self.client.delete(f"/users/{user_id}/telegram")

    def send_user_message(self, user_id: str, message: str) -> Any:
        return self.client.post(f"/users/{user_id}/telegram/message", {"message": message})
