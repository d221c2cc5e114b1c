"""
Telegram broadcast endpoints (admin and methodologist).

Responses are returned as sent by the backend; the BroadcastStore
service normalizes them.
"""

import logging
from typing import Any, Dict, List, Optional

from .client import CancelToken, ResourceAPI
from ..models.broadcast import BroadcastList
from ..validation.broadcast_validator import BroadcastValidator


logger = logging.getLogger(__name__)


DEFAULT_BROADCAST_PAGE = 20


class BroadcastsAPI(ResourceAPI):
    """
    Wrapper for ``/admin/telegram`` and ``/lessons/{id}/broadcasts``.

    Examples:
        >>> broadcasts = BroadcastsAPI(client)
        >>> lst = broadcasts.create_list({"name": "Group A", "user_ids": ["u-1"]})
        >>> broadcasts.send_broadcast(message="Lesson moved to 18:00", list_id=lst["id"])
    """

    validator = BroadcastValidator()

    def get_linked_users(self, role: Optional[str] = None,
                         cancel_token: Optional[CancelToken] = None) -> Any:
        """Users with a linked Telegram account, optionally filtered by role."""
        return self.client.get("/admin/telegram/users", params={"role": role},
                               cancel_token=cancel_token)

    def get_lists(self, cancel_token: Optional[CancelToken] = None) -> Any:
        return self.client.get("/admin/telegram/lists", cancel_token=cancel_token)

    def get_list(self, list_id: str, cancel_token: Optional[CancelToken] = None) -> BroadcastList:
        return self.client.get(f"/admin/telegram/lists/{list_id}", cancel_token=cancel_token)

    def create_list(self, data: Dict[str, Any],
                    cancel_token: Optional[CancelToken] = None) -> Any:
        """
        Create a broadcast list.

        Raises:
            ValueError: If the name is shorter than 3 characters or no users are given
        """
        validation = self.validator.validate(data)
        if not validation.is_valid:
            raise ValueError(validation.get_summary())
        return self.client.post("/admin/telegram/lists", data, cancel_token=cancel_token)

    def update_list(self, list_id: str, data: Dict[str, Any],
                    cancel_token: Optional[CancelToken] = None) -> Any:
        return self.client.put(f"/admin/telegram/lists/{list_id}", data,
                               cancel_token=cancel_token)

    def delete_list(self, list_id: str, cancel_token: Optional[CancelToken] = None) -> Any:
        return self.client.delete(f"/admin/telegram/lists/{list_id}", cancel_token=cancel_token)

    def send_broadcast(
        self,
        message: str,
        list_id: Optional[str] = None,
        user_ids: Optional[List[str]] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> Any:
        """
        Send a message to a list or to explicit users.

        Raises:
            ValueError: If the message is empty or longer than 4096 characters
        """
        validation = self.validator.validate_message(message)
        if not validation.is_valid:
            raise ValueError(validation.get_summary())

        payload: Dict[str, Any] = {"message": message}
        if list_id:
            payload["list_id"] = list_id
        if user_ids:
            payload["user_ids"] = user_ids

        result = self.client.post("/admin/telegram/broadcast", payload, cancel_token=cancel_token)
        logger.info(f"Broadcast queued (list={list_id}, users={len(user_ids or [])})")
        return result

    def get_broadcasts(self, limit: int = DEFAULT_BROADCAST_PAGE, offset: int = 0,
                       cancel_token: Optional[CancelToken] = None) -> Any:
        return self.client.get("/admin/telegram/broadcasts",
                               params={"limit": limit, "offset": offset},
                               cancel_token=cancel_token)

    def get_broadcast_details(self, broadcast_id: str,
                              cancel_token: Optional[CancelToken] = None) -> Dict[str, Any]:
        """Broadcast with per-recipient delivery logs."""
        return self.client.get(f"/admin/telegram/broadcasts/{broadcast_id}",
                               cancel_token=cancel_token)

    def cancel_broadcast(self, broadcast_id: str,
                         cancel_token: Optional[CancelToken] = None) -> Any:
        return self.client.post(f"/admin/telegram/broadcasts/{broadcast_id}/cancel", {},
                                cancel_token=cancel_token)

    def get_lesson_broadcasts(self, lesson_id: str,
                              cancel_token: Optional[CancelToken] = None) -> Any:
        return self.client.get(f"/lessons/{lesson_id}/broadcasts", cancel_token=cancel_token)

    def send_lesson_broadcast(self, lesson_id: str, message: str) -> Any:
        """Teacher message to every student booked on a lesson."""
        validation = self.validator.validate_message(message)
        if not validation.is_valid:
            raise ValueError(validation.get_summary())
        return self.client.post(f"/lessons/{lesson_id}/broadcasts", {"message": message})
