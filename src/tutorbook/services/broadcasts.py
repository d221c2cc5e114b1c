"""
Broadcast state holder.

BroadcastStore keeps the admin broadcast screen's state (linked users,
lists, history) and applies every change through a single reducer
under a lock, so concurrent requests cannot interleave partial
updates.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from ..api.broadcasts import DEFAULT_BROADCAST_PAGE, BroadcastsAPI
from ..api.client import CancelToken
from ..api.errors import RequestCancelledError
from ..models.broadcast import Broadcast, BroadcastList, TelegramUser
from .concurrency import RequestScope
from .notifications import NotificationCenter


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BroadcastState:
    linked_users: List[TelegramUser] = field(default_factory=list)
    broadcast_lists: List[BroadcastList] = field(default_factory=list)
    broadcasts: List[Broadcast] = field(default_factory=list)
    total_broadcasts: int = 0
    loading: bool = False
    error: Optional[str] = None


def broadcast_reducer(state: BroadcastState, action: str, payload: Any = None) -> BroadcastState:
    """
    Compute the next state for an action.

    Examples:
        >>> state = broadcast_reducer(BroadcastState(), "FETCH_START")
        >>> state.loading
        True
        >>> broadcast_reducer(state, "DELETE_LIST_SUCCESS", "l-1").loading
        False
    """
    if action == "FETCH_START":
        return replace(state, loading=True, error=None)
    if action == "FETCH_LINKED_USERS_SUCCESS":
        return replace(state, loading=False, linked_users=payload)
    if action == "FETCH_BROADCAST_LISTS_SUCCESS":
        return replace(state, loading=False, broadcast_lists=payload)
    if action == "FETCH_BROADCASTS_SUCCESS":
        return replace(state, loading=False, broadcasts=payload["broadcasts"],
                       total_broadcasts=payload["total"])
    if action == "CREATE_LIST_SUCCESS":
        return replace(state, loading=False, broadcast_lists=state.broadcast_lists + [payload])
    if action == "UPDATE_LIST_SUCCESS":
        return replace(state, loading=False, broadcast_lists=[
            payload if lst.get("id") == payload.get("id") else lst
            for lst in state.broadcast_lists
        ])
    if action == "DELETE_LIST_SUCCESS":
        return replace(state, loading=False, broadcast_lists=[
            lst for lst in state.broadcast_lists if lst.get("id") != payload
        ])
    if action == "CANCEL_BROADCAST_SUCCESS":
        return replace(state, loading=False, broadcasts=[
            dict(b, status="cancelled") if b.get("id") == payload else b
            for b in state.broadcasts
        ])
    if action == "CLEAR_LOADING":
        return replace(state, loading=False)
    if action == "FETCH_ERROR":
        return replace(state, loading=False, error=payload)
    return state


def _unwrap_list(data: Any, key: str) -> List[Dict[str, Any]]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return data.get(key) or []
    return []


def _unwrap_item(data: Any, key: str) -> Any:
    if isinstance(data, dict) and data.get(key):
        return data[key]
    return data


class BroadcastStore:
    """
    State and operations of the broadcast admin screen.

    Cancelled requests (after ``close()``) return None without touching
    the state. Other errors are stored in ``error``, notified and
    re-raised.

    Examples:
        >>> store = BroadcastStore(BroadcastsAPI(client))
        >>> store.fetch_broadcast_lists()
        >>> [lst["name"] for lst in store.broadcast_lists]
        ['Group A']
        >>> store.close()
    """

    def __init__(self, api: BroadcastsAPI, notifications: Optional[NotificationCenter] = None):
        self.api = api
        self.notifications = notifications or NotificationCenter()
        self._scope = RequestScope()
        self._lock = threading.Lock()
        self._state = BroadcastState()

    @property
    def state(self) -> BroadcastState:
        return self._state

    @property
    def linked_users(self) -> List[TelegramUser]:
        return self._state.linked_users

    @property
    def broadcast_lists(self) -> List[BroadcastList]:
        return self._state.broadcast_lists

    @property
    def broadcasts(self) -> List[Broadcast]:
        return self._state.broadcasts

    @property
    def total_broadcasts(self) -> int:
        return self._state.total_broadcasts

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    def dispatch(self, action: str, payload: Any = None):
        with self._lock:
            self._state = broadcast_reducer(self._state, action, payload)

    def _run(
        self,
        call: Callable[[CancelToken], Any],
        on_success: Callable[[Any], Any],
        error_message: Optional[str] = None,
        success_message: Optional[str] = None
    ) -> Any:
        token = self._scope.token()
        try:
            self.dispatch("FETCH_START")
            response = call(token)
        except RequestCancelledError:
            logger.debug("Broadcast request cancelled")
            self.dispatch("CLEAR_LOADING")
            return None
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            self.dispatch("FETCH_ERROR", message)
            self.notifications.error(error_message or message or "Broadcast request failed")
            raise

        if token.is_cancelled:
            self.dispatch("CLEAR_LOADING")
            return None
        result = on_success(response)
        if success_message:
            self.notifications.success(success_message)
        return result

    def fetch_linked_users(self, role: Optional[str] = None) -> Optional[List[TelegramUser]]:
        def done(data):
            users = _unwrap_list(data, "users")
            self.dispatch("FETCH_LINKED_USERS_SUCCESS", users)
            return users

        return self._run(lambda token: self.api.get_linked_users(role, cancel_token=token),
                         done, error_message="Failed to load users")

    def fetch_broadcast_lists(self) -> Optional[List[BroadcastList]]:
        def done(data):
            lists = _unwrap_list(data, "lists")
            self.dispatch("FETCH_BROADCAST_LISTS_SUCCESS", lists)
            return lists

        return self._run(lambda token: self.api.get_lists(cancel_token=token),
                         done, error_message="Failed to load broadcast lists")

    def create_list(self, data: Dict[str, Any]) -> Optional[BroadcastList]:
        def done(response):
            new_list = _unwrap_item(response, "list")
            self.dispatch("CREATE_LIST_SUCCESS", new_list)
            return new_list

        return self._run(lambda token: self.api.create_list(data, cancel_token=token),
                         done, success_message="Broadcast list created")

    def update_list(self, list_id: str, data: Dict[str, Any]) -> Optional[BroadcastList]:
        def done(response):
            updated = _unwrap_item(response, "list")
            self.dispatch("UPDATE_LIST_SUCCESS", updated)
            return updated

        return self._run(lambda token: self.api.update_list(list_id, data, cancel_token=token),
                         done, success_message="Broadcast list updated")

    def delete_list(self, list_id: str) -> None:
        self._run(lambda token: self.api.delete_list(list_id, cancel_token=token),
                  lambda _: self.dispatch("DELETE_LIST_SUCCESS", list_id),
                  success_message="Broadcast list deleted")

    def send_broadcast(self, message: str, list_id: Optional[str] = None,
                       user_ids: Optional[List[str]] = None) -> Optional[Broadcast]:
        def done(response):
            self.dispatch("CLEAR_LOADING")
            return _unwrap_item(response, "broadcast")

        return self._run(
            lambda token: self.api.send_broadcast(message, list_id, user_ids, cancel_token=token),
            done, success_message="Broadcast sent",
        )

    def fetch_broadcasts(self, limit: int = DEFAULT_BROADCAST_PAGE, offset: int = 0) -> Any:
        """
        Load a page of broadcast history.

        Returns:
            The raw response; ``total`` falls back to the page length
        """
        def done(data):
            broadcasts = _unwrap_list(data, "broadcasts")
            if isinstance(data, dict):
                total = data.get("total") or len(broadcasts)
            else:
                total = len(broadcasts)
            self.dispatch("FETCH_BROADCASTS_SUCCESS", {"broadcasts": broadcasts, "total": total})
            return data

        return self._run(
            lambda token: self.api.get_broadcasts(limit, offset, cancel_token=token),
            done, error_message="Failed to load broadcast history",
        )

    def get_broadcast_details(self, broadcast_id: str) -> Optional[Dict[str, Any]]:
        def done(data):
            self.dispatch("CLEAR_LOADING")
            return data

        return self._run(
            lambda token: self.api.get_broadcast_details(broadcast_id, cancel_token=token),
            done, error_message="Failed to load broadcast details",
        )

    def cancel_broadcast(self, broadcast_id: str) -> None:
        self._run(lambda token: self.api.cancel_broadcast(broadcast_id, cancel_token=token),
                  lambda _: self.dispatch("CANCEL_BROADCAST_SUCCESS", broadcast_id),
                  success_message="Broadcast cancelled")

    def close(self):
        """Cancel in-flight requests; later calls return None."""
        self._scope.close()
