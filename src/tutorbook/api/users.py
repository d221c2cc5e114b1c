"""
User endpoints (mostly admin functionality).

List endpoints return ``{"users": [...], "meta": {...}}`` once the
envelope is unwrapped; older deployments return a bare list or nest
the object once more under ``data``. All shapes are normalized here.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

from .client import CancelToken, ResourceAPI
from ..models.user import PaginationMeta, UserData, UserRole


logger = logging.getLogger(__name__)


ALL_PAGES_PER_PAGE = 50
DEFAULT_PER_PAGE = 20


def _extract_users(response: Any) -> Optional[List[UserData]]:
    if isinstance(response, list):
        return response
    if isinstance(response, dict):
        if isinstance(response.get("users"), list):
            return response["users"]
        data = response.get("data")
        if isinstance(data, dict) and isinstance(data.get("users"), list):
            return data["users"]
    return None


class UsersAPI(ResourceAPI):
    """
    Wrapper for ``/users``.

    Examples:
        >>> users = UsersAPI(client)
        >>> students = users.get_students_all(search="ivan")
        >>> teachers = users.get_assignable_teachers_all()
    """

    def get_users(
        self,
        role: Optional[str] = None,
        search: Optional[str] = None,
        active: Optional[bool] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> List[UserData]:
        """
        Get one page of users.

        Returns:
            List of users (empty if the response shape is unexpected)
        """
        response = self.client.get(
            "/users",
            params={"role": role, "search": search or None, "active": active,
                    "page": page, "per_page": per_page},
            cancel_token=cancel_token,
        )
        users = _extract_users(response)
        if users is None:
            logger.warning(f"Unexpected /users response format: {type(response).__name__}")
            return []
        return users

    def get_users_with_pagination(
        self,
        role: Optional[str] = None,
        search: Optional[str] = None,
        active: Optional[bool] = None,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> Tuple[List[UserData], PaginationMeta]:
        """
        Get one page of users together with pagination metadata.

        When the response carries no ``meta``, a single page is assumed.

        Returns:
            Tuple of (users, meta)
        """
        response = self.client.get(
            "/users",
            params={"role": role, "search": search or None, "active": active,
                    "page": page, "per_page": per_page},
            cancel_token=cancel_token,
        )
        users = _extract_users(response) or []

        meta = None
        if isinstance(response, dict):
            meta = response.get("meta")
            data = response.get("data")
            if meta is None and isinstance(data, dict):
                meta = data.get("meta")

        if not meta:
            meta = {
                "page": page or 1,
                "per_page": per_page or DEFAULT_PER_PAGE,
                "total": len(users),
                "total_pages": 1,
            }

        return users, meta

    def get_users_all(
        self,
        role: Optional[str] = None,
        search: Optional[str] = None,
        active: Optional[bool] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> List[UserData]:
        """
        Walk every page of ``/users`` and return all matching users.

        Pages are requested ``per_page=50`` at a time until the current
        page reaches ``meta.total_pages``.
        """
        all_users: List[UserData] = []
        page = 1

        while True:
            users, meta = self.get_users_with_pagination(
                role=role, search=search, active=active,
                page=page, per_page=ALL_PAGES_PER_PAGE, cancel_token=cancel_token,
            )
            all_users.extend(users)

            total_pages = meta.get("total_pages") or 1
            if page >= total_pages:
                break
            page += 1

        logger.debug(f"Fetched {len(all_users)} users (role={role}, pages={page})")
        return all_users

    def get_students_all(self, search: Optional[str] = None,
                         cancel_token: Optional[CancelToken] = None) -> List[UserData]:
        return self.get_users_all(role=UserRole.STUDENT.value, search=search,
                                  cancel_token=cancel_token)

    def get_teachers_all(self, search: Optional[str] = None,
                         cancel_token: Optional[CancelToken] = None) -> List[UserData]:
        return self.get_users_all(role=UserRole.METHODOLOGIST.value, search=search,
                                  cancel_token=cancel_token)

    def get_assignable_teachers_all(
        self,
        search: Optional[str] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> List[UserData]:
        """
        Every user who can teach a lesson: methodologists and admins.

        Both roles are fetched in parallel, merged, de-duplicated by id
        and sorted by full name.
        """
        with ThreadPoolExecutor(max_workers=2) as executor:
            methodologists = executor.submit(
                self.get_users_all, UserRole.METHODOLOGIST.value, search, None, cancel_token
            )
            admins = executor.submit(
                self.get_users_all, UserRole.ADMIN.value, search, None, cancel_token
            )
            combined = methodologists.result() + admins.result()

        seen = set()
        unique: List[UserData] = []
        for user in combined:
            if user.get("id") in seen:
                continue
            seen.add(user.get("id"))
            unique.append(user)

        unique.sort(key=lambda u: (u.get("full_name") or "").casefold())
        return unique

    def get_students(self, cancel_token: Optional[CancelToken] = None) -> List[UserData]:
        """First page of students. Use get_students_all for everyone."""
        return self.get_users(role=UserRole.STUDENT.value, cancel_token=cancel_token)

    def get_teachers(self, cancel_token: Optional[CancelToken] = None) -> List[UserData]:
        """First page of methodologists. Use get_teachers_all for everyone."""
        return self.get_users(role=UserRole.METHODOLOGIST.value, cancel_token=cancel_token)

    def get_user(self, user_id: str) -> UserData:
        return self.client.get(f"/users/{user_id}")

    def create_user(self, user_data: Dict[str, Any]) -> UserData:
        return self.client.post("/users", user_data)

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> UserData:
        return self.client.put(f"/users/{user_id}", updates)

    def delete_user(self, user_id: str) -> Any:
        return self.client.delete(f"/users/{user_id}")

    def get_user_stats(self, user_id: str) -> Dict[str, Any]:
        return self.client.get(f"/users/{user_id}/stats")

    def update_my_profile(self, updates: Dict[str, Any]) -> UserData:
        """Update the current user's profile (e.g. telegram_username)."""
        return self.client.put("/auth/profile", updates)
