"""
Broadcast list and message validator.
"""

from typing import Any, Dict

from .validators import Validator, ValidationResult
from ..models.broadcast import MAX_MESSAGE_LENGTH, MIN_LIST_NAME_LENGTH


class BroadcastValidator(Validator):
    """
    Validator for broadcast lists and Telegram messages.

    ``validate`` checks a list payload (``name``, ``user_ids``);
    ``validate_message`` checks message text on its own.

    Examples:
        >>> validator = BroadcastValidator()
        >>> validator.validate({"name": "Group A", "user_ids": ["u-1"]}).is_valid
        True
        >>> validator.validate_message("").is_valid
        False
    """

    def validate(self, data: Dict[str, Any]) -> ValidationResult:
        result = ValidationResult(is_valid=True)

        name = (data.get("name") or "").strip()
        if not name:
            result.add_error("List name is required", "name")
        elif len(name) < MIN_LIST_NAME_LENGTH:
            result.add_error(
                f"List name must be at least {MIN_LIST_NAME_LENGTH} characters", "name"
            )

        user_ids = data.get("user_ids") or []
        if not isinstance(user_ids, list) or len(user_ids) == 0:
            result.add_error("Select at least one user", "user_ids")

        return result

    def validate_message(self, message: Any) -> ValidationResult:
        result = ValidationResult(is_valid=True)

        if not isinstance(message, str) or not message.strip():
            return result.add_error("Message is required", "message")

        if len(message) > MAX_MESSAGE_LENGTH:
            result.add_error(
                f"Message must be at most {MAX_MESSAGE_LENGTH} characters, got {len(message)}",
                "message"
            )

        return result
