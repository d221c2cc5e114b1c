"""
Form field checks.

Small predicates plus per-form validators that return a
ValidationResult whose ``field_errors`` maps each field to its first
problem.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, NamedTuple, Optional
from urllib.parse import urlsplit

from .validators import ValidationResult
from ..utils.dates import DateLike, parse_datetime


logger = logging.getLogger(__name__)


EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_PATTERN = re.compile(
    r'^(\+7|8)?[\s-]?\(?[489][0-9]{2}\)?[\s-]?[0-9]{3}[\s-]?[0-9]{2}[\s-]?[0-9]{2}$'
)

MIN_PASSWORD_LENGTH = 8
MIN_NAME_LENGTH = 2
MAX_LESSON_STUDENTS = 20
MAX_CREDITS_PER_OPERATION = 1000

ALLOWED_PAYMENT_DOMAINS = ["yookassa.ru", "yoomoney.ru", "money.yandex.ru"]


def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email))


def validate_password(password: str) -> List[str]:
    """
    Check password strength.

    Returns:
        List of problems (empty when the password is acceptable)

    Examples:
        >>> validate_password("Secret123")
        []
        >>> validate_password("short")[0]
        'Password must be at least 8 characters'
    """
    errors = []

    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if not re.search(r'[A-Z]', password):
        errors.append("Password must contain an uppercase letter")
    if not re.search(r'[a-z]', password):
        errors.append("Password must contain a lowercase letter")
    if not re.search(r'[0-9]', password):
        errors.append("Password must contain a digit")

    return errors


def is_required(value: Any) -> bool:
    """Strings must be non-blank; anything else must not be None."""
    if isinstance(value, str):
        return len(value.strip()) > 0
    return value is not None


def min_length(value: str, minimum: int) -> bool:
    return len(value) >= minimum


def max_length(value: str, maximum: int) -> bool:
    return len(value) <= maximum


def in_range(value: Any, minimum: float, maximum: float) -> bool:
    """Numeric range check; numeric strings are accepted, anything else is not."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return minimum <= number <= maximum


def is_valid_phone(phone: Any) -> bool:
    """Russian phone numbers: +7/8 prefix optional, separators allowed."""
    return isinstance(phone, str) and bool(PHONE_PATTERN.match(phone))


def is_not_past(value: DateLike, now: Optional[datetime] = None) -> bool:
    current = parse_datetime(now) if now is not None else datetime.now().astimezone()
    return parse_datetime(value) >= current


def is_date_in_range(value: DateLike, start: DateLike, end: DateLike) -> bool:
    moment = parse_datetime(value)
    return parse_datetime(start) <= moment <= parse_datetime(end)


def _check_email(result: ValidationResult, email: Any):
    if not is_required(email):
        result.add_error("Email is required", "email")
    elif not is_valid_email(email):
        result.add_error("Invalid email format", "email")


def validate_login_form(data: Dict[str, Any]) -> ValidationResult:
    result = ValidationResult(is_valid=True)
    _check_email(result, data.get("email"))
    if not is_required(data.get("password")):
        result.add_error("Password is required", "password")
    return result


def validate_user_form(data: Dict[str, Any]) -> ValidationResult:
    """
    Validate the user create/edit form.

    The password is checked only when one was entered; the phone only
    when present.
    """
    result = ValidationResult(is_valid=True)

    name = data.get("name")
    if not is_required(name):
        result.add_error("Name is required", "name")
    elif not min_length(name, MIN_NAME_LENGTH):
        result.add_error(f"Name must be at least {MIN_NAME_LENGTH} characters", "name")

    _check_email(result, data.get("email"))

    password = data.get("password")
    if password:
        problems = validate_password(password)
        if problems:
            result.add_error(problems[0], "password")

    phone = data.get("phone")
    if phone and not is_valid_phone(phone):
        result.add_error("Invalid phone format", "phone")

    return result


def validate_lesson_form(data: Dict[str, Any], now: Optional[datetime] = None) -> ValidationResult:
    result = ValidationResult(is_valid=True)

    if not is_required(data.get("subject")):
        result.add_error("Subject is required", "subject")

    start_time = data.get("start_time")
    if not is_required(start_time):
        result.add_error("Start time is required", "start_time")
    elif not is_not_past(start_time, now):
        result.add_error("Start time cannot be in the past", "start_time")

    end_time = data.get("end_time")
    if not is_required(end_time):
        result.add_error("End time is required", "end_time")
    elif is_required(start_time) and parse_datetime(end_time) <= parse_datetime(start_time):
        result.add_error("End time must be after start time", "end_time")

    max_students = data.get("max_students")
    if not is_required(max_students):
        result.add_error("Maximum number of students is required", "max_students")
    elif not in_range(max_students, 1, MAX_LESSON_STUDENTS):
        result.add_error(
            f"Number of students must be between 1 and {MAX_LESSON_STUDENTS}", "max_students"
        )

    return result


def validate_credits_form(data: Dict[str, Any]) -> ValidationResult:
    result = ValidationResult(is_valid=True)

    amount = data.get("amount")
    if not is_required(amount):
        result.add_error("Credit amount is required", "amount")
    elif not in_range(amount, 1, MAX_CREDITS_PER_OPERATION):
        result.add_error(
            f"Credit amount must be between 1 and {MAX_CREDITS_PER_OPERATION}", "amount"
        )

    return result


class RedirectCheck(NamedTuple):
    """Outcome of validate_payment_redirect_url."""
    is_valid: bool
    error: Optional[str]
    sanitized_url: Optional[str]


def validate_payment_redirect_url(url: Any) -> RedirectCheck:
    """
    Check that a payment confirmation URL points at the payment provider.

    Only https URLs on yookassa.ru, yoomoney.ru, money.yandex.ru or
    their subdomains are accepted.

    Returns:
        RedirectCheck with the normalized URL when valid

    Examples:
        >>> validate_payment_redirect_url("https://yoomoney.ru/checkout/payments/v2").is_valid
        True
        >>> validate_payment_redirect_url("http://yoomoney.ru/").error
        'Only HTTPS is allowed for payment redirects'
    """
    if not isinstance(url, str) or not url.strip():
        return RedirectCheck(False, "URL is missing", None)

    try:
        parsed = urlsplit(url.strip())
        hostname = (parsed.hostname or "").lower()
    except ValueError as e:
        logger.warning(f"Payment redirect rejected: invalid URL format ({e})")
        return RedirectCheck(False, "Invalid URL format", None)

    if not parsed.scheme or not hostname:
        logger.warning("Payment redirect rejected: invalid URL format")
        return RedirectCheck(False, "Invalid URL format", None)

    if parsed.scheme.lower() != "https":
        logger.warning(f"Payment redirect rejected: non-HTTPS scheme {parsed.scheme}")
        return RedirectCheck(False, "Only HTTPS is allowed for payment redirects", None)

    allowed = any(
        hostname == domain or hostname.endswith(f".{domain}")
        for domain in ALLOWED_PAYMENT_DOMAINS
    )
    if not allowed:
        logger.warning(f"Payment redirect rejected: unauthorized domain {hostname}")
        return RedirectCheck(
            False, f"Domain {hostname} is not allowed for payment redirects", None
        )

    logger.info(f"Payment redirect validated: {hostname}")
    return RedirectCheck(True, None, parsed.geturl())
