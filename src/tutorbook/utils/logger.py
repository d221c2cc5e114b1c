"""
Logging utilities with security features.

This module provides logging setup with:
- Console output and optional rotating log files
- Masking of passwords, CSRF tokens and session cookies
- Helpers for logging emails and user ids without exposing them
"""

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


def mask_email(email: str) -> str:
    """
    Mask email address for safe logging.

    Examples:
        >>> mask_email("student@example.com")
        's***@example.com'
        >>> mask_email("invalid")
        '***'
    """
    if not email or "@" not in email:
        return "***"

    local, domain = email.split("@", 1)
    masked_local = local[0] + "***" if len(local) > 0 else "***"
    return f"{masked_local}@{domain}"


def mask_user_id(user_id: Optional[str]) -> str:
    """
    Mask a user id, keeping the last four characters.

    Examples:
        >>> mask_user_id("550e8400-e29b-41d4-a716-446655440002")
        '****0002'
        >>> mask_user_id(None)
        '****'
    """
    if not user_id:
        return "****"
    return "****" + str(user_id)[-4:]


def mask_token(token: Optional[str]) -> str:
    """Show only the first characters of a token."""
    if not token:
        return "<none>"
    return token[:6] + "..."


class SensitiveDataFilter(logging.Filter):
    """
    Logging filter that masks secrets before output.

    Covers ``password=...``, ``X-CSRF-Token: ...`` and
    ``session=...`` patterns in the formatted message.
    """

    _PATTERNS = [
        (re.compile(r'password["\']?\s*[:=]\s*["\']?([^"\'\s,}]+)', re.IGNORECASE),
         'password: ********'),
        (re.compile(r'(csrf[_-]?token)["\']?\s*[:=]\s*["\']?([^"\'\s,}]+)', re.IGNORECASE),
         r'\1: ********'),
        (re.compile(r'(session)=([^;\s"\']+)', re.IGNORECASE),
         r'\1=********'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Mask sensitive data in the record.

        Returns:
            Always True (records pass through after masking)
        """
        message = record.getMessage()
        masked = message
        for pattern, replacement in self._PATTERNS:
            masked = pattern.sub(replacement, masked)

        if masked != message:
            record.msg = masked
            record.args = None

        return True


def setup_logger(
    name: str = "tutorbook",
    level: int = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up and configure a logger instance.

    Args:
        name: Logger name (default: "tutorbook")
        level: Logging level (default: logging.INFO)
        log_file: Optional path to a rotating log file

    Returns:
        Configured logger instance

    Examples:
        >>> logger = setup_logger()
        >>> logger.info("Client started")

        >>> logger = setup_logger(
        ...     name="tutorbook",
        ...     level=logging.DEBUG,
        ...     log_file="output/logs/tutorbook.log"
        ... )
    """
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        logger.setLevel(level)
        return logger

    logger.setLevel(level)

    formatter = logging.Formatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s:%(funcName)s:%(lineno)d %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    sensitive_filter = SensitiveDataFilter()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.addFilter(sensitive_filter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(sensitive_filter)
        logger.addHandler(file_handler)

    return logger
