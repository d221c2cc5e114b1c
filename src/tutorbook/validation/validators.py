"""
Validation framework with Strategy pattern.

This module provides:
- Abstract Validator interface
- ValidationResult for consistent validation reporting
- Shared field checks used by the lesson, template and broadcast validators
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$')
HEX_COLOR_PATTERN = re.compile(r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')


@dataclass
class ValidationResult:
    """
    Result of data validation.

    Attributes:
        is_valid: Whether validation passed
        errors: List of error messages
        warnings: List of warning messages (non-fatal)
        field_errors: First error per form field, for form rendering
    """

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    field_errors: Dict[str, str] = field(default_factory=dict)

    def add_error(self, message: str, field_name: Optional[str] = None) -> 'ValidationResult':
        """
        Add an error message.

        When ``field_name`` is given the message is also recorded in
        ``field_errors``; only the first error per field is kept there.

        Returns:
            Self for method chaining

        Examples:
            >>> result = ValidationResult(is_valid=True)
            >>> _ = result.add_error("Email is required", "email").add_error("Error 2")
            >>> result.field_errors
            {'email': 'Email is required'}
        """
        self.errors.append(message)
        if field_name is not None:
            self.field_errors.setdefault(field_name, message)
        self.is_valid = False
        return self

    def add_warning(self, message: str) -> 'ValidationResult':
        """Add a warning message. Warnings never affect validity."""
        self.warnings.append(message)
        return self

    @property
    def has_errors(self) -> bool:
        """Check if there are errors."""
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        """Check if there are warnings."""
        return len(self.warnings) > 0

    def get_summary(self) -> str:
        """
        Get validation summary.

        Returns:
            Human-readable summary of validation results
        """
        if self.is_valid and not self.has_warnings:
            return "Validation passed"

        parts = []

        if self.has_errors:
            parts.append(f"Errors ({len(self.errors)}):")
            for error in self.errors:
                parts.append(f"  - {error}")

        if self.has_warnings:
            parts.append(f"Warnings ({len(self.warnings)}):")
            for warning in self.warnings:
                parts.append(f"  - {warning}")

        return "\n".join(parts)


class Validator(ABC):
    """
    Abstract base class for validators.

    Subclasses implement validate(); the helpers return an error
    message or None so checks read as a flat sequence.
    """

    @abstractmethod
    def validate(self, data: Any) -> ValidationResult:
        """
        Validate data.

        Args:
            data: Data to validate

        Returns:
            ValidationResult with errors and warnings
        """
        pass

    def validate_required_fields(
        self,
        data: dict,
        required_fields: List[str]
    ) -> List[str]:
        """
        Validate that required fields exist.

        Returns:
            List of error messages for missing fields
        """
        errors = []
        for name in required_fields:
            value = data.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"Missing required field: {name}")
        return errors

    def validate_integer_range(
        self,
        value: Any,
        field_name: str,
        min_value: Optional[int] = None,
        max_value: Optional[int] = None
    ) -> Optional[str]:
        """
        Validate that value is an integer within [min_value, max_value].

        Booleans are rejected even though they are ints in Python.
        """
        if isinstance(value, bool) or not isinstance(value, int):
            return f"{field_name} must be an integer, got {type(value).__name__}"

        if min_value is not None and value < min_value:
            return f"{field_name} must be at least {min_value}, got {value}"

        if max_value is not None and value > max_value:
            return f"{field_name} must be at most {max_value}, got {value}"

        return None

    def validate_time_format(
        self,
        time_str: Any,
        field_name: str = "time"
    ) -> Optional[str]:
        """Validate a wall-clock time (HH:MM or HH:MM:SS)."""
        if not isinstance(time_str, str) or not TIME_PATTERN.match(time_str):
            return f"Invalid {field_name} format: {time_str} (expected HH:MM or HH:MM:SS)"
        return None

    def validate_hex_color(
        self,
        color: Any,
        field_name: str = "color"
    ) -> Optional[str]:
        """Validate a ``#RGB`` / ``#RRGGBB`` color."""
        if not isinstance(color, str) or not HEX_COLOR_PATTERN.match(color):
            return f"Invalid {field_name}: {color} (expected #RRGGBB)"
        return None

    def validate_string_length(
        self,
        value: Any,
        field_name: str,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None
    ) -> Optional[str]:
        """
        Validate string length.

        Returns:
            Error message if invalid, None if valid
        """
        if not isinstance(value, str):
            return f"{field_name} must be a string, got {type(value).__name__}"

        length = len(value)

        if min_length is not None and length < min_length:
            return f"{field_name} must be at least {min_length} characters, got {length}"

        if max_length is not None and length > max_length:
            return f"{field_name} must be at most {max_length} characters, got {length}"

        return None
