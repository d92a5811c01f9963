from __future__ import annotations

import math
import re
from typing import Any, Optional

from ..core.constants import DEVICE_LABEL_MAX_LENGTH, PIN_LENGTH
from ..core.exceptions import ValidationError

_PIN_PATTERN = re.compile(rf"^\d{{{PIN_LENGTH}}}$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_pin(value: str) -> str:
    if not isinstance(value, str) or not _PIN_PATTERN.match(value):
        raise ValidationError(f"PIN must contain exactly {PIN_LENGTH} digits")
    return value


def require_number(value: Any, field_name: str, *, minimum: Optional[float] = None, maximum: Optional[float] = None) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a finite number")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field_name} must be >= {minimum}")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field_name} must be <= {maximum}")
    return number


def clean_device_label(value: Optional[str]) -> Optional[str]:
    """Trimmed label, or None when blank."""
    if value is None:
        return None
    label = str(value).strip()
    if len(label) > DEVICE_LABEL_MAX_LENGTH:
        raise ValidationError(f"deviceLabel must be at most {DEVICE_LABEL_MAX_LENGTH} characters")
    return label or None
