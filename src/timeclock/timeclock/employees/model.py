from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee profile of one tenant.

    ``pin_failed_attempts`` / ``pin_locked_until`` are the persistent,
    per-identity PIN throttle. ``is_active`` covers both the profile and its
    login account.
    """

    employee_id: str
    company_id: str
    user_id: str
    full_name: str
    email: str
    is_active: bool = True
    pin_hash: Optional[str] = None
    pin_failed_attempts: int = 0
    pin_locked_until: Optional[datetime] = None

    def is_pin_locked(self, now: datetime) -> bool:
        return self.pin_locked_until is not None and self.pin_locked_until > now
