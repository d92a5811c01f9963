from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    """Employee roster of a tenant.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, company_id: str, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_user_id(self, company_id: str, user_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_pin_candidates(self, company_id: str) -> Sequence[Employee]:
        """Active employees that have a PIN hash."""

        raise NotImplementedError

    def reset_pin_lock(self, employee_id: str) -> None:
        raise NotImplementedError

    def set_pin_hash(self, employee_id: str, *, pin_hash: str, updated_at: datetime) -> None:
        """Store a new hash and clear the PIN lock state."""

        raise NotImplementedError
