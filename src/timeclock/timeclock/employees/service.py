from __future__ import annotations

import logging
import secrets

from werkzeug.security import generate_password_hash

from ..audit.model import AuditEntry
from ..audit.trail import AuditTrail
from ..common.datetime_utils import Clock, SystemClock
from ..common.validators import require_pin
from ..core import constants as C
from ..core.context import Actor, RequestMetadata
from ..core.enums import AuditAction, Role
from ..core.exceptions import AuthorizationError, NotFoundError
from ..qr.codec import build_employee_qr_token
from ..settings.service import SettingsService
from .model import Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


def generate_numeric_pin() -> str:
    return str(secrets.randbelow(10**C.PIN_LENGTH)).zfill(C.PIN_LENGTH)


class EmployeeCredentialService:
    """Admin use cases for kiosk credentials: PIN and personal QR badge.

    Setting or resetting a PIN also clears the employee PIN lock.
    """

    def __init__(
        self,
        employees: EmployeeRepository,
        settings: SettingsService,
        audit: AuditTrail,
        *,
        hash_method: str = C.DEFAULT_PIN_HASH_METHOD,
        clock: Clock | None = None,
    ):
        self._employees = employees
        self._settings = settings
        self._audit = audit
        self._hash_method = hash_method
        self._clock = clock or SystemClock()

    def _employee_for_admin(self, actor: Actor, employee_id: str) -> Employee:
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only administrators can manage employee credentials")
        employee = self._employees.get_by_id(actor.company_id, employee_id)
        if employee is None:
            raise NotFoundError("Employee not found")
        return employee

    def _store_pin(self, employee: Employee, pin: str) -> None:
        self._employees.set_pin_hash(
            employee.employee_id,
            pin_hash=generate_password_hash(pin, method=self._hash_method),
            updated_at=self._clock.now(),
        )

    def set_pin(self, actor: Actor, employee_id: str, pin: str, *, metadata: RequestMetadata | None = None) -> None:
        pin = require_pin(pin)
        employee = self._employee_for_admin(actor, employee_id)
        self._store_pin(employee, pin)
        self._audit.record(
            AuditEntry.for_actor(
                actor, AuditAction.ADMIN_SET_PIN, "Employee", entity_id=employee.employee_id, metadata=metadata
            )
        )
        logger.info("PIN set company=%s employee=%s", actor.company_id, employee.employee_id)

    def reset_pin(self, actor: Actor, employee_id: str, *, metadata: RequestMetadata | None = None) -> str:
        """Replace the PIN with a random one and return it once."""
        employee = self._employee_for_admin(actor, employee_id)
        pin = generate_numeric_pin()
        self._store_pin(employee, pin)
        self._audit.record(
            AuditEntry.for_actor(
                actor, AuditAction.ADMIN_RESET_PIN, "Employee", entity_id=employee.employee_id, metadata=metadata
            )
        )
        logger.info("PIN reset company=%s employee=%s", actor.company_id, employee.employee_id)
        return pin

    def regenerate_employee_qr(self, actor: Actor, employee_id: str, *, metadata: RequestMetadata | None = None) -> str:
        employee = self._employee_for_admin(actor, employee_id)
        settings = self._settings.get_settings(actor.company_id)
        token = build_employee_qr_token(actor.company_id, employee.employee_id, settings.qr_secret)
        self._audit.record(
            AuditEntry.for_actor(
                actor,
                AuditAction.EMPLOYEE_QR_REGENERATED,
                "Employee",
                entity_id=employee.employee_id,
                metadata=metadata,
            )
        )
        return token
