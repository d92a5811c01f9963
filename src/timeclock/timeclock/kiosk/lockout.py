"""PIN brute-force throttling for shared kiosk devices.

Two independent scopes:

* DEVICE: transient counter per (tenant, kiosk session user, device label),
  kept in a ``DeviceLockStore``. Five misses lock the device for two minutes.
* EMPLOYEE: ``pin_locked_until`` stored on the employee record. A correct PIN
  for a locked employee is still refused.

While a device is locked no PIN hash is compared at all.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, NamedTuple, Optional, Protocol

from werkzeug.security import check_password_hash

from ..common.datetime_utils import Clock, SystemClock, seconds_until
from ..core import constants as C
from ..core.context import Actor
from ..core.enums import LockScope, ReasonCode
from ..core.exceptions import BlockedAttempt
from ..core.messages import BLOCK_MESSAGES, pin_locked_message
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository

logger = logging.getLogger(__name__)


class DeviceKey(NamedTuple):
    company_id: str
    session_user_id: str
    device_label: str

    @classmethod
    def for_actor(cls, actor: Actor, device_label: Optional[str]) -> "DeviceKey":
        label = (device_label or "").strip() or C.UNKNOWN_DEVICE_LABEL
        return cls(actor.company_id, actor.user_id, label)


@dataclass
class DeviceLockState:
    failed_attempts: int = 0
    locked_until: Optional[datetime] = None
    last_attempt_at: Optional[datetime] = None


class DeviceLockStore(Protocol):
    """Shared mutable device throttle state. Implementations must be thread-safe."""

    def locked_until(self, key: DeviceKey, now: datetime) -> Optional[datetime]:
        """Lock expiry when the device is locked at ``now``, else None."""

        raise NotImplementedError

    def register_failure(self, key: DeviceKey, now: datetime, *, max_attempts: int, lock_seconds: int) -> Optional[datetime]:
        """Count one miss. Returns the new lock expiry when this miss engaged the lock."""

        raise NotImplementedError

    def reset(self, key: DeviceKey) -> None:
        raise NotImplementedError


class InMemoryDeviceLockStore:
    """Process-local store. Entries idle longer than ``ttl_seconds`` are dropped on access."""

    def __init__(self, *, ttl_seconds: int = C.DEVICE_STATE_TTL_SECONDS):
        self._ttl = timedelta(seconds=ttl_seconds)
        self._states: dict[DeviceKey, DeviceLockState] = {}
        self._lock = threading.Lock()

    def _state(self, key: DeviceKey, now: datetime) -> DeviceLockState:
        # Caller holds self._lock.
        state = self._states.get(key)
        if state is not None and state.last_attempt_at and now - state.last_attempt_at > self._ttl:
            del self._states[key]
            state = None
        if state is None:
            state = DeviceLockState(last_attempt_at=now)
            self._states[key] = state
        return state

    def locked_until(self, key: DeviceKey, now: datetime) -> Optional[datetime]:
        with self._lock:
            state = self._state(key, now)
            if state.locked_until and state.locked_until > now:
                return state.locked_until
            return None

    def register_failure(self, key: DeviceKey, now: datetime, *, max_attempts: int, lock_seconds: int) -> Optional[datetime]:
        with self._lock:
            state = self._state(key, now)
            state.failed_attempts += 1
            state.last_attempt_at = now
            if state.failed_attempts >= max_attempts:
                state.failed_attempts = 0
                state.locked_until = now + timedelta(seconds=lock_seconds)
                return state.locked_until
            return None

    def reset(self, key: DeviceKey) -> None:
        with self._lock:
            self._states.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)


class PinLockedError(BlockedAttempt):
    def __init__(self, scope: LockScope, retry_after_seconds: int, *, employee_id: Optional[str] = None):
        super().__init__(
            ReasonCode.PIN_LOCKED,
            pin_locked_message(retry_after_seconds),
            {"retryAfterSeconds": retry_after_seconds, "scope": scope.value},
        )
        self.scope = scope
        self.retry_after_seconds = retry_after_seconds
        self.employee_id = employee_id


class PinLockoutGuard:
    """Match a kiosk PIN against the tenant roster under both lock scopes.

    ``full_scan`` compares the PIN against every candidate even after a match,
    so response time does not depend on the matching employee's position.
    """

    def __init__(
        self,
        store: DeviceLockStore,
        employees: EmployeeRepository,
        *,
        max_attempts: int = C.DEVICE_MAX_ATTEMPTS,
        lock_seconds: int = C.DEVICE_LOCK_SECONDS,
        full_scan: bool = False,
        check_hash: Callable[[str, str], bool] = check_password_hash,
        clock: Clock | None = None,
    ):
        self._store = store
        self._employees = employees
        self._max_attempts = int(max_attempts)
        self._lock_seconds = int(lock_seconds)
        self._full_scan = bool(full_scan)
        self._check_hash = check_hash
        self._clock = clock or SystemClock()

    def authenticate(
        self,
        candidates: Iterable[Employee],
        pin: str,
        device_key: DeviceKey,
        now: Optional[datetime] = None,
    ) -> Employee:
        now = now or self._clock.now()

        locked_until = self._store.locked_until(device_key, now)
        if locked_until is not None:
            raise PinLockedError(LockScope.DEVICE, seconds_until(locked_until, now))

        matched = self._match(candidates, pin)

        if matched is None:
            locked_until = self._store.register_failure(
                device_key, now, max_attempts=self._max_attempts, lock_seconds=self._lock_seconds
            )
            if locked_until is not None:
                logger.warning(
                    "kiosk device locked company=%s device=%s for %ss",
                    device_key.company_id,
                    device_key.device_label,
                    self._lock_seconds,
                )
                raise PinLockedError(LockScope.DEVICE, seconds_until(locked_until, now))
            raise BlockedAttempt(ReasonCode.PIN_INVALID, BLOCK_MESSAGES[ReasonCode.PIN_INVALID])

        if matched.is_pin_locked(now):
            self._store.register_failure(
                device_key, now, max_attempts=self._max_attempts, lock_seconds=self._lock_seconds
            )
            raise PinLockedError(
                LockScope.EMPLOYEE,
                seconds_until(matched.pin_locked_until, now),
                employee_id=matched.employee_id,
            )

        self._employees.reset_pin_lock(matched.employee_id)
        self._store.reset(device_key)
        return matched

    def _match(self, candidates: Iterable[Employee], pin: str) -> Optional[Employee]:
        matched: Optional[Employee] = None
        for employee in candidates:
            if not employee.is_active or not employee.pin_hash:
                continue
            if self._verify(employee, pin) and matched is None:
                matched = employee
                if not self._full_scan:
                    break
        return matched

    def _verify(self, employee: Employee, pin: str) -> bool:
        try:
            return bool(self._check_hash(employee.pin_hash, pin))
        except ValueError:
            logger.warning("unreadable PIN hash for employee=%s", employee.employee_id)
            return False
