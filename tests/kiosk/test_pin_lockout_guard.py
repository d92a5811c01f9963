import threading
from dataclasses import replace
from datetime import timedelta

import pytest
from werkzeug.security import check_password_hash

from src.timeclock.timeclock.core.context import Actor
from src.timeclock.timeclock.core.enums import LockScope, ReasonCode, Role
from src.timeclock.timeclock.core.exceptions import BlockedAttempt
from src.timeclock.timeclock.kiosk.lockout import (
    DeviceKey,
    InMemoryDeviceLockStore,
    PinLockedError,
    PinLockoutGuard,
)

FRONT = DeviceKey("c-1", "kiosk-1", "front")
BACK = DeviceKey("c-1", "kiosk-1", "back")


class CountingCheck:
    def __init__(self):
        self.calls = 0

    def __call__(self, pin_hash, pin):
        self.calls += 1
        return check_password_hash(pin_hash, pin)


@pytest.fixture
def store():
    return InMemoryDeviceLockStore(ttl_seconds=15 * 60)


@pytest.fixture
def checker():
    return CountingCheck()


@pytest.fixture
def guard(store, employees_repo, checker, clock):
    return PinLockoutGuard(store, employees_repo, check_hash=checker, clock=clock)


def _auth(guard, employees_repo, pin, key=FRONT):
    return guard.authenticate(employees_repo.list_pin_candidates("c-1"), pin, key)


def _fail(guard, employees_repo, times, key=FRONT):
    for _ in range(times):
        with pytest.raises(BlockedAttempt):
            _auth(guard, employees_repo, "0000", key)


def test_correct_pin_returns_employee_and_clears_locks(guard, employees_repo):
    employee = _auth(guard, employees_repo, "5678")

    assert employee.employee_id == "e-2"
    assert employees_repo.lock_resets == ["e-2"]


def test_wrong_pin_is_invalid_until_the_fifth_miss(guard, employees_repo):
    for _ in range(4):
        with pytest.raises(BlockedAttempt) as exc:
            _auth(guard, employees_repo, "0000")
        assert exc.value.code == ReasonCode.PIN_INVALID
        assert not isinstance(exc.value, PinLockedError)

    with pytest.raises(PinLockedError) as exc:
        _auth(guard, employees_repo, "0000")

    assert exc.value.scope == LockScope.DEVICE
    assert exc.value.details == {"retryAfterSeconds": 120, "scope": "DEVICE"}


def test_locked_device_compares_no_hashes(guard, employees_repo, checker):
    _fail(guard, employees_repo, 5)
    calls = checker.calls

    def roster():
        raise AssertionError("roster must not be read while the device is locked")
        yield

    with pytest.raises(PinLockedError):
        guard.authenticate(roster(), "1234", FRONT)

    assert checker.calls == calls


def test_retry_after_counts_down_and_never_drops_below_one(guard, employees_repo, clock):
    _fail(guard, employees_repo, 5)

    clock.advance(seconds=30)
    with pytest.raises(PinLockedError) as exc:
        _auth(guard, employees_repo, "1234")
    assert exc.value.retry_after_seconds == 90

    clock.advance(seconds=89, milliseconds=500)
    with pytest.raises(PinLockedError) as exc:
        _auth(guard, employees_repo, "1234")
    assert exc.value.retry_after_seconds == 1


def test_device_lock_expires_after_two_minutes(guard, employees_repo, clock):
    _fail(guard, employees_repo, 5)
    clock.advance(seconds=120)

    assert _auth(guard, employees_repo, "1234").employee_id == "e-1"


def test_counter_starts_over_after_lock_expires(guard, employees_repo, clock):
    _fail(guard, employees_repo, 5)
    clock.advance(seconds=121)

    _fail(guard, employees_repo, 4)
    with pytest.raises(PinLockedError):
        _auth(guard, employees_repo, "0000")


def test_success_resets_the_device_counter(guard, employees_repo):
    _fail(guard, employees_repo, 4)
    _auth(guard, employees_repo, "1234")

    for _ in range(4):
        with pytest.raises(BlockedAttempt) as exc:
            _auth(guard, employees_repo, "0000")
        assert exc.value.code == ReasonCode.PIN_INVALID


def test_idle_device_state_is_evicted(guard, employees_repo, clock, store):
    _fail(guard, employees_repo, 4)
    clock.advance(minutes=16)

    with pytest.raises(BlockedAttempt) as exc:
        _auth(guard, employees_repo, "0000")

    assert exc.value.code == ReasonCode.PIN_INVALID
    assert len(store) == 1


def test_device_keys_are_independent(guard, employees_repo):
    _fail(guard, employees_repo, 5, key=FRONT)

    assert _auth(guard, employees_repo, "1234", key=BACK).employee_id == "e-1"
    with pytest.raises(PinLockedError):
        _auth(guard, employees_repo, "1234", key=FRONT)


def test_locked_employee_is_refused_even_with_correct_pin(guard, employees_repo, clock):
    employees_repo.rows["e-1"] = replace(
        employees_repo.rows["e-1"], pin_failed_attempts=5, pin_locked_until=clock.now() + timedelta(seconds=60)
    )

    with pytest.raises(PinLockedError) as exc:
        _auth(guard, employees_repo, "1234")

    assert exc.value.scope == LockScope.EMPLOYEE
    assert exc.value.employee_id == "e-1"
    assert exc.value.retry_after_seconds == 60
    assert employees_repo.lock_resets == []


def test_locked_employee_attempts_count_against_the_device(guard, employees_repo, clock):
    employees_repo.rows["e-1"] = replace(
        employees_repo.rows["e-1"], pin_locked_until=clock.now() + timedelta(hours=1)
    )
    for _ in range(5):
        with pytest.raises(PinLockedError):
            _auth(guard, employees_repo, "1234")

    with pytest.raises(PinLockedError) as exc:
        _auth(guard, employees_repo, "5678")

    assert exc.value.scope == LockScope.DEVICE


def test_expired_employee_lock_is_cleared_on_success(guard, employees_repo, clock):
    employees_repo.rows["e-1"] = replace(
        employees_repo.rows["e-1"], pin_failed_attempts=3, pin_locked_until=clock.now() - timedelta(seconds=1)
    )

    _auth(guard, employees_repo, "1234")

    assert employees_repo.rows["e-1"].pin_failed_attempts == 0
    assert employees_repo.rows["e-1"].pin_locked_until is None


def test_first_match_stops_the_scan_by_default(guard, employees_repo, checker):
    _auth(guard, employees_repo, "1234")

    assert checker.calls == 1


def test_full_scan_checks_every_candidate(store, employees_repo, checker, clock):
    guard = PinLockoutGuard(store, employees_repo, check_hash=checker, clock=clock, full_scan=True)

    employee = _auth(guard, employees_repo, "1234")

    assert employee.employee_id == "e-1"
    assert checker.calls == 2


def test_inactive_and_pinless_candidates_are_skipped(guard, employees_repo, checker):
    employees_repo.rows["e-1"] = replace(employees_repo.rows["e-1"], is_active=False)

    with pytest.raises(BlockedAttempt):
        guard.authenticate(list(employees_repo.rows.values()), "1234", FRONT)

    assert checker.calls == 1


def test_unreadable_hash_counts_as_no_match(store, employees_repo, clock):
    def broken(pin_hash, pin):
        raise ValueError("unknown hash method")

    guard = PinLockoutGuard(store, employees_repo, check_hash=broken, clock=clock)

    with pytest.raises(BlockedAttempt) as exc:
        _auth(guard, employees_repo, "1234")

    assert exc.value.code == ReasonCode.PIN_INVALID


def test_concurrent_failures_on_one_device_are_serialized(store, fixed_now):
    locks = []

    def hammer():
        for _ in range(100):
            if store.register_failure(FRONT, fixed_now, max_attempts=5, lock_seconds=120):
                locks.append(True)

    threads = [threading.Thread(target=hammer) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # 1000 misses, every fifth engages the lock
    assert len(locks) == 200
    assert store.locked_until(FRONT, fixed_now) is not None


def test_device_key_defaults_blank_label_to_unknown():
    actor = Actor(company_id="c-1", user_id="kiosk-1", role=Role.KIOSK)

    assert DeviceKey.for_actor(actor, "  ") == ("c-1", "kiosk-1", "UNKNOWN")
    assert DeviceKey.for_actor(actor, None).device_label == "UNKNOWN"
    assert DeviceKey.for_actor(actor, " front ").device_label == "front"
