#!/usr/bin/env python3
"""
Recitation Display - Control Lock Test Suite
Single holder, connection-order promotion, and per-session status.

Usage: python3 test_control_lock.py  (or pytest)
"""

import sys

from recitation_display.rd_lock import ControlLock
from recitation_display.rd_models import Role
from recitation_display.rd_registry import SessionRegistry
from rd_test_helpers import FakeClock, run_module_tests


def make_lock():
    clock = FakeClock()
    registry = SessionRegistry(clock)
    changes = []
    lock = ControlLock(registry, clock, on_change=lambda: changes.append(lock.holder_id))
    return lock, registry, clock, changes


def add(registry, role):
    session = registry.register(handle=f"sid-{len(registry) + 1}")
    registry.set_role(session.session_id, role)
    return session


def test_first_controller_claims():
    lock, registry, _, changes = make_lock()
    c1 = add(registry, Role.CONTROLLER)
    c2 = add(registry, Role.CONTROLLER)
    assert lock.claim(c1) is True
    assert lock.claim(c2) is False
    assert lock.holder_id == c1.session_id
    assert changes == [c1.session_id]


def test_viewer_cannot_claim():
    lock, registry, _, changes = make_lock()
    viewer = add(registry, Role.VIEWER)
    assert lock.claim(viewer) is False
    assert not lock.is_held
    assert changes == []


def test_claim_stamps_last_seen():
    lock, registry, clock, _ = make_lock()
    c1 = add(registry, Role.CONTROLLER)
    clock.advance(12)
    lock.claim(c1)
    assert c1.last_seen == clock.now


def test_release_promotes_in_connection_order():
    lock, registry, clock, changes = make_lock()
    c1 = add(registry, Role.CONTROLLER)
    add(registry, Role.VIEWER)
    c2 = add(registry, Role.CONTROLLER)
    c3 = add(registry, Role.CONTROLLER)
    lock.claim(c1)

    registry.unregister(c1.session_id)
    clock.advance(5)
    assert lock.release("socket disconnected") == c2.session_id
    assert c2.last_seen == clock.now

    registry.unregister(c2.session_id)
    assert lock.release("socket disconnected") == c3.session_id
    assert changes == [c1.session_id, c2.session_id, c3.session_id]


def test_release_with_no_controllers_leaves_lock_free():
    lock, registry, _, changes = make_lock()
    c1 = add(registry, Role.CONTROLLER)
    add(registry, Role.VIEWER)
    lock.claim(c1)
    registry.unregister(c1.session_id)
    assert lock.release("socket disconnected") is None
    assert not lock.is_held
    assert changes == [c1.session_id, None]


def test_release_skips_excluded_session():
    lock, registry, _, _ = make_lock()
    c1 = add(registry, Role.CONTROLLER)
    lock.claim(c1)
    # Only the excluded session is left, so nobody gets promoted
    assert lock.release("heartbeat timeout", exclude_session_id=c1.session_id) is None
    c2 = add(registry, Role.CONTROLLER)
    lock.claim(c1)
    assert lock.release("heartbeat timeout", exclude_session_id=c1.session_id) == c2.session_id


def test_release_when_free_is_noop():
    lock, _, _, changes = make_lock()
    assert lock.release("nothing to do") is None
    assert changes == []


def test_refresh_only_for_holder():
    lock, registry, clock, _ = make_lock()
    c1 = add(registry, Role.CONTROLLER)
    c2 = add(registry, Role.CONTROLLER)
    lock.claim(c1)
    before = c2.last_seen
    clock.advance(20)
    assert lock.refresh(c1) is True
    assert c1.last_seen == clock.now
    assert lock.refresh(c2) is False
    assert c2.last_seen == before


def test_status_for_each_role():
    lock, registry, _, _ = make_lock()
    c1 = add(registry, Role.CONTROLLER)
    c2 = add(registry, Role.CONTROLLER)
    viewer = add(registry, Role.VIEWER)

    status = lock.status_for(c1)
    assert (status.is_active_controller, status.locked_by_another) == (False, False)

    lock.claim(c1)
    status = lock.status_for(c1)
    assert (status.is_active_controller, status.locked_by_another) == (True, False)
    status = lock.status_for(c2)
    assert (status.is_active_controller, status.locked_by_another) == (False, True)
    status = lock.status_for(viewer)
    assert (status.is_active_controller, status.locked_by_another) == (False, False)
    assert lock.status_for(None).is_active_controller is False


def test_holder_is_always_registered_controller():
    lock, registry, _, _ = make_lock()
    sessions = [add(registry, Role.CONTROLLER if i % 2 else Role.VIEWER) for i in range(6)]
    lock.claim(sessions[1])
    for session in list(sessions):
        registry.unregister(session.session_id)
        if lock.holder_id == session.session_id:
            lock.release("socket disconnected")
        holder = lock.holder()
        if lock.is_held:
            assert holder is not None
            assert holder.role is Role.CONTROLLER
    assert not lock.is_held


if __name__ == "__main__":
    sys.exit(run_module_tests(dict(globals()), "CONTROL LOCK TEST RESULTS"))
