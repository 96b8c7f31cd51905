"""Unit tests for SessionTimer (habitca/timer.py)"""
import pytest
from datetime import timedelta

from habitca.timer import SessionTimer, format_time
from tests.helpers import NOW


@pytest.mark.parametrize("seconds,expected", [
    (0, "00:00:00"),
    (59, "00:00:59"),
    (3661, "01:01:01"),
    (-5, "00:00:00"),
    (100 * 3600, "100:00:00"),
])
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_idle_timer():
    timer = SessionTimer()

    assert not timer.is_running
    assert timer.habit_id is None
    assert timer.elapsed_seconds(NOW) == 0
    assert timer.to_snapshot() is None


def test_elapsed_while_running():
    timer = SessionTimer()
    timer.start(habit_id=1, session_id=7, now=NOW)

    assert timer.is_running
    assert timer.session_id == 7
    assert timer.elapsed_seconds(NOW + timedelta(seconds=90.9)) == 90


def test_pause_freezes_elapsed():
    timer = SessionTimer()
    timer.start(1, 7, NOW)
    timer.pause(NOW + timedelta(minutes=5))

    assert timer.is_paused
    assert timer.elapsed_seconds(NOW + timedelta(hours=2)) == 300


def test_resume_excludes_paused_time():
    timer = SessionTimer()
    timer.start(1, 7, NOW)
    timer.pause(NOW + timedelta(minutes=5))
    timer.resume(NOW + timedelta(minutes=15))

    assert not timer.is_paused
    assert timer.stop(NOW + timedelta(minutes=20)) == 600
    assert not timer.is_running


def test_pause_and_resume_are_noops_when_invalid():
    timer = SessionTimer()
    timer.resume(NOW)
    timer.pause(NOW)
    assert not timer.is_running

    timer.start(1, 7, NOW)
    timer.resume(NOW + timedelta(minutes=1))
    timer.pause(NOW + timedelta(minutes=2))
    timer.pause(NOW + timedelta(minutes=9))

    assert timer.elapsed_seconds(NOW + timedelta(minutes=30)) == 120


def test_clock_going_backwards_never_negative():
    timer = SessionTimer()
    timer.start(1, 7, NOW)

    assert timer.elapsed_seconds(NOW - timedelta(minutes=1)) == 0


def test_restart_replaces_running_timer():
    timer = SessionTimer()
    timer.start(1, 7, NOW)
    timer.start(2, 8, NOW + timedelta(minutes=10))

    assert timer.habit_id == 2
    assert timer.elapsed_seconds(NOW + timedelta(minutes=11)) == 60


def test_snapshot_survives_suspension():
    timer = SessionTimer()
    timer.start(3, 9, NOW)
    timer.pause(NOW + timedelta(minutes=1))
    timer.resume(NOW + timedelta(minutes=2))
    snapshot = timer.to_snapshot()

    restored = SessionTimer.from_snapshot(snapshot)

    assert restored.session_id == 9
    assert restored.elapsed_seconds(NOW + timedelta(minutes=10)) == 540
    # Restored timer is independent of the snapshot it came from
    restored.pause(NOW + timedelta(minutes=10))
    assert snapshot.paused_at is None
