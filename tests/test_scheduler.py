"""Tests for the reminder scheduler."""

import threading
import time

import pytest

from stowkiosk.slack import ReminderScheduler


class RecordingBridge:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []
        self._lock = threading.Lock()

    def send_reminder(self, channel):
        with self._lock:
            self.calls.append(channel)
        if self.fail:
            raise RuntimeError('Slack unreachable')

    def count(self, channel=None):
        with self._lock:
            return len([c for c in self.calls if channel is None or c == channel])


def wait_for(predicate, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestReminderScheduler:
    """Test per-channel reminder jobs."""

    @pytest.fixture
    def bridge(self):
        return RecordingBridge()

    @pytest.fixture
    def scheduler(self, bridge):
        scheduler = ReminderScheduler(bridge, interval=0.05, align=False)
        yield scheduler
        scheduler.stop_all()

    def test_start_sends_on_each_tick(self, scheduler, bridge):
        scheduler.start('C12345678')

        assert wait_for(lambda: bridge.count('C12345678') >= 2)
        assert scheduler.is_running('C12345678')

    def test_stop(self, scheduler, bridge):
        scheduler.start('C12345678')
        assert wait_for(lambda: bridge.count() >= 1)

        assert scheduler.stop('C12345678') is True
        sent = bridge.count()
        time.sleep(0.2)

        assert bridge.count() == sent
        assert scheduler.active_channels() == []

    def test_stop_unknown_channel(self, scheduler):
        assert scheduler.stop('C00000000') is False

    def test_restart_replaces_job(self, scheduler):
        scheduler.start('C12345678')
        first = scheduler._jobs['C12345678']

        scheduler.start('C12345678', interval=0.1)

        assert scheduler.active_channels() == ['C12345678']
        assert first.stop_event.is_set()
        assert scheduler._jobs['C12345678'].interval == 0.1

    def test_failures_do_not_stop_job(self):
        bridge = RecordingBridge(fail=True)
        scheduler = ReminderScheduler(bridge, interval=0.05, align=False)
        try:
            scheduler.start('C12345678')

            assert wait_for(lambda: bridge.count() >= 3)
            assert scheduler._jobs['C12345678'].failures >= 2
        finally:
            scheduler.stop_all()

    def test_independent_channels(self, scheduler, bridge):
        scheduler.start('C11111111')
        scheduler.start('C22222222')
        scheduler.stop('C11111111')

        assert scheduler.active_channels() == ['C22222222']
        assert wait_for(lambda: bridge.count('C22222222') >= 1)

    def test_aligned_delay(self, bridge):
        scheduler = ReminderScheduler(bridge, interval=3600)
        job = type('Job', (), {'interval': 3600, 'align': True})()

        delay = scheduler._delay_until_next_tick(job)

        assert 0 < delay <= 3600
