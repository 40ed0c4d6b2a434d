"""Recurring Slack reminders, one background job per channel."""

import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..utils.logging_config import get_logger


logger = get_logger('stowkiosk.scheduler')


@dataclass
class _ReminderJob:
    channel: str
    interval: float
    align: bool
    thread: Optional[threading.Thread] = None
    stop_event: threading.Event = field(default_factory=threading.Event)
    sent: int = 0
    failures: int = 0


class ReminderScheduler:
    """Runs ``bridge.send_reminder(channel)`` on a fixed interval.

    Each channel is either stopped or running; starting a channel that is
    already running replaces its job. A failed send is logged and the job
    carries on to the next tick.
    """

    DEFAULT_INTERVAL = 3600.0

    def __init__(self, bridge, interval: float = DEFAULT_INTERVAL, align: bool = True):
        """Initialize scheduler.

        Args:
            bridge: Object with a ``send_reminder(channel)`` method
            interval: Seconds between reminders
            align: Fire on multiples of the interval (top of the hour for
                the hourly default) instead of ``interval`` after start
        """
        self.bridge = bridge
        self.interval = interval
        self.align = align
        self._jobs: Dict[str, _ReminderJob] = {}
        self._lock = threading.Lock()

    def start(self, channel: str, interval: Optional[float] = None) -> bool:
        """Start (or restart) reminders for a channel."""
        self.stop(channel)

        job = _ReminderJob(
            channel=channel,
            interval=interval or self.interval,
            align=self.align,
        )
        job.thread = threading.Thread(
            target=self._run, args=(job,),
            name=f'reminders-{channel}', daemon=True
        )
        with self._lock:
            self._jobs[channel] = job
        job.thread.start()

        logger.info('Started reminders for channel %s every %ss', channel, job.interval)
        return True

    def stop(self, channel: str) -> bool:
        """Stop reminders for a channel.

        Returns:
            True if a job was running
        """
        with self._lock:
            job = self._jobs.pop(channel, None)
        if job is None:
            return False

        job.stop_event.set()
        if job.thread is not None and job.thread is not threading.current_thread():
            job.thread.join(timeout=5)
        logger.info('Stopped reminders for channel %s', channel)
        return True

    def stop_all(self) -> None:
        for channel in self.active_channels():
            self.stop(channel)

    def active_channels(self) -> List[str]:
        with self._lock:
            return list(self._jobs)

    def is_running(self, channel: str) -> bool:
        with self._lock:
            return channel in self._jobs

    def _delay_until_next_tick(self, job: _ReminderJob) -> float:
        if not job.align:
            return job.interval
        return job.interval - (time.time() % job.interval)

    def _run(self, job: _ReminderJob) -> None:
        """Job loop: wait for the next tick, send, repeat until stopped."""
        while not job.stop_event.wait(timeout=self._delay_until_next_tick(job)):
            try:
                self.bridge.send_reminder(job.channel)
                job.sent += 1
                logger.info('Sent reminder to channel %s', job.channel)
            except Exception:
                job.failures += 1
                logger.exception('Error sending reminder to %s', job.channel)
