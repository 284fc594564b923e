"""
Fixed-rate repeating timer used to drive the broadcaster.
"""

import time
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Callable, Any

from .logging_config import ServiceLogger, log_exception


logger = ServiceLogger.get_logger(__name__)


@dataclass
class TickInfo:
    """Information about one scheduled tick."""
    tick_id: int
    timestamp_utc: datetime
    lag_s: float  # How late the tick started relative to its schedule


class BroadcastLoop:
    """
    Runs a callback at a fixed rate on a background thread.

    Tick n is due at ``start + n * interval``, so a slow tick does not push
    later ticks back. A tick that raises is logged and the loop carries on.
    """

    def __init__(self, interval_s: float, callback: Callable[[TickInfo], Any], name: str = "broadcast-loop"):
        """
        Initialize the loop.

        Args:
            interval_s: Seconds between tick start times
            callback: Function called once per tick with TickInfo
            name: Thread name
        """
        if interval_s <= 0:
            raise ValueError("Loop interval must be positive")

        self.interval_s = interval_s
        self.callback = callback
        self.name = name
        self.shutdown_event = threading.Event()
        self.ticks_run = 0
        self.tick_errors = 0
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start ticking on a daemon thread. The first tick runs immediately."""
        if self.is_running():
            logger.debug(f"{self.name} already running")
            return

        self.shutdown_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"{self.name} started with interval {self.interval_s * 1000:.0f}ms")

    def stop(self, join_timeout_s: float = 1.0) -> None:
        """
        Cancel the schedule.

        The pending sleep is interrupted immediately; a tick already in
        progress is given at most ``join_timeout_s`` to finish.
        """
        self.shutdown_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=join_timeout_s)
            if thread.is_alive():
                logger.warning(f"{self.name} did not stop within {join_timeout_s:.1f}s")
        self._thread = None
        logger.info(f"{self.name} stopped after {self.ticks_run} ticks")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self.shutdown_event.is_set()

    def _run(self) -> None:
        start_time = time.monotonic()
        tick_id = 0

        while not self.shutdown_event.is_set():
            target_time = start_time + tick_id * self.interval_s
            now = time.monotonic()

            if now < target_time:
                if not sleep_with_interrupt(target_time - now, self.shutdown_event):
                    break
                now = time.monotonic()

            tick_info = TickInfo(
                tick_id=tick_id,
                timestamp_utc=datetime.now(timezone.utc),
                lag_s=max(0.0, now - target_time)
            )

            try:
                self.callback(tick_info)
            except Exception as e:
                self.tick_errors += 1
                log_exception(logger, e, f"Error in tick {tick_id}")

            self.ticks_run += 1
            tick_id += 1

            # Skip ticks that are already overdue rather than bursting to catch up
            elapsed_ticks = int((time.monotonic() - start_time) / self.interval_s)
            if elapsed_ticks > tick_id:
                logger.warning(f"{self.name} fell behind, skipping {elapsed_ticks - tick_id} ticks")
                tick_id = elapsed_ticks


def sleep_with_interrupt(duration_s: float, interrupt_event: Optional[threading.Event] = None) -> bool:
    """
    Sleep for specified duration with optional interrupt capability.

    Args:
        duration_s: Sleep duration in seconds
        interrupt_event: Optional event to interrupt sleep

    Returns:
        True if sleep completed normally, False if interrupted
    """
    if interrupt_event is None:
        time.sleep(duration_s)
        return True

    return not interrupt_event.wait(duration_s)
