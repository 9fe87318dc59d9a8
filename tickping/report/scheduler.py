"""
Periodic summary reporting for TickPing.
"""

import logging
import threading
from typing import Optional

from ..metrics.aggregator import MetricsAggregator
from .reporter import Reporter


class SummaryScheduler:
    """Prints aggregate statistics on a fixed interval."""

    def __init__(self, aggregator: MetricsAggregator, reporter: Reporter, interval: float):
        if interval <= 0:
            raise ValueError("Summary interval must be positive")

        self.aggregator = aggregator
        self.reporter = reporter
        self.interval = interval
        self.logger = logging.getLogger(__name__)

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._reports = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the summary schedule."""
        if self.running:
            self.logger.warning("Summary scheduler already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="tickping-summary", daemon=True)
        self._thread.start()

        self.logger.info(f"Summary scheduler started (every {self.interval:g}s)")

    def stop(self) -> None:
        """Stop the schedule, letting a report in progress finish."""
        self._stop_event.set()

        if self._thread:
            self._thread.join(timeout=self.interval + 5)
            self._thread = None

        self.logger.info("Summary scheduler stopped")

    def report_now(self) -> None:
        """Print the current summary."""
        self.reporter.report_summary(self.aggregator.summary())
        self._reports += 1

    def _run(self) -> None:
        """Main reporting loop."""
        while not self._stop_event.wait(self.interval):
            try:
                self.report_now()
            except Exception as e:
                self.logger.error(f"Error printing summary: {e}")

    def get_status(self) -> dict:
        return {
            'running': self.running,
            'interval': self.interval,
            'reports': self._reports,
        }
