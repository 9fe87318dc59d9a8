"""
Probe sender for TickPing.
Dispatches a minimal message to the recipient on a fixed interval.
"""

import logging
import threading
from typing import Optional

from ..core.clock import SystemClock
from ..tracking.correlator import AckCorrelator
from ..report.reporter import Reporter
from ..transport.base import SendError, Transport


class ProbeSender:
    """Sends probe messages and registers them for correlation."""

    def __init__(self, transport: Transport, correlator: AckCorrelator, reporter: Reporter,
                 recipient: str, interval: float, payload: str = ".", clock=None):
        if interval <= 0:
            raise ValueError("Probe interval must be positive")

        self.transport = transport
        self.correlator = correlator
        self.reporter = reporter
        self.recipient = recipient
        self.interval = interval
        self.payload = payload
        self.clock = clock or SystemClock()
        self.logger = logging.getLogger(__name__)

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        # Counters
        self._sent = 0
        self._failed = 0
        self._last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def send_probe(self) -> str:
        """Send one probe and start tracking it.

        Returns the transport-assigned message id. Raises ``SendError`` if
        the transport rejected the message; nothing is tracked in that case.
        """
        sent_at = self.clock.now()
        try:
            message_id = self.transport.send(self.recipient, self.payload)
        except Exception as e:
            self._failed += 1
            self._last_error = str(e)
            self.logger.error(f"Send failed: {e}")
            if isinstance(e, SendError):
                raise
            raise SendError(str(e)) from e

        self.correlator.register(message_id, sent_at)
        self._sent += 1

        self.reporter.report_sent(message_id, sent_at)
        return message_id

    def start(self) -> None:
        """Start sending probes; the first one goes out immediately."""
        if self.running:
            self.logger.warning("Probe sender already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="tickping-sender", daemon=True)
        self._thread.start()

        self.logger.info(f"Probe sender started: {self.recipient} every {self.interval:g}s")

    def stop(self) -> None:
        """Stop sending. A send in progress is allowed to complete."""
        self._stop_event.set()

        if self._thread:
            self._thread.join()
            self._thread = None

        self.logger.info("Probe sender stopped")

    def _run(self) -> None:
        """Main probe loop."""
        while not self._stop_event.is_set():
            self.tick()

            if self._stop_event.wait(self.interval):
                break

    def tick(self) -> None:
        """Send one probe; failures are logged and the schedule continues."""
        try:
            self.send_probe()
        except SendError:
            self.logger.debug("Probe skipped for this tick")
        except Exception as e:
            self.logger.error(f"Error in probe loop: {e}")

    def get_status(self) -> dict:
        """Get current status of the probe sender."""
        return {
            'running': self.running,
            'recipient': self.recipient,
            'interval': self.interval,
            'sent': self._sent,
            'failed': self._failed,
            'last_error': self._last_error,
        }
