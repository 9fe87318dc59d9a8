"""
Acknowledgement correlation for TickPing.

Matches receipts arriving in any order and on any thread to the probes that
are still waiting for them. A probe moves through

    SENT --first tick--> SERVER_ACKED --second tick--> finalized

and, once finalized, may still pick up a read receipt.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

from ..core.clock import Instant, SystemClock, to_milliseconds
from ..metrics.aggregator import MetricsAggregator
from ..report.reporter import Reporter
from ..transport.base import AckEvent, AckPhase
from .models import PendingProbe, ProbePhase


class AckCorrelator:
    """Tracks pending probes and finalizes them as receipts arrive."""

    def __init__(self, aggregator: MetricsAggregator, reporter: Reporter, clock=None):
        self.aggregator = aggregator
        self.reporter = reporter
        self.clock = clock or SystemClock()
        self.logger = logging.getLogger(__name__)

        self._lock = threading.Lock()
        self._pending: Dict[str, PendingProbe] = {}
        self._ignored = 0

    def register(self, message_id: str, sent_at: Instant) -> PendingProbe:
        """Start tracking a probe that the transport accepted."""
        probe = PendingProbe(message_id=message_id, sent_at=sent_at)

        with self._lock:
            if message_id in self._pending:
                raise ValueError(f"Message {message_id} is already pending")
            self._pending[message_id] = probe

        return probe

    def is_pending(self, message_id: str) -> bool:
        with self._lock:
            return message_id in self._pending

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def get_pending(self, message_id: str) -> Optional[PendingProbe]:
        with self._lock:
            return self._pending.get(message_id)

    def on_acknowledgement(self, event: AckEvent) -> None:
        """Apply one acknowledgement event.

        Safe to call from the transport's dispatch threads. Output is
        produced after the pending set has been updated and unlocked.
        """
        notifications: List[Tuple[Callable, tuple]] = []
        ignored = 0

        for message_id in event.message_ids:
            now = self.clock.now()

            if event.phase is AckPhase.READ:
                record = self.aggregator.mark_read(message_id, now)
                if record is not None:
                    notifications.append((self.reporter.report_read, (record,)))
                else:
                    ignored += 1
                    self._skip(message_id, event.phase)
                continue

            with self._lock:
                probe = self._pending.get(message_id)
                if probe is None:
                    ignored += 1
                    self._skip(message_id, event.phase)
                    continue

                if event.phase is AckPhase.SERVER and probe.phase is ProbePhase.SENT:
                    probe.mark_server_ack(now)
                    notifications.append((
                        self.reporter.report_server_ack,
                        (message_id, to_milliseconds(probe.server_latency)),
                    ))
                    continue

                # A repeated first tick is how the transport reports the
                # second one; a second tick without a first is finalized
                # with an inferred server time.
                record = probe.finalize(now)
                del self._pending[message_id]
                self.aggregator.record(record)

            notifications.append((self.reporter.report_one, (record,)))

        if ignored:
            with self._lock:
                self._ignored += ignored

        for notify, args in notifications:
            try:
                notify(*args)
            except Exception as e:
                self.logger.error(f"Failed to report acknowledgement: {e}")

    def _skip(self, message_id: str, phase: AckPhase) -> None:
        self.logger.debug(f"Ignoring {phase.value} receipt for untracked message {message_id}")

    def get_status(self) -> dict:
        with self._lock:
            pending = len(self._pending)
        return {
            'pending': pending,
            'finalized': len(self.aggregator),
            'ignored': self._ignored,
        }
