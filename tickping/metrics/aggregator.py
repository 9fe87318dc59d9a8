"""
Latency aggregation for TickPing.
Keeps the ordered history of finished measurements and summarizes it.
"""

import logging
import threading
from typing import Dict, List, Optional

import numpy as np

from ..core.clock import to_microseconds
from ..tracking.models import AggregateStats, TimingRecord


class MetricsAggregator:
    """Thread-safe store of finalized timing records."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._history: List[TimingRecord] = []
        self._by_id: Dict[str, TimingRecord] = {}

    def record(self, record: TimingRecord) -> None:
        """Append a finalized record to the history."""
        with self._lock:
            if record.message_id in self._by_id:
                self.logger.warning(f"Duplicate record for message {record.message_id} ignored")
                return

            self._history.append(record)
            self._by_id[record.message_id] = record

        self.logger.debug(
            f"Recorded {record.message_id}: delivery={record.delivery_latency_ms}ms"
        )

    def find(self, message_id: str) -> Optional[TimingRecord]:
        """Finalized record for a message id, if any."""
        with self._lock:
            return self._by_id.get(message_id)

    def mark_read(self, message_id: str, at) -> Optional[TimingRecord]:
        """Set the read time of a finalized record.

        Returns the record when this call set ``read_at``, None when the id
        is unknown or the record was already read.
        """
        with self._lock:
            record = self._by_id.get(message_id)
            if record is None or not record.mark_read(at):
                return None
            return record

    def history(self) -> List[TimingRecord]:
        """Snapshot of the finalized history in completion order."""
        with self._lock:
            return list(self._history)

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    def summary(self) -> AggregateStats:
        """Delivery latency statistics over the current history."""
        with self._lock:
            if not self._history:
                return AggregateStats.empty()

            delivery_us = np.fromiter(
                (to_microseconds(r.delivery_latency) for r in self._history),
                dtype=np.int64,
                count=len(self._history),
            )
            server_us = np.fromiter(
                (to_microseconds(r.server_latency) for r in self._history),
                dtype=np.int64,
                count=len(self._history),
            )
            read_count = sum(1 for r in self._history if r.is_read)

        count = int(delivery_us.size)

        # Integer averages truncate the same way a duration division would
        return AggregateStats(
            count=count,
            min_ms=int(delivery_us.min()) // 1000,
            max_ms=int(delivery_us.max()) // 1000,
            avg_ms=(int(delivery_us.sum()) // count) // 1000,
            p50_ms=int(np.percentile(delivery_us, 50)) // 1000,
            p95_ms=int(np.percentile(delivery_us, 95)) // 1000,
            avg_server_ms=(int(server_us.sum()) // count) // 1000,
            read_count=read_count,
        )
