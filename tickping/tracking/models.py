"""
Probe tracking data for TickPing.
"""

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, Optional

from ..core.clock import Instant, format_timestamp, to_milliseconds


class ProbePhase(Enum):
    """Progress of a probe that has not been fully acknowledged yet."""
    SENT = "sent"
    SERVER_ACKED = "server_acked"


@dataclass
class PendingProbe:
    """A sent probe awaiting its delivery acknowledgement."""
    message_id: str
    sent_at: Instant
    server_ack_at: Optional[Instant] = None
    phase: ProbePhase = ProbePhase.SENT

    def mark_server_ack(self, at: Instant) -> bool:
        """Record the first tick. Returns False if it was already recorded."""
        if self.phase is not ProbePhase.SENT:
            return False

        self.server_ack_at = at
        self.phase = ProbePhase.SERVER_ACKED
        return True

    @property
    def server_latency(self) -> Optional[timedelta]:
        if self.server_ack_at is None:
            return None
        return self.server_ack_at - self.sent_at

    def finalize(self, delivered_at: Instant) -> 'TimingRecord':
        """Turn the probe into a finished measurement.

        A probe that never saw its first tick is finalized with the server
        acknowledgement pinned to the delivery time.
        """
        inferred = self.server_ack_at is None
        server_ack_at = delivered_at if inferred else self.server_ack_at

        return TimingRecord(
            message_id=self.message_id,
            sent_at=self.sent_at,
            server_ack_at=server_ack_at,
            delivered_at=delivered_at,
            server_ack_inferred=inferred,
        )


@dataclass
class TimingRecord:
    """Finished latency measurement for one probe.

    Only ``read_at`` changes after creation, and only once.
    """
    message_id: str
    sent_at: Instant
    server_ack_at: Instant
    delivered_at: Instant
    read_at: Optional[Instant] = None
    server_ack_inferred: bool = False

    @property
    def server_latency(self) -> timedelta:
        return self.server_ack_at - self.sent_at

    @property
    def delivery_latency(self) -> timedelta:
        return self.delivered_at - self.server_ack_at

    @property
    def server_latency_ms(self) -> int:
        return to_milliseconds(self.server_latency)

    @property
    def delivery_latency_ms(self) -> int:
        return to_milliseconds(self.delivery_latency)

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def mark_read(self, at: Instant) -> bool:
        """Record the read time. Returns False if it was already set."""
        if self.read_at is not None:
            return False

        self.read_at = at
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message_id': self.message_id,
            'sent': format_timestamp(self.sent_at.wall),
            'server': format_timestamp(self.server_ack_at.wall),
            'delivered': format_timestamp(self.delivered_at.wall),
            'read': format_timestamp(self.read_at.wall) if self.read_at else None,
            'server_latency_ms': self.server_latency_ms,
            'delivery_latency_ms': self.delivery_latency_ms,
            'server_ack_inferred': self.server_ack_inferred,
        }


@dataclass(frozen=True)
class AggregateStats:
    """Delivery latency statistics over the finalized history."""
    count: int
    min_ms: Optional[int] = None
    max_ms: Optional[int] = None
    avg_ms: Optional[int] = None
    p50_ms: Optional[int] = None
    p95_ms: Optional[int] = None
    avg_server_ms: Optional[int] = None
    read_count: int = 0

    @classmethod
    def empty(cls) -> 'AggregateStats':
        return cls(count=0)

    @property
    def has_data(self) -> bool:
        return self.count > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.count,
            'min_ms': self.min_ms,
            'max_ms': self.max_ms,
            'avg_ms': self.avg_ms,
            'p50_ms': self.p50_ms,
            'p95_ms': self.p95_ms,
            'avg_server_ms': self.avg_server_ms,
            'read': self.read_count,
        }
