"""
Console reporting for TickPing.
Prints per-probe timings, summary statistics and pairing codes.
"""

import logging
import threading
from typing import Callable, Optional

import click
import requests

from ..core.clock import Instant, format_timestamp
from ..core.config import MonitoringConfig
from ..tracking.models import AggregateStats, TimingRecord

RULE_WIDTH = 60


class Reporter:
    """Formats timing events as human-readable console lines."""

    def __init__(self, monitoring: Optional[MonitoringConfig] = None,
                 echo: Callable[[str], None] = click.echo):
        self.monitoring = monitoring or MonitoringConfig()
        self.logger = logging.getLogger(__name__)
        self._echo = echo
        # Keeps multi-line blocks from different threads apart
        self._output_lock = threading.Lock()
        self._pairing_started = False

    def _emit(self, *lines: str) -> None:
        with self._output_lock:
            for line in lines:
                self._echo(line)

    def report_started(self, recipient: str, interval: float) -> None:
        self._emit(f"target: {recipient}", f"interval: {interval:g}s", "")

    def report_pairing_code(self, code: str) -> None:
        """Print a pairing code; the header only precedes the first one."""
        lines = ["", code]
        if not self._pairing_started:
            self._pairing_started = True
            lines = ["scan qr code:", "=" * RULE_WIDTH] + lines
        self._emit(*lines)

    def report_connected(self) -> None:
        self._emit("", "connected", "")

    def report_sent(self, message_id: str, sent_at: Instant) -> None:
        self._emit("", f"[sent] {format_timestamp(sent_at.wall)} | id: {message_id}")

    def report_server_ack(self, message_id: str, latency_ms: int) -> None:
        self._emit(f"[1st tick] {latency_ms} ms")

    def report_read(self, record: TimingRecord) -> None:
        self._emit(f"[read] {format_timestamp(record.read_at.wall)}")

    def report_one(self, record: TimingRecord) -> None:
        """Print the full timing block for a finalized probe."""
        lines = [
            "",
            "-" * RULE_WIDTH,
            f"msg id: {record.message_id}",
            f"sent:      {format_timestamp(record.sent_at.wall)}",
            f"server:    {format_timestamp(record.server_ack_at.wall)}",
            f"delivered: {format_timestamp(record.delivered_at.wall)}",
            f"[sent -> 1st tick]: {record.server_latency_ms} ms",
            f"[1st -> 2nd tick]: {record.delivery_latency_ms} ms",
        ]
        if record.server_ack_inferred:
            lines.append("(1st tick not observed, server time set to delivery time)")
        if record.read_at is not None:
            lines.append(f"read:      {format_timestamp(record.read_at.wall)}")
        lines.append("-" * RULE_WIDTH)

        self._emit(*lines)

    def report_summary(self, stats: AggregateStats) -> None:
        """Print aggregate statistics; nothing is printed without data."""
        if not stats.has_data:
            return

        self._emit(
            "",
            "=" * RULE_WIDTH,
            "STATS",
            "=" * RULE_WIDTH,
            f"total: {stats.count}",
            f"min: {stats.min_ms} ms",
            f"max: {stats.max_ms} ms",
            f"avg: {stats.avg_ms} ms",
            f"p50: {stats.p50_ms} ms",
            f"p95: {stats.p95_ms} ms",
            f"avg server: {stats.avg_server_ms} ms",
            f"read: {stats.read_count}",
            "=" * RULE_WIDTH,
        )

        if self.monitoring.webhook_enabled:
            self._send_webhook(stats)

    def _send_webhook(self, stats: AggregateStats) -> None:
        """Post summary statistics to the configured webhook."""
        try:
            response = requests.post(
                self.monitoring.webhook_url,
                json={'event': 'summary', 'stats': stats.to_dict()},
                timeout=self.monitoring.webhook_timeout
            )

            if response.status_code >= 400:
                self.logger.warning(f"Webhook rejected summary: {response.status_code}")

        except requests.RequestException as e:
            self.logger.error(f"Failed to send summary webhook: {e}")
