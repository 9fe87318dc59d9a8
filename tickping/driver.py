"""
Lifecycle driver for TickPing.
Wires the transport, correlator, sender and reporter together and runs them
until a termination signal arrives.
"""

import logging
import signal
import threading
from enum import Enum
from typing import Callable, List, Optional

from .core.clock import SystemClock
from .core.config import Config, ProbeConfig
from .metrics.aggregator import MetricsAggregator
from .probe.sender import ProbeSender
from .report.reporter import Reporter
from .report.scheduler import SummaryScheduler
from .tracking.correlator import AckCorrelator
from .transport.base import PairingEvent, Transport


class StartupInterrupted(Exception):
    """A stop signal arrived before the session reached RUNNING."""


class LifecycleState(Enum):
    DISCONNECTED = "disconnected"
    PAIRING = "pairing"
    CONNECTED = "connected"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


STARTUP_STATES = (LifecycleState.DISCONNECTED, LifecycleState.PAIRING, LifecycleState.CONNECTED)


class Driver:
    """Owns one measurement session against a single recipient."""

    def __init__(self, config: Config, transport: Transport, reporter: Optional[Reporter] = None,
                 clock=None, ask: Optional[Callable[[ProbeConfig], None]] = None):
        self.config = config
        # Fills in missing probe settings once the session is connected
        self.ask = ask
        self.transport = transport
        self.clock = clock or SystemClock()
        self.logger = logging.getLogger(__name__)

        self.reporter = reporter or Reporter(config.monitoring)
        self.aggregator = MetricsAggregator()
        self.correlator = AckCorrelator(self.aggregator, self.reporter, clock=self.clock)
        self.summary = SummaryScheduler(
            self.aggregator, self.reporter, config.report.summary_interval
        )
        self.sender: Optional[ProbeSender] = None

        self._state = LifecycleState.DISCONNECTED
        self._state_lock = threading.RLock()
        self._stop_requested = threading.Event()
        self.history: List[LifecycleState] = [self._state]

    @property
    def state(self) -> LifecycleState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: LifecycleState) -> None:
        with self._state_lock:
            self._state = state
            self.history.append(state)
        self.logger.info(f"State: {state.value}")

    def start(self) -> None:
        """Connect the transport and start both schedules.

        Raises transport errors unchanged; the caller treats them as fatal.
        Raises StartupInterrupted when a stop was requested before RUNNING.
        """
        if self.state is not LifecycleState.DISCONNECTED:
            raise RuntimeError(f"Cannot start from state {self.state.value}")

        # Receipts can only reach a correlator that already exists
        self.transport.subscribe(self.correlator.on_acknowledgement)

        self._set_state(LifecycleState.PAIRING)
        self.transport.connect(self._on_pairing)
        self._set_state(LifecycleState.CONNECTED)
        self._check_stop()

        probe = self.config.probe
        if self.ask:
            self.ask(probe)
            self._check_stop()

        self.sender = ProbeSender(
            self.transport,
            self.correlator,
            self.reporter,
            recipient=probe.recipient,
            interval=probe.interval,
            payload=probe.payload,
            clock=self.clock,
        )

        self.reporter.report_started(probe.recipient, probe.interval)
        self.sender.start()
        self.summary.start()
        self._set_state(LifecycleState.RUNNING)

    def _check_stop(self) -> None:
        if self._stop_requested.is_set():
            raise StartupInterrupted()

    def _on_pairing(self, event: PairingEvent) -> None:
        if event.kind == PairingEvent.CODE and event.code:
            self.reporter.report_pairing_code(event.code)
        elif event.kind == PairingEvent.PAIRED:
            self.reporter.report_connected()

    def request_stop(self) -> None:
        """Ask the session to shut down; safe to call from a signal handler."""
        self._stop_requested.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until a stop is requested. Returns True if it was."""
        return self._stop_requested.wait(timeout)

    def shutdown(self) -> None:
        """Stop schedules, print the final summary and close the transport."""
        if self.state in (LifecycleState.SHUTTING_DOWN, LifecycleState.STOPPED):
            return

        self._set_state(LifecycleState.SHUTTING_DOWN)

        if self.sender:
            self.sender.stop()
        self.summary.stop()

        try:
            self.summary.report_now()
        except Exception as e:
            self.logger.error(f"Failed to print final summary: {e}")

        try:
            self.transport.disconnect()
        except Exception as e:
            self.logger.error(f"Error disconnecting transport: {e}")

        self._set_state(LifecycleState.STOPPED)

    def install_signal_handlers(self) -> dict:
        """Route SIGINT/SIGTERM to ``request_stop``. Returns the previous handlers.

        Until the session is RUNNING the main thread is blocked in pairing or
        at a prompt, so the handler also raises StartupInterrupted there.
        """
        def handler(signum, frame):
            self.logger.info(f"Received signal {signum}, shutting down...")
            self.request_stop()
            if self.state in STARTUP_STATES:
                raise StartupInterrupted(signum)

        previous = {}
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, handler)
        return previous

    def run(self) -> None:
        """Start, wait for SIGINT/SIGTERM, then shut down."""
        previous = {}
        try:
            previous = self.install_signal_handlers()
            self.start()
            self.wait()
        except StartupInterrupted:
            self.logger.info("Stopped before the session started")
        finally:
            self.shutdown()
            for signum, handler in previous.items():
                signal.signal(signum, handler)

    def get_status(self) -> dict:
        return {
            'state': self.state.value,
            'sender': self.sender.get_status() if self.sender else None,
            'correlator': self.correlator.get_status(),
            'summary': self.summary.get_status(),
        }
