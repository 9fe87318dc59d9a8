"""
Transport boundary for TickPing.

The session client that authenticates, keeps the connection open and emits
receipts lives behind this interface. Everything above it only sees
``AckEvent`` objects and message ids.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple


class TransportError(Exception):
    """Base class for transport failures."""


class SendError(TransportError):
    """A single probe could not be dispatched."""


class ConnectionFailedError(TransportError):
    """The transport could not establish its connection."""


class PairingError(TransportError):
    """Device pairing did not complete."""


class AckPhase(Enum):
    """Position of an acknowledgement in the delivery protocol."""
    SERVER = "server"      # first tick
    DELIVERY = "delivery"  # second tick
    READ = "read"


@dataclass(frozen=True)
class AckEvent:
    """Acknowledgement for one or more sent messages."""
    message_ids: Tuple[str, ...]
    phase: AckPhase

    @classmethod
    def of(cls, phase: AckPhase, *message_ids: str) -> 'AckEvent':
        return cls(message_ids=tuple(message_ids), phase=phase)


@dataclass(frozen=True)
class PairingEvent:
    """Out-of-band pairing progress: a code to display, or success."""
    kind: str
    code: Optional[str] = None

    CODE = "code"
    PAIRED = "paired"


AckHandler = Callable[[AckEvent], None]
PairingHandler = Callable[[PairingEvent], None]


class Transport(ABC):
    """Messaging session used to send probes and receive receipts."""

    @abstractmethod
    def subscribe(self, handler: AckHandler) -> None:
        """Register the receiver of acknowledgement events.

        The handler may be invoked from any thread, concurrently with
        ``send``.
        """

    @abstractmethod
    def connect(self, on_pairing: PairingHandler) -> None:
        """Connect, pairing first if the session has no credentials.

        Blocks until the session is usable. Raises ``PairingError`` or
        ``ConnectionFailedError``.
        """

    @abstractmethod
    def send(self, recipient: str, payload: str) -> str:
        """Send a text message and return its transport-assigned id.

        Raises ``SendError`` on failure.
        """

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection."""

    def dispatch(self, handlers: Sequence[AckHandler], event: AckEvent) -> None:
        for handler in handlers:
            handler(event)
