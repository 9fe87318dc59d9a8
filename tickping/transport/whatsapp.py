"""
WhatsApp transport for TickPing, built on the neonize session client.
"""

import logging
import os
import threading
from pathlib import Path
from typing import List, Optional

from neonize.client import NewClient
from neonize.events import ConnectedEv, PairStatusEv, ReceiptEv
from neonize.utils.jid import build_jid

from ..core.config import TransportConfig
from .base import (
    AckEvent,
    AckHandler,
    AckPhase,
    ConnectionFailedError,
    PairingError,
    PairingEvent,
    PairingHandler,
    SendError,
    Transport,
)

# WhatsApp reports both ticks with the same DELIVERED receipt type; the
# correlator tells them apart by order of arrival. Other types (retry,
# played, sender, ...) carry no timing information.
RECEIPT_PHASES = {
    ReceiptEv.DELIVERED: AckPhase.SERVER,
    ReceiptEv.READ: AckPhase.READ,
    ReceiptEv.READ_SELF: AckPhase.READ,
}


def phase_for_receipt(receipt_type: int) -> Optional[AckPhase]:
    """Map a ``ReceiptEv.Type`` value onto an acknowledgement phase."""
    return RECEIPT_PHASES.get(receipt_type)


class WhatsAppTransport(Transport):
    """Multi-device WhatsApp session with an ephemeral local store."""

    def __init__(self, config: TransportConfig):
        self.config = config
        self.logger = logging.getLogger(__name__)

        self._handlers: List[AckHandler] = []
        self._on_pairing: Optional[PairingHandler] = None
        self._connected = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._connect_error: Optional[BaseException] = None

        try:
            self._client = NewClient(config.session_file)
        except Exception as e:
            raise ConnectionFailedError(f"Failed to open session store {config.session_file}: {e}")

        self._client.event(ReceiptEv)(self._on_receipt)
        self._client.event(PairStatusEv)(self._on_pair_status)
        self._client.event(ConnectedEv)(self._on_connected)
        self._client.qr(self._on_qr)

    def subscribe(self, handler: AckHandler) -> None:
        self._handlers.append(handler)

    def connect(self, on_pairing: PairingHandler) -> None:
        """Run the client in the background and wait until it is connected."""
        self._on_pairing = on_pairing
        self._thread = threading.Thread(target=self._run, name="tickping-transport", daemon=True)
        self._thread.start()

        if not self._connected.wait(self.config.connect_timeout):
            raise PairingError(
                f"Not connected after {self.config.connect_timeout:g}s (pairing not approved?)"
            )

        if self._connect_error is not None:
            raise ConnectionFailedError(f"Connection failed: {self._connect_error}")

        self.logger.info("WhatsApp session connected")

    def _run(self) -> None:
        try:
            self._client.connect()
        except Exception as e:
            self._connect_error = e
            self.logger.error(f"WhatsApp client stopped: {e}")
            # Wakes up connect() so the failure is reported at once
            self._connected.set()

    def send(self, recipient: str, payload: str) -> str:
        user, _, server = recipient.partition('@')
        try:
            response = self._client.send_message(build_jid(user, server), payload)
        except Exception as e:
            raise SendError(f"send failed: {e}") from e

        return response.ID

    def disconnect(self) -> None:
        try:
            self._client.disconnect()
        except Exception as e:
            self.logger.warning(f"Error while disconnecting: {e}")

        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

        if self.config.remove_session_on_exit:
            self._remove_session()

    def _remove_session(self) -> None:
        """Delete the session store and its SQLite side files."""
        base = Path(self.config.session_file)
        for path in (base, Path(f"{base}-wal"), Path(f"{base}-shm")):
            try:
                os.remove(path)
            except FileNotFoundError:
                continue
            except OSError as e:
                self.logger.warning(f"Could not remove session file {path}: {e}")

    # Event callbacks run on neonize's dispatch threads

    def _on_receipt(self, _client, receipt) -> None:
        phase = phase_for_receipt(receipt.Type)
        if phase is None:
            self.logger.debug(f"Ignoring receipt type {receipt.Type!r}")
            return

        self.dispatch(self._handlers, AckEvent(tuple(receipt.MessageIDs), phase))

    def _on_qr(self, _client, data) -> None:
        code = data.decode() if isinstance(data, bytes) else str(data)
        if self._on_pairing:
            self._on_pairing(PairingEvent(PairingEvent.CODE, code))

    def _on_pair_status(self, _client, status) -> None:
        self.logger.info(f"Paired as {status.ID.User}")
        if self._on_pairing:
            self._on_pairing(PairingEvent(PairingEvent.PAIRED))

    def _on_connected(self, _client, _event) -> None:
        self._connected.set()
