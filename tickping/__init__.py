"""
TickPing - WhatsApp delivery latency probe

Sends small probe messages to a single recipient on a fixed interval and
times the two delivery ticks (server received, recipient delivered) and the
read receipt of every probe.
"""

__version__ = "1.0.0"
__author__ = "TickPing Authors"
__license__ = "MIT"

from .core.config import Config
from .core.logger import setup_logging

__all__ = ["Config", "setup_logging"]
