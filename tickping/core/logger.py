"""
Logging configuration for TickPing.

Log records go to stderr (and optionally a rotating file) so they never
interleave with the timing report printed on stdout.
"""

import logging
import logging.handlers
import sys
from pathlib import Path

from .config import Config

LOG_FORMAT = '%(asctime)s.%(msecs)03d %(levelname)-7s %(name)s: %(message)s'

# Chatty clients that only matter while their feature is in use
SESSION_LOGGERS = ('neonize', 'whatsmeow')
WEBHOOK_LOGGERS = ('urllib3', 'requests')


def setup_logging(config: Config, verbose: bool = False) -> int:
    """Configure the root logger from the ``[logging]`` section.

    ``verbose`` forces DEBUG regardless of the configured level. Returns the
    level that was applied.
    """
    level = logging.DEBUG if verbose else logging.getLevelName(config.logging.level.upper())
    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.logging.file:
        try:
            log_path = Path(config.logging.file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=config.logging.max_size * 1024 * 1024,
                backupCount=config.logging.backup_count
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        except OSError as e:
            logging.warning(f"Failed to setup file logging: {e}")

    # The session client logs every frame at DEBUG
    quiet = list(SESSION_LOGGERS)
    if config.monitoring.webhook_enabled:
        quiet.extend(WEBHOOK_LOGGERS)
    for name in quiet:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return level
