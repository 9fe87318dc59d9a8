"""
Configuration management for TickPing.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import toml


DEFAULT_SERVER = "s.whatsapp.net"

_USER_PATTERN = re.compile(r"^[0-9]+$")


@dataclass
class TransportConfig:
    """Transport (session client) configuration settings."""
    session_file: str = "session.db"
    connect_timeout: float = 120.0
    remove_session_on_exit: bool = True


@dataclass
class ProbeConfig:
    """Probe configuration settings."""
    recipient: str = ""
    interval: float = 0.0
    payload: str = "."


@dataclass
class ReportConfig:
    """Reporter configuration settings."""
    summary_interval: float = 60.0


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "warning"
    file: str = ""
    max_size: int = 10
    backup_count: int = 3


@dataclass
class MonitoringConfig:
    """Monitoring configuration settings."""
    webhook_enabled: bool = False
    webhook_url: str = ""
    webhook_timeout: float = 10.0


@dataclass
class Config:
    """Main configuration class."""
    transport: TransportConfig = field(default_factory=TransportConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @classmethod
    def default(cls) -> 'Config':
        """Configuration used when no file is given."""
        return cls()

    @classmethod
    def from_file(cls, config_path: Path) -> 'Config':
        """Load configuration from TOML file."""
        try:
            config_data = toml.load(config_path)
        except Exception as e:
            raise ValueError(f"Failed to load configuration: {e}")

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> 'Config':
        """Build configuration from already parsed TOML data.

        Sections and keys that are absent keep their defaults; unknown keys
        are rejected so that typos do not go unnoticed.
        """
        return cls(
            transport=_section(TransportConfig, config_data, 'transport'),
            probe=_section(ProbeConfig, config_data, 'probe'),
            report=_section(ReportConfig, config_data, 'report'),
            logging=_section(LoggingConfig, config_data, 'logging'),
            monitoring=_section(MonitoringConfig, config_data, 'monitoring'),
        )

    def validate(self) -> bool:
        """Validate configuration values."""
        if self.probe.interval < 0:
            raise ValueError("Probe interval must be positive")

        if not self.probe.payload:
            raise ValueError("Probe payload must not be empty")

        if self.report.summary_interval <= 0:
            raise ValueError("Summary interval must be positive")

        if self.transport.connect_timeout <= 0:
            raise ValueError("Connect timeout must be positive")

        if not isinstance(logging.getLevelName(self.logging.level.upper()), int):
            raise ValueError(f"Unknown log level: {self.logging.level}")

        if self.monitoring.webhook_enabled and not self.monitoring.webhook_url:
            raise ValueError("Webhook enabled but no webhook_url configured")

        return True


def _section(section_cls, config_data: Dict[str, Any], name: str):
    values = config_data.get(name, {})
    if not isinstance(values, dict):
        raise ValueError(f"Configuration section [{name}] must be a table")

    known = section_cls.__dataclass_fields__
    unknown = set(values) - set(known)
    if unknown:
        raise ValueError(
            f"Unknown key(s) in [{name}]: {', '.join(sorted(unknown))}"
        )

    try:
        return section_cls(**values)
    except TypeError as e:
        raise ValueError(f"Invalid configuration section [{name}]: {e}")


def normalize_recipient(raw: Optional[str]) -> str:
    """Normalize a phone-number-like recipient into a full JID string.

    ``"+90 555 123 4567"`` becomes ``"905551234567@s.whatsapp.net"``; an
    identifier that already names a server is kept as given.
    """
    if raw is None:
        raise ValueError("Recipient is required")

    value = raw.strip()
    if '@' not in value:
        value = re.sub(r"[\s\-()]", "", value).lstrip('+')
        value = f"{value}@{DEFAULT_SERVER}"

    user, _, server = value.partition('@')
    if not user or not server or '@' in server:
        raise ValueError(f"Invalid recipient: {raw!r}")

    if server == DEFAULT_SERVER and not _USER_PATTERN.match(user):
        raise ValueError(f"Invalid phone number: {raw!r}")

    return f"{user}@{server}"


def parse_interval(raw: Any) -> float:
    """Parse a probe interval given in seconds."""
    try:
        interval = float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid interval: {raw!r}")

    if interval <= 0:
        raise ValueError("Interval must be a positive number of seconds")

    return interval
