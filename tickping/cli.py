#!/usr/bin/env python3
"""
TickPing - WhatsApp delivery latency probe
Command line entry point: loads configuration and runs a measurement session.
A recipient or interval that is not configured is asked for once the
session is connected.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .core.config import Config, ProbeConfig, normalize_recipient, parse_interval
from .core.logger import setup_logging
from .driver import Driver
from .transport.base import TransportError


def load_config(config: Optional[str]) -> Config:
    """Load the configuration file, or defaults when none is given."""
    if config is None:
        return Config.default()

    config_path = Path(config)
    if not config_path.exists():
        raise click.ClickException(f"Configuration file {config} not found")

    return Config.from_file(config_path)


def create_transport(cfg: Config):
    """Open the WhatsApp session client."""
    try:
        from .transport.whatsapp import WhatsAppTransport
    except ImportError as e:
        raise TransportError(
            f"WhatsApp support is not installed ({e}); install with 'pip install tickping[whatsapp]'"
        )

    return WhatsAppTransport(cfg.transport)


def complete_probe_settings(probe: ProbeConfig) -> None:
    """Prompt for whichever of recipient and interval is still missing."""
    if not probe.recipient:
        probe.recipient = normalize_recipient(
            click.prompt("target number (e.g. 905551234567)", type=str)
        )

    if not probe.interval:
        probe.interval = parse_interval(click.prompt("interval (seconds)", type=float))


@click.command()
@click.option('--config', '-c', default=None, help='Configuration file path')
@click.option('--recipient', '-r', default=None,
              help='Target phone number (e.g. 905551234567) or full JID')
@click.option('--interval', '-i', default=None, type=float, help='Probe interval in seconds')
@click.option('--summary-interval', default=None, type=float,
              help='Seconds between statistics summaries')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def main(config: Optional[str], recipient: Optional[str], interval: Optional[float],
         summary_interval: Optional[float], verbose: bool):
    """TickPing - WhatsApp delivery latency probe"""

    try:
        cfg = load_config(config)
        cfg.validate()

        setup_logging(cfg, verbose)

        if config:
            logging.info(f"Configuration loaded from {config}")

        # Bad values fail before pairing; missing ones are asked for after it
        if recipient:
            cfg.probe.recipient = recipient
        if cfg.probe.recipient:
            cfg.probe.recipient = normalize_recipient(cfg.probe.recipient)

        if interval is not None:
            cfg.probe.interval = parse_interval(interval)
        elif cfg.probe.interval:
            cfg.probe.interval = parse_interval(cfg.probe.interval)

        if summary_interval is not None:
            cfg.report.summary_interval = parse_interval(summary_interval)

        driver = Driver(cfg, create_transport(cfg), ask=complete_probe_settings)
        driver.run()

    except (click.ClickException, click.Abort):
        raise
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        if verbose and not isinstance(e, (ValueError, TransportError)):
            logging.exception("Full traceback:")
        sys.exit(1)

    click.echo("stopped")


if __name__ == '__main__':
    main()
