from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import dotenv
import uvloop
import yaml
from pydantic import ValidationError

from kframe_control.const import KFRAME_CONFIG_FILE_PATH, KFRAME_DEBUG, KFRAME_VERSION, session_env
from kframe_control.correlation import correlation_context, ensure_correlation_id
from kframe_control.logging_abstraction import get_logger
from kframe_control.metrics import start_metrics_server
from kframe_control.protocol.payloads import SUITE_IDS
from kframe_control.structs import SessionConfig
from kframe_control.transport.connection_manager import ConnectionManager
from kframe_control.transport.types import CommandResult, ConnectionState

logger = get_logger("kframe_control")


def load_config_file(config_file: Path) -> dict[str, Any]:
    """Read a YAML config file with the same keys as SessionConfig.

    Raises:
        OSError: If the file cannot be read
        yaml.YAMLError: If the file is not valid YAML
        ValueError: If the top level is not a mapping

    """
    logger.debug("Parsing config file: %s", config_file)
    with config_file.open() as f:
        config_data = yaml.safe_load(f)

    if config_data is None:
        logger.warning("Config file is empty", extra={"config_path": str(config_file)})
        return {}
    if not isinstance(config_data, dict):
        msg = f"Config file {config_file} must contain a mapping"
        raise ValueError(msg)
    return config_data


def build_session_config(args: argparse.Namespace) -> SessionConfig:
    """Merge environment, YAML file and CLI flags (later wins) into a SessionConfig."""
    settings: dict[str, Any] = dict(session_env())

    config_path = args.config
    if config_path is None and Path(KFRAME_CONFIG_FILE_PATH).expanduser().exists():
        config_path = Path(KFRAME_CONFIG_FILE_PATH)
    if config_path is not None:
        cfg_file = config_path.expanduser().resolve()
        settings.update(load_config_file(cfg_file))
        logger.info("Configuration loaded", extra={"config_path": str(cfg_file)})

    cli_overrides = {
        "host": args.host,
        "keepalive_interval_ms": args.keepalive,
        "max_retries": args.max_retries,
        "suite": args.suite,
        "metrics_port": args.metrics_port,
    }
    settings.update({k: v for k, v in cli_overrides.items() if v is not None})
    return SessionConfig(**settings)


class CliCallbacks:
    """Logs engine notifications and runs one-shot commands once connected."""

    def __init__(self, macro: int | None = None, aux: Sequence[int] | None = None) -> None:
        self.manager: ConnectionManager | None = None
        self.macro = macro
        self.aux = tuple(aux) if aux else None
        self.stopped = asyncio.Event()
        self._actions_done = False

    def on_state_change(self, state: ConnectionState) -> None:
        logger.info("K-Frame %s", state.value, extra={"state": state.value})
        if state == ConnectionState.CONNECTED and not self._actions_done:
            self._actions_done = True
            # After the suite selection that completes the handshake
            asyncio.get_running_loop().call_soon(self.run_actions)
        elif state == ConnectionState.DISCONNECTED:
            self.stopped.set()

    def on_command_result(self, result: CommandResult) -> None:
        if result.success:
            logger.info("Command %s succeeded", result.command.value)
        else:
            logger.error("Command %s failed: %s", result.command.value, result.error)

    def on_error(self, message: str) -> None:
        logger.error("K-Frame error: %s", message)

    def run_actions(self) -> None:
        if self.manager is None:
            return
        if self.macro is not None:
            _ = self.manager.send_macro(self.macro)
        if self.aux is not None:
            aux_number, source_number = self.aux
            _ = self.manager.send_aux_route(aux_number, source_number)


class KFrameController:
    """Runs one session until a signal arrives or the engine gives up."""

    def __init__(self, config: SessionConfig, callbacks: CliCallbacks) -> None:
        self.config = config
        self.callbacks = callbacks
        self.manager = ConnectionManager(callbacks=callbacks, config=config)
        callbacks.manager = self.manager

    def request_stop(self, sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down...", sig.name)
        self.callbacks.stopped.set()

    async def start(self) -> None:
        _ = ensure_correlation_id()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.request_stop, sig)
        logger.debug("Signal handlers configured for SIGINT & SIGTERM")

        if self.config.metrics_port:
            start_metrics_server(self.config.metrics_port)
            logger.info("Metrics exporter started", extra={"port": self.config.metrics_port})

        open_task = self.manager.connect()
        if open_task is None:
            return
        try:
            await self.callbacks.stopped.wait()
        finally:
            self.stop()

    def stop(self) -> None:
        if self.manager.state != ConnectionState.DISCONNECTED:
            self.manager.disconnect()


def parse_cli(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Grass Valley K-Frame control session")
    parser.add_argument("--host", help="Switcher IP address or hostname")
    parser.add_argument("--keepalive", type=int, help="Keepalive interval in milliseconds")
    parser.add_argument("--max-retries", dest="max_retries", type=int, help="Reconnection attempts before giving up")
    parser.add_argument("--suite", choices=SUITE_IDS, help="Suite selected after the handshake")
    parser.add_argument("--config", type=Path, default=None, help="Path to a YAML config file")
    parser.add_argument("--env", type=Path, default=None, help="Path to the environment file")
    parser.add_argument("--metrics-port", dest="metrics_port", type=int, help="Expose Prometheus metrics on this port")
    parser.add_argument("-D", "--debug", action="store_true", help="Enable debug mode")
    parser.add_argument("--macro", type=int, help="Recall this macro once connected")
    parser.add_argument(
        "--aux",
        type=int,
        nargs=2,
        metavar=("AUX", "SOURCE"),
        help="Route SOURCE to AUX bus once connected",
    )
    args = parser.parse_args(argv)

    if args.debug:
        logger.set_level(logging.DEBUG)
        logger.info("Debug mode enabled via CLI argument")

    if args.env:
        env_path = args.env.expanduser().resolve()
        if not env_path.exists():
            logger.error("Environment file not found", extra={"path": str(env_path)})
        elif dotenv.load_dotenv(env_path, override=True):
            logger.info("Environment variables loaded", extra={"source": str(env_path)})
        else:
            logger.warning("No environment variables loaded from file", extra={"path": str(env_path)})

    return args


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the kframe-control console script."""
    with correlation_context():
        logger.info("Starting kframe-control", extra={"version": KFRAME_VERSION})
        if KFRAME_DEBUG:
            logger.set_level(logging.DEBUG)

        args = parse_cli(argv)
        try:
            config = build_session_config(args)
        except ValidationError as e:
            logger.error("Invalid configuration: %s", e)
            return 2
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error("Failed to load configuration: %s", e)
            return 2
        if not config.host:
            logger.error("No host configured (use --host, KFRAME_HOST or the config file)")
            return 2

        controller = KFrameController(config, CliCallbacks(macro=args.macro, aux=args.aux))
        try:
            uvloop.run(controller.start())
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, shutting down...")
        except Exception as e:
            logger.exception("Fatal error in main loop", extra={"error": str(e)})
            return 1
        logger.info("kframe-control stopped")
        return 0
