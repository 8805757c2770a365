"""Entrypoint.

Usage (from backend/):
  python -m oraclex_relay.app.main api                        # serve with config/default.yaml
  python -m oraclex_relay.app.main api --config other.yaml --port 8080
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

import uvicorn

from oraclex_relay.api.state import build_state
from oraclex_relay.controllers.api_controller import APP_VERSION, create_app
from oraclex_relay.infrastructure.logging.logging import configure_logging, get_logger
from oraclex_relay.infrastructure.utils.config import load_config


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser("oraclex-relay")
    parser.add_argument("command", choices=["api"], help="What to run")
    parser.add_argument("--config", type=Path, default=None, help="YAML config path")
    parser.add_argument("--host", default=None, help="Override api.host")
    parser.add_argument("--port", type=int, default=None, help="Override api.port")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.host:
        config.api.host = args.host
    if args.port:
        config.api.port = args.port

    configure_logging(config.log_level, json_logs=config.json_logs)
    log = get_logger("main")

    if args.command == "api":
        app = create_app(build_state(config), config)
        log.info(
            "relay_starting",
            version=APP_VERSION,
            env=config.environment,
            host=config.api.host,
            port=config.api.port,
            auto_approve_window_sec=config.approval.auto_approve_window_sec,
        )
        uvicorn.run(app, host=config.api.host, port=config.api.port, log_config=None)
        return


if __name__ == "__main__":
    main()
