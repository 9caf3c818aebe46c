import argparse
import dataclasses
import logging
from typing import List, Optional

import uvicorn

from .config import Settings, settings as default_settings
from .main import create_app

def build_parser(defaults: Settings = default_settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statuspulse",
        description="Uptime dashboard: polls HTTP endpoints and pushes their status over WebSocket",
    )
    parser.add_argument('-c', '--config', default=defaults.CONFIG_PATH,
                        help=f'path to the endpoint config file (default: {defaults.CONFIG_PATH})')
    parser.add_argument('-s', '--static', default=defaults.STATIC_PATH,
                        help=f'path to the static files (default: {defaults.STATIC_PATH})')
    parser.add_argument('-d', '--data', default=defaults.DATA_PATH,
                        help=f'directory for the saved status state (default: {defaults.DATA_PATH})')
    parser.add_argument('-t', '--timeout', type=float, default=defaults.INTERVAL_S,
                        help=f'seconds to wait between rounds (default: {defaults.INTERVAL_S:g})')
    parser.add_argument('--host', default=defaults.HOST)
    parser.add_argument('--port', type=int, default=defaults.PORT)
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser

def settings_from_args(args: argparse.Namespace, base: Settings = default_settings) -> Settings:
    return dataclasses.replace(
        base,
        CONFIG_PATH=args.config,
        STATIC_PATH=args.static,
        DATA_PATH=args.data,
        INTERVAL_S=args.timeout,
        HOST=args.host,
        PORT=args.port,
    )

def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    settings = settings_from_args(args)
    logging.getLogger(__name__).info(
        f"Config: {settings.CONFIG_PATH}, static: {settings.STATIC_PATH}, "
        f"data: {settings.DATA_PATH}, interval: {settings.INTERVAL_S:g}s"
    )
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT,
                log_level=args.log_level.lower())

if __name__ == "__main__":
    main()
