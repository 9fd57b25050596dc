"""Command line entry point: `cvfs` starts the HTTP and WebSocket server."""

import structlog

from cvfs.app import App
from cvfs.config import Config
from cvfs.logging import setup_logging
from cvfs.web.runner import run_server

logger = structlog.get_logger(__name__)


def main() -> None:
    config = Config()
    setup_logging(config)
    logger.info("server_starting", host=config.host, port=config.port, vfs_root_path=config.vfs_root_path)
    run_server(App(config), config)


if __name__ == "__main__":
    main()
