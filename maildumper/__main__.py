# maildumper
# MIT licensed

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from .config import DEFAULT_CONFIG_PATH, load_config, server_from_config

logger = logging.getLogger('maildumper')


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Stub SMTP server that dumps one message to a file')
    parser.add_argument('--config', type=Path, default=DEFAULT_CONFIG_PATH,
                        help=f'Path to config file (default: {DEFAULT_CONFIG_PATH})')
    return parser.parse_args(argv)


async def serve(config) -> None:
    server = server_from_config(config)
    shutdown_event = asyncio.Event()

    def signal_handler():
        if not shutdown_event.is_set():
            logger.info("Shutdown signal received")
            shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await server.start()
        logger.info(f"Dumping mail to {server.storage_path}")
        session_done = asyncio.create_task(server.wait_closed())
        shutdown = asyncio.create_task(shutdown_event.wait())
        await asyncio.wait({session_done, shutdown}, return_when=asyncio.FIRST_COMPLETED)
        for task in (session_done, shutdown):
            task.cancel()
    finally:
        logger.info("Shutting down...")
        await server.stop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        logger.info("Shutdown complete")


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - [%(levelname)s] - %(name)s - %(message)s'
    )
    try:
        config = load_config(args.config)
        logging.getLogger().setLevel(config.get('server', 'log_level').upper())
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.critical(f"Fatal error in main: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
