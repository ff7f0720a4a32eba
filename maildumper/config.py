# maildumper
# MIT licensed

import logging
import os
from configparser import ConfigParser
from pathlib import Path

from .server import SMTPServer

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path('config.ini')


# --- Configuration ---
def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> ConfigParser:
    config = ConfigParser()
    config['server'] = {
        'host': '127.0.0.1',
        'port': '2525',
        'files_directory': '~/.maildumper',
        'hostname': 'mail.dumper',
        'log_level': 'INFO',
    }
    config_path = Path(config_path)
    if config_path.exists():
        config.read(config_path)
    else:
        with open(config_path, 'w') as f:
            config.write(f)
        logger.info(f"Created default {config_path}")

    files_dir_raw = config.get('server', 'files_directory')
    config.set('server', 'files_directory', os.path.expanduser(files_dir_raw))
    return config


def server_from_config(config: ConfigParser) -> SMTPServer:
    section = config['server']
    return SMTPServer(
        section.get('host'),
        Path(section.get('files_directory')),
        port=section.getint('port'),
        hostname=section.get('hostname'),
    )
