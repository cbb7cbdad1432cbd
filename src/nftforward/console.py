"""
Console output: severity-tagged logging and input prompts
"""

import logging
import os
import sys
from typing import Callable, Optional


COLOR_INFO = '\033[0;32m'
COLOR_WARN = '\033[0;33m'
COLOR_ERR = '\033[0;31m'
COLOR_MENU = '\033[0;36m'
COLOR_RESET = '\033[0m'

LOG_FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class SeverityFormatter(logging.Formatter):
    """Prefix messages with [INFO]/[WARN]/[ERROR], colored on a terminal"""

    TAGS = {
        logging.DEBUG: ('[DEBUG]', ''),
        logging.INFO: ('[INFO]', COLOR_INFO),
        logging.WARNING: ('[WARN]', COLOR_WARN),
        logging.ERROR: ('[ERROR]', COLOR_ERR),
        logging.CRITICAL: ('[ERROR]', COLOR_ERR),
    }

    def __init__(self, color: bool = False):
        super().__init__('%(message)s')
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        tag, color = self.TAGS.get(record.levelno, ('[INFO]', COLOR_INFO))
        text = f"{tag} {super().format(record)}"
        if self.color and color:
            return f"{color}{text}{COLOR_RESET}"
        return text


def setup_logging(config, verbose: bool = False, stream=None) -> None:
    """Console handler with severity tags plus an optional log file"""
    stream = stream or sys.stdout
    level_name = 'DEBUG' if verbose else str(config.get('general.log_level', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)

    console = logging.StreamHandler(stream)
    console.setFormatter(SeverityFormatter(color=hasattr(stream, 'isatty') and stream.isatty()))
    handlers = [console]

    log_file = config.get('general.log_file', '')
    file_error = None
    if log_file:
        try:
            os.makedirs(os.path.dirname(log_file) or '.', exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT))
            handlers.append(file_handler)
        except OSError as e:
            file_error = e

    logging.basicConfig(level=level, handlers=handlers, force=True)
    if file_error is not None:
        logging.getLogger(__name__).warning(f"File logging disabled: {file_error}")


def heading(text: str, color: bool = False) -> str:
    if color:
        return f"{COLOR_MENU}{text}{COLOR_RESET}"
    return text


def prompt_until_valid(read: Callable[[str], str], prompt: str,
                       validator: Callable[[str], bool], error: str,
                       default: Optional[str] = None) -> str:
    """
    Ask until validator accepts the answer

    An empty answer is replaced by default when one is given, and the
    default itself is validated like any other answer.
    """
    logger = logging.getLogger(__name__)
    while True:
        answer = read(prompt).strip()
        if not answer and default is not None:
            answer = default
        if validator(answer):
            return answer
        logger.error(error)
