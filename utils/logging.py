# utils/logging.py
import logging
from typing import Optional, Union

from colorama import Back, Fore, Style, init

init(autoreset=True)

ROOT_LOGGER = "pso"
FORMAT = "[%(asctime)s] %(levelname)s | %(name)s | %(message)s"
DATEFMT = "%H:%M:%S"


class ColorFormatter(logging.Formatter):
    COLORS = {
        'INFO': Fore.CYAN,
        'DEBUG': Fore.BLUE,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Back.RED + Fore.WHITE
    }

    def format(self, record):
        # work on a copy so the file handler still sees plain text
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, Fore.WHITE)
        record.levelname = f"{color}{record.levelname}{Style.RESET_ALL}"
        record.name = f"{Fore.MAGENTA}{record.name}{Style.RESET_ALL}"
        return super().format(record)


def get_logger(name: str = ROOT_LOGGER, level: Union[int, str] = logging.INFO,
               logfile: Optional[str] = None) -> logging.Logger:
    """
    Logger for the pso hierarchy. Handlers are attached once, to the first
    caller's logger; later calls only adjust the level.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ColorFormatter(FORMAT, datefmt=DATEFMT))
    logger.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(logfile, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FORMAT, datefmt=DATEFMT))
        logger.addHandler(file_handler)

    return logger
