"""
Logging for snapsync.

Messages go to the terminal at a level chosen by `Verbosity`.
While a system snapshot is running, they are also copied in to the snapshot's
run log, interleaved with the sync tool's output in the order they happened.
"""
import contextlib
import enum
import logging
import logging.config
import shlex
import typing as t
from logging import CRITICAL, DEBUG, ERROR, INFO, NOTSET, WARNING, getLogger

from . import config

__all__ = [
    'CRITICAL', 'ERROR', 'WARNING', 'MESSAGE', 'INFO', 'DEBUG', 'NOTSET', 'getLogger',
    'Verbosity', 'setup_logging', 'run_log',
]

#: Progress messages that are shown unless running quietly
MESSAGE = INFO + 5
logging.addLevelName(MESSAGE, 'MESSAGE')

#: Format of snapsync's own lines in a run log
RUN_LOG_FORMAT = "[snapsync %(asctime)s] %(levelname)s %(message)s"


class Verbosity(config.Singleton, enum.IntEnum):
    silent = 0
    minimal = 1
    some = 2
    all = 3

    @property
    def log_level(self) -> int:
        return [WARNING, MESSAGE, INFO, DEBUG][self]


def setup_logging(config: config.Config) -> None:
    verbosity = config.get(Verbosity)

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "verbose" if verbosity >= Verbosity.all else "brief",
                "level": verbosity.log_level,
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "snapsync": {
                "handlers": ["console"],
                "level": logging.DEBUG,
            },
        },
        "formatters": {
            "verbose": {
                "class": "snapsync.logging.ColouredLeaderFormatter",
                "format": "%(leader)s %(levelname)7s %(asctime)s %(name)s | %(message)s",
            },
            "brief": {
                "class": "snapsync.logging.ColouredLeaderFormatter",
                "format": "%(leader)s %(message)s",
            },
        },
    })


class RunLogHandler(logging.Handler):
    """
    Write log records to a run log opened in binary mode.

    The sync tool's output is written to the same stream,
    so sharing it keeps both in the order they were produced.
    """
    terminator = b'\n'

    def __init__(self, stream: t.BinaryIO, level: int = INFO) -> None:
        super().__init__(level)
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.stream.write(self.format(record).encode('utf-8') + self.terminator)
            self.stream.flush()
        except Exception:
            self.handleError(record)


@contextlib.contextmanager
def run_log(stream: t.BinaryIO, level: int = INFO) -> t.Iterator[RunLogHandler]:
    """
    Copy everything snapsync logs at `level` or above in to `stream`
    until the block exits.
    """
    handler = RunLogHandler(stream, level)
    handler.setFormatter(logging.Formatter(RUN_LOG_FORMAT, datefmt='%H:%M:%S'))

    package_logger = getLogger('snapsync')
    previous_level = package_logger.level
    if package_logger.getEffectiveLevel() > level:
        package_logger.setLevel(level)
    package_logger.addHandler(handler)
    try:
        yield handler
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)
        handler.close()


def command(command: t.Sequence[str]) -> str:
    return '$ ' + shlex.join(command)


def style(code: str, message: str) -> str:
    return f'\x1b[{code}m{message}\x1b[0m'


class ColouredLeaderFormatter(logging.Formatter):
    default_time_format = '%Y-%m-%d %H:%M:%S'
    default_msec_format = None  # type: ignore

    LEVEL_COLORS = {
        DEBUG: '1;38;5;244',
        INFO: '1;38;5;164',
        MESSAGE: '1;38;5;26',
        WARNING: '1;33',
        ERROR: '1;31',
        CRITICAL: '1;31;1',
    }

    def formatMessage(self, record: logging.LogRecord) -> str:
        leader = "==>"
        if record.levelno in self.LEVEL_COLORS:
            leader = style(self.LEVEL_COLORS[record.levelno], leader)
        record.leader = leader  # type: ignore
        return super().formatMessage(record)
