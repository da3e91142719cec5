# Copyright (C) 2019 The Electrum developers
# Copyright (C) 2026 The etherseed developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php

"""Logging for etherseed.

Every module logs through get_logger(__name__), and classes through the
Logger mixin, all below the "etherseed" logger. Nothing is printed until the
embedding application calls configure_logging (or configure_console_logging).

Log lines carry sizes, parameters and timings only: never mnemonics, seeds,
keys or passwords.
"""

import copy
import datetime
import logging
import os
import pathlib
import platform
import sys
from typing import Optional, Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from .simple_config import SimpleConfig


PACKAGE_LOGGER_NAME = "etherseed"
LOGFILE_PREFIX = "etherseed_log_"
LOGFILES_TO_KEEP = 10


def _short_name(name: str) -> str:
    if name.startswith(PACKAGE_LOGGER_NAME + "."):
        return name[len(PACKAGE_LOGGER_NAME) + 1:]
    return name


def _with_short_name(record: logging.LogRecord) -> logging.LogRecord:
    # other handlers see the same record: format a copy
    record = copy.copy(record)
    record.name = _short_name(record.name)
    return record


class LogFormatterForFiles(logging.Formatter):
    """Full lines, with ISO 8601 UTC timestamps."""

    def formatTime(self, record, datefmt=None):
        created = datetime.datetime.fromtimestamp(record.created, tz=datetime.timezone.utc)
        return created.strftime(datefmt or "%Y%m%dT%H%M%S.%fZ")

    def format(self, record):
        return super().format(_with_short_name(record))


class LogFormatterForConsole(logging.Formatter):
    """Short lines: one letter level, the class shortcut if any, no timestamp."""

    def format(self, record):
        text = super().format(_with_short_name(record))
        shortcut = getattr(record, 'custom_shortcut', None)
        if shortcut:
            text = f"{text[:1]}/{shortcut}{text[1:]}"
        return text


file_formatter = LogFormatterForFiles(fmt="%(asctime)22s | %(levelname)8s | %(name)s | %(message)s")
console_formatter = LogFormatterForConsole(fmt="%(levelname).1s | %(name)s | %(message)s")


class ShortcutInjectingFilter(logging.Filter):
    """Tags records with the LOGGING_SHORTCUT of the class that logged them."""

    def __init__(self, *, shortcut: Optional[str]):
        super().__init__()
        self.shortcut = shortcut

    def filter(self, record):
        record.custom_shortcut = self.shortcut
        return True


class ShortcutFilteringFilter(logging.Filter):
    """Lets through records by LOGGING_SHORTCUT.

    As a whitelist, only records tagged with one of filters pass; as a
    blacklist, everything but those. Errors always pass.
    """

    def __init__(self, *, is_blacklist: bool, filters: str):
        super().__init__()
        self.is_blacklist = is_blacklist
        self.filters = filters

    @classmethod
    def from_verbosity_shortcuts(cls, verbosity_shortcuts: str) -> Optional['ShortcutFilteringFilter']:
        """"WS" shows only the wizard and storage, "^WS" everything but them."""
        if not verbosity_shortcuts:
            return None
        if verbosity_shortcuts.startswith('^'):
            return cls(is_blacklist=True, filters=verbosity_shortcuts[1:])
        return cls(is_blacklist=False, filters=verbosity_shortcuts)

    def filter(self, record):
        if record.levelno >= logging.ERROR or record.name == __name__:
            return True
        shortcut = getattr(record, 'custom_shortcut', None)
        listed = shortcut is not None and shortcut in self.filters
        return not listed if self.is_blacklist else listed


def _parse_level(level: str) -> int:
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown log level: {level!r}")
    return value


def parse_verbosity(verbosity: Optional[str]) -> Dict[str, int]:
    """Parses a verbosity string into {logger name: level}.

    "debug,keystore=warning" sets the whole package to debug except the
    keystore module. The package itself is the key "". Both None and "*"
    mean no changes.
    """
    levels = {}
    if not verbosity or verbosity == '*':
        return levels
    for item in verbosity.split(','):
        if not item:
            continue
        name, sep, level = item.rpartition('=')
        if sep and (not name or '=' in name):
            raise ValueError(f"invalid log filter: {item!r}")
        levels[name] = _parse_level(level)
    return levels


def apply_verbosity(verbosity: Optional[str]) -> None:
    for name, level in parse_verbosity(verbosity).items():
        logger = get_logger(name) if name else etherseed_logger
        logger.setLevel(level)


etherseed_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
etherseed_logger.setLevel(logging.DEBUG)

console_stderr_handler = None  # type: Optional[logging.Handler]
file_handler = None  # type: Optional[logging.FileHandler]


def get_logger(name: str) -> logging.Logger:
    return etherseed_logger.getChild(_short_name(name))


_logger = get_logger(__name__)


class Logger:
    """Mixin giving instances a self.logger named after their class."""

    # one character tag for the class, used by verbosity_shortcuts. Need not be unique.
    LOGGING_SHORTCUT = None  # type: Optional[str]

    def __init__(self):
        self.logger = self.__get_logger_for_obj()

    def __get_logger_for_obj(self) -> logging.Logger:
        cls = self.__class__
        name = f"{cls.__module__}.{cls.__name__}" if cls.__module__ else cls.__name__
        diag_name = self.diagnostic_name()
        if diag_name:
            name += f".[{diag_name}]"
        logger = get_logger(name)
        if self.LOGGING_SHORTCUT:
            logger.addFilter(ShortcutInjectingFilter(shortcut=self.LOGGING_SHORTCUT))
        return logger

    def diagnostic_name(self):
        return ''


def configure_console_logging(*, verbosity: str = None, verbosity_shortcuts: str = None) -> logging.Handler:
    """(Re)installs the stderr handler. Without verbosity only warnings and
    errors are shown.
    """
    global console_stderr_handler
    if console_stderr_handler is not None:
        etherseed_logger.removeHandler(console_stderr_handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(console_formatter)
    if verbosity or verbosity_shortcuts:
        handler.setLevel(logging.DEBUG)
        apply_verbosity(verbosity)
        shortcut_filter = ShortcutFilteringFilter.from_verbosity_shortcuts(verbosity_shortcuts)
        if shortcut_filter is not None:
            handler.addFilter(shortcut_filter)
    else:
        handler.setLevel(logging.WARNING)
    etherseed_logger.addHandler(handler)
    console_stderr_handler = handler
    return handler


def prune_old_logs(log_directory: pathlib.Path, *, keep: int = LOGFILES_TO_KEEP) -> None:
    # file names start with a UTC timestamp, so they sort by age
    logfiles = sorted(log_directory.glob(f"{LOGFILE_PREFIX}*.log"), reverse=True)
    for path in logfiles[keep:]:
        try:
            path.unlink()
        except OSError as e:
            _logger.warning(f"cannot delete old logfile {path.name}: {e!r}")


def start_file_logging(log_directory: pathlib.Path) -> pathlib.Path:
    """Logs everything, at debug level, to a new file in log_directory.
    Older files there beyond the most recent few are deleted.
    """
    global file_handler
    stop_file_logging()
    log_directory.mkdir(exist_ok=True)
    prune_old_logs(log_directory, keep=LOGFILES_TO_KEEP - 1)
    timestamp = datetime.datetime.now(datetime.timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    path = log_directory / f"{LOGFILE_PREFIX}{timestamp}_{os.getpid()}.log"
    handler = logging.FileHandler(path, encoding='utf-8')
    handler.setFormatter(file_formatter)
    handler.setLevel(logging.DEBUG)
    etherseed_logger.addHandler(handler)
    file_handler = handler
    return path


def stop_file_logging() -> None:
    global file_handler
    if file_handler is None:
        return
    etherseed_logger.removeHandler(file_handler)
    file_handler.close()
    file_handler = None


def get_logfile_path() -> Optional[pathlib.Path]:
    return pathlib.Path(file_handler.baseFilename) if file_handler is not None else None


def configure_logging(config: 'SimpleConfig', *, log_to_file: Optional[bool] = None) -> Optional[pathlib.Path]:
    """Sets up logging from config: stderr always, and a file in
    <data dir>/logs if log_to_file (default: config.LOG_TO_FILE).
    Returns the log file path, if any.
    """
    verbosity = config.VERBOSITY
    verbosity_shortcuts = config.VERBOSITY_SHORTCUTS
    configure_console_logging(verbosity=verbosity, verbosity_shortcuts=verbosity_shortcuts)
    if log_to_file is None:
        log_to_file = config.LOG_TO_FILE
    if log_to_file and config.path:
        start_file_logging(pathlib.Path(config.path) / "logs")
    else:
        stop_file_logging()

    from .version import ETHERSEED_VERSION
    _logger.info(f"etherseed version: {ETHERSEED_VERSION}")
    _logger.info(f"Python version: {sys.version}. On platform: {platform.platform()}")
    _logger.info(f"log filters: verbosity {verbosity!r}, verbosity_shortcuts {verbosity_shortcuts!r}")
    return get_logfile_path()
