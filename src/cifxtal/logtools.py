import sys
import os
import time
import logging
from importlib.metadata import version, PackageNotFoundError

from . import LOGGER as MODULELOGGER


LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s : %(message)s"

# (console level, file level), picked by the most verbose flag that is set
LOG_LEVELS = {
    "debug": (logging.DEBUG, logging.DEBUG),
    "verbose": (logging.INFO, logging.INFO),
    "default": (logging.WARNING, logging.INFO),
}


def _select_levels(options):
    for flag in ("debug", "verbose"):
        if getattr(options, flag, False):
            return LOG_LEVELS[flag]
    return LOG_LEVELS["default"]


def _attach_handler(handler, level):
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    MODULELOGGER.addHandler(handler)
    return handler


def setup_logging(options, filename="cifxtal.log"):
    """Attach a console handler, and a file handler if `options.directory`
    is set, to the package logger.

    Args:
        options (argparse.Namespace): Parsed command line options with
            `debug`, `verbose` and `directory` attributes.
        filename (str): Name of the log file inside `options.directory`.

    Returns:
        list[logging.Handler]: The attached handlers.
    """
    console_level, file_level = _select_levels(options)
    handlers = [_attach_handler(logging.StreamHandler(stream=sys.stdout), console_level)]

    directory = getattr(options, "directory", None)
    if directory:
        log_path = os.path.join(directory, filename)
        handlers.append(_attach_handler(logging.FileHandler(log_path, mode="a"), file_level))

    MODULELOGGER.setLevel(min(handler.level for handler in handlers))
    return handlers


def log_run_info(options, logger):
    """Log the package version, the command line and the parsed options."""
    try:
        package_version = version("cifxtal")
    except PackageNotFoundError:
        package_version = "unknown"

    logger.info(f"cifxtal {package_version}, {time.strftime('%c %Z')}")
    logger.info(f"command: {' '.join(sys.argv)}")
    for key, value in sorted(vars(options).items()):
        logger.info(f"  {key} = {value}")
