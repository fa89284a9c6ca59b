import logging
import sys
import traceback

from colorlog import ColoredFormatter

LOGGER_NAME = "directus_deployer"


def setup_logger(debug_mode=False):
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    # Create console handler
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    # Create colored formatter
    formatter = ColoredFormatter(
        "%(log_color)s[%(levelname)s] %(message)s",
        log_colors={
            "DEBUG":    "cyan",
            "INFO":     "green",
            "WARNING":  "yellow",
            "ERROR":    "red",
            "CRITICAL": "red,bg_white",
        }
    )
    handler.setFormatter(formatter)

    if not logger.handlers:
        logger.addHandler(handler)
    else:
        # Re-setup (e.g. --debug after import): only the level changes
        for existing in logger.handlers:
            existing.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    return logger


def get_debug_mode() -> bool:
    return logger.isEnabledFor(logging.DEBUG)


def print_stack_trace():
    """Print the current stack trace if debug mode is enabled."""
    if get_debug_mode():
        logger.error(traceback.format_exc())


# Logger defaults to INFO unless reconfigured by the CLI.
logger = setup_logger(debug_mode=False)
