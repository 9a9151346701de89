"""
Logging configuration for cleaner console output.

Usage:
    import logging_config
    logging_config.setup()
"""

import logging
import sys


def setup(level=logging.INFO):
    """
    Configure root logging for the monitor.

    - Suppresses per-request logs from web3's HTTP provider
    - Uses shorter timestamp format (HH:MM:SS instead of full datetime)
    """

    # Root logger - minimal format
    root = logging.getLogger()
    root.setLevel(level)

    # Clear existing handlers
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    # Minimal format: time + level + message
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
    )
    console.setFormatter(formatter)
    root.addHandler(console)

    # Suppress noisy loggers
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logging.getLogger("__main__").setLevel(level)

    # Module loggers carry their own handler; route them through root instead
    for name in list(logging.root.manager.loggerDict):
        if name == "amm_arbitrage" or name.startswith("amm_arbitrage."):
            app_logger = logging.getLogger(name)
            app_logger.handlers.clear()
            app_logger.setLevel(level)


def setup_minimal():
    """
    Only warnings and errors.
    Good for production or when you only care about problems.
    """
    setup(level=logging.WARNING)


def setup_debug():
    """
    Verbose logging for debugging, including RPC traffic.
    """
    setup(level=logging.DEBUG)
    logging.getLogger("web3").setLevel(logging.DEBUG)
