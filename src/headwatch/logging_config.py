import sys
import os
from pathlib import Path
from loguru import logger

_logging_configured = False

LOG_DIR = Path.home() / ".headwatch" / "logs"


def setup_logging(level="INFO", suppress_console=None, enable_file_logging=None, force=False):
    """
    Configures the global logger.

    By default, only console logging is enabled. File logging is opt-in via
    HEADWATCH_FILE_LOGGING=1 environment variable or enable_file_logging=True.

    Args:
        level: Logging level (default: INFO)
        suppress_console: If True, suppress console logging. If None, check HEADWATCH_MACHINE_MODE env var.
        enable_file_logging: If True, enable file logging. If None, check HEADWATCH_FILE_LOGGING env var.
        force: Reconfigure even if logging was already set up (used by the CLI --verbose flag).
    """
    global _logging_configured

    if _logging_configured and not force:
        return
    _logging_configured = True

    logger.remove()

    if suppress_console is None:
        suppress_console = os.getenv("HEADWATCH_MACHINE_MODE", "").lower() in ("1", "true", "yes")

    # Console sink
    if not suppress_console:
        logger.add(
            sys.stderr,
            level=level,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
            colorize=True
        )

    # File sink, opt-in
    if enable_file_logging is None:
        enable_file_logging = os.getenv("HEADWATCH_FILE_LOGGING", "").lower() in ("1", "true", "yes")

    if enable_file_logging:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        logger.add(
            LOG_DIR / "headwatch.log",
            level="INFO",
            rotation="10 MB",
            retention="1 day",
            compression="gz",
            catch=True,
            serialize=False
        )


# Configure the logger on import (will check env var for machine mode)
setup_logging()
