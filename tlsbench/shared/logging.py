import logging
import sys
from typing import Optional

from tlsbench.const import LOG_FORMAT, LOG_DATE_FORMAT
from .config import Config


class LoggingManager:
    """Manager for logging setup and logger retrieval."""

    @classmethod
    def setup_logging(cls, level: str = "INFO", config: Optional[Config] = None) -> None:
        """Setup logging for one benchmark invocation.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            config: Settings holding per-library levels; loaded when omitted
        """
        # Convert string level to logging level
        numeric_level = getattr(logging, level.upper(), logging.INFO)
        if not isinstance(numeric_level, int):
            numeric_level = logging.INFO

        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(numeric_level)

        # Configure root logger, replacing a handler left by an earlier call
        root_logger = logging.getLogger()
        root_logger.setLevel(numeric_level)
        for handler in list(root_logger.handlers):
            if getattr(handler, "_tlsbench", False):
                root_logger.removeHandler(handler)
        console_handler._tlsbench = True
        root_logger.addHandler(console_handler)

        # Set levels for noisy libraries
        config = config or Config()
        for logger_name, lib_level in config.library_log_levels.items():
            logging.getLogger(logger_name).setLevel(getattr(logging, lib_level.upper(), logging.WARNING))

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger instance.

        Args:
            name: Logger name, typically __name__

        Returns:
            Configured logger instance
        """
        return logging.getLogger(name)
