"""
Logging configuration for the networking library

Provides module loggers under the "networking" namespace and an optional
helper that attaches console and file output for host applications.
"""

import logging
import sys
from pathlib import Path


class NetworkingLogger:
    """Centralized logger for the library"""

    def __init__(
        self, name: str = "networking", log_file: Path | None = None, console_output: bool = True
    ):
        """
        Initialize logger

        Args:
            name: Logger name (usually "networking" for the root library logger)
            log_file: Path to log file (optional)
            console_output: Whether to print to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)

        # Clear existing handlers
        self.logger.handlers = []

        # Format: timestamp - module - level - message
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )

        # Console handler (if enabled)
        if console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        # File handler (if path provided)
        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    def get_logger(self) -> logging.Logger:
        """Get the underlying logger instance"""
        return self.logger


def setup_logging(log_file: Path | None = None, verbose: bool = True) -> logging.Logger:
    """
    Attach handlers to the library logger

    Args:
        log_file: Optional file receiving DEBUG output (request/response dumps)
        verbose: Whether to also print INFO and above to stdout

    Returns:
        Configured logger instance
    """
    logger_wrapper = NetworkingLogger(name="networking", log_file=log_file, console_output=verbose)
    return logger_wrapper.get_logger()


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get logger for a specific module

    Args:
        module_name: Name of the module (e.g., 'request', 'dispatcher')

    Returns:
        Logger instance
    """
    return logging.getLogger(f"networking.{module_name}")


def describe_body(body: bytes, limit: int = 2000) -> str:
    """
    Render a response body for debug output

    UTF-8 bodies are shown as text; anything else as a hex dump.
    Output longer than ``limit`` characters is cut and marked.
    """
    try:
        rendered = body.decode("utf-8")
    except UnicodeDecodeError:
        rendered = f"<hex dump> {body.hex(' ')}"

    if len(rendered) > limit:
        return f"{rendered[:limit]}... ({len(rendered) - limit} more chars)"
    return rendered
