"""Logging configuration"""

import logging
import sys


def setup_logging(log_level: str = "WARNING") -> logging.Logger:
    """Configure logging for the entire application.

    Always logs to stderr: stdout carries the credential-helper protocol.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,  # Override any existing configuration
    )
    return logging.getLogger("docker-credential-gcr")
