"""Logging configuration for the SSE relay."""
from __future__ import annotations

import logging
import sys

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def log_request(logger: logging.Logger, method: str, topic: str, client_ip: str) -> None:
    """Log an incoming relay request in a structured format.

    Args:
        logger: Logger instance
        method: HTTP method of the request
        topic: URL path the request targets
        client_ip: Address of the remote peer
    """
    logger.info(
        f"Received a message from {client_ip}",
        extra={
            "method": method,
            "topic": topic,
            "client_ip": client_ip,
        }
    )
