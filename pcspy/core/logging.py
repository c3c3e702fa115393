"""Logging utilities for pcspy modules."""

import logging
import re


_TOKEN_PATTERN = re.compile(r'(access_token=)[^&]+')


def get_logger(name: str) -> logging.Logger:
    """Get a logger that automatically inherits from root logger.
    
    This ensures that loggers work with basicConfig() without needing
    explicit setup_logging() calls. The logger will:
    - Propagate to root logger (default behavior)
    - Only set a default level if root logger has no handlers
    
    Args:
        name: Logger name (typically 'pcspy.<area>')
        
    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    
    # Only set default level if root logger has no handlers
    # (i.e., basicConfig hasn't been called yet)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logger.setLevel(logging.WARNING)
    
    return logger


def redact_url(url: str) -> str:
    """Hide the access token in a URL before it reaches a log record."""
    return _TOKEN_PATTERN.sub(r'\1***', str(url))
