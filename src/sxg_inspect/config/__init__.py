"""
Configuration management for sxg-inspect

This module provides the inspection, fetch and logging configuration
used by the command-line interface and the inspection session.
"""

from .inspect_config import (
    InspectConfig,
    FetchConfig,
    LoggingConfig,
    load_config_file,
    VALID_LOG_LEVELS,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_MAX_CERT_CHAIN_SIZE,
)

__all__ = [
    'InspectConfig',
    'FetchConfig',
    'LoggingConfig',
    'load_config_file',
    'VALID_LOG_LEVELS',
    'DEFAULT_FETCH_TIMEOUT',
    'DEFAULT_MAX_CERT_CHAIN_SIZE',
]
