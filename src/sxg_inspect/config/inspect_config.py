"""
Configuration management for sxg-inspect

Provides the per-invocation inspection configuration, the remote fetch
and logging settings, and loading of defaults from a JSON file.
"""

import json
import logging
from typing import Dict, Optional, Any, Union
from dataclasses import dataclass, field
from pathlib import Path

from ..exceptions import ConfigError
from ..version import __version__

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

DEFAULT_FETCH_TIMEOUT = 30.0
DEFAULT_MAX_CERT_CHAIN_SIZE = 1024 * 1024


@dataclass
class FetchConfig:
    """Remote certificate fetch configuration"""
    timeout: float = DEFAULT_FETCH_TIMEOUT
    max_cert_chain_size: int = DEFAULT_MAX_CERT_CHAIN_SIZE
    user_agent: str = f"sxg-inspect/{__version__}"

    def __post_init__(self):
        """Validate fetch configuration"""
        if self.timeout <= 0:
            raise ConfigError("Fetch timeout must be positive", "INVALID_TIMEOUT")
        if self.max_cert_chain_size <= 0:
            raise ConfigError("Max cert chain size must be positive", "INVALID_SIZE")


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = 'WARNING'

    def __post_init__(self):
        """Normalize and validate the level name"""
        self.level = str(self.level).upper()
        if self.level not in VALID_LOG_LEVELS:
            raise ConfigError(
                f"Invalid log level '{self.level}' (expected one of {', '.join(VALID_LOG_LEVELS)})",
                "INVALID_LOG_LEVEL"
            )

    def apply(self) -> None:
        """Route sxg_inspect loggers to stderr at the configured level"""
        logging.basicConfig(
            level=getattr(logging, self.level),
            format='%(levelname)s %(name)s: %(message)s',
        )
        logging.getLogger('sxg_inspect').setLevel(getattr(logging, self.level))


@dataclass
class InspectConfig:
    """
    Configuration for one inspection session

    Attributes:
        input_path: Signed exchange file, None to read standard input
        signature_only: Print only the signature header value
        verify: Verify the signature before printing
        cert_path: Certificate chain file used instead of fetching cert-url
        json_output: Print a structured JSON record
        fetch: Remote fetch settings
        logging: Logging settings
    """
    input_path: Optional[str] = None
    signature_only: bool = False
    verify: bool = False
    cert_path: Optional[str] = None
    json_output: bool = False
    fetch: FetchConfig = field(default_factory=FetchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        """Treat empty paths as unset"""
        if not self.input_path:
            self.input_path = None
        if not self.cert_path:
            self.cert_path = None

    @property
    def needs_verification(self) -> bool:
        """Whether this configuration evaluates the signature at all"""
        if self.json_output:
            return True
        if self.signature_only:
            return False
        return self.verify


def _parse_config_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object", "INVALID_FORMAT")

    unknown = set(data) - {'fetch', 'logging', 'cert'}
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}", "INVALID_FORMAT")

    defaults: Dict[str, Any] = {}
    try:
        if 'fetch' in data:
            defaults['fetch'] = FetchConfig(**data['fetch'])
        if 'logging' in data:
            defaults['logging'] = LoggingConfig(**data['logging'])
    except TypeError as e:
        raise ConfigError(f"Invalid configuration format: {e}", "INVALID_FORMAT")

    if 'cert' in data:
        if not isinstance(data['cert'], str):
            raise ConfigError("'cert' must be a file path", "INVALID_FORMAT")
        defaults['cert_path'] = data['cert']

    return defaults


def load_config_file(file_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load configuration defaults from a JSON file

    Args:
        file_path: Path to a JSON object with optional "fetch", "logging"
            and "cert" keys

    Returns:
        dict: InspectConfig keyword arguments

    Raises:
        ConfigError: If the file cannot be read or is invalid
    """
    try:
        with open(Path(file_path), 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file: {e}", "FILE_ERROR")
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR")

    return _parse_config_dict(data)
