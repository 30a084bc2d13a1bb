"""
Unit tests for configuration
"""

import json
import logging

import pytest

from sxg_inspect.config import (
    DEFAULT_FETCH_TIMEOUT,
    FetchConfig,
    InspectConfig,
    LoggingConfig,
    load_config_file,
)
from sxg_inspect.exceptions import ConfigError


class TestFetchConfig:
    """Test fetch settings"""
    
    def test_defaults(self):
        """Test default values"""
        config = FetchConfig()
        
        assert config.timeout == DEFAULT_FETCH_TIMEOUT
        assert config.max_cert_chain_size == 1024 * 1024
        assert config.user_agent.startswith("sxg-inspect/")
    
    @pytest.mark.parametrize("kwargs,code", [
        ({'timeout': 0}, "INVALID_TIMEOUT"),
        ({'timeout': -1.5}, "INVALID_TIMEOUT"),
        ({'max_cert_chain_size': 0}, "INVALID_SIZE"),
    ])
    def test_validation(self, kwargs, code):
        """Test rejected values"""
        with pytest.raises(ConfigError) as exc_info:
            FetchConfig(**kwargs)
        
        assert exc_info.value.error_code == code


class TestLoggingConfig:
    """Test logging settings"""
    
    def test_level_normalized(self):
        """Test that level names are case-insensitive"""
        assert LoggingConfig(level='debug').level == 'DEBUG'
    
    def test_invalid_level(self):
        """Test that unknown levels are rejected"""
        with pytest.raises(ConfigError) as exc_info:
            LoggingConfig(level='verbose')
        
        assert exc_info.value.error_code == "INVALID_LOG_LEVEL"
    
    def test_apply(self):
        """Test that applying sets the package logger level"""
        LoggingConfig(level='INFO').apply()
        
        assert logging.getLogger('sxg_inspect').level == logging.INFO


class TestInspectConfig:
    """Test the session configuration"""
    
    def test_empty_paths_unset(self):
        """Test that empty strings are treated as absent"""
        config = InspectConfig(input_path="", cert_path="")
        
        assert config.input_path is None
        assert config.cert_path is None
    
    @pytest.mark.parametrize("kwargs,expected", [
        ({}, False),
        ({'verify': True}, True),
        ({'signature_only': True, 'verify': True}, False),
        ({'json_output': True}, True),
        ({'json_output': True, 'signature_only': True}, True),
    ])
    def test_needs_verification(self, kwargs, expected):
        """Test which modes evaluate the signature"""
        assert InspectConfig(**kwargs).needs_verification is expected


class TestLoadConfigFile:
    """Test configuration file loading"""
    
    def test_load(self, tmp_path):
        """Test loading every supported key"""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            'fetch': {'timeout': 10, 'max_cert_chain_size': 2048},
            'logging': {'level': 'debug'},
            'cert': 'cert.cbor',
        }))
        
        options = load_config_file(path)
        
        assert options['fetch'] == FetchConfig(timeout=10, max_cert_chain_size=2048)
        assert options['logging'].level == 'DEBUG'
        assert options['cert_path'] == 'cert.cbor'
    
    def test_empty_object(self, tmp_path):
        """Test that an empty object gives no overrides"""
        path = tmp_path / "config.json"
        path.write_text("{}")
        
        assert load_config_file(path) == {}
    
    @pytest.mark.parametrize("content,code", [
        ("{broken", "PARSE_ERROR"),
        ("[]", "INVALID_FORMAT"),
        ('{"proxy": "x"}', "INVALID_FORMAT"),
        ('{"fetch": {"retries": 3}}', "INVALID_FORMAT"),
        ('{"cert": 7}', "INVALID_FORMAT"),
        ('{"fetch": {"timeout": -1}}', "INVALID_TIMEOUT"),
    ])
    def test_invalid(self, tmp_path, content, code):
        """Test rejected files"""
        path = tmp_path / "config.json"
        path.write_text(content)
        
        with pytest.raises(ConfigError) as exc_info:
            load_config_file(path)
        
        assert exc_info.value.error_code == code
    
    def test_missing_file(self, tmp_path):
        """Test that an unreadable file is reported"""
        with pytest.raises(ConfigError) as exc_info:
            load_config_file(tmp_path / "missing.json")
        
        assert exc_info.value.error_code == "FILE_ERROR"
