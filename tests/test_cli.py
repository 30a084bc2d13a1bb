"""
Tests for the command-line interface
"""

import json

import pytest

from sxg_inspect import __version__
from sxg_inspect.cli import build_config, create_parser, main
from sxg_inspect.config import LoggingConfig


class TestParser:
    """Test argument parsing"""
    
    def test_defaults(self):
        """Test that no flags give a plain dump from stdin"""
        config = build_config(create_parser().parse_args([]))
        
        assert config.input_path is None
        assert config.signature_only is False
        assert config.verify is False
        assert config.json_output is False
        assert config.cert_path is None
        assert config.logging.level == 'WARNING'
    
    def test_all_flags(self):
        """Test that every flag lands in the configuration"""
        args = create_parser().parse_args([
            '-i', 'in.sxg', '--signature', '--verify', '--json', '--cert', 'cert.cbor', '--log-level', 'debug'
        ])
        config = build_config(args)
        
        assert config.input_path == 'in.sxg'
        assert config.signature_only is True
        assert config.verify is True
        assert config.json_output is True
        assert config.cert_path == 'cert.cbor'
        assert config.logging.level == 'DEBUG'
    
    def test_invalid_log_level(self):
        """Test that an unknown log level is rejected by the parser"""
        with pytest.raises(SystemExit):
            create_parser().parse_args(['--log-level', 'chatty'])
    
    def test_version(self, capsys):
        """Test the version flag"""
        with pytest.raises(SystemExit):
            create_parser().parse_args(['--version'])
        
        assert __version__ in capsys.readouterr().out
    
    def test_config_file_defaults(self, tmp_path):
        """Test that config file values apply and flags override them"""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            'cert': 'from-config.cbor',
            'fetch': {'timeout': 5},
            'logging': {'level': 'info'},
        }))
        
        config = build_config(create_parser().parse_args(['--config', str(path)]))
        assert config.cert_path == 'from-config.cbor'
        assert config.fetch.timeout == 5
        assert config.logging == LoggingConfig(level='INFO')
        
        config = build_config(create_parser().parse_args([
            '--config', str(path), '--cert', 'flag.cbor', '--log-level', 'error'
        ]))
        assert config.cert_path == 'flag.cbor'
        assert config.logging.level == 'ERROR'


class TestMain:
    """Test the main entry point"""
    
    def test_signature_output(self, exchange_file, signed_exchange, capsysbinary):
        """Test printing the signature value"""
        exit_code = main(['-i', str(exchange_file), '--signature'])
        
        captured = capsysbinary.readouterr()
        assert exit_code == 0
        assert captured.out == signed_exchange.signature_header_value.encode() + b"\n"
    
    def test_dump_output(self, exchange_file, capsysbinary):
        """Test the plain dump"""
        exit_code = main(['-i', str(exchange_file)])
        
        assert exit_code == 0
        assert capsysbinary.readouterr().out.startswith(b"format version: 1b3\n")
    
    def test_json_output(self, exchange_file, cert_file, capsysbinary):
        """Test JSON output with a certificate override"""
        exit_code = main(['-i', str(exchange_file), '--json', '--cert', str(cert_file)])
        
        record = json.loads(capsysbinary.readouterr().out)
        assert exit_code == 0
        assert record['Payload'] == []
        assert isinstance(record['Valid'], bool)
    
    def test_missing_input(self, tmp_path, capsysbinary):
        """Test that a missing input file exits with status 1"""
        exit_code = main(['-i', str(tmp_path / "missing.sxg")])
        
        captured = capsysbinary.readouterr()
        assert exit_code == 1
        assert captured.out == b""
        assert captured.err.startswith(b"Error: could not open")
    
    def test_missing_cert(self, exchange_file, tmp_path, capsysbinary):
        """Test that an unreadable override exits with status 1 and no output"""
        exit_code = main(['-i', str(exchange_file), '--verify', '--cert', str(tmp_path / "missing.cbor")])
        
        captured = capsysbinary.readouterr()
        assert exit_code == 1
        assert captured.out == b""
        assert b"Error: could not read" in captured.err
    
    def test_invalid_config_file(self, tmp_path, capsysbinary):
        """Test that a broken config file exits with status 1"""
        path = tmp_path / "config.json"
        path.write_text("{not json")
        
        exit_code = main(['--config', str(path)])
        
        assert exit_code == 1
        assert b"Error: Failed to parse configuration JSON" in capsysbinary.readouterr().err
    
    def test_unusable_request_port_still_dumps(self, tmp_path, make_exchange, cert_file, capsysbinary):
        """Test that a URL failing verification does not block the dump"""
        sxg = make_exchange(request_url="https://example.com:99999/index.html")
        path = tmp_path / "bad-port.sxg"
        path.write_bytes(sxg.data)
        
        exit_code = main(['-i', str(path), '--verify', '--cert', str(cert_file)])
        
        output = capsysbinary.readouterr().out
        assert exit_code == 0
        assert b"  URL: invalid: " in output
        assert b"No valid signature found\n\nformat version: 1b3\n" in output
        assert output.endswith(sxg.encoded_payload)
