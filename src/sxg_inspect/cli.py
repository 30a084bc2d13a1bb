"""
Command-line interface for sxg-inspect
Dumps the headers and payload of a signed exchange and optionally verifies its signature
"""

import argparse
import sys
from typing import Any, Dict, Optional

from . import __version__
from .config import InspectConfig, LoggingConfig, load_config_file, VALID_LOG_LEVELS
from .exceptions import SXGInspectError
from .inspection import InspectionSession


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='sxg-inspect',
        description='Inspect a signed exchange: print its headers and payload, '
                    'optionally verifying its signature'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'sxg-inspect {__version__}'
    )

    parser.add_argument(
        '-i', '--input',
        help='Signed-exchange input file (default: standard input)'
    )
    parser.add_argument(
        '--signature',
        action='store_true',
        help='Print only signature value'
    )
    parser.add_argument(
        '--verify',
        action='store_true',
        help='Perform signature verification'
    )
    parser.add_argument(
        '--cert',
        help="Certificate CBOR file. If specified, used instead of fetching from signature's cert-url"
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print output as JSON'
    )
    parser.add_argument(
        '--config',
        help='JSON configuration file with fetch, logging and cert defaults'
    )
    parser.add_argument(
        '--log-level',
        type=str.upper,
        choices=VALID_LOG_LEVELS,
        help='Level for diagnostic logging on stderr (default: WARNING)'
    )

    return parser


def build_config(args: argparse.Namespace) -> InspectConfig:
    """
    Build the inspection configuration from parsed arguments.

    Values from --config are defaults; command-line flags override them.

    Raises:
        ConfigError: If the configuration file is invalid
    """
    options: Dict[str, Any] = {}
    if args.config:
        options.update(load_config_file(args.config))

    if args.cert:
        options['cert_path'] = args.cert
    if args.log_level:
        options['logging'] = LoggingConfig(level=args.log_level)

    return InspectConfig(
        input_path=args.input,
        signature_only=args.signature,
        verify=args.verify,
        json_output=args.json,
        **options
    )


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
        config.logging.apply()
        InspectionSession(config).run()
        return 0

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except SXGInspectError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
