#!/usr/bin/env python3
"""
SSL Certificate Validator - command line interface
"""
import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .ca_bundle import TrustStore
from .config import ValidatorConfig, load_config
from .exceptions import CertificateRetrievalError, ConfigError, ValidatorError
from .scanner import TLSScanner
from .validator import SSLCertificateValidator, load_domains

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
EXIT_FATAL = 1
EXIT_FAILED_CHECKS = 2


def setup_logging(level: str = 'INFO', log_file: Optional[str] = None):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='ssl-cert-validator',
        description='Validate SSL certificate validity and configuration',
    )
    parser.add_argument('--version', action='version', version=__version__)
    commands = parser.add_subparsers(dest='command', required=True)

    validate = commands.add_parser('validate', help='Validate the certificate served by a host')
    validate.add_argument('hostname', nargs='?', help='Hostname to validate')
    validate.add_argument('--port', type=int, default=443, help='Port to connect to (default: 443)')
    validate.add_argument('--output', help='Save results to JSON file')
    validate.add_argument('--verbose', action='store_true', help='Enable verbose output')
    validate.add_argument('--multiple', metavar='FILE', help='Validate multiple domains from JSON file')
    validate.add_argument('--config', help='Path to config file (default: config/config.yaml if present)')
    validate.add_argument('--strict', action='store_true',
                          help=f'Exit with {EXIT_FAILED_CHECKS} when any check failed')
    return parser.parse_args(argv)


def build_validator(config: ValidatorConfig, output: Optional[str],
                    verbose: bool) -> SSLCertificateValidator:
    trust_store = TrustStore(config.custom_ca_files)
    try:
        # Parse trust anchors up front so a bad CA file is a config error
        trust_store.certificates
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to load CA certificates (PEM text expected): {e}") from e

    scanner = TLSScanner(
        timeout=config.timeout_seconds,
        trust_store=trust_store,
        max_chain_length=config.max_chain_length,
    )
    return SSLCertificateValidator(scanner=scanner, config=config,
                                   output_file=output, verbose=verbose)


def run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    setup_logging('DEBUG' if args.verbose else config.log_level, config.log_file)

    if args.multiple:
        domains = load_domains(args.multiple)
    elif args.hostname:
        domains = None
    elif config.domains:
        domains = config.domains
    else:
        print('Error: a hostname, --multiple FILE or configured domains are required', file=sys.stderr)
        return EXIT_FATAL

    validator = build_validator(config, args.output, args.verbose)

    if domains is not None:
        validator.validate_multiple_domains(domains)
    else:
        try:
            validator.validate_certificate(args.hostname, args.port)
        except CertificateRetrievalError as e:
            print(f"Validation failed: {e}", file=sys.stderr)
            return EXIT_FATAL

    if args.strict and validator.results.summary().failed:
        return EXIT_FAILED_CHECKS
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        return run(args)
    except ValidatorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL


if __name__ == '__main__':
    sys.exit(main())
