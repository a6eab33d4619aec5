#!/usr/bin/env python3
"""
SSL Certificate Validator

Validates certificate validity dates, subject/SAN match, chain integrity
and CA trust for one or more TLS endpoints.
"""
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from .chain import check_chain
from .checks import check_authority, check_subject_and_san, check_validity
from .config import ValidatorConfig
from .exceptions import CertificateRetrievalError, DomainListError
from .models import ResultLog, TestStatus, ValidationTestResult, to_iso, utc_now
from .reporter import build_report, print_connection_details, print_result, print_summary, write_report
from .scanner import TLSScanner

logger = logging.getLogger(__name__)


class SSLCertificateValidator:
    def __init__(self, scanner: Optional[TLSScanner] = None,
                 config: Optional[ValidatorConfig] = None,
                 output_file: Optional[str] = None,
                 verbose: bool = False,
                 clock: Callable = utc_now):
        self.config = config or ValidatorConfig()
        self.scanner = scanner or TLSScanner(
            timeout=self.config.timeout_seconds,
            max_chain_length=self.config.max_chain_length,
        )
        self.output_file = output_file
        self.verbose = verbose
        self.clock = clock
        self.timestamp = to_iso(clock())
        self.results = ResultLog()

    def _record(self, results: Iterable[ValidationTestResult]):
        for result in results:
            self.results.add(result)
            print_result(result)

    def validate_certificate(self, hostname: str, port: int = 443) -> Dict[str, Any]:
        """
        Run all certificate checks for one endpoint

        Returns:
            Report dict with timestamp, tests and summary

        Raises:
            CertificateRetrievalError: the certificate could not be retrieved;
                a FAILED 'certificate-retrieval' result is recorded first
        """
        print(f"🔍 Starting SSL certificate validation for {hostname}:{port}")

        try:
            cert_info = self.scanner.get_certificate_info(hostname, port)
        except CertificateRetrievalError as e:
            self._record([ValidationTestResult(
                'certificate-retrieval', TestStatus.FAILED,
                f'Failed to retrieve certificate: {e}', hostname
            )])
            raise

        if self.verbose:
            print_connection_details(cert_info)

        cert = cert_info.certificate
        cfg = self.config
        self._record(check_validity(
            cert, hostname, self.clock(),
            expiry_warning_days=cfg.expiry_warning_days,
            max_lifetime_days=cfg.max_lifetime_days,
        ))
        self._record(check_subject_and_san(cert, hostname))
        self._record(check_chain(cert, hostname, max_length=cfg.max_chain_length))
        self._record(check_authority(
            cert, hostname, cert_info.authorized, cert_info.authorization_error,
            max_length=cfg.max_chain_length,
        ))

        print_summary(self.results.summary())

        if self.output_file:
            self.save_results()

        return self.report()

    def validate_multiple_domains(self, domains: Iterable[str]) -> List[Dict[str, Any]]:
        """Validate domains one after another, recording failures and moving on"""
        all_results = []

        for domain in domains:
            print(f"\n🔍 Validating {domain}...")
            try:
                result = self.validate_certificate(domain)
                all_results.append({'domain': domain, 'result': result})
            except CertificateRetrievalError as e:
                logger.error(f"Failed to validate {domain}: {e}")
                all_results.append({'domain': domain, 'error': str(e)})

        if self.output_file:
            self.save_results()

        return all_results

    def report(self) -> Dict[str, Any]:
        return build_report(self.timestamp, self.results)

    def save_results(self) -> Optional[Path]:
        """Write the report to the output file; failures are logged"""
        try:
            output_path = write_report(self.output_file, self.report())
        except OSError as e:
            logger.error(f"Failed to save results: {e}")
            return None
        print(f"\n📄 Results saved to: {output_path}")
        return output_path


def load_domains(path: str) -> List[str]:
    """
    Read a domains file: a JSON list of hostnames or {"domains": [...]}

    Raises:
        DomainListError: file unreadable, not JSON or of the wrong shape
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise DomainListError(f"Failed to read domains file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise DomainListError(f"Domains file {path} is not valid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise DomainListError(f"Domains file {path} is not UTF-8 text: {e}") from e

    domains = data if isinstance(data, list) else (
        data.get('domains') if isinstance(data, dict) else None
    )
    if not isinstance(domains, list):
        raise DomainListError(f"Domains file {path} must be a list or contain a 'domains' list")
    if not all(isinstance(domain, str) and domain for domain in domains):
        raise DomainListError(f"Domains file {path} must contain only hostnames")
    return domains
