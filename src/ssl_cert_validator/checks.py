#!/usr/bin/env python3
"""
Certificate checks: validity window, hostname match, subject fields and trust

Each check returns ValidationTestResult records and has no side effects, so
checks can run against synthetic certificates without a live connection.
"""
from datetime import datetime, timedelta
from typing import List, Optional

from .chain import MAX_CHAIN_LENGTH, find_root
from .hostname import matches_hostname
from .models import CertificateNode, TestStatus, ValidationTestResult, to_iso

EXPIRY_WARNING_DAYS = 30
# CA/Browser Forum baseline
MAX_LIFETIME_DAYS = 825
RECOMMENDED_SUBJECT_FIELDS = ('C', 'ST', 'L', 'O', 'CN')
SERVER_AUTH_USAGES = ('TLS Web Server Authentication', 'serverAuth')

ONE_DAY = timedelta(days=1)


def check_validity(cert: CertificateNode, hostname: str, now: datetime,
                   expiry_warning_days: int = EXPIRY_WARNING_DAYS,
                   max_lifetime_days: int = MAX_LIFETIME_DAYS) -> List[ValidationTestResult]:
    """
    Check the validity window and the total lifetime of a certificate

    Args:
        cert: Leaf certificate
        hostname: Host the certificate was served for
        now: Reference time (timezone aware)

    Returns:
        'validity-dates' and 'certificate-lifetime' results, in that order
    """
    results = []
    valid_from = to_iso(cert.not_before)
    valid_to = to_iso(cert.not_after)

    if now < cert.not_before:
        results.append(ValidationTestResult(
            'validity-dates', TestStatus.FAILED,
            f'Certificate is not yet valid. Valid from: {valid_from}', hostname
        ))
    elif now > cert.not_after:
        results.append(ValidationTestResult(
            'validity-dates', TestStatus.FAILED,
            f'Certificate has expired. Valid until: {valid_to}', hostname
        ))
    else:
        days_until_expiry = (cert.not_after - now) // ONE_DAY
        if days_until_expiry <= expiry_warning_days:
            results.append(ValidationTestResult(
                'validity-dates', TestStatus.WARNING,
                f'Certificate expires in {days_until_expiry} days ({valid_to})', hostname
            ))
        else:
            results.append(ValidationTestResult(
                'validity-dates', TestStatus.PASSED,
                f'Certificate is valid until {valid_to} ({days_until_expiry} days remaining)', hostname
            ))

    lifetime_days = (cert.not_after - cert.not_before) // ONE_DAY
    if lifetime_days > max_lifetime_days:
        results.append(ValidationTestResult(
            'certificate-lifetime', TestStatus.WARNING,
            f'Certificate lifetime is {lifetime_days} days, '
            f'which exceeds recommended {max_lifetime_days} days', hostname
        ))
    else:
        results.append(ValidationTestResult(
            'certificate-lifetime', TestStatus.PASSED,
            f'Certificate lifetime is {lifetime_days} days (within recommended limits)', hostname
        ))

    return results


def check_subject_and_san(cert: CertificateNode, hostname: str) -> List[ValidationTestResult]:
    """Match the hostname against CN and SAN, and check subject completeness"""
    results = []
    subject_cn = cert.subject.CN
    san = list(cert.subject_alt_names)

    cn_matches = matches_hostname(subject_cn, hostname)
    san_matches = [name for name in san if matches_hostname(name, hostname)]
    details = f"CN: {subject_cn}, SAN: {', '.join(san)}"

    if cn_matches or san_matches:
        matched = subject_cn if cn_matches else san_matches[0]
        results.append(ValidationTestResult(
            'subject-san-match', TestStatus.PASSED,
            f'Hostname {hostname} matches certificate entry {matched} ({details})', hostname
        ))
    else:
        results.append(ValidationTestResult(
            'subject-san-match', TestStatus.FAILED,
            f'Hostname {hostname} does not match certificate ({details})', hostname
        ))

    missing = [name for name in RECOMMENDED_SUBJECT_FIELDS if not cert.subject.get(name)]
    if not missing:
        results.append(ValidationTestResult(
            'subject-completeness', TestStatus.PASSED,
            'Certificate subject contains all recommended fields', hostname
        ))
    else:
        results.append(ValidationTestResult(
            'subject-completeness', TestStatus.WARNING,
            f"Certificate subject missing recommended fields: {', '.join(missing)}", hostname
        ))

    return results


def check_authority(cert: CertificateNode, hostname: str, authorized: bool,
                    authorization_error: Optional[str] = None,
                    max_length: int = MAX_CHAIN_LENGTH) -> List[ValidationTestResult]:
    """Report CA trust, the root certificate and server-auth key usage"""
    results = []

    if authorized:
        results.append(ValidationTestResult(
            'ca-trust', TestStatus.PASSED,
            'Certificate is trusted by system CA store', hostname
        ))
    else:
        error = authorization_error or 'Unknown authorization error'
        results.append(ValidationTestResult(
            'ca-trust', TestStatus.FAILED,
            f'Certificate is not trusted: {error}', hostname
        ))

    root = find_root(cert, max_length)
    if root.subject.CN == root.issuer.CN:
        results.append(ValidationTestResult(
            'root-ca-validation', TestStatus.PASSED,
            f'Root CA: {root.subject.CN}', hostname
        ))
    else:
        results.append(ValidationTestResult(
            'root-ca-validation', TestStatus.WARNING,
            'Root certificate does not appear to be self-signed', hostname
        ))

    results.append(check_key_usage(cert, hostname))
    return results


def check_key_usage(cert: CertificateNode, hostname: str) -> ValidationTestResult:
    has_server_auth = any(
        marker in usage
        for usage in cert.extended_key_usage
        for marker in SERVER_AUTH_USAGES
    )
    if has_server_auth:
        return ValidationTestResult(
            'key-usage', TestStatus.PASSED,
            'Certificate has appropriate key usage for TLS server authentication', hostname
        )
    return ValidationTestResult(
        'key-usage', TestStatus.WARNING,
        'Certificate may not have appropriate key usage extensions for TLS server authentication',
        hostname
    )
