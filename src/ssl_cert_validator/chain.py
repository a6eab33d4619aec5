#!/usr/bin/env python3
"""
Certificate chain walking and signature algorithm audit
"""
import logging
from typing import List

from .models import CertificateNode, TestStatus, ValidationTestResult

logger = logging.getLogger(__name__)

MAX_CHAIN_LENGTH = 10
WEAK_SIGNATURE_ALGORITHMS = ('md5', 'sha1')


def check_chain(leaf: CertificateNode, hostname: str,
                max_length: int = MAX_CHAIN_LENGTH) -> List[ValidationTestResult]:
    """
    Walk the issuer links of a leaf certificate and assess the chain

    Returns the 'certificate-chain' result, followed by the
    'signature-algorithms' result when the chain walk completes cleanly.
    """
    if not leaf.has_issuer:
        return [ValidationTestResult(
            'certificate-chain', TestStatus.WARNING,
            'Certificate chain appears incomplete or self-signed', hostname
        )]

    hops = 0
    current = leaf
    seen = set()

    while current.has_issuer:
        hops += 1

        if current.fingerprint in seen:
            logger.warning(f"Circular issuer reference at {current.fingerprint[:16]} for {hostname}")
            return [ValidationTestResult(
                'certificate-chain', TestStatus.FAILED,
                'Certificate chain contains circular reference', hostname
            )]
        seen.add(current.fingerprint)

        current = current.issuer_certificate

        if hops > max_length:
            return [ValidationTestResult(
                'certificate-chain', TestStatus.FAILED,
                f'Certificate chain is too long (>{max_length} certificates)', hostname
            )]

    logger.debug(f"Chain for {hostname} has {hops} issuer hop(s)")

    if 2 <= hops <= 4:
        result = ValidationTestResult(
            'certificate-chain', TestStatus.PASSED,
            f'Certificate chain length is appropriate ({hops} certificates)', hostname
        )
    elif hops == 1:
        result = ValidationTestResult(
            'certificate-chain', TestStatus.WARNING,
            'Certificate chain is very short (may be missing intermediate certificates)', hostname
        )
    else:
        result = ValidationTestResult(
            'certificate-chain', TestStatus.WARNING,
            f'Certificate chain length is unusual ({hops} certificates)', hostname
        )

    return [result, check_signature_algorithms(leaf, hostname, max_certs=max_length)]


def check_signature_algorithms(leaf: CertificateNode, hostname: str,
                               max_certs: int = MAX_CHAIN_LENGTH) -> ValidationTestResult:
    """
    Flag md5/sha1 signatures anywhere in the first max_certs certificates

    A self-signed root is visited once, so a weak root is listed once.
    """
    issues = []
    current = leaf
    index = 0

    while current is not None and index < max_certs:
        algorithm = current.signature_algorithm or ''
        if any(weak in algorithm.lower() for weak in WEAK_SIGNATURE_ALGORITHMS):
            issues.append(f'Certificate {index} uses weak signature algorithm: {algorithm}')

        if not current.has_issuer or current.issuer_certificate is leaf:
            break
        current = current.issuer_certificate
        index += 1

    if issues:
        return ValidationTestResult(
            'signature-algorithms', TestStatus.FAILED,
            f"Weak signature algorithms detected: {', '.join(issues)}", hostname
        )
    return ValidationTestResult(
        'signature-algorithms', TestStatus.PASSED,
        'All certificates in chain use strong signature algorithms', hostname
    )


def find_root(leaf: CertificateNode, max_length: int = MAX_CHAIN_LENGTH) -> CertificateNode:
    """Follow issuer links to the last reachable certificate"""
    current = leaf
    seen = {leaf.fingerprint}
    for _ in range(max_length):
        if not current.has_issuer:
            break
        nxt = current.issuer_certificate
        if nxt.fingerprint in seen:
            break
        seen.add(nxt.fingerprint)
        current = nxt
    return current


def iter_chain(leaf: CertificateNode, max_length: int = MAX_CHAIN_LENGTH) -> List[CertificateNode]:
    """Return the chain as a list, leaf first, stopping on cycles"""
    chain = [leaf]
    seen = {leaf.fingerprint}
    current = leaf
    while current.has_issuer and len(chain) <= max_length:
        current = current.issuer_certificate
        if current.fingerprint in seen:
            break
        seen.add(current.fingerprint)
        chain.append(current)
    return chain
