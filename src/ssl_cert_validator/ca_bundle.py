#!/usr/bin/env python3
"""
CA Bundle - trust anchors used for chain building and trust verification

Combines the certifi bundle with custom CA certificates loaded from PEM
files listed in the configuration.
"""
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional

import certifi
from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.x509.verification import Store

logger = logging.getLogger(__name__)

PEM_BLOCK = re.compile(r'(-----BEGIN CERTIFICATE-----[\s\S]*?-----END CERTIFICATE-----)')


def load_pem_certificates(pem_text: str) -> List[x509.Certificate]:
    """Parse every certificate block in a PEM string, skipping broken ones"""
    certs = []
    for block in PEM_BLOCK.finditer(pem_text):
        try:
            certs.append(x509.load_pem_x509_certificate(block.group(1).encode()))
        except ValueError as e:
            logger.debug(f"Skipping unparseable certificate block: {e}")
    return certs


class TrustStore:
    """System (certifi) CAs plus custom CAs, parsed once and cached"""

    def __init__(self, custom_ca_files: Optional[Iterable[str]] = None,
                 system_ca_file: Optional[str] = None):
        self.custom_ca_files = list(custom_ca_files or [])
        self.system_ca_file = system_ca_file or certifi.where()
        self._certs: Optional[List[x509.Certificate]] = None
        self._store: Optional[Store] = None

    @property
    def certificates(self) -> List[x509.Certificate]:
        if self._certs is not None:
            return self._certs

        certs = []
        for path in self.custom_ca_files:
            pem = Path(path).read_text(encoding='utf-8')
            custom = load_pem_certificates(pem)
            logger.info(f"Loaded {len(custom)} custom CA certificate(s) from {path}")
            certs.extend(custom)

        system_pem = Path(self.system_ca_file).read_text(encoding='utf-8')
        system = load_pem_certificates(system_pem)
        logger.debug(f"Loaded {len(system)} system CA certificates from {self.system_ca_file}")
        certs.extend(system)

        self._certs = certs
        return certs

    def verification_store(self) -> Store:
        if self._store is None:
            self._store = Store(self.certificates)
        return self._store

    def find_issuer(self, cert: x509.Certificate) -> Optional[x509.Certificate]:
        """Find the trust anchor that issued cert, preferring a signature match"""
        candidates = [ca for ca in self.certificates if ca.subject == cert.issuer]
        for ca in candidates:
            try:
                cert.verify_directly_issued_by(ca)
                return ca
            except (ValueError, TypeError, InvalidSignature):
                continue
        return candidates[0] if candidates else None
