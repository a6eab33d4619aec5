#!/usr/bin/env python3
"""
TLS Certificate Scanner

Opens one TLS connection per endpoint, reads the presented certificate chain
and converts it into linked CertificateNode objects.
"""
import ipaddress
import logging
import socket
import ssl
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.x509.oid import NameOID
from cryptography.x509.verification import PolicyBuilder, VerificationError

from .ca_bundle import TrustStore
from .chain import MAX_CHAIN_LENGTH
from .exceptions import CertificateRetrievalError
from .models import CertificateNode, DistinguishedName

logger = logging.getLogger(__name__)

NAME_FIELDS = {
    'CN': NameOID.COMMON_NAME,
    'O': NameOID.ORGANIZATION_NAME,
    'L': NameOID.LOCALITY_NAME,
    'ST': NameOID.STATE_OR_PROVINCE_NAME,
    'C': NameOID.COUNTRY_NAME,
}


@dataclass
class CertificateInfo:
    """Certificate chain and connection facts for one endpoint"""
    certificate: CertificateNode
    protocol: Optional[str]
    cipher: Optional[str]
    authorized: bool
    authorization_error: Optional[str]
    presented_count: int


def _extract_name(name: x509.Name) -> DistinguishedName:
    values = {}
    for key, oid in NAME_FIELDS.items():
        attrs = name.get_attributes_for_oid(oid)
        values[key] = str(attrs[0].value) if attrs else None
    return DistinguishedName(**values)


def certificate_fingerprint(cert: x509.Certificate) -> str:
    return cert.fingerprint(hashes.SHA256()).hex()


def node_from_x509(cert: x509.Certificate) -> CertificateNode:
    """Build an unlinked CertificateNode from a parsed certificate"""
    san_list: Tuple[str, ...] = ()
    try:
        san_ext = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
        san_list = tuple(san_ext.value.get_values_for_type(x509.DNSName))
    except x509.ExtensionNotFound:
        pass

    eku = frozenset()
    try:
        eku_ext = cert.extensions.get_extension_for_class(x509.ExtendedKeyUsage)
        eku = frozenset(oid._name for oid in eku_ext.value)
    except x509.ExtensionNotFound:
        pass

    signature_algorithm = None
    try:
        signature_algorithm = cert.signature_algorithm_oid._name
    except AttributeError:
        signature_algorithm = None

    return CertificateNode(
        subject=_extract_name(cert.subject),
        issuer=_extract_name(cert.issuer),
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
        fingerprint=certificate_fingerprint(cert),
        subject_alt_names=san_list,
        signature_algorithm=signature_algorithm,
        extended_key_usage=eku,
    )


def _find_presented_issuer(cert: x509.Certificate,
                           presented: List[x509.Certificate]) -> Optional[x509.Certificate]:
    fingerprint = certificate_fingerprint(cert)
    for candidate in presented:
        if candidate.subject == cert.issuer and certificate_fingerprint(candidate) != fingerprint:
            return candidate
    return None


def link_chain(presented: List[x509.Certificate], trust_store: Optional[TrustStore] = None,
               max_length: int = MAX_CHAIN_LENGTH) -> CertificateNode:
    """
    Link the presented certificates into an issuer chain

    Issuers are looked up by name among the presented certificates first,
    then among the trust anchors. A self-signed certificate links to itself.

    Args:
        presented: Certificates sent by the server, leaf first
        trust_store: Optional trust anchors used to complete the chain

    Returns:
        The leaf CertificateNode
    """
    nodes: Dict[str, CertificateNode] = {}

    def node_for(cert: x509.Certificate) -> CertificateNode:
        fingerprint = certificate_fingerprint(cert)
        if fingerprint not in nodes:
            nodes[fingerprint] = node_from_x509(cert)
        return nodes[fingerprint]

    leaf = node_for(presented[0])
    current_cert, current = presented[0], leaf

    # Walk upward (max_length to prevent loops)
    for _ in range(max_length):
        if current_cert.subject == current_cert.issuer:
            current.issuer_certificate = current
            break

        issuer_cert = _find_presented_issuer(current_cert, presented)
        if issuer_cert is None and trust_store is not None:
            issuer_cert = trust_store.find_issuer(current_cert)
        if issuer_cert is None:
            break

        seen = certificate_fingerprint(issuer_cert) in nodes
        current.issuer_certificate = node_for(issuer_cert)
        if seen:
            break
        current_cert, current = issuer_cert, current.issuer_certificate

    return leaf


def _load_certificate(data: bytes) -> x509.Certificate:
    if data.lstrip().startswith(b'-----BEGIN'):
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def _presented_chain(secure_sock: ssl.SSLSocket) -> List[bytes]:
    """Return the raw certificates sent by the peer, leaf first"""
    for owner in (secure_sock, getattr(secure_sock, '_sslobj', None)):
        get_chain = getattr(owner, 'get_unverified_chain', None)
        if not callable(get_chain):
            continue
        try:
            chain = get_chain() or []
        except (ssl.SSLError, ValueError, TypeError):
            continue
        raw = []
        for item in chain:
            if isinstance(item, (bytes, bytearray)):
                raw.append(bytes(item))
            elif hasattr(item, 'public_bytes'):
                raw.append(item.public_bytes())
        if raw:
            return raw

    leaf_der = secure_sock.getpeercert(binary_form=True)
    return [leaf_der] if leaf_der else []


class TLSScanner:
    def __init__(self, timeout: int = 10, trust_store: Optional[TrustStore] = None,
                 max_chain_length: int = MAX_CHAIN_LENGTH):
        self.timeout = timeout
        self.trust_store = trust_store or TrustStore()
        self.max_chain_length = max_chain_length

    def _context(self) -> ssl.SSLContext:
        # Invalid certificates are analysed too, trust is evaluated afterwards
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    def _verify(self, host: str, presented: List[x509.Certificate]) -> Tuple[bool, Optional[str]]:
        """Verify the presented chain against the trust store"""
        try:
            try:
                subject = x509.IPAddress(ipaddress.ip_address(host))
            except ValueError:
                subject = x509.DNSName(host)
            verifier = (
                PolicyBuilder()
                .store(self.trust_store.verification_store())
                .time(datetime.now(timezone.utc))
                .build_server_verifier(subject)
            )
            verifier.verify(presented[0], presented[1:])
            return True, None
        except VerificationError as e:
            return False, str(e)
        except ValueError as e:
            return False, f"Verification error: {e}"

    def get_certificate_info(self, host: str, port: int = 443) -> CertificateInfo:
        """
        Connect to a TLS endpoint and extract its certificate chain

        Args:
            host: Hostname or IP address, also used for SNI
            port: Port number (default 443)

        Returns:
            CertificateInfo for the endpoint

        Raises:
            CertificateRetrievalError: connection, handshake or parsing failed
        """
        logger.info(f"Connecting to {host}:{port}")

        try:
            with socket.create_connection((host, port), timeout=self.timeout) as sock:
                with self._context().wrap_socket(sock, server_hostname=host) as secure_sock:
                    protocol = secure_sock.version()
                    cipher_info = secure_sock.cipher()
                    cipher = cipher_info[0] if cipher_info else None
                    raw_chain = _presented_chain(secure_sock)
        except socket.timeout:
            logger.error(f"Timeout connecting to {host}:{port}")
            raise CertificateRetrievalError('Connection timeout')
        except socket.gaierror as e:
            logger.error(f"DNS resolution failed for {host}: {e}")
            raise CertificateRetrievalError(f"DNS resolution failed: {e}") from e
        except ssl.SSLError as e:
            logger.error(f"SSL error connecting to {host}:{port}: {e}")
            raise CertificateRetrievalError(f"TLS connection failed: {e}") from e
        except OSError as e:
            logger.error(f"Connection error for {host}:{port}: {e}")
            raise CertificateRetrievalError(f"TLS connection failed: {e}") from e

        if not raw_chain:
            raise CertificateRetrievalError(f"No certificate presented by {host}:{port}")

        try:
            presented = [_load_certificate(data) for data in raw_chain]
            logger.debug(f"{host}:{port} negotiated {protocol} {cipher}, "
                         f"{len(presented)} certificate(s) presented")

            authorized, authorization_error = self._verify(host, presented)
            if not authorized:
                logger.warning(f"Certificate verification failed for {host}:{port}: {authorization_error}")

            leaf = link_chain(presented, self.trust_store, self.max_chain_length)
        except (ValueError, x509.DuplicateExtension) as e:
            logger.error(f"Malformed certificate from {host}:{port}: {e}")
            raise CertificateRetrievalError(f"Could not parse certificate: {e}") from e

        return CertificateInfo(
            certificate=leaf,
            protocol=protocol,
            cipher=cipher,
            authorized=authorized,
            authorization_error=authorization_error,
            presented_count=len(presented),
        )
