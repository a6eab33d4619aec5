"""
Shared fixtures: synthetic certificate chains and a small generated PKI
"""
import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from ssl_cert_validator.models import CertificateNode, DistinguishedName

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

_counter = itertools.count()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_node():
    """Factory for a single unlinked CertificateNode"""
    def _make(cn='www.example.com', issuer_cn=None, san=(), signature_algorithm='sha256WithRSAEncryption',
              not_before=None, not_after=None, eku=frozenset({'serverAuth'}), full_subject=False):
        if full_subject:
            subject = DistinguishedName(CN=cn, O='Example Ltd', L='Leeds', ST='West Yorkshire', C='GB')
        else:
            subject = DistinguishedName(CN=cn)
        return CertificateNode(
            subject=subject,
            issuer=DistinguishedName(CN=issuer_cn if issuer_cn is not None else cn),
            not_before=not_before or NOW - timedelta(days=30),
            not_after=not_after or NOW + timedelta(days=60),
            fingerprint=f"{next(_counter):064x}",
            subject_alt_names=tuple(san),
            signature_algorithm=signature_algorithm,
            extended_key_usage=eku,
        )
    return _make


@pytest.fixture
def make_chain(make_node):
    """
    Factory for a linked chain of `length` certificates, leaf first

    The last certificate is a self-signed root linked to itself.
    Returns the list of nodes.
    """
    def _make(length, algorithms=None, **leaf_kwargs):
        algorithms = algorithms or {}
        names = ['leaf'] + [f'Intermediate CA {i}' for i in range(1, length - 1)] + ['Root CA']
        names = names[:length] if length > 1 else ['leaf']
        nodes = []
        for index, name in enumerate(names):
            issuer = names[index + 1] if index + 1 < len(names) else name
            kwargs = dict(leaf_kwargs) if index == 0 else {'eku': frozenset()}
            if index == 0:
                kwargs.setdefault('cn', 'www.example.com')
            else:
                kwargs['cn'] = name
            kwargs['issuer_cn'] = issuer
            if index in algorithms:
                kwargs['signature_algorithm'] = algorithms[index]
            nodes.append(make_node(**kwargs))
        for node, issuer in zip(nodes, nodes[1:]):
            node.issuer_certificate = issuer
        nodes[-1].issuer_certificate = nodes[-1]
        return nodes
    return _make


def _name(cn, full=False):
    attrs = [x509.NameAttribute(NameOID.COMMON_NAME, cn)]
    if full:
        attrs = [
            x509.NameAttribute(NameOID.COUNTRY_NAME, 'GB'),
            x509.NameAttribute(NameOID.STATE_OR_PROVINCE_NAME, 'West Yorkshire'),
            x509.NameAttribute(NameOID.LOCALITY_NAME, 'Leeds'),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, 'Example Ltd'),
        ] + attrs
    return x509.Name(attrs)


def _issue(subject, issuer, public_key, signing_key, ca=False, san=None, server_auth=False):
    not_before = datetime.now(timezone.utc) - timedelta(days=1)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_before + timedelta(days=90))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
    )
    if san:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(name) for name in san]), critical=False
        )
    if server_auth:
        builder = builder.add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False
        )
    return builder.sign(signing_key, hashes.SHA256())


def _pem(cert):
    return cert.public_bytes(serialization.Encoding.PEM).decode()


@pytest.fixture(scope='session')
def pki(tmp_path_factory):
    """Root -> intermediate -> leaf, plus an unrelated root"""
    root_key = ec.generate_private_key(ec.SECP256R1())
    inter_key = ec.generate_private_key(ec.SECP256R1())
    leaf_key = ec.generate_private_key(ec.SECP256R1())
    other_key = ec.generate_private_key(ec.SECP256R1())

    root_name = _name('Test Root CA')
    inter_name = _name('Test Intermediate CA')
    root = _issue(root_name, root_name, root_key.public_key(), root_key, ca=True)
    intermediate = _issue(inter_name, root_name, inter_key.public_key(), root_key, ca=True)
    leaf = _issue(_name('example.com', full=True), inter_name, leaf_key.public_key(), inter_key,
                  san=['example.com', '*.example.com'], server_auth=True)
    other_name = _name('Unrelated Root CA')
    other_root = _issue(other_name, other_name, other_key.public_key(), other_key, ca=True)

    directory = tmp_path_factory.mktemp('pki')
    root_file = directory / 'root.pem'
    root_file.write_text(_pem(root))
    other_file = directory / 'other.pem'
    other_file.write_text(_pem(other_root))

    return SimpleNamespace(
        root=root, intermediate=intermediate, leaf=leaf, other_root=other_root,
        root_file=str(root_file), other_file=str(other_file), pem=_pem,
    )
