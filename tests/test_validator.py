import json
from datetime import timedelta

import pytest

from ssl_cert_validator.exceptions import CertificateRetrievalError, DomainListError
from ssl_cert_validator.models import TestStatus, to_iso
from ssl_cert_validator.scanner import CertificateInfo
from ssl_cert_validator.validator import SSLCertificateValidator, load_domains


class FakeScanner:
    """Serves prepared CertificateInfo objects, or raises for unknown hosts"""

    def __init__(self, endpoints):
        self.endpoints = endpoints
        self.calls = []

    def get_certificate_info(self, host, port=443):
        self.calls.append((host, port))
        if host not in self.endpoints:
            raise CertificateRetrievalError('TLS connection failed: getaddrinfo ENOTFOUND')
        return self.endpoints[host]


@pytest.fixture
def cert_info(make_chain):
    def _make(authorized=True, authorization_error=None, **leaf_kwargs):
        leaf_kwargs.setdefault('cn', 'example.com')
        leaf_kwargs.setdefault('san', ['example.com', '*.example.com'])
        nodes = make_chain(3, **leaf_kwargs)
        return CertificateInfo(
            certificate=nodes[0],
            protocol='TLSv1.3',
            cipher='TLS_AES_128_GCM_SHA256',
            authorized=authorized,
            authorization_error=authorization_error,
            presented_count=2,
        )
    return _make


def _validator(endpoints, now, **kwargs):
    return SSLCertificateValidator(scanner=FakeScanner(endpoints), clock=lambda: now, **kwargs)


def _tests(report):
    return {test['test']: test for test in report['tests']}


def test_full_run_passes(cert_info, now, capsys):
    validator = _validator({'www.example.com': cert_info(full_subject=True)}, now)
    report = validator.validate_certificate('www.example.com')

    assert [t['test'] for t in report['tests']] == [
        'validity-dates', 'certificate-lifetime', 'subject-san-match', 'subject-completeness',
        'certificate-chain', 'signature-algorithms', 'ca-trust', 'root-ca-validation', 'key-usage',
    ]
    assert report['summary'] == {'total': 9, 'passed': 9, 'failed': 0, 'warnings': 0}

    out = capsys.readouterr().out
    assert '✅ subject-san-match' in out
    assert 'All SSL certificate validations passed' in out


def test_wildcard_san_is_cited(cert_info, now):
    validator = _validator({'www.example.com': cert_info()}, now)
    match = _tests(validator.validate_certificate('www.example.com'))['subject-san-match']

    assert match['status'] == 'PASSED'
    assert '*.example.com' in match['message']


def test_expired_certificate_still_runs_remaining_checks(cert_info, now, capsys):
    expired = cert_info(not_before=now - timedelta(days=90), not_after=now - timedelta(days=1))
    validator = _validator({'www.example.com': expired}, now)
    tests = _tests(validator.validate_certificate('www.example.com'))

    assert tests['validity-dates']['status'] == 'FAILED'
    assert to_iso(now - timedelta(days=1)) in tests['validity-dates']['message']
    assert 'certificate-chain' in tests
    assert 'ca-trust' in tests
    assert 'SSL certificate validation failed' in capsys.readouterr().out


def test_untrusted_certificate(cert_info, now):
    info = cert_info(authorized=False, authorization_error='self-signed certificate in certificate chain')
    tests = _tests(_validator({'www.example.com': info}, now).validate_certificate('www.example.com'))

    assert tests['ca-trust']['status'] == 'FAILED'
    assert 'self-signed certificate in certificate chain' in tests['ca-trust']['message']


def test_retrieval_failure_is_recorded_and_raised(now):
    validator = _validator({}, now)

    with pytest.raises(CertificateRetrievalError):
        validator.validate_certificate('missing.example.com', 8443)

    (result,) = validator.results
    assert result.test == 'certificate-retrieval'
    assert result.status == TestStatus.FAILED
    assert result.message.startswith('Failed to retrieve certificate: TLS connection failed')
    assert validator.scanner.calls == [('missing.example.com', 8443)]


def test_multiple_domains_continue_after_failure(cert_info, now):
    validator = _validator({'a.example.com': cert_info(), 'c.example.com': cert_info()}, now)
    outcomes = validator.validate_multiple_domains(['a.example.com', 'b.example.com', 'c.example.com'])

    assert [o['domain'] for o in outcomes] == ['a.example.com', 'b.example.com', 'c.example.com']
    assert 'result' in outcomes[0]
    assert 'getaddrinfo ENOTFOUND' in outcomes[1]['error']
    assert 'result' in outcomes[2]

    hostnames = [r.hostname for r in validator.results]
    assert hostnames.count('b.example.com') == 1
    assert hostnames[-1] == 'c.example.com'


def test_results_saved_as_json(cert_info, now, tmp_path):
    output = tmp_path / 'report.json'
    validator = _validator({'www.example.com': cert_info()}, now, output_file=str(output))
    validator.validate_certificate('www.example.com')

    saved = json.loads(output.read_text())
    assert saved['timestamp'] == to_iso(now)
    assert set(saved['summary']) == {'total', 'passed', 'failed', 'warnings'}
    assert saved['summary']['total'] == len(saved['tests'])
    assert set(saved['tests'][0]) == {'test', 'status', 'message', 'hostname', 'timestamp'}


def test_save_failure_is_logged_not_raised(now, tmp_path):
    validator = _validator({}, now, output_file=str(tmp_path / 'missing' / 'report.json'))
    assert validator.save_results() is None


def test_verbose_prints_connection_details(cert_info, now, capsys):
    validator = _validator({'www.example.com': cert_info()}, now, verbose=True)
    validator.validate_certificate('www.example.com')

    out = capsys.readouterr().out
    assert 'Protocol: TLSv1.3' in out
    assert '[2] Root CA' in out


def test_load_domains_accepts_list_and_object(tmp_path):
    bare = tmp_path / 'bare.json'
    bare.write_text(json.dumps(['example.com', 'www.example.com']))
    wrapped = tmp_path / 'wrapped.json'
    wrapped.write_text(json.dumps({'domains': ['example.com']}))

    assert load_domains(str(bare)) == ['example.com', 'www.example.com']
    assert load_domains(str(wrapped)) == ['example.com']


@pytest.mark.parametrize('content', ['{not json', '{"hosts": []}', '"example.com"', '[1, 2]'])
def test_load_domains_rejects_malformed(tmp_path, content):
    path = tmp_path / 'domains.json'
    path.write_text(content)
    with pytest.raises(DomainListError):
        load_domains(str(path))


def test_load_domains_missing_file(tmp_path):
    with pytest.raises(DomainListError):
        load_domains(str(tmp_path / 'nope.json'))


def test_load_domains_rejects_non_utf8(tmp_path):
    path = tmp_path / 'domains.json'
    path.write_bytes(b'["\xff\xfe"]')
    with pytest.raises(DomainListError, match='not UTF-8'):
        load_domains(str(path))
