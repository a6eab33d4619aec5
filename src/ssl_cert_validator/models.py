#!/usr/bin/env python3
"""
Certificate and validation result models
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple


def to_iso(dt: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DistinguishedName:
    """Subject or issuer name fields"""
    CN: Optional[str] = None
    O: Optional[str] = None
    L: Optional[str] = None
    ST: Optional[str] = None
    C: Optional[str] = None

    def get(self, field_name: str) -> Optional[str]:
        return getattr(self, field_name, None)

    def as_dict(self) -> Dict[str, str]:
        fields = (('CN', self.CN), ('O', self.O), ('L', self.L), ('ST', self.ST), ('C', self.C))
        return {key: value for key, value in fields if value}


@dataclass(eq=False)
class CertificateNode:
    """
    One certificate in a chain.

    issuer_certificate links to the issuing certificate. A root either has
    no issuer reference or references itself.
    """
    subject: DistinguishedName
    issuer: DistinguishedName
    not_before: datetime
    not_after: datetime
    fingerprint: str
    subject_alt_names: Tuple[str, ...] = ()
    signature_algorithm: Optional[str] = None
    extended_key_usage: FrozenSet[str] = frozenset()
    issuer_certificate: Optional['CertificateNode'] = field(default=None, repr=False)

    @property
    def has_issuer(self) -> bool:
        """True when the node links to a distinct issuer"""
        return self.issuer_certificate is not None and self.issuer_certificate is not self


class TestStatus(str, Enum):
    PASSED = 'PASSED'
    WARNING = 'WARNING'
    FAILED = 'FAILED'

    __test__ = False


@dataclass(frozen=True)
class ValidationTestResult:
    """Outcome of a single named check"""
    test: str
    status: TestStatus
    message: str
    hostname: str
    timestamp: str = field(default_factory=lambda: to_iso(utc_now()))

    def to_dict(self) -> Dict[str, str]:
        return {
            'test': self.test,
            'status': self.status.value,
            'message': self.message,
            'hostname': self.hostname,
            'timestamp': self.timestamp,
        }


@dataclass(frozen=True)
class ValidationSummary:
    total: int = 0
    passed: int = 0
    failed: int = 0
    warnings: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'total': self.total,
            'passed': self.passed,
            'failed': self.failed,
            'warnings': self.warnings,
        }


class ResultLog:
    """Append-only sequence of validation results, in execution order"""

    def __init__(self):
        self._results: List[ValidationTestResult] = []

    def add(self, result: ValidationTestResult) -> ValidationTestResult:
        self._results.append(result)
        return result

    def extend(self, results) -> None:
        for result in results:
            self.add(result)

    @property
    def results(self) -> Tuple[ValidationTestResult, ...]:
        return tuple(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self):
        return iter(self._results)

    def summary(self) -> ValidationSummary:
        counts = {status: 0 for status in TestStatus}
        for result in self._results:
            counts[result.status] += 1
        return ValidationSummary(
            total=len(self._results),
            passed=counts[TestStatus.PASSED],
            failed=counts[TestStatus.FAILED],
            warnings=counts[TestStatus.WARNING],
        )
