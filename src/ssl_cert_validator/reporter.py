#!/usr/bin/env python3
"""
Console and JSON reporting of validation results
"""
import json
from pathlib import Path
from typing import Any, Dict

from .chain import iter_chain
from .models import ResultLog, TestStatus, ValidationSummary, ValidationTestResult, to_iso

STATUS_ICONS = {
    TestStatus.PASSED: '✅',
    TestStatus.WARNING: '⚠️ ',
    TestStatus.FAILED: '❌',
}


def format_result(result: ValidationTestResult) -> str:
    return f"{STATUS_ICONS[result.status]} {result.test}: {result.message}"


def print_result(result: ValidationTestResult):
    print(format_result(result))


def verdict(summary: ValidationSummary) -> str:
    if summary.failed == 0 and summary.warnings == 0:
        return '🎉 All SSL certificate validations passed!'
    if summary.failed == 0:
        return '✅ SSL certificate is valid with some warnings'
    return '❌ SSL certificate validation failed'


def print_summary(summary: ValidationSummary):
    print('\n📊 SSL Certificate Validation Summary:')
    print(f"Total tests: {summary.total}")
    print(f"Passed: {summary.passed}")
    print(f"Failed: {summary.failed}")
    print(f"Warnings: {summary.warnings}")
    print(verdict(summary))


def print_connection_details(cert_info):
    """Verbose output: negotiated parameters and the linked chain"""
    print(f"   Protocol: {cert_info.protocol}")
    print(f"   Cipher: {cert_info.cipher}")
    print(f"   Presented certificates: {cert_info.presented_count}")
    for index, node in enumerate(iter_chain(cert_info.certificate)):
        print(f"   [{index}] {node.subject.CN} (issuer: {node.issuer.CN}, "
              f"{node.signature_algorithm}, expires {to_iso(node.not_after)})")


def build_report(timestamp: str, results: ResultLog) -> Dict[str, Any]:
    return {
        'timestamp': timestamp,
        'tests': [result.to_dict() for result in results],
        'summary': results.summary().to_dict(),
    }


def write_report(output_file: str, report: Dict[str, Any]) -> Path:
    output_path = Path(output_file).resolve()
    output_path.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding='utf-8')
    return output_path
