#!/usr/bin/env python3
"""
Hostname matching against certificate names
"""
from typing import Optional


def matches_hostname(cert_name: Optional[str], hostname: str) -> bool:
    """
    Check if a certificate name (CN or SAN entry) matches a hostname

    Comparison is case-sensitive. A wildcard name '*.example.com' matches
    exactly one leftmost label: 'www.example.com' but neither 'example.com'
    nor 'a.b.example.com'.
    """
    if not cert_name:
        return False

    if cert_name == hostname:
        return True

    if cert_name.startswith('*.'):
        domain = cert_name[2:]
        host_parts = hostname.split('.')
        if len(host_parts) > 1:
            return '.'.join(host_parts[1:]) == domain

    return False
