#!/usr/bin/env python3
"""
Exceptions raised by the validator
"""


class ValidatorError(Exception):
    """Base class for validator errors"""


class CertificateRetrievalError(ValidatorError):
    """Could not connect to the endpoint or read its certificate"""


class DomainListError(ValidatorError):
    """Domains file is unreadable or malformed"""


class ConfigError(ValidatorError):
    """Configuration file is unreadable or malformed"""
