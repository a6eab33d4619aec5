"""
SSL Certificate Validator
Validate TLS certificate validity, hostname match, chain integrity and CA trust
"""

__version__ = "1.0.0"
