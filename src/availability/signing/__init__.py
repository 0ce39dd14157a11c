"""
Request signing module.

Produces deterministic, HMAC-signed request bodies for the vendor API.
"""

from availability.signing.signer import (
    ConfigurationError,
    Credentials,
    RequestSigner,
    SignedRequest,
)

__all__ = [
    "ConfigurationError",
    "Credentials",
    "RequestSigner",
    "SignedRequest",
]
