"""
Request Signer - handles request signing.

Builds the canonical parameter string for an item, signs it with the
private key and produces the form body sent to the vendor.
"""

import base64
import hashlib
import hmac
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import quote, quote_plus

import structlog

from availability.config import AvailabilityConfig, get_config
from availability.core.item import Item

logger = structlog.get_logger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Characters encodeURIComponent leaves untouched besides alphanumerics
_URI_COMPONENT_SAFE = "-_.!~*'()"


class ConfigurationError(Exception):
    """Raised when the signing keys are missing or empty."""
    pass


@dataclass(frozen=True)
class Credentials:
    """Vendor API key pair."""
    public_key: str
    private_key: str

    def __repr__(self) -> str:
        return f"Credentials(public_key={self.public_key!r}, private_key='***')"


@dataclass(frozen=True)
class SignedRequest:
    """
    A signed availability update, ready to be posted.

    Attributes:
        base_string: Canonical string the signature was computed over
        signature: Base64 HMAC-SHA256 signature
        body: Form-encoded request body
    """
    base_string: str
    signature: str
    body: str
    content_type: str = FORM_CONTENT_TYPE


def encode_uri_component(value: str) -> str:
    """Percent-encode a value the way JavaScript's encodeURIComponent does."""
    return quote(value, safe=_URI_COMPONENT_SAFE)


def form_encode(value: str) -> str:
    """Encode a value for an application/x-www-form-urlencoded body."""
    # quote_plus always keeps "~"; form serialization escapes it
    return quote_plus(value, safe="*").replace("~", "%7E")


class RequestSigner:
    """
    Signs availability updates with the vendor key pair.

    Signing is pure: the same keys and item fields always produce the same
    body. The private key never leaves this object.
    """

    def __init__(self, public_key: Optional[str], private_key: Optional[str]):
        """
        Initialize the signer.

        Args:
            public_key: Public API key
            private_key: Private signing key

        Raises:
            ConfigurationError: If either key is missing or empty
        """
        missing = [
            name for name, value in (("public key", public_key), ("private key", private_key))
            if not value
        ]
        if missing:
            raise ConfigurationError(f"MFC API keys are not set: missing {' and '.join(missing)}")

        self._public_key = public_key
        self._private_key = private_key.encode("utf-8")

    @classmethod
    def from_credentials(cls, credentials: Credentials) -> "RequestSigner":
        return cls(credentials.public_key, credentials.private_key)

    @classmethod
    def from_config(cls, config: Optional[AvailabilityConfig] = None) -> "RequestSigner":
        """Create a signer from the configured keys."""
        config = config or get_config()
        return cls(config.public_key, config.private_key)

    @property
    def public_key(self) -> str:
        return self._public_key

    def build_base_string(self, code: str, available: bool) -> str:
        """Build the canonical parameter string the signature covers."""
        return (
            f"key={encode_uri_component(self._public_key)}"
            f"&jan={encode_uri_component(str(code))}"
            f"&available={1 if available else 0}"
        )

    def compute_signature(self, base_string: str) -> str:
        """Compute the base64 HMAC-SHA256 signature of a base string."""
        digest = hmac.new(self._private_key, base_string.encode("utf-8"), hashlib.sha256).digest()
        return base64.b64encode(digest).decode("ascii")

    def build_form_fields(self, item: Item) -> Tuple[str, List[Tuple[str, str]]]:
        """
        Build the ordered form fields for an item.

        Returns:
            Tuple of (base string, ordered list of field name/value pairs)
        """
        base_string = self.build_base_string(item.code, item.available)
        signature = self.compute_signature(base_string)
        fields = [
            ("key", self._public_key),
            ("jan", str(item.code)),
            ("available", "1" if item.available else "0"),
            ("s", signature),
            ("price", str(item.price)),
            ("url", str(item.url)),
        ]
        return base_string, fields

    def sign(self, item: Item) -> SignedRequest:
        """
        Sign an item update.

        Args:
            item: The item to sign

        Returns:
            Signed request with the form body
        """
        base_string, fields = self.build_form_fields(item)
        body = "&".join(f"{name}={form_encode(value)}" for name, value in fields)
        signature = fields[3][1]

        logger.debug("request_signed", jan=item.code, signature=signature[:8] + "...")

        return SignedRequest(base_string=base_string, signature=signature, body=body)
