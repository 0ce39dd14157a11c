"""
Pytest configuration and shared fixtures for the test suite.
"""

import asyncio
import json
from typing import Dict, List, Optional, Union
from urllib.parse import parse_qs

import pytest
from structlog.testing import capture_logs

from availability.config import AvailabilityConfig
from availability.core.item import Item
from availability.signing.signer import SignedRequest
from availability.vendor.interface import VendorInterface, VendorResponse


TEST_PUBLIC_KEY = "test-public-key"
TEST_PRIVATE_KEY = "test-private-key-do-not-log"
TEST_ENDPOINT = "https://mfc.example/papi.php?mode=set-availability"


# ============================================================================
# Logging Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def captured_logs():
    """Capture structlog events instead of printing them."""
    with capture_logs() as logs:
        yield logs


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config(tmp_path) -> AvailabilityConfig:
    """Create a test configuration."""
    return AvailabilityConfig(
        public_key=TEST_PUBLIC_KEY,
        private_key=TEST_PRIVATE_KEY,
        api_url=TEST_ENDPOINT,
        request_timeout_seconds=2.0,
        log_file_path=str(tmp_path / "logs" / "availability.log"),
        log_level="DEBUG",
    )


@pytest.fixture
def unsigned_config(tmp_path) -> AvailabilityConfig:
    """Create a configuration without signing keys."""
    return AvailabilityConfig(
        public_key="",
        private_key="",
        api_url=TEST_ENDPOINT,
        log_file_path=str(tmp_path / "logs" / "availability.log"),
    )


# ============================================================================
# Test Data Generators
# ============================================================================

def make_item(index: int = 0, **overrides) -> Item:
    """Create a valid test item with a distinct 13 digit JAN code."""
    fields = dict(
        code=f"4981932{index:06d}",
        available=index % 2 == 0,
        price=1000 + index * 100,
        url=f"https://shop.example/products/{index}",
        title=f"Figure {index}",
        vendor="Good Smile Company",
    )
    fields.update(overrides)
    return Item(**fields)


@pytest.fixture
def sample_item() -> Item:
    """Create a sample item."""
    return make_item(0)


@pytest.fixture
def sample_items() -> List[Item]:
    """Create multiple sample items."""
    return [make_item(i) for i in range(5)]


def vendor_response(
    status: Optional[str] = "SUCCESS",
    message: Optional[str] = None,
    status_code: int = 200,
    text: Optional[str] = None,
) -> VendorResponse:
    """Build a vendor response with a JSON body."""
    if text is None:
        body = {}
        if status is not None:
            body["status"] = status
        if message is not None:
            body["message"] = message
        text = json.dumps(body)
    return VendorResponse(status_code=status_code, text=text, reason="OK" if status_code < 400 else "Error")


# ============================================================================
# Fake Vendor
# ============================================================================

class FakeVendor(VendorInterface):
    """Scripted vendor for testing; answers SUCCESS unless told otherwise."""

    endpoint = TEST_ENDPOINT

    def __init__(
        self,
        responses: Optional[Dict[str, Union[VendorResponse, Exception]]] = None,
        delay: float = 0.0,
        events: Optional[list] = None,
    ):
        self.responses = responses or {}
        self.delay = delay
        self.events = events if events is not None else []
        self.requests: List[SignedRequest] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def connect(self) -> None:
        pass

    async def disconnect(self) -> None:
        pass

    async def post_update(self, request: SignedRequest) -> VendorResponse:
        jan = parse_qs(request.body)["jan"][0]
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.events.append(("post", jan))
            self.requests.append(request)
            await asyncio.sleep(self.delay)

            result = self.responses.get(jan, vendor_response())
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1
