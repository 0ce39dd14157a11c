"""
Test suite for the MFC API adapter.

Uses httpx.MockTransport so no request leaves the process.
"""

import json

import httpx
import pytest

from availability.core.submitter import BatchSubmitter
from availability.logstore.memory_store import MemoryLogStore
from availability.signing.signer import RequestSigner
from availability.vendor.interface import VendorConnectionError, VendorTimeoutError
from availability.vendor.mfc import MFCClient

from conftest import TEST_ENDPOINT, TEST_PRIVATE_KEY, TEST_PUBLIC_KEY, make_item


def signed_request(index: int = 0):
    return RequestSigner(TEST_PUBLIC_KEY, TEST_PRIVATE_KEY).sign(make_item(index))


class TestMFCClient:
    """Tests for the MFC client."""

    @pytest.mark.asyncio
    async def test_posts_form_body(self, test_config):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"status": "SUCCESS"})

        signed = signed_request()
        async with MFCClient(test_config, transport=httpx.MockTransport(handler)) as client:
            response = await client.post_update(signed)

        assert response.status_code == 200
        assert response.is_success
        assert json.loads(response.text) == {"status": "SUCCESS"}

        request = captured[0]
        assert request.method == "POST"
        assert str(request.url) == TEST_ENDPOINT
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.content.decode() == signed.body

    @pytest.mark.asyncio
    async def test_error_status_is_returned(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="Internal Server Error")

        async with MFCClient(test_config, transport=httpx.MockTransport(handler)) as client:
            response = await client.post_update(signed_request())

        assert response.status_code == 500
        assert response.is_success is False
        assert response.reason == "Internal Server Error"

    @pytest.mark.asyncio
    async def test_timeout(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with MFCClient(test_config, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(VendorTimeoutError) as exc_info:
                await client.post_update(signed_request())

        assert exc_info.value.timeout_seconds == test_config.request_timeout_seconds

    @pytest.mark.asyncio
    async def test_connection_error(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with MFCClient(test_config, transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(VendorConnectionError):
                await client.post_update(signed_request())

    @pytest.mark.asyncio
    async def test_connects_lazily(self, test_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "SUCCESS"})

        client = MFCClient(test_config, transport=httpx.MockTransport(handler))
        try:
            response = await client.post_update(signed_request())
        finally:
            await client.disconnect()

        assert response.status_code == 200

    def test_endpoint_from_config(self, test_config):
        assert MFCClient(test_config).endpoint == TEST_ENDPOINT

    @pytest.mark.asyncio
    async def test_batch_through_http(self, test_config):
        """Test a full batch against a mocked vendor."""
        seen_jans = []

        def handler(request: httpx.Request) -> httpx.Response:
            fields = dict(httpx.QueryParams(request.content.decode()))
            seen_jans.append(fields["jan"])
            if fields["available"] == "1":
                return httpx.Response(200, json={"status": "SUCCESS"})
            return httpx.Response(200, json={"status": "FAILED", "message": "Not allowed"})

        items = [make_item(i) for i in range(3)]
        async with MemoryLogStore() as store, \
                MFCClient(test_config, transport=httpx.MockTransport(handler)) as client:
            result = await BatchSubmitter(client, store, test_config).submit(items)

        assert seen_jans == [item.code for item in items]
        assert [o.status for o in result.outcomes] == ["SUCCESS", "FAILED", "SUCCESS"]
        assert result.outcomes[1].message == "Not allowed"
