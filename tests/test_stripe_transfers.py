from urllib.parse import parse_qs

import httpx
import pytest

from app.services.stripe_transfers import StripeTransferClient, TransferError


def _client(handler, secret_key="sk_test_123"):
    return StripeTransferClient(
        secret_key=secret_key,
        api_base="https://stripe.test/",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_create_transfer_posts_form_and_returns_id():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(200, json={"id": "tr_1ABC", "object": "transfer"})

    transfer_id = await _client(handler).create_transfer(
        150, "acct_partner", metadata={"commission_id": 7, "note": None}
    )

    assert transfer_id == "tr_1ABC"
    assert seen["url"] == "https://stripe.test/v1/transfers"
    assert seen["auth"] == "Bearer sk_test_123"
    assert seen["form"]["amount"] == ["150"]
    assert seen["form"]["currency"] == ["usd"]
    assert seen["form"]["destination"] == ["acct_partner"]
    assert seen["form"]["metadata[commission_id]"] == ["7"]
    assert "metadata[note]" not in seen["form"]


@pytest.mark.asyncio
async def test_stripe_error_message_is_surfaced():
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "Insufficient funds in Stripe account"}})

    with pytest.raises(TransferError, match="Insufficient funds"):
        await _client(handler).create_transfer(150, "acct_partner")


@pytest.mark.asyncio
async def test_non_json_error_response():
    def handler(request):
        return httpx.Response(503, text="upstream unavailable")

    with pytest.raises(TransferError, match="HTTP 503"):
        await _client(handler).create_transfer(150, "acct_partner")


@pytest.mark.asyncio
async def test_network_error_becomes_transfer_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransferError):
        await _client(handler).create_transfer(150, "acct_partner")


@pytest.mark.asyncio
async def test_missing_transfer_id():
    def handler(request):
        return httpx.Response(200, json={"object": "transfer"})

    with pytest.raises(TransferError, match="transfer id"):
        await _client(handler).create_transfer(150, "acct_partner")


@pytest.mark.asyncio
async def test_unconfigured_client_does_not_call_stripe():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"id": "tr_x"})

    with pytest.raises(TransferError, match="not configured"):
        await _client(handler, secret_key=None).create_transfer(150, "acct_partner")
    assert calls == []


@pytest.mark.asyncio
async def test_idempotency_key_is_sent_as_header():
    headers = []

    def handler(request):
        headers.append(request.headers)
        return httpx.Response(200, json={"id": "tr_same"})

    client = _client(handler)
    await client.create_transfer(5000, "acct_dancer", idempotency_key="payout-submission-42")
    await client.create_transfer(5000, "acct_dancer")

    assert headers[0]["Idempotency-Key"] == "payout-submission-42"
    assert "Idempotency-Key" not in headers[1]
