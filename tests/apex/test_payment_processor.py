"""Tests for the Stripe REST client using ``httpx.MockTransport``."""

from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest

from apex.services.errors import PaymentProcessorError
from apex.services.payment_processor import StripeClient
from apex.settings import AppSettings


def _client(handler) -> StripeClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StripeClient(
        "sk_test_123", base_url="https://stripe.test/", http_client=http_client
    )


@pytest.mark.asyncio
async def test_create_transfer_posts_form_encoded_payload() -> None:
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(
            200,
            json={
                "id": "tr_123",
                "amount": 3000,
                "destination": "acct_1",
                "currency": "usd",
            },
        )

    client = _client(handler)
    transfer = await client.create_transfer(
        amount=3000,
        currency="usd",
        destination="acct_1",
        metadata={"payout_request_id": "req-1", "event_name": "Fight Night 1"},
        idempotency_key="payout-request-req-1",
    )

    assert transfer.id == "tr_123"
    assert transfer.amount == 3000
    assert transfer.currency == "usd"

    request = captured["request"]
    assert request.method == "POST"
    assert str(request.url) == "https://stripe.test/v1/transfers"
    assert request.headers["Authorization"] == "Bearer sk_test_123"
    assert request.headers["Idempotency-Key"] == "payout-request-req-1"
    form = parse_qs(request.content.decode())
    assert form == {
        "amount": ["3000"],
        "currency": ["usd"],
        "destination": ["acct_1"],
        "metadata[payout_request_id]": ["req-1"],
        "metadata[event_name]": ["Fight Night 1"],
    }


@pytest.mark.asyncio
async def test_retrieve_account_reports_readiness() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/v1/accounts/acct_1"
        return httpx.Response(
            200,
            json={"id": "acct_1", "payouts_enabled": True, "details_submitted": False},
        )

    account = await _client(handler).retrieve_account("acct_1")

    assert account.id == "acct_1"
    assert account.payouts_enabled is True
    assert account.ready is False


@pytest.mark.asyncio
async def test_stripe_error_payload_is_surfaced() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={
                "error": {
                    "type": "invalid_request_error",
                    "message": "Insufficient funds in Stripe account",
                }
            },
        )

    with pytest.raises(PaymentProcessorError) as excinfo:
        await _client(handler).create_transfer(
            amount=100, currency="usd", destination="acct_1", metadata={}
        )

    assert excinfo.value.message == "Insufficient funds in Stripe account"
    assert excinfo.value.stripe_error_type == "invalid_request_error"
    assert excinfo.value.http_status == 400


@pytest.mark.asyncio
async def test_non_json_error_falls_back_to_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream unavailable")

    with pytest.raises(PaymentProcessorError, match="HTTP 503"):
        await _client(handler).retrieve_account("acct_1")


@pytest.mark.asyncio
async def test_transport_errors_become_processor_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PaymentProcessorError, match="Stripe request failed"):
        await _client(handler).retrieve_account("acct_1")


@pytest.mark.asyncio
async def test_transfer_without_id_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"object": "transfer"})

    with pytest.raises(PaymentProcessorError, match="did not include an id"):
        await _client(handler).create_transfer(
            amount=100, currency="usd", destination="acct_1", metadata={}
        )


@pytest.mark.asyncio
async def test_missing_secret_key_fails_without_network() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover
        raise AssertionError("no request expected")

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = StripeClient(None, http_client=http_client)

    with pytest.raises(PaymentProcessorError, match="STRIPE_SECRET_KEY"):
        await client.retrieve_account("acct_1")


def test_from_settings_uses_configured_values() -> None:
    settings = AppSettings(
        STRIPE_SECRET_KEY="sk_live_abc",
        STRIPE_API_BASE="https://stripe.internal",
        STRIPE_TIMEOUT_SECONDS=5,
    )

    client = StripeClient.from_settings(settings)

    assert client._api_key == "sk_live_abc"
    assert client._base_url == "https://stripe.internal"
    assert client._timeout == 5
