"""Stripe Connect client used to move payout funds to connected accounts.

Only two endpoints are needed: creating a transfer and reading a connected
account's capabilities.  Both are called over the REST API with
:class:`httpx.AsyncClient`; requests are form-encoded the way Stripe expects.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from apex.services.errors import PaymentProcessorError
from apex.settings import AppSettings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferResult:
    id: str
    amount: int
    destination: str
    currency: str | None = None


@dataclass(frozen=True)
class ConnectedAccount:
    id: str
    payouts_enabled: bool = False
    details_submitted: bool = False

    @property
    def ready(self) -> bool:
        """Whether the account can currently receive payouts."""

        return self.payouts_enabled and self.details_submitted


class PaymentProcessor(Protocol):
    async def create_transfer(
        self,
        *,
        amount: int,
        currency: str,
        destination: str,
        metadata: Mapping[str, str],
        idempotency_key: str | None = None,
    ) -> TransferResult: ...

    async def retrieve_account(self, account_id: str) -> ConnectedAccount: ...


def _encode_form(data: Mapping[str, Any]) -> dict[str, str]:
    """Flatten one level of nested mappings into Stripe's ``key[sub]`` form keys."""

    encoded: dict[str, str] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            for sub_key, sub_value in value.items():
                if sub_value is not None:
                    encoded[f"{key}[{sub_key}]"] = str(sub_value)
        else:
            encoded[key] = str(value)
    return encoded


class StripeClient:
    """Minimal async Stripe REST client.

    A client can be given a preconfigured ``http_client`` (tests pass one
    built on :class:`httpx.MockTransport`); otherwise a short-lived client is
    opened per call.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.stripe.com",
        timeout: float = 20.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: AppSettings | None = None) -> StripeClient:
        settings = settings or get_settings()
        return cls(
            settings.stripe_secret_key,
            base_url=settings.stripe_api_base,
            timeout=settings.stripe_timeout_seconds,
        )

    async def create_transfer(
        self,
        *,
        amount: int,
        currency: str,
        destination: str,
        metadata: Mapping[str, str],
        idempotency_key: str | None = None,
    ) -> TransferResult:
        payload = await self._request(
            "POST",
            "/v1/transfers",
            data={
                "amount": amount,
                "currency": currency,
                "destination": destination,
                "metadata": dict(metadata),
            },
            idempotency_key=idempotency_key,
        )
        transfer_id = payload.get("id")
        if not transfer_id:
            raise PaymentProcessorError("Stripe transfer response did not include an id")
        return TransferResult(
            id=str(transfer_id),
            amount=int(payload.get("amount", amount)),
            destination=str(payload.get("destination", destination)),
            currency=payload.get("currency"),
        )

    async def retrieve_account(self, account_id: str) -> ConnectedAccount:
        payload = await self._request("GET", f"/v1/accounts/{account_id}")
        return ConnectedAccount(
            id=str(payload.get("id", account_id)),
            payouts_enabled=bool(payload.get("payouts_enabled")),
            details_submitted=bool(payload.get("details_submitted")),
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        data: Mapping[str, Any] | None = None,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        if not self._api_key:
            raise PaymentProcessorError("Stripe is not configured (STRIPE_SECRET_KEY is empty)")

        headers = {"Authorization": f"Bearer {self._api_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        form = _encode_form(data) if data is not None else None
        url = f"{self._base_url}{path}"

        try:
            if self._http_client is not None:
                response = await self._http_client.request(
                    method, url, data=form, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(method, url, data=form, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Stripe %s %s failed: %s", method, path, exc)
            raise PaymentProcessorError(f"Stripe request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.is_success:
            return payload

        error = payload.get("error") or {}
        message = error.get("message") or f"Stripe returned HTTP {response.status_code}"
        logger.error(
            "Stripe %s %s returned %s: %s", method, path, response.status_code, message
        )
        raise PaymentProcessorError(
            message,
            error_type=error.get("type"),
            http_status=response.status_code,
        )


__all__ = [
    "ConnectedAccount",
    "PaymentProcessor",
    "StripeClient",
    "TransferResult",
]
