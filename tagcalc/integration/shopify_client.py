"""Shopify Admin REST API client for product variants."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import httpx

from tagcalc.config import MetafieldConfig, ShopifyConfig
from tagcalc.core.errors import UpstreamError

class ShopifyClient:
    """Async client for the variant endpoints of one Shopify store.

    Every failed call raises UpstreamError; nothing is retried. Callers
    decide which failures are fatal.
    """

    def __init__(
        self,
        config: ShopifyConfig,
        metafields: MetafieldConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.metafields = metafields or MetafieldConfig()
        self.base_url = config.base_url

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=config.timeout_seconds,
            transport=transport,
            headers={
                "X-Shopify-Access-Token": config.access_token,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self.client.request(method, path, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(
                f"Shopify API error: {method} {path} -> {exc.response.status_code}",
                status_code=exc.response.status_code,
                body=_error_body(exc.response),
            ) from exc
        except httpx.RequestError as exc:
            raise UpstreamError(f"Shopify API request failed: {method} {path}: {exc!r}") from exc

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"Shopify API returned invalid JSON: {method} {path}",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    async def list_variants(self, product_id: str | int, limit: int = 250) -> list[dict[str, Any]]:
        """List up to ``limit`` variants of a product (first page only)."""
        data = await self._request(
            "GET", f"/products/{product_id}/variants.json", params={"limit": limit}
        )
        variants = data.get("variants")
        if not isinstance(variants, list):
            raise UpstreamError(
                "Shopify API response is missing 'variants'", status_code=200, body=data
            )
        return variants

    async def create_variant(
        self, product_id: str | int, title: str, price: Decimal
    ) -> dict[str, Any]:
        """Create a variant with ``title`` as its first option value."""
        payload = {
            "variant": {
                "option1": title,
                "price": f"{price:.2f}",
                "inventory_management": None,
                "inventory_policy": "continue",
                "fulfillment_service": "manual",
            }
        }
        data = await self._request("POST", f"/products/{product_id}/variants.json", json=payload)
        variant = data.get("variant")
        if not isinstance(variant, dict) or "id" not in variant:
            raise UpstreamError(
                "Shopify API response is missing 'variant'", status_code=201, body=data
            )
        return variant

    async def delete_variant(self, product_id: str | int, variant_id: str | int) -> None:
        """Delete one variant of a product."""
        await self._request("DELETE", f"/products/{product_id}/variants/{variant_id}.json")

    async def create_metafield(self, variant_id: str | int, price: Decimal) -> dict[str, Any]:
        """Attach the computed price to a variant as a metafield."""
        payload = {
            "metafield": {
                "namespace": self.metafields.namespace,
                "key": self.metafields.key,
                "value": f"{price:.2f}",
                "type": self.metafields.type,
            }
        }
        data = await self._request("POST", f"/variants/{variant_id}/metafields.json", json=payload)
        return data.get("metafield") or {}

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> ShopifyClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
