"""Pytest configuration and fixtures for TagCalc tests.

Provides an in-memory stand-in for the Shopify variant endpoints served
through ``httpx.MockTransport``, plus clients and repositories wired to it.
"""

from __future__ import annotations

import asyncio
import json
import os
import re
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio

# Required settings for anything that falls back to get_config()
os.environ.setdefault("SHOPIFY_STORE", "tagshop-test.myshopify.com")
os.environ.setdefault("ACCESS_TOKEN", "shpat_test_token")

from tagcalc.config import AppConfig, MetafieldConfig, ShopifyConfig, VariantConfig, WebConfig
from tagcalc.integration.shopify_client import ShopifyClient
from tagcalc.integration.variant_repository import VariantRepository
from tagcalc.models import Configuration

_VARIANTS = re.compile(r"/products/(?P<product>[^/]+)/variants\.json$")
_VARIANT = re.compile(r"/products/(?P<product>[^/]+)/variants/(?P<variant>\d+)\.json$")
_METAFIELDS = re.compile(r"/variants/(?P<variant>\d+)/metafields\.json$")


class FakeShopify:
    """Minimal in-memory Shopify Admin API for product variants.

    Attributes:
        failures: operation name ("list", "create", "delete", "metafield")
            -> HTTP status to answer with; 0 simulates a connection error
        reverse_listing: list variants newest first instead of oldest first
        delete_gate: when set, deletes wait for this event before applying
    """

    HARD_LIMIT = 100

    def __init__(self):
        self.products: dict[str, list[dict]] = defaultdict(list)
        self.metafields: dict[int, list[dict]] = defaultdict(list)
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[str, int] = {}
        self.reverse_listing = False
        self.delete_gate: asyncio.Event | None = None
        self.max_seen: dict[str, int] = defaultdict(int)
        self._next_id = 1000
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def seed(self, product_id: str, count: int, prefix: str = "seed") -> list[dict]:
        """Add ``count`` existing variants to a product."""
        return [self._add(product_id, f"{prefix} {i}", "9.99") for i in range(count)]

    def count(self, product_id: str) -> int:
        return len(self.products[str(product_id)])

    def titles(self, product_id: str) -> list[str]:
        return [v["option1"] for v in self.products[str(product_id)]]

    def ops(self, method: str) -> int:
        return sum(1 for m, _ in self.calls if m == method)

    def _add(self, product_id: str, option1: str, price: str) -> dict:
        self._next_id += 1
        self._clock += timedelta(minutes=1)
        variant = {
            "id": self._next_id,
            "product_id": int(product_id) if str(product_id).isdigit() else None,
            "title": option1,
            "option1": option1,
            "price": price,
            "created_at": self._clock.isoformat(),
        }
        self.products[str(product_id)].append(variant)
        self.max_seen[str(product_id)] = max(
            self.max_seen[str(product_id)], len(self.products[str(product_id)])
        )
        return variant

    def _fail(self, operation: str, request: httpx.Request) -> httpx.Response | None:
        status = self.failures.get(operation)
        if status is None:
            return None
        if status == 0:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(status, json={"errors": f"{operation} failed"})

    async def handler(self, request: httpx.Request) -> httpx.Response:
        # Yield like a real network call so background tasks can interleave
        await asyncio.sleep(0)
        path = request.url.path
        self.calls.append((request.method, path))

        match = _VARIANTS.search(path)
        if match and request.method == "GET":
            return self._fail("list", request) or self._list(match["product"], request)
        if match and request.method == "POST":
            return self._fail("create", request) or self._create(match["product"], request)

        match = _VARIANT.search(path)
        if match and request.method == "DELETE":
            if self.delete_gate is not None:
                await self.delete_gate.wait()
            return self._fail("delete", request) or self._delete(
                match["product"], int(match["variant"])
            )

        match = _METAFIELDS.search(path)
        if match and request.method == "POST":
            return self._fail("metafield", request) or self._metafield(
                int(match["variant"]), request
            )

        return httpx.Response(404, json={"errors": "Not Found"})

    def _list(self, product_id: str, request: httpx.Request) -> httpx.Response:
        limit = int(request.url.params.get("limit", "50"))
        variants = list(self.products[product_id])
        if self.reverse_listing:
            variants.reverse()
        return httpx.Response(200, json={"variants": variants[:limit]})

    def _create(self, product_id: str, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)["variant"]
        option1 = payload["option1"]
        if option1 in self.titles(product_id):
            return httpx.Response(
                422, json={"errors": {"base": [f"The variant '{option1}' already exists."]}}
            )
        if self.count(product_id) >= self.HARD_LIMIT:
            return httpx.Response(
                422, json={"errors": {"base": ["Variants must be less than 100"]}}
            )
        variant = self._add(product_id, option1, payload["price"])
        return httpx.Response(201, json={"variant": variant})

    def _delete(self, product_id: str, variant_id: int) -> httpx.Response:
        variants = self.products[product_id]
        for index, variant in enumerate(variants):
            if variant["id"] == variant_id:
                del variants[index]
                return httpx.Response(200, json={})
        return httpx.Response(404, json={"errors": "Not Found"})

    def _metafield(self, variant_id: int, request: httpx.Request) -> httpx.Response:
        metafield = dict(json.loads(request.content)["metafield"])
        metafield["id"] = 5000 + sum(len(m) for m in self.metafields.values())
        metafield["owner_id"] = variant_id
        self.metafields[variant_id].append(metafield)
        return httpx.Response(201, json={"metafield": metafield})


@pytest.fixture
def shopify_config() -> ShopifyConfig:
    """Shopify settings pointing at a fake store."""
    return ShopifyConfig(
        store="tagshop-test.myshopify.com",
        access_token="shpat_test_token",
        api_version="2025-01",
        timeout_seconds=5.0,
    )


@pytest.fixture
def app_config(shopify_config: ShopifyConfig) -> AppConfig:
    """Full application config for building test apps."""
    return AppConfig(
        shopify=shopify_config,
        variants=VariantConfig(variant_limit=5, lookup_limit=250),
        metafields=MetafieldConfig(),
        web=WebConfig(allowed_origin="https://www.tagshop.co.uk"),
    )


@pytest.fixture
def fake_shopify() -> FakeShopify:
    """Empty in-memory Shopify store."""
    return FakeShopify()


@pytest_asyncio.fixture
async def shopify_client(shopify_config: ShopifyConfig, fake_shopify: FakeShopify):
    """ShopifyClient talking to the fake store."""
    client = ShopifyClient(shopify_config, transport=httpx.MockTransport(fake_shopify.handler))
    yield client
    await client.close()


@pytest.fixture
def variant_limit() -> int:
    """Variant limit used by the repository fixture."""
    return 5


@pytest.fixture
def repository(shopify_client: ShopifyClient, variant_limit: int) -> VariantRepository:
    """Repository with a small variant limit and background eviction."""
    return VariantRepository(
        shopify_client,
        variants=VariantConfig(variant_limit=variant_limit, eviction_mode="background"),
    )


@pytest.fixture
def sample_config() -> Configuration:
    """A typical small-run configuration."""
    return Configuration(
        width_mm=100,
        height_mm=50,
        quantity=100,
        sides="single",
        hole_diameter_mm=5,
        corner_style="rounded",
        corner_radius_mm=2,
        cord_type="none",
        material="kraft",
    )


@pytest.fixture
def large_order_config() -> Configuration:
    """Large double-sided luggage tags with attached cords."""
    return Configuration(
        width_mm=400,
        height_mm=300,
        quantity=300,
        sides="double",
        hole_diameter_mm=8,
        corner_style="luggage",
        cord_type="standard",
        cord_supply="attached",
    )
