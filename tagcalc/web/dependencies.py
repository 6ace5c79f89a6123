"""Shared dependencies for TagCalc web routes.

Dependencies are injected using FastAPI's Depends() system. Tests swap
the repository with ``app.dependency_overrides[get_variant_repository]``.

Usage:
    from fastapi import Depends
    from tagcalc.web.dependencies import get_variant_repository

    @router.post("/create-variant")
    async def create_variant(
        request: Request,
        repository: VariantRepository = Depends(get_variant_repository),
    ):
        ...
"""

from __future__ import annotations

from fastapi import Request

from tagcalc.config import AppConfig, get_config
from tagcalc.integration.shopify_client import ShopifyClient
from tagcalc.integration.variant_repository import VariantRepository


def get_app_config(request: Request) -> AppConfig:
    """Configuration the app was created with, falling back to the environment."""
    config = getattr(request.app.state, "config", None)
    if config is None:
        config = get_config()
        request.app.state.config = config
    return config


def build_repository(config: AppConfig) -> VariantRepository:
    """Wire a VariantRepository to a fresh Shopify client."""
    client = ShopifyClient(config.shopify, metafields=config.metafields)
    return VariantRepository(client, variants=config.variants, metafields=config.metafields)


def get_variant_repository(request: Request) -> VariantRepository:
    """Get the app's VariantRepository, creating it on first use.

    One repository (and one pooled HTTP client) is shared by all requests
    of an app instance and closed by the app's lifespan handler.
    """
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        repository = build_repository(get_app_config(request))
        request.app.state.repository = repository
    return repository


async def close_repository(state) -> None:
    """Drain background evictions and close the HTTP client held in ``state``."""
    repository: VariantRepository | None = getattr(state, "repository", None)
    if repository is None:
        return
    await repository.wait_for_evictions()
    await repository.client.close()
    state.repository = None
