"""Variant routes for the storefront configurator.

Routes:
- POST /create-variant - Price a configuration and find or create its variant
- GET  /test           - Liveness / CORS check
- OPTIONS /{path}      - Answer bare OPTIONS requests with 200
"""

from __future__ import annotations

import json

import structlog
from fastapi import APIRouter, Depends, Request, Response

from tagcalc.canonical.request import normalize_request
from tagcalc.core.errors import ValidationError
from tagcalc.integration.variant_repository import VariantRepository
from tagcalc.pricing.engine import calculate_breakdown
from tagcalc.web.dependencies import get_variant_repository
from tagcalc.web.models import CreateVariantResponse, ErrorResponse, StatusResponse

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["variants"])


@router.post(
    "/create-variant",
    response_model=CreateVariantResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_variant(
    request: Request,
    repository: VariantRepository = Depends(get_variant_repository),
):
    """Price a tag configuration and return the matching variant.

    Accepts the flat legacy body and the nested ``config`` body. An
    existing variant with the same title is reused as-is; otherwise a new
    one is created with the computed price.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("Request body must be valid JSON") from exc

    variant_request = normalize_request(body)
    config = variant_request.config
    log = logger.bind(product_id=variant_request.product_id, shape=variant_request.shape)
    log.info("create_variant_incoming", config=config.model_dump(mode="json"))

    breakdown = calculate_breakdown(config)
    log.debug("pricing_breakdown", **breakdown.as_log_fields())
    log.info("price_calculated", price=str(breakdown.total))

    result = await repository.upsert_variant(variant_request.product_id, config, breakdown.total)

    return CreateVariantResponse(
        variant_id=result.variant.id,
        price=float(breakdown.total),
        created=result.created,
    )


@router.get("/test", response_model=StatusResponse)
async def cors_test():
    """Liveness check used by the storefront to confirm CORS is configured."""
    return StatusResponse(message="CORS OK")


@router.options("/{path:path}", include_in_schema=False)
async def options_ok(path: str):
    """Non-preflight OPTIONS requests get an empty 200."""
    return Response(status_code=200)
