"""Find-or-create workflow for tag variants on a Shopify product.

A product holds a bounded number of variants. Each configuration maps to
one variant through its deterministic title:

1. Lookup: list the product's variants and match the title exactly.
   A failed listing is treated as a miss.
2. Hit: return the variant unchanged. Its price is never refreshed.
3. Miss: if the product is at the variant limit, evict the oldest variant
   (lowest created_at), then create the new variant and attach the price
   metafield.

Eviction runs as a background task by default so the storefront is not
kept waiting on the delete. While it is in flight the product can hold
one variant more than the limit; ``wait_for_evictions()`` closes that
window. A product never has more than one eviction in flight: a request
that needs room while the previous delete is still running waits for it
first.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

import structlog

from tagcalc.canonical.variant_key import variant_title
from tagcalc.config import MetafieldConfig, VariantConfig
from tagcalc.core.errors import UpstreamError, VariantCreationError
from tagcalc.integration.shopify_client import ShopifyClient
from tagcalc.models import Configuration, VariantRecord

logger = structlog.get_logger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of one upsert: the variant and whether this call created it."""

    variant: VariantRecord
    created: bool
    title: str


def _age_key(variant: VariantRecord) -> tuple[datetime, int]:
    # Variants without a timestamp sort first
    created = variant.created_at or _EPOCH
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created, variant.id


def by_age(variants: list[VariantRecord]) -> list[VariantRecord]:
    """Variants ordered oldest first (created_at, then id)."""
    return sorted(variants, key=_age_key)


def oldest_variant(variants: list[VariantRecord]) -> VariantRecord | None:
    """Pick the eviction candidate: earliest created_at, then lowest id.

    List position is ignored; the platform does not promise creation order.
    """
    if not variants:
        return None
    return min(variants, key=_age_key)


class VariantRepository:
    """Idempotent variant upserts against one Shopify store."""

    def __init__(
        self,
        client: ShopifyClient,
        variants: VariantConfig | None = None,
        metafields: MetafieldConfig | None = None,
    ):
        self.client = client
        self.settings = variants or VariantConfig()
        self.metafields = metafields or MetafieldConfig()
        # Strong references keep background evictions alive until they finish
        self._evictions: set[asyncio.Task] = set()
        # Variant ids with a delete in flight; not counted against the limit again
        self._evicting: set[int] = set()
        # Latest background eviction per product
        self._product_evictions: dict[str, asyncio.Task] = {}

    @property
    def pending_evictions(self) -> int:
        return len(self._evictions)

    async def list_variants(self, product_id: str | int) -> list[VariantRecord]:
        """List the product's variants (first page of ``lookup_limit``)."""
        payload = await self.client.list_variants(product_id, limit=self.settings.lookup_limit)
        return [VariantRecord.model_validate(item) for item in payload]

    async def find_variant(
        self, product_id: str | int, title: str
    ) -> tuple[VariantRecord | None, list[VariantRecord] | None]:
        """Look up a variant by title.

        Returns:
            (match, listing). ``listing`` is None when the lookup failed,
            in which case ``match`` is None as well.
        """
        try:
            variants = await self.list_variants(product_id)
        except UpstreamError as exc:
            logger.warning(
                "variant_lookup_failed",
                product_id=str(product_id),
                status_code=exc.status_code,
                error=str(exc),
            )
            return None, None

        for variant in variants:
            if variant.key == title:
                return variant, variants
        return None, variants

    async def upsert_variant(
        self, product_id: str | int, config: Configuration, price: Decimal
    ) -> UpsertResult:
        """Return the variant for ``config``, creating it on first request.

        Raises:
            VariantCreationError: If the variant had to be created and the
                create call failed
        """
        title = variant_title(config)
        log = logger.bind(product_id=str(product_id), title=title)

        existing, listing = await self.find_variant(product_id, title)
        if existing is not None:
            log.info("variant_reused", variant_id=existing.id)
            return UpsertResult(variant=existing, created=False, title=title)

        await self._make_room(product_id, listing)

        try:
            payload = await self.client.create_variant(product_id, title, price)
        except UpstreamError as exc:
            log.error(
                "variant_create_failed",
                status_code=exc.status_code,
                body=exc.body,
                error=str(exc),
            )
            raise VariantCreationError(
                "Failed to create/find variant", status_code=exc.status_code, body=exc.body
            ) from exc

        variant = VariantRecord.model_validate(payload)
        log.info("variant_created", variant_id=variant.id, price=str(price))

        await self._attach_price(variant, price)
        return UpsertResult(variant=variant, created=True, title=title)

    async def _make_room(
        self, product_id: str | int, listing: list[VariantRecord] | None
    ) -> None:
        key = str(product_id)
        previous = self._product_evictions.get(key)
        busy = previous is not None and not previous.done()

        # A listing taken while a delete is running cannot be trusted to show room
        if (
            listing is not None
            and not busy
            and len(self._live(listing)) < self.settings.variant_limit
        ):
            return

        if self.settings.eviction_mode == "inline":
            await self.enforce_limit(product_id, listing)
            return

        # At most one delete in flight per product keeps the count within limit + 1
        if busy:
            logger.info("eviction_waiting", product_id=key)
            await asyncio.wait({previous})

        # Re-list inside the task: the lookup listing may predate earlier deletes
        task = asyncio.create_task(self.enforce_limit(product_id))
        self._evictions.add(task)
        self._product_evictions[key] = task
        task.add_done_callback(self._evictions.discard)
        task.add_done_callback(lambda done: self._forget_eviction(key, done))

    def _forget_eviction(self, key: str, task: asyncio.Task) -> None:
        if self._product_evictions.get(key) is task:
            del self._product_evictions[key]

    async def enforce_limit(
        self, product_id: str | int, listing: list[VariantRecord] | None = None
    ) -> VariantRecord | None:
        """Delete the oldest variant if the product is at the limit.

        Best effort: failures are logged and swallowed.

        Args:
            product_id: Parent product
            listing: Variants already fetched for this request; re-listed when None

        Returns:
            The evicted variant, or None when nothing was deleted
        """
        log = logger.bind(product_id=str(product_id))

        if listing is None:
            try:
                listing = await self.list_variants(product_id)
            except UpstreamError as exc:
                log.warning("eviction_listing_failed", error=str(exc))
                return None

        live = self._live(listing)
        if len(live) < self.settings.variant_limit:
            return None

        victim = oldest_variant(live)
        if victim is None:
            return None
        self._evicting.add(victim.id)

        log.info(
            "variant_evicting",
            variant_id=victim.id,
            count=len(live),
            limit=self.settings.variant_limit,
        )
        try:
            await self.client.delete_variant(product_id, victim.id)
        except UpstreamError as exc:
            log.warning(
                "eviction_failed",
                variant_id=victim.id,
                status_code=exc.status_code,
                error=str(exc),
            )
            return None
        finally:
            self._evicting.discard(victim.id)

        log.info("variant_evicted", variant_id=victim.id)
        return victim

    def _live(self, listing: list[VariantRecord]) -> list[VariantRecord]:
        return [variant for variant in listing if variant.id not in self._evicting]

    async def _attach_price(self, variant: VariantRecord, price: Decimal) -> None:
        if not self.metafields.enabled:
            return
        try:
            metafield = await self.client.create_metafield(variant.id, price)
        except UpstreamError as exc:
            logger.warning(
                "metafield_failed",
                variant_id=variant.id,
                status_code=exc.status_code,
                error=str(exc),
            )
            return
        logger.info("metafield_created", variant_id=variant.id, metafield_id=metafield.get("id"))

    async def wait_for_evictions(self) -> None:
        """Wait for every background eviction started so far."""
        while self._evictions:
            await asyncio.gather(*list(self._evictions), return_exceptions=True)
