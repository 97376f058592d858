"""
Item enrichment.

Turns each validated ManifestItem into an EnrichedItem by running the four
sub-tasks (categorization, brand/model, valuation, risk) through the tiered
estimator. Items are independent, so a manifest is enriched concurrently
under a semaphore; output order always matches input order.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Optional
import structlog

from config.settings import settings
from models.manifest import EnrichedItem, ManifestItem
from services.estimator_service import (
    BRAND_MODEL,
    CATEGORIZATION,
    RISK,
    VALUATION,
    TieredEstimator,
    build_tiered_estimator,
)

logger = structlog.get_logger(__name__)


@dataclass
class EnrichmentBatch:
    """Result of enriching one manifest's items."""
    items: list[EnrichedItem] = field(default_factory=list)
    requested: int = 0
    cancelled: bool = False

    @property
    def skipped(self) -> int:
        return self.requested - len(self.items)

    @property
    def degraded(self) -> int:
        return sum(1 for item in self.items if item.is_degraded)


class ItemEnricher:
    """
    Per-item enrichment.

    Sub-tasks run in dependency order: brand/model needs the category,
    valuation needs brand/model, and risk needs the estimated value.
    """

    # Valuation confidence when the rule-based table answered
    FALLBACK_VALUATION_CONFIDENCE = 0.5

    def __init__(
        self,
        estimator: Optional[TieredEstimator] = None,
        concurrency: Optional[int] = None
    ):
        self.estimator = estimator or build_tiered_estimator()
        self.concurrency = concurrency or settings.enrichment_concurrency

    async def enrich(self, item: ManifestItem) -> EnrichedItem:
        """
        Enrich a single item. Never raises for estimator problems.

        Args:
            item: Validated manifest item

        Returns:
            EnrichedItem with every field populated
        """
        degraded: list[str] = []

        category, fell_back = await self.estimator.categorize(item)
        if fell_back:
            degraded.append(CATEGORIZATION)

        brand_model, fell_back = await self.estimator.extract_brand_model(item, category.category)
        if fell_back:
            degraded.append(BRAND_MODEL)

        valuation, fell_back = await self.estimator.estimate_value(item, category.category, brand_model)
        if fell_back:
            degraded.append(VALUATION)

        risk, fell_back = await self.estimator.assess_risk(item, category.category, brand_model, valuation)
        if fell_back:
            degraded.append(RISK)

        return EnrichedItem(
            **item.model_dump(),
            category=category.category,
            subcategory=category.subcategory,
            brand=brand_model.brand,
            model=brand_model.model,
            **valuation.model_dump(),
            **risk.model_dump(),
            categorization_confidence=category.confidence,
            valuation_confidence=self.FALLBACK_VALUATION_CONFIDENCE if VALUATION in degraded else 1.0,
            degraded_tasks=degraded,
        )

    async def enrich_all(
        self,
        items: list[ManifestItem],
        cancel_event: Optional[asyncio.Event] = None
    ) -> EnrichmentBatch:
        """
        Enrich items concurrently, bounded by the configured limit.

        Cancellation is checked before each item starts; items already in
        flight finish. Completed items keep their input order.

        Args:
            items: Validated items in file order
            cancel_event: Set to stop launching new items

        Returns:
            EnrichmentBatch (cancelled=True if any item was skipped)
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def enrich_one(item: ManifestItem) -> Optional[EnrichedItem]:
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    return None
                return await self.enrich(item)

        logger.info(
            "enrichment_started",
            items=len(items),
            concurrency=self.concurrency,
            live_estimator=self.estimator.has_primary
        )

        results = await asyncio.gather(*(enrich_one(item) for item in items))
        enriched = [r for r in results if r is not None]

        batch = EnrichmentBatch(
            items=enriched,
            requested=len(items),
            cancelled=len(enriched) < len(items),
        )

        logger.info(
            "enrichment_completed",
            enriched=len(batch.items),
            skipped=batch.skipped,
            degraded=batch.degraded,
            cancelled=batch.cancelled
        )
        return batch
