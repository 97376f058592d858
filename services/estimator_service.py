"""
Estimator interface and the two-tier fallback wrapper.

Enrichment talks to a single ItemEstimator interface. TieredEstimator pairs
a live (network-backed) estimator with the deterministic rule-based one:
each sub-task tries the live tier under a timeout and, on any failure,
answers from the rule-based tier instead.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional
import structlog

from config.settings import settings
from models.estimates import (
    BrandModelEstimate,
    CategoryEstimate,
    RiskEstimate,
    ValuationEstimate,
)
from models.manifest import Category, ManifestItem

logger = structlog.get_logger(__name__)


# Sub-task names, also used in EnrichedItem.degraded_tasks
CATEGORIZATION = "categorization"
BRAND_MODEL = "brand_model"
VALUATION = "valuation"
RISK = "risk"

_TASK_METHODS = {
    CATEGORIZATION: "categorize",
    BRAND_MODEL: "extract_brand_model",
    VALUATION: "estimate_value",
    RISK: "assess_risk",
}


class ItemEstimator(ABC):
    """Per-item estimation capability, one method per enrichment sub-task."""

    @abstractmethod
    async def categorize(self, item: ManifestItem) -> CategoryEstimate:
        ...

    @abstractmethod
    async def extract_brand_model(
        self,
        item: ManifestItem,
        category: Category
    ) -> BrandModelEstimate:
        ...

    @abstractmethod
    async def estimate_value(
        self,
        item: ManifestItem,
        category: Category,
        brand_model: BrandModelEstimate
    ) -> ValuationEstimate:
        ...

    @abstractmethod
    async def assess_risk(
        self,
        item: ManifestItem,
        category: Category,
        brand_model: BrandModelEstimate,
        valuation: ValuationEstimate
    ) -> RiskEstimate:
        ...


class TieredEstimator:
    """
    Primary estimator with deterministic fallback.

    Failures never propagate: timeouts, API errors and malformed replies all
    resolve to the fallback result. Each call returns (estimate, degraded).
    """

    def __init__(
        self,
        primary: Optional[ItemEstimator],
        fallback: ItemEstimator,
        timeout_seconds: Optional[float] = None
    ):
        self.primary = primary
        self.fallback = fallback
        self.timeout_seconds = timeout_seconds or settings.estimator_timeout_seconds

    @property
    def has_primary(self) -> bool:
        return self.primary is not None

    async def run(self, task: str, item: ManifestItem, *args: Any) -> tuple[Any, bool]:
        """
        Run one sub-task through both tiers.

        Args:
            task: Sub-task name (CATEGORIZATION, BRAND_MODEL, VALUATION, RISK)
            item: Item being enriched
            *args: Earlier sub-task results the method needs

        Returns:
            (estimate, degraded) where degraded is True if the fallback answered
        """
        method = _TASK_METHODS[task]

        if self.primary is not None:
            try:
                estimate = await asyncio.wait_for(
                    getattr(self.primary, method)(item, *args),
                    timeout=self.timeout_seconds
                )
                return estimate, False
            except asyncio.TimeoutError:
                logger.warning(
                    "enrichment_degraded",
                    task=task,
                    row=item.row_number,
                    reason="timeout",
                    timeout_seconds=self.timeout_seconds
                )
            except Exception as e:
                logger.warning(
                    "enrichment_degraded",
                    task=task,
                    row=item.row_number,
                    reason=type(e).__name__,
                    error=str(e)
                )

        estimate = await getattr(self.fallback, method)(item, *args)
        return estimate, True

    async def categorize(self, item: ManifestItem) -> tuple[CategoryEstimate, bool]:
        return await self.run(CATEGORIZATION, item)

    async def extract_brand_model(
        self,
        item: ManifestItem,
        category: Category
    ) -> tuple[BrandModelEstimate, bool]:
        return await self.run(BRAND_MODEL, item, category)

    async def estimate_value(
        self,
        item: ManifestItem,
        category: Category,
        brand_model: BrandModelEstimate
    ) -> tuple[ValuationEstimate, bool]:
        return await self.run(VALUATION, item, category, brand_model)

    async def assess_risk(
        self,
        item: ManifestItem,
        category: Category,
        brand_model: BrandModelEstimate,
        valuation: ValuationEstimate
    ) -> tuple[RiskEstimate, bool]:
        return await self.run(RISK, item, category, brand_model, valuation)


def build_tiered_estimator() -> TieredEstimator:
    """Live Claude tier when an API key is configured, rule-based fallback always."""
    # Local imports keep the interface module free of concrete tiers
    from integrations.claude_client import get_claude_client
    from services.llm_estimator_service import LLMEstimator
    from services.rule_estimator_service import RuleBasedEstimator

    client = get_claude_client()
    primary = LLMEstimator(client) if client is not None else None

    logger.info(
        "estimator_configured",
        primary="claude" if primary else None,
        model=settings.estimator_model if primary else None,
        risk_fallback_mode=settings.risk_fallback_mode
    )

    return TieredEstimator(primary=primary, fallback=RuleBasedEstimator())
