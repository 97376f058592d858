"""
Manifest insight aggregation.

Reduces enriched items into manifest totals, the executive summary and
portfolio-wide rollups. Works only on validated, enriched data and does
not raise for empty input.
"""

from collections import Counter
from typing import Iterable, Optional
import structlog

from models.manifest import (
    EnrichedItem,
    ExecutiveSummary,
    ManifestAnalysis,
    PortfolioSummary,
    RecommendedAction,
    RiskLevel,
)

logger = structlog.get_logger(__name__)


class InsightService:
    """Executive metrics and buy recommendation."""

    # (minimum ROI %, action), highest first; below the last bound -> PASS
    ACTION_THRESHOLDS = (
        (50.0, RecommendedAction.STRONG_BUY),
        (20.0, RecommendedAction.BUY),
        (0.0, RecommendedAction.HOLD),
    )
    TOP_OPPORTUNITIES = 5

    # ===================
    # TOTALS
    # ===================

    @staticmethod
    def total_retail_value(items: list[EnrichedItem]) -> float:
        return round(sum(item.effective_total_retail for item in items), 2)

    @staticmethod
    def total_potential_profit(items: list[EnrichedItem]) -> float:
        return round(sum(item.potential_profit for item in items), 2)

    @staticmethod
    def roi(profit: float, value: float) -> float:
        """Profit over value as a percentage; 0 when there is no value."""
        if value <= 0:
            return 0.0
        return round(profit / value * 100, 2)

    def recommend(self, average_roi: float) -> RecommendedAction:
        """Map ROI onto an action. Monotonic in ROI."""
        for minimum, action in self.ACTION_THRESHOLDS:
            if average_roi >= minimum:
                return action
        return RecommendedAction.PASS

    # ===================
    # SUMMARY
    # ===================

    def summarize(self, items: list[EnrichedItem]) -> ExecutiveSummary:
        """
        Build the executive summary for one manifest.

        Args:
            items: Enriched items (valid items only)

        Returns:
            ExecutiveSummary
        """
        total_value = self.total_retail_value(items)
        profit = self.total_potential_profit(items)
        average_roi = self.roi(profit, total_value)

        confidence = (
            sum(item.categorization_confidence for item in items) / len(items)
            if items else 0.0
        )

        risk_distribution = {level.value: 0 for level in RiskLevel}
        for item in items:
            risk_distribution[item.risk_level.value] += 1

        ranked = sorted(items, key=lambda item: item.potential_profit, reverse=True)

        summary = ExecutiveSummary(
            expected_profit=profit,
            average_roi=average_roi,
            recommended_action=self.recommend(average_roi),
            confidence_score=round(confidence, 4),
            total_estimated_value=round(sum(i.estimated_value * i.quantity for i in items), 2),
            category_breakdown=dict(Counter(item.category.value for item in items)),
            risk_distribution=risk_distribution,
            degraded_items=sum(1 for item in items if item.is_degraded),
            top_opportunities=[item.description for item in ranked[:self.TOP_OPPORTUNITIES]],
        )

        logger.info(
            "manifest_summarized",
            items=len(items),
            expected_profit=summary.expected_profit,
            average_roi=summary.average_roi,
            recommended_action=summary.recommended_action.value,
            degraded_items=summary.degraded_items
        )
        return summary

    def summarize_portfolio(self, analyses: Iterable[ManifestAnalysis]) -> PortfolioSummary:
        """Totals across stored analyses."""
        analyses = list(analyses)
        total_value = round(sum(a.total_retail_value for a in analyses), 2)
        total_profit = round(sum(a.total_potential_profit for a in analyses), 2)

        return PortfolioSummary(
            total_manifests=len(analyses),
            total_items=sum(a.valid_items for a in analyses),
            total_value=total_value,
            total_profit=total_profit,
            average_roi=self.roi(total_profit, total_value),
        )


# Singleton instance for convenience
_insight_service: Optional[InsightService] = None

def get_insight_service() -> InsightService:
    """Get or create InsightService instance."""
    global _insight_service
    if _insight_service is None:
        _insight_service = InsightService()
    return _insight_service
