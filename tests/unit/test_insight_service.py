"""
Unit tests for InsightService.

Run: pytest tests/unit/test_insight_service.py -v
"""

import pytest

from models.manifest import Category, RecommendedAction
from services.insight_service import InsightService, get_insight_service
from tests.factories import EnrichedItemFactory, ManifestAnalysisFactory


@pytest.fixture
def insights():
    return InsightService()


class TestInsightTotals:
    """Tests for totals and ROI."""

    def test_roi_zero_when_no_value(self, insights):
        """Should return 0 instead of dividing by zero."""
        assert insights.roi(0, 0) == 0.0
        assert insights.roi(50, 0) == 0.0

    def test_roi_percentage(self, insights):
        """Should express profit over value as a percentage."""
        assert insights.roi(80, 200) == 40.0
        assert insights.roi(-50, 200) == -25.0

    def test_totals_use_effective_retail(self, insights):
        """Should fall back to price x quantity when the total is missing."""
        items = [
            EnrichedItemFactory.create(estimated_value=30, retail_price=20.0, quantity=3, total_retail_price=0.0),
            EnrichedItemFactory.create(estimated_value=150, retail_price=100.0),
        ]

        assert insights.total_retail_value(items) == 160.0
        assert insights.total_potential_profit(items) == 80.0


class TestRecommend:
    """Tests for recommend()"""

    @pytest.mark.parametrize("roi,expected", [
        (120.0, RecommendedAction.STRONG_BUY),
        (50.0, RecommendedAction.STRONG_BUY),
        (49.99, RecommendedAction.BUY),
        (20.0, RecommendedAction.BUY),
        (19.99, RecommendedAction.HOLD),
        (0.0, RecommendedAction.HOLD),
        (-0.01, RecommendedAction.PASS),
        (-80.0, RecommendedAction.PASS),
    ])
    def test_thresholds(self, insights, roi, expected):
        """Should map ROI bands onto actions."""
        assert insights.recommend(roi) == expected

    def test_monotonic(self, insights):
        """Should never recommend a weaker action for a higher ROI."""
        rank = [RecommendedAction.PASS, RecommendedAction.HOLD, RecommendedAction.BUY, RecommendedAction.STRONG_BUY]
        actions = [insights.recommend(roi / 2) for roi in range(-100, 201)]

        ranks = [rank.index(action) for action in actions]

        assert ranks == sorted(ranks)


class TestSummarize:
    """Tests for summarize()"""

    def test_profitable_manifest(self, insights):
        """Should total profit, compute ROI and recommend."""
        items = [
            EnrichedItemFactory.create(estimated_value=150, categorization_confidence=0.9),
            EnrichedItemFactory.create(estimated_value=130, categorization_confidence=0.5),
        ]

        summary = insights.summarize(items)

        assert summary.expected_profit == 80.0
        assert summary.average_roi == 40.0
        assert summary.recommended_action == RecommendedAction.BUY
        assert summary.confidence_score == pytest.approx(0.7)
        assert summary.total_estimated_value == 280.0

    def test_risk_distribution(self, insights):
        """Should bucket risk scores at 30 and 70."""
        items = [EnrichedItemFactory.create(risk_score=s) for s in (10, 30, 31, 70, 71)]

        summary = insights.summarize(items)

        assert summary.risk_distribution == {"low": 2, "medium": 2, "high": 1}

    def test_category_breakdown_and_degraded(self, insights):
        """Should count categories and degraded items."""
        items = [
            EnrichedItemFactory.create(category=Category.ELECTRONICS, degraded_tasks=["valuation"]),
            EnrichedItemFactory.create(category=Category.ELECTRONICS),
            EnrichedItemFactory.create(category=Category.TOYS_GAMES, degraded_tasks=["risk"]),
        ]

        summary = insights.summarize(items)

        assert summary.category_breakdown == {"Electronics": 2, "Toys & Games": 1}
        assert summary.degraded_items == 2

    def test_top_opportunities(self, insights):
        """Should list the five most profitable descriptions, best first."""
        items = [
            EnrichedItemFactory.create(description=f"Item {value}", estimated_value=value)
            for value in (50, 300, 120, 90, 400, 10, 200)
        ]

        summary = insights.summarize(items)

        assert summary.top_opportunities == ["Item 400", "Item 300", "Item 200", "Item 120", "Item 90"]

    def test_empty_items(self, insights):
        """Should not raise for an empty list."""
        summary = insights.summarize([])

        assert summary.expected_profit == 0.0
        assert summary.average_roi == 0.0
        assert summary.confidence_score == 0.0
        assert summary.recommended_action == RecommendedAction.HOLD
        assert summary.risk_distribution == {"low": 0, "medium": 0, "high": 0}


class TestPortfolio:
    """Tests for summarize_portfolio()"""

    def test_totals(self, insights):
        """Should add up stored analyses."""
        analyses = [
            ManifestAnalysisFactory.create(total_retail_value=1000, total_potential_profit=200, valid_items=2),
            ManifestAnalysisFactory.create(total_retail_value=500, total_potential_profit=-50, valid_items=3),
        ]

        portfolio = insights.summarize_portfolio(analyses)

        assert portfolio.total_manifests == 2
        assert portfolio.total_items == 5
        assert portfolio.total_value == 1500.0
        assert portfolio.total_profit == 150.0
        assert portfolio.average_roi == 10.0

    def test_empty_portfolio(self, insights):
        """Should return zeros with no analyses."""
        portfolio = insights.summarize_portfolio([])

        assert portfolio.total_manifests == 0
        assert portfolio.average_roi == 0.0

    def test_singleton(self):
        """Should return the same instance."""
        assert get_insight_service() is get_insight_service()
