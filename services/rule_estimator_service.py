"""
Deterministic rule-based estimator.

Fallback tier for every enrichment sub-task. Uses fixed keyword and value
tables only, so results are reproducible and need no network.
"""

import hashlib
import random
from typing import Optional
import structlog

from config.settings import settings
from models.estimates import (
    BrandModelEstimate,
    CategoryEstimate,
    RiskEstimate,
    ValuationEstimate,
)
from models.manifest import Category, Condition, ManifestItem
from services.estimator_service import ItemEstimator

logger = structlog.get_logger(__name__)


class RuleBasedEstimator(ItemEstimator):
    """
    Keyword categorization, table valuation and configurable risk scoring.

    Risk scores come from a hash of description and category ("hashed") or
    from a random draw ("random"), per settings.risk_fallback_mode.
    """

    # ===================
    # CATEGORIZATION
    # ===================

    # Substring lexicon, checked in order
    CATEGORY_KEYWORDS = (
        (Category.ELECTRONICS, ("phone", "laptop", "tv")),
        (Category.CLOTHING, ("shirt", "pants", "shoes")),
    )
    KEYWORD_CONFIDENCE = 0.6
    DEFAULT_CONFIDENCE = 0.3

    # ===================
    # VALUATION
    # ===================

    BASE_VALUES = {
        Category.ELECTRONICS: 200,
        Category.CLOTHING: 50,
        Category.HOME_GARDEN: 75,
        Category.TOYS_GAMES: 30,
        Category.SPORTS_OUTDOORS: 100,
        Category.HEALTH_BEAUTY: 25,
        Category.AUTOMOTIVE: 150,
        Category.BOOKS_MEDIA: 15,
        Category.INDUSTRIAL: 500,
        Category.OTHER: 50,
    }

    # Grade names plus the normalized condition vocabulary
    CONDITION_MULTIPLIERS = {
        "Excellent": 1.0,
        "Good": 0.85,
        "Fair": 0.65,
        "Poor": 0.4,
        "Damaged": 0.2,
        "Unknown": 0.7,
        Condition.NEW.value: 1.0,
        Condition.LIKE_NEW.value: 1.0,
        Condition.REFURBISHED.value: 0.85,
        Condition.CUSTOMER_RETURN.value: 0.65,
    }
    RANGE_SPREAD = 0.2
    DEFAULT_SCORE = 50
    DEFAULT_SEASONALITY = 1.0

    # ===================
    # RISK
    # ===================

    AUTHENTICITY_SCORE = 80
    HIGH_RISK_THRESHOLD = 70
    HIGH_RISK_FACTOR = "High risk item"

    def __init__(
        self,
        risk_mode: Optional[str] = None,
        rng: Optional[random.Random] = None
    ):
        self.risk_mode = risk_mode or settings.risk_fallback_mode
        self.rng = rng or random.Random()

    async def categorize(self, item: ManifestItem) -> CategoryEstimate:
        text = item.description.lower()
        for category, keywords in self.CATEGORY_KEYWORDS:
            if any(k in text for k in keywords):
                return CategoryEstimate(
                    category=category,
                    subcategory="",
                    confidence=self.KEYWORD_CONFIDENCE
                )
        return CategoryEstimate(
            category=Category.OTHER,
            subcategory="",
            confidence=self.DEFAULT_CONFIDENCE
        )

    async def extract_brand_model(
        self,
        item: ManifestItem,
        category: Category
    ) -> BrandModelEstimate:
        return BrandModelEstimate(brand="", model="")

    def condition_multiplier(self, condition: str) -> float:
        return self.CONDITION_MULTIPLIERS.get(condition, self.CONDITION_MULTIPLIERS["Unknown"])

    async def estimate_value(
        self,
        item: ManifestItem,
        category: Category,
        brand_model: BrandModelEstimate
    ) -> ValuationEstimate:
        base = self.BASE_VALUES.get(category, self.BASE_VALUES[Category.OTHER])
        estimated = round(base * self.condition_multiplier(item.condition.value), 2)

        return ValuationEstimate(
            estimated_value=estimated,
            market_value_low=round(estimated * (1 - self.RANGE_SPREAD), 2),
            market_value_high=round(estimated * (1 + self.RANGE_SPREAD), 2),
            market_score=self.DEFAULT_SCORE,
            demand_score=self.DEFAULT_SCORE,
            seasonality_factor=self.DEFAULT_SEASONALITY,
        )

    def risk_score_for(self, item: ManifestItem, category: Category) -> int:
        """Risk score in [1, 100]."""
        if self.risk_mode == "random":
            return self.rng.randint(1, 100)
        digest = hashlib.sha256(f"{item.description}|{category.value}".encode("utf-8")).hexdigest()
        return int(digest, 16) % 100 + 1

    async def assess_risk(
        self,
        item: ManifestItem,
        category: Category,
        brand_model: BrandModelEstimate,
        valuation: ValuationEstimate
    ) -> RiskEstimate:
        score = self.risk_score_for(item, category)
        return RiskEstimate(
            risk_score=score,
            authenticity_score=self.AUTHENTICITY_SCORE,
            risk_factors=[self.HIGH_RISK_FACTOR] if score > self.HIGH_RISK_THRESHOLD else [],
        )
