"""
Manifest schemas: parsed items, enriched items and the finished analysis.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from models.base import BaseSchema, FrozenSchema


# Raw decoder output: lower-cased column name -> cell text
RawRow = dict[str, str]


class Category(str, Enum):
    """Closed list of item categories."""
    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing & Accessories"
    HOME_GARDEN = "Home & Garden"
    TOYS_GAMES = "Toys & Games"
    SPORTS_OUTDOORS = "Sports & Outdoors"
    HEALTH_BEAUTY = "Health & Beauty"
    AUTOMOTIVE = "Automotive"
    BOOKS_MEDIA = "Books & Media"
    INDUSTRIAL = "Industrial Equipment"
    OTHER = "Other"

    @classmethod
    def coerce(cls, value: Optional[str]) -> "Category":
        """Map any string onto the closed list, case-insensitively; unknown -> Other."""
        if value:
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        return cls.OTHER


class Condition(str, Enum):
    """Normalized item condition vocabulary."""
    NEW = "New"
    LIKE_NEW = "Like New"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    CUSTOMER_RETURN = "Customer Return"
    REFURBISHED = "Refurbished"
    UNKNOWN = "Unknown"


class RecommendedAction(str, Enum):
    """Buy recommendation derived from manifest ROI."""
    STRONG_BUY = "Strong Buy"
    BUY = "Buy"
    HOLD = "Hold"
    PASS = "Pass"


class RiskLevel(str, Enum):
    """Risk buckets used for the manifest risk distribution."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ===================
# ITEMS
# ===================

class ManifestItem(FrozenSchema):
    """A validated manifest line. Never changes once built."""

    description: str = Field(..., min_length=1, description="Cleaned description")
    quantity: int = Field(default=1, ge=1, description="Units in the lot")
    retail_price: float = Field(default=0.0, ge=0, description="Unit retail price")
    total_retail_price: float = Field(default=0.0, ge=0, description="Extended retail as listed")
    condition: Condition = Field(default=Condition.UNKNOWN, description="Normalized condition")
    brand_hint: str = Field(default="Unknown", description="Brand guessed from the description")
    row_number: int = Field(default=0, ge=0, description="1-based data row in the source file")

    @property
    def effective_total_retail(self) -> float:
        """Listed total, or unit price times quantity when the total is missing."""
        if self.total_retail_price > 0:
            return self.total_retail_price
        return self.retail_price * self.quantity


class EnrichedItem(ManifestItem):
    """ManifestItem plus classification, valuation and risk fields."""

    category: Category = Field(default=Category.OTHER)
    subcategory: str = Field(default="")
    brand: str = Field(default="")
    model: str = Field(default="")

    estimated_value: float = Field(..., ge=0, description="Estimated resale value per unit")
    market_value_low: float = Field(..., ge=0)
    market_value_high: float = Field(..., ge=0)
    market_score: float = Field(default=50, ge=0, le=100)
    demand_score: float = Field(default=50, ge=0, le=100)
    seasonality_factor: float = Field(default=1.0, ge=0.5, le=1.5)

    risk_score: float = Field(..., ge=0, le=100)
    authenticity_score: float = Field(default=80, ge=0, le=100)
    risk_factors: list[str] = Field(default_factory=list)

    categorization_confidence: float = Field(default=0.0, ge=0, le=1)
    valuation_confidence: float = Field(default=1.0, ge=0, le=1)
    degraded_tasks: list[str] = Field(
        default_factory=list,
        description="Sub-tasks answered by the rule-based fallback"
    )

    @field_validator("risk_factors")
    @classmethod
    def unique_factors(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))

    @property
    def potential_profit(self) -> float:
        return self.estimated_value * self.quantity - self.effective_total_retail

    @property
    def risk_level(self) -> RiskLevel:
        if self.risk_score <= 30:
            return RiskLevel.LOW
        if self.risk_score <= 70:
            return RiskLevel.MEDIUM
        return RiskLevel.HIGH

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_tasks)


# ===================
# VALIDATION
# ===================

class ValidationReport(BaseSchema):
    """Aggregate structural validation result for one manifest."""

    is_valid: bool = Field(..., description="True only if at least one row is valid")
    total_items: int = Field(..., ge=0, description="Data rows examined")
    valid_items: int = Field(..., ge=0, description="Rows forwarded to enrichment")
    errors: list[str] = Field(default_factory=list, description="Why rows were dropped, in row order")
    warnings: list[str] = Field(default_factory=list, description="Suspicious but accepted rows")
    data_quality_score: float = Field(default=0.0, ge=0, le=100, description="Valid rows as a percentage")


# ===================
# ANALYSIS
# ===================

class ExecutiveSummary(BaseSchema):
    """Manifest-level rollup."""

    expected_profit: float = Field(..., description="Sum of per-item potential profit")
    average_roi: float = Field(..., description="Profit over retail value, in percent")
    recommended_action: RecommendedAction
    confidence_score: float = Field(..., ge=0, le=1, description="Mean categorization confidence")

    total_estimated_value: float = Field(default=0.0, ge=0)
    category_breakdown: dict[str, int] = Field(default_factory=dict)
    risk_distribution: dict[str, int] = Field(default_factory=dict)
    degraded_items: int = Field(default=0, ge=0, description="Items with at least one fallback sub-task")
    top_opportunities: list[str] = Field(default_factory=list, description="Most profitable descriptions")


class ManifestAnalysis(BaseSchema):
    """Finished analysis for one uploaded manifest."""

    manifest_id: str = Field(..., description="Unique id generated per analysis run")
    file_name: str
    upload_timestamp: datetime
    processing_duration_ms: int = Field(..., ge=0)
    total_items: int = Field(..., ge=0)
    valid_items: int = Field(..., ge=0)
    total_retail_value: float = Field(..., ge=0)
    total_potential_profit: float
    executive_summary: ExecutiveSummary
    items: list[EnrichedItem] = Field(default_factory=list, description="Same order as the input rows")
    validation: Optional[ValidationReport] = None


class PortfolioSummary(BaseSchema):
    """Totals across every stored analysis."""

    total_manifests: int = Field(default=0, ge=0)
    total_items: int = Field(default=0, ge=0)
    total_value: float = Field(default=0.0, ge=0)
    total_profit: float = Field(default=0.0)
    average_roi: float = Field(default=0.0)
