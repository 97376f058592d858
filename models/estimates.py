"""
Estimator result schemas.

One record per enrichment sub-task. Both estimator tiers return these, so
the enricher never needs to know which tier produced a value.
"""

from pydantic import Field, field_validator

from models.base import FrozenSchema
from models.manifest import Category


class CategoryEstimate(FrozenSchema):
    """Category/subcategory classification."""

    category: Category = Field(default=Category.OTHER, description="Closed-list category")
    subcategory: str = Field(default="", description="Free-text subcategory")
    confidence: float = Field(default=0.0, ge=0, le=1, description="Classifier confidence")


class BrandModelEstimate(FrozenSchema):
    """Category-aware brand and model extraction."""

    brand: str = Field(default="", description="Brand name, empty if unknown")
    model: str = Field(default="", description="Model name/number, empty if unknown")


class ValuationEstimate(FrozenSchema):
    """Market valuation for a single unit."""

    estimated_value: float = Field(..., ge=0, description="Expected resale value per unit")
    market_value_low: float = Field(..., ge=0, description="Low end of resale range")
    market_value_high: float = Field(..., ge=0, description="High end of resale range")
    market_score: float = Field(default=50, ge=0, le=100, description="Market attractiveness")
    demand_score: float = Field(default=50, ge=0, le=100, description="Demand strength")
    seasonality_factor: float = Field(default=1.0, ge=0.5, le=1.5, description="Seasonal adjustment")


class RiskEstimate(FrozenSchema):
    """Resale risk assessment."""

    risk_score: float = Field(..., ge=0, le=100, description="0 = safe, 100 = very risky")
    authenticity_score: float = Field(default=80, ge=0, le=100, description="Likelihood item is genuine")
    risk_factors: list[str] = Field(default_factory=list, description="Distinct risk factors")

    @field_validator("risk_factors")
    @classmethod
    def unique_factors(cls, v: list[str]) -> list[str]:
        """Drop blanks and duplicates, keeping first occurrence order."""
        return list(dict.fromkeys(f.strip() for f in v if f and f.strip()))
