"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, FrozenSchema
from models.manifest import (
    RawRow,
    Category,
    Condition,
    RecommendedAction,
    RiskLevel,
    ManifestItem,
    EnrichedItem,
    ValidationReport,
    ExecutiveSummary,
    ManifestAnalysis,
    PortfolioSummary,
)
from models.estimates import (
    CategoryEstimate,
    BrandModelEstimate,
    ValuationEstimate,
    RiskEstimate,
)

__all__ = [
    # Base
    "BaseSchema",
    "FrozenSchema",

    # Manifest
    "RawRow",
    "Category",
    "Condition",
    "RecommendedAction",
    "RiskLevel",
    "ManifestItem",
    "EnrichedItem",
    "ValidationReport",
    "ExecutiveSummary",
    "ManifestAnalysis",
    "PortfolioSummary",

    # Estimates
    "CategoryEstimate",
    "BrandModelEstimate",
    "ValuationEstimate",
    "RiskEstimate",
]
