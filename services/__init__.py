"""
Business logic services.

Each service handles one stage of manifest analysis.
"""

from services.validation_service import ManifestValidator, ValidationResult, get_manifest_validator
from services.estimator_service import ItemEstimator, TieredEstimator, build_tiered_estimator
from services.rule_estimator_service import RuleBasedEstimator
from services.llm_estimator_service import LLMEstimator
from services.enrichment_service import ItemEnricher, EnrichmentBatch
from services.insight_service import InsightService, get_insight_service
from services.analysis_store_service import (
    AnalysisStore,
    InMemoryAnalysisStore,
    SupabaseAnalysisStore,
    build_analysis_store,
)
from services.manifest_analysis_service import (
    ManifestAnalysisService,
    get_manifest_analysis_service,
)

__all__ = [
    "ManifestValidator",
    "ValidationResult",
    "get_manifest_validator",
    "ItemEstimator",
    "TieredEstimator",
    "build_tiered_estimator",
    "RuleBasedEstimator",
    "LLMEstimator",
    "ItemEnricher",
    "EnrichmentBatch",
    "InsightService",
    "get_insight_service",
    "AnalysisStore",
    "InMemoryAnalysisStore",
    "SupabaseAnalysisStore",
    "build_analysis_store",
    "ManifestAnalysisService",
    "get_manifest_analysis_service",
]
