"""
Manifest analysis pipeline.

Gate -> decode -> validate -> enrich -> aggregate, then an independent
store hand-off. Computing an analysis never touches the store, so a failed
save can be retried without recomputing.
"""

import asyncio
import time
import uuid
from datetime import datetime, timezone
from typing import Optional, Union
import structlog

from exceptions import AnalysisCancelledError, ManifestNotFoundError
from models.manifest import ManifestAnalysis, PortfolioSummary
from parsers.csv_decoder import decode_manifest
from parsers.format_gate import check_supported_format, decode_bytes
from services.analysis_store_service import AnalysisStore, build_analysis_store
from services.enrichment_service import ItemEnricher
from services.insight_service import InsightService, get_insight_service
from services.validation_service import ManifestValidator, get_manifest_validator

logger = structlog.get_logger(__name__)


class ManifestAnalysisService:
    """
    Manifest analysis and stored-analysis lookups.

    Collaborators are injectable; defaults come from settings.
    """

    def __init__(
        self,
        enricher: Optional[ItemEnricher] = None,
        store: Optional[AnalysisStore] = None,
        validator: Optional[ManifestValidator] = None,
        insights: Optional[InsightService] = None
    ):
        self.enricher = enricher or ItemEnricher()
        self.store = store or build_analysis_store()
        self.validator = validator or get_manifest_validator()
        self.insights = insights or get_insight_service()

    # ===================
    # ANALYSIS
    # ===================

    async def analyze(
        self,
        content: Union[bytes, str],
        file_name: str,
        cancel_event: Optional[asyncio.Event] = None
    ) -> ManifestAnalysis:
        """
        Analyze one manifest file. Does not store the result.

        Args:
            content: Raw file bytes or already-decoded text
            file_name: Display name (also decides the format)
            cancel_event: Set to stop enriching further items

        Returns:
            ManifestAnalysis with items in file order

        Raises:
            UnsupportedFormatError: Spreadsheet, PDF or unknown file type
            DecodeError: Not UTF-8, or no data rows
            ManifestValidationError: No row passed validation
            AnalysisCancelledError: Cancelled before every item was enriched
        """
        started = time.perf_counter()
        upload_timestamp = datetime.now(timezone.utc)

        logger.info("manifest_analysis_started", file_name=file_name)

        check_supported_format(file_name)
        decoded = decode_manifest(decode_bytes(content))
        validation = self.validator.validate_or_raise(decoded.rows, decoded.columns)

        batch = await self.enricher.enrich_all(validation.items, cancel_event=cancel_event)
        if batch.cancelled:
            logger.warning(
                "manifest_analysis_cancelled",
                file_name=file_name,
                completed=len(batch.items),
                total=batch.requested
            )
            raise AnalysisCancelledError(
                file_name=file_name,
                completed_items=batch.items,
                total_items=batch.requested
            )

        summary = self.insights.summarize(batch.items)

        analysis = ManifestAnalysis(
            manifest_id=str(uuid.uuid4()),
            file_name=file_name,
            upload_timestamp=upload_timestamp,
            processing_duration_ms=int((time.perf_counter() - started) * 1000),
            total_items=validation.report.total_items,
            valid_items=validation.report.valid_items,
            total_retail_value=self.insights.total_retail_value(batch.items),
            total_potential_profit=self.insights.total_potential_profit(batch.items),
            executive_summary=summary,
            items=batch.items,
            validation=validation.report,
        )

        logger.info(
            "manifest_analysis_completed",
            manifest_id=analysis.manifest_id,
            file_name=file_name,
            valid_items=analysis.valid_items,
            total_items=analysis.total_items,
            recommended_action=summary.recommended_action.value,
            duration_ms=analysis.processing_duration_ms
        )
        return analysis

    def save(self, analysis: ManifestAnalysis) -> ManifestAnalysis:
        """
        Hand a finished analysis to the store.

        Raises:
            StoreError: If the store is unavailable (the analysis is untouched)
        """
        self.store.put(analysis.manifest_id, analysis)
        logger.info("analysis_stored", manifest_id=analysis.manifest_id, file_name=analysis.file_name)
        return analysis

    async def upload(
        self,
        content: Union[bytes, str],
        file_name: str,
        cancel_event: Optional[asyncio.Event] = None
    ) -> ManifestAnalysis:
        """Analyze and store in one step."""
        analysis = await self.analyze(content, file_name, cancel_event=cancel_event)
        return self.save(analysis)

    # ===================
    # LOOKUPS
    # ===================

    def get_analysis(self, manifest_id: str) -> ManifestAnalysis:
        """
        Raises:
            ManifestNotFoundError: If no analysis has this id
        """
        analysis = self.store.get(manifest_id)
        if analysis is None:
            raise ManifestNotFoundError(manifest_id)
        return analysis

    def list_analyses(self) -> list[ManifestAnalysis]:
        """All stored analyses, newest upload first."""
        return sorted(self.store.list_all(), key=lambda a: a.upload_timestamp, reverse=True)

    def delete_analysis(self, manifest_id: str) -> bool:
        deleted = self.store.delete(manifest_id)
        logger.info("analysis_deleted", manifest_id=manifest_id, deleted=deleted)
        return deleted

    def get_portfolio_summary(self) -> PortfolioSummary:
        return self.insights.summarize_portfolio(self.store.list_all())


# Singleton instance for convenience
_analysis_service: Optional[ManifestAnalysisService] = None

def get_manifest_analysis_service() -> ManifestAnalysisService:
    """Get or create ManifestAnalysisService instance."""
    global _analysis_service
    if _analysis_service is None:
        _analysis_service = ManifestAnalysisService()
    return _analysis_service
