"""
Unit tests for ManifestAnalysisService (full pipeline).

Run: pytest tests/unit/test_manifest_analysis_service.py -v
"""

import asyncio

import pytest

from exceptions import (
    AnalysisCancelledError,
    DecodeError,
    ManifestNotFoundError,
    ManifestValidationError,
    StoreError,
    UnsupportedFormatError,
)
from models.manifest import Category, RecommendedAction
from services.analysis_store_service import SupabaseAnalysisStore
from services.enrichment_service import ItemEnricher
from services.estimator_service import TieredEstimator
from services.insight_service import get_insight_service
from services.manifest_analysis_service import ManifestAnalysisService
from services.validation_service import get_manifest_validator
from tests.factories import ManifestAnalysisFactory


class TestAnalyze:
    """Tests for ManifestAnalysisService.analyze()"""

    @pytest.mark.asyncio
    async def test_single_iphone_offline(self, analysis_service, iphone_manifest, memory_store):
        """Should analyze one row with the rule-based estimator."""
        analysis = await analysis_service.analyze(iphone_manifest, "manifest.csv")

        assert analysis.file_name == "manifest.csv"
        assert analysis.total_items == 1
        assert analysis.valid_items == 1
        assert analysis.total_retail_value == 999.0
        assert analysis.total_potential_profit == pytest.approx(200.0 - 999.0)

        item = analysis.items[0]
        assert item.description == "Apple iPhone 14 Pro"
        assert item.category == Category.ELECTRONICS
        assert item.estimated_value == 200.0
        assert item.valuation_confidence == 0.5
        assert 1 <= item.risk_score <= 100

        summary = analysis.executive_summary
        assert summary.recommended_action == RecommendedAction.PASS
        assert summary.average_roi == pytest.approx(-79.98)
        assert summary.degraded_items == 1
        assert analysis.validation.data_quality_score == 100.0
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_bytes_input(self, analysis_service, iphone_manifest):
        """Should accept raw UTF-8 bytes with a BOM."""
        content = ("\ufeff" + iphone_manifest).encode("utf-8")

        analysis = await analysis_service.analyze(content, "manifest.csv")

        assert analysis.items[0].description == "Apple iPhone 14 Pro"

    @pytest.mark.asyncio
    async def test_mixed_manifest(self, analysis_service, mixed_manifest):
        """Should analyze only valid rows and keep file order."""
        analysis = await analysis_service.analyze(mixed_manifest, "mixed.csv")

        assert analysis.total_items == 5
        assert analysis.valid_items == 3
        assert [i.row_number for i in analysis.items] == [1, 3, 5]
        assert analysis.validation.errors == ["Row 2: missing description", "Row 4: no retail price"]
        assert analysis.executive_summary.category_breakdown == {
            "Electronics": 1,
            "Clothing & Accessories": 1,
            "Other": 1,
        }

    @pytest.mark.asyncio
    async def test_unique_ids(self, analysis_service, iphone_manifest):
        """Should give every run its own id."""
        first = await analysis_service.analyze(iphone_manifest, "manifest.csv")
        second = await analysis_service.analyze(iphone_manifest, "manifest.csv")

        assert first.manifest_id != second.manifest_id

    @pytest.mark.asyncio
    async def test_live_tier_used(self, scripted_estimator, rule_estimator, memory_store, iphone_manifest):
        """Should use the live tier when it answers."""
        enricher = ItemEnricher(TieredEstimator(scripted_estimator(), rule_estimator, timeout_seconds=1))
        service = ManifestAnalysisService(enricher=enricher, store=memory_store)

        analysis = await service.analyze(iphone_manifest, "manifest.csv")

        assert analysis.items[0].estimated_value == 600.0
        assert analysis.executive_summary.degraded_items == 0

    @pytest.mark.asyncio
    async def test_header_only_raises(self, analysis_service):
        """Should raise DecodeError for a file without data rows."""
        with pytest.raises(DecodeError):
            await analysis_service.analyze("Product,Retail Price,Quantity\n", "manifest.csv")

    @pytest.mark.asyncio
    async def test_no_valid_rows_raises(self, analysis_service):
        """Should raise ManifestValidationError when every description is empty."""
        with pytest.raises(ManifestValidationError) as exc_info:
            await analysis_service.analyze("Description,Price\n,10\n ,20", "manifest.csv")

        assert exc_info.value.details["total_items"] == 2

    @pytest.mark.asyncio
    async def test_spreadsheet_rejected(self, analysis_service, iphone_manifest):
        """Should reject spreadsheet uploads before decoding."""
        with pytest.raises(UnsupportedFormatError):
            await analysis_service.analyze(b"PK\x03\x04", "manifest.xlsx")

    @pytest.mark.asyncio
    async def test_cancelled(self, analysis_service, mixed_manifest):
        """Should raise AnalysisCancelledError carrying completed items."""
        event = asyncio.Event()
        event.set()

        with pytest.raises(AnalysisCancelledError) as exc_info:
            await analysis_service.analyze(mixed_manifest, "mixed.csv", cancel_event=event)

        assert exc_info.value.completed_items == []
        assert exc_info.value.details["total_items"] == 3


class TestStoreHandOff:
    """Tests for save/upload and lookups."""

    @pytest.mark.asyncio
    async def test_upload_stores(self, analysis_service, iphone_manifest):
        """Should analyze and store in one step."""
        analysis = await analysis_service.upload(iphone_manifest, "manifest.csv")

        stored = analysis_service.get_analysis(analysis.manifest_id)

        assert stored.manifest_id == analysis.manifest_id
        assert stored.items[0].estimated_value == 200.0

    def test_get_missing_raises(self, analysis_service):
        """Should raise ManifestNotFoundError for an unknown id."""
        with pytest.raises(ManifestNotFoundError) as exc_info:
            analysis_service.get_analysis("does-not-exist")

        assert exc_info.value.code == "MANIFEST_NOT_FOUND"
        assert exc_info.value.status_code == 404

    def test_list_newest_first(self, analysis_service):
        """Should list stored analyses by upload time, newest first."""
        for name, minutes in (("old.csv", 60), ("new.csv", 1), ("mid.csv", 20)):
            analysis_service.save(ManifestAnalysisFactory.create(file_name=name, uploaded_minutes_ago=minutes))

        assert [a.file_name for a in analysis_service.list_analyses()] == ["new.csv", "mid.csv", "old.csv"]

    def test_delete(self, analysis_service):
        """Should delete a stored analysis."""
        analysis = analysis_service.save(ManifestAnalysisFactory.create())

        assert analysis_service.delete_analysis(analysis.manifest_id) is True
        assert analysis_service.delete_analysis(analysis.manifest_id) is False
        with pytest.raises(ManifestNotFoundError):
            analysis_service.get_analysis(analysis.manifest_id)

    def test_portfolio_summary(self, analysis_service):
        """Should total every stored analysis."""
        analysis_service.save(ManifestAnalysisFactory.create(total_retail_value=400, total_potential_profit=100))
        analysis_service.save(ManifestAnalysisFactory.create(total_retail_value=600, total_potential_profit=100))

        portfolio = analysis_service.get_portfolio_summary()

        assert portfolio.total_manifests == 2
        assert portfolio.total_value == 1000.0
        assert portfolio.average_roi == 20.0

    @pytest.mark.asyncio
    async def test_failed_save_can_be_retried(self, fallback_only_enricher, mock_supabase, iphone_manifest):
        """Should keep the computed analysis when the store is down."""
        service = ManifestAnalysisService(
            enricher=fallback_only_enricher,
            store=SupabaseAnalysisStore(client=mock_supabase, table="manifest_analyses")
        )
        analysis = await service.analyze(iphone_manifest, "manifest.csv")
        mock_supabase.fail_table("manifest_analyses", RuntimeError("timeout"))

        with pytest.raises(StoreError):
            service.save(analysis)

        mock_supabase.table("manifest_analyses").fail_with = None
        service.save(analysis)

        assert service.get_analysis(analysis.manifest_id).file_name == "manifest.csv"


class TestDefaults:
    """Tests for collaborators the service builds itself."""

    def test_shared_validator_and_insights(self, fallback_only_enricher, memory_store):
        """Should use the shared validator and insight service when none are given."""
        service = ManifestAnalysisService(enricher=fallback_only_enricher, store=memory_store)

        assert service.validator is get_manifest_validator()
        assert service.insights is get_insight_service()
