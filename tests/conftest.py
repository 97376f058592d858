"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import asyncio
import pytest
from typing import Optional

from models.estimates import (
    BrandModelEstimate,
    CategoryEstimate,
    RiskEstimate,
    ValuationEstimate,
)
from models.manifest import Category
from services.estimator_service import ItemEstimator, TieredEstimator
from services.rule_estimator_service import RuleBasedEstimator
from services.enrichment_service import ItemEnricher
from services.analysis_store_service import InMemoryAnalysisStore
from services.manifest_analysis_service import ManifestAnalysisService


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """
    Mock Supabase query builder with chainable methods.

    Operates on the owning table's rows so writes are visible to later reads.
    """

    def __init__(self, table: "MockSupabaseTable", action: str, payload=None):
        self._table = table
        self._action = action
        self._payload = payload
        self._filters: list[tuple[str, object]] = []
        self._order: Optional[tuple[str, bool]] = None

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, desc: bool = False, **kwargs):
        self._order = (column, desc)
        return self

    def limit(self, count):
        return self

    def _matches(self, row: dict) -> bool:
        return all(row.get(column) == value for column, value in self._filters)

    def execute(self) -> MockSupabaseResponse:
        if self._table.fail_with is not None:
            raise self._table.fail_with

        if self._action == "upsert":
            rows = self._payload if isinstance(self._payload, list) else [self._payload]
            for row in rows:
                self._table.rows = [r for r in self._table.rows if r.get("id") != row.get("id")]
                self._table.rows.append(dict(row))
            return MockSupabaseResponse(data=rows)

        matched = [row for row in self._table.rows if self._matches(row)]

        if self._action == "delete":
            self._table.rows = [row for row in self._table.rows if not self._matches(row)]
            return MockSupabaseResponse(data=matched)

        if self._order:
            column, desc = self._order
            matched.sort(key=lambda row: row.get(column), reverse=desc)
        return MockSupabaseResponse(data=matched)


class MockSupabaseTable:
    """Mock Supabase table keeping rows in memory."""

    def __init__(self):
        self.rows: list[dict] = []
        self.fail_with: Optional[Exception] = None

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self, "select")

    def upsert(self, data):
        return MockSupabaseQuery(self, "upsert", data)

    def delete(self):
        return MockSupabaseQuery(self, "delete")


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table (created on first use)."""
        return self._tables.setdefault(name, MockSupabaseTable())

    def fail_table(self, name: str, error: Exception):
        """Make every query on a table raise."""
        self.table(name).fail_with = error


# ===================
# SCRIPTED ESTIMATOR
# ===================

class ScriptedEstimator(ItemEstimator):
    """
    Stand-in for the live estimator.

    Returns fixed estimates, or raises `error` from every sub-task listed
    in `failing`. Records each call as (task, description).
    """

    def __init__(self, failing: tuple[str, ...] = (), error: Exception = None, delay: float = 0):
        self.failing = set(failing)
        self.error = error or RuntimeError("estimator unavailable")
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    async def _enter(self, task: str, item):
        self.calls.append((task, item.description))
        if self.delay:
            await asyncio.sleep(self.delay)
        if task in self.failing:
            raise self.error

    async def categorize(self, item):
        await self._enter("categorization", item)
        return CategoryEstimate(category=Category.ELECTRONICS, subcategory="Smartphones", confidence=0.9)

    async def extract_brand_model(self, item, category):
        await self._enter("brand_model", item)
        return BrandModelEstimate(brand="Apple", model="iPhone 14 Pro")

    async def estimate_value(self, item, category, brand_model):
        await self._enter("valuation", item)
        return ValuationEstimate(
            estimated_value=600.0,
            market_value_low=500.0,
            market_value_high=700.0,
            market_score=80,
            demand_score=85,
            seasonality_factor=1.1,
        )

    async def assess_risk(self, item, category, brand_model, valuation):
        await self._enter("risk", item)
        return RiskEstimate(risk_score=20, authenticity_score=95, risk_factors=["Activation lock"])


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            store = SupabaseAnalysisStore(client=mock_supabase)
    """
    return MockSupabaseClient()


@pytest.fixture
def rule_estimator() -> RuleBasedEstimator:
    """Deterministic fallback estimator (hashed risk mode)."""
    return RuleBasedEstimator(risk_mode="hashed")


@pytest.fixture
def fallback_only_enricher(rule_estimator) -> ItemEnricher:
    """Enricher with no live tier, as when no API key is configured."""
    return ItemEnricher(TieredEstimator(primary=None, fallback=rule_estimator, timeout_seconds=1), concurrency=4)


@pytest.fixture
def memory_store() -> InMemoryAnalysisStore:
    return InMemoryAnalysisStore()


@pytest.fixture
def analysis_service(fallback_only_enricher, memory_store) -> ManifestAnalysisService:
    """Pipeline wired to the rule-based estimator and an in-memory store."""
    return ManifestAnalysisService(enricher=fallback_only_enricher, store=memory_store)


@pytest.fixture
def iphone_manifest() -> str:
    return (
        "Product,Retail Price,Quantity,Condition,Total Retail Price\n"
        "Apple iPhone 14 Pro,999.00,1,New,999.00"
    )


@pytest.fixture
def mixed_manifest() -> str:
    """Three valid rows and two invalid ones."""
    return "\n".join([
        "Description,Retail Price,Qty,Condition,Total Retail",
        "Samsung Galaxy Phone,500.00,2,Like New,1000.00",
        ",25.00,1,New,25.00",
        "Levis Denim Pants,60.00,3,Customer Return,",
        "Mystery pallet,,1,Fair,",
        'KitchenAid Stand Mixer,"$1,299.99",1,Good,',
    ])


@pytest.fixture
def scripted_estimator():
    """
    ScriptedEstimator class, for building live-tier stand-ins.

    Usage:
        def test_something(scripted_estimator):
            primary = scripted_estimator(failing=("valuation",))
    """
    return ScriptedEstimator
