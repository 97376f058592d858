"""
Claude-backed estimator.

Primary tier for every enrichment sub-task. Sends one JSON-only prompt per
sub-task and turns the reply into a typed estimate. Anything it cannot use
is raised as EstimatorError; the tiered wrapper handles the fallback.
"""

import json
import math
import re
from typing import Any, Optional
import structlog

from exceptions import EstimatorError
from integrations.claude_client import ClaudeClient
from models.estimates import (
    BrandModelEstimate,
    CategoryEstimate,
    RiskEstimate,
    ValuationEstimate,
)
from models.manifest import Category, ManifestItem
from services.estimator_service import ItemEstimator

logger = structlog.get_logger(__name__)


def parse_json_response(response_text: str) -> dict:
    """
    Parse a JSON object out of a model reply.

    Markdown code fences are removed first.

    Raises:
        EstimatorError: If the reply is not a JSON object
    """
    cleaned = (response_text or "").strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r'^```(?:json)?\s*', '', cleaned)
        cleaned = re.sub(r'\s*```$', '', cleaned)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("json_parse_failed", response_preview=cleaned[:200], error=str(e))
        raise EstimatorError("Estimator reply is not valid JSON", details={"error": str(e)}) from e

    if not isinstance(data, dict):
        raise EstimatorError("Estimator reply is not a JSON object", details={"type": type(data).__name__})
    return data


def _number(data: dict, key: str, default: Optional[float] = None) -> float:
    value = data.get(key, default)
    if value is None:
        raise EstimatorError(f"Estimator reply is missing '{key}'")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise EstimatorError(f"Estimator reply has non-numeric '{key}'", details={"value": str(value)}) from e
    if not math.isfinite(number):
        raise EstimatorError(f"Estimator reply has non-finite '{key}'", details={"value": str(value)})
    return number


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class LLMEstimator(ItemEstimator):
    """
    Estimate category, brand/model, value and risk with Claude.

    Prompts ask for JSON only. Numeric fields are clamped into their valid
    ranges rather than rejected; missing required fields are errors.
    """

    CATEGORIES = [c.value for c in Category]

    SYSTEM_PROMPT = """You are a liquidation merchandise analyst. You assess items from wholesale liquidation manifests for resale.

IMPORTANT: Return ONLY valid JSON, no markdown, no explanation, no code blocks."""

    CATEGORY_PROMPT = """Classify this liquidation item.

Item: {description}
Brand hint: {brand_hint}

Choose category from exactly this list: {categories}

Return JSON:
{{"category": "Electronics", "subcategory": "Smartphones", "confidence": 0.9}}"""

    BRAND_MODEL_PROMPT = """Extract the brand and model of this item.

Item: {description}
Category: {category}

Use an empty string when a value cannot be determined.

Return JSON:
{{"brand": "Apple", "model": "iPhone 14 Pro"}}"""

    VALUATION_PROMPT = """Estimate the current secondary-market resale value of ONE unit of this item.

Item: {description}
Category: {category}
Brand: {brand}
Model: {model}
Condition: {condition}
Listed retail price: {retail_price:.2f}

Scores are 1-100. seasonalityFactor is between 0.5 and 1.5 (1.0 = no seasonal effect).

Return JSON:
{{"estimatedValue": 450.0, "marketValueLow": 380.0, "marketValueHigh": 520.0, "marketScore": 75, "demandScore": 80, "seasonalityFactor": 1.0}}"""

    RISK_PROMPT = """Assess the resale risk of this item.

Item: {description}
Category: {category}
Brand: {brand}
Model: {model}
Estimated value: {estimated_value:.2f}

riskScore and authenticityScore are 1-100 (higher riskScore = riskier). riskFactors is a short list of distinct reasons.

Return JSON:
{{"riskScore": 35, "authenticityScore": 90, "riskFactors": ["Counterfeits common for this brand"]}}"""

    def __init__(self, client: ClaudeClient):
        self.client = client

    async def _ask(self, prompt: str, task: str) -> dict:
        response_text = await self.client.complete(prompt, self.SYSTEM_PROMPT)
        data = parse_json_response(response_text)
        logger.debug("estimator_reply_parsed", task=task, keys=sorted(data.keys()))
        return data

    async def categorize(self, item: ManifestItem) -> CategoryEstimate:
        data = await self._ask(
            self.CATEGORY_PROMPT.format(
                description=item.description,
                brand_hint=item.brand_hint,
                categories=", ".join(self.CATEGORIES),
            ),
            task="categorization"
        )
        if "category" not in data:
            raise EstimatorError("Estimator reply is missing 'category'")

        return CategoryEstimate(
            category=Category.coerce(_text(data.get("category"))),
            subcategory=_text(data.get("subcategory")),
            confidence=_clamp(_number(data, "confidence", 0.5), 0, 1),
        )

    async def extract_brand_model(
        self,
        item: ManifestItem,
        category: Category
    ) -> BrandModelEstimate:
        data = await self._ask(
            self.BRAND_MODEL_PROMPT.format(description=item.description, category=category.value),
            task="brand_model"
        )
        return BrandModelEstimate(
            brand=_text(data.get("brand")),
            model=_text(data.get("model")),
        )

    async def estimate_value(
        self,
        item: ManifestItem,
        category: Category,
        brand_model: BrandModelEstimate
    ) -> ValuationEstimate:
        data = await self._ask(
            self.VALUATION_PROMPT.format(
                description=item.description,
                category=category.value,
                brand=brand_model.brand or "unknown",
                model=brand_model.model or "unknown",
                condition=item.condition.value,
                retail_price=item.retail_price,
            ),
            task="valuation"
        )

        estimated = max(0.0, _number(data, "estimatedValue"))
        low = max(0.0, _number(data, "marketValueLow", estimated * 0.8))
        high = max(0.0, _number(data, "marketValueHigh", estimated * 1.2))

        return ValuationEstimate(
            estimated_value=estimated,
            market_value_low=min(low, estimated),
            market_value_high=max(high, estimated),
            market_score=_clamp(_number(data, "marketScore", 50), 0, 100),
            demand_score=_clamp(_number(data, "demandScore", 50), 0, 100),
            seasonality_factor=_clamp(_number(data, "seasonalityFactor", 1.0), 0.5, 1.5),
        )

    async def assess_risk(
        self,
        item: ManifestItem,
        category: Category,
        brand_model: BrandModelEstimate,
        valuation: ValuationEstimate
    ) -> RiskEstimate:
        data = await self._ask(
            self.RISK_PROMPT.format(
                description=item.description,
                category=category.value,
                brand=brand_model.brand or "unknown",
                model=brand_model.model or "unknown",
                estimated_value=valuation.estimated_value,
            ),
            task="risk"
        )

        factors = data.get("riskFactors") or []
        if isinstance(factors, str):
            factors = [factors]
        if not isinstance(factors, list):
            raise EstimatorError("Estimator reply has malformed 'riskFactors'")

        return RiskEstimate(
            risk_score=_clamp(_number(data, "riskScore"), 0, 100),
            authenticity_score=_clamp(_number(data, "authenticityScore", 80), 0, 100),
            risk_factors=[_text(f) for f in factors],
        )
