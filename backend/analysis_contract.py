"""
Analysis response contract.

Turns the raw text returned by the model into a BusinessAnalysis that always
satisfies the schema. Nothing in here raises to the caller:

1. trim, and strip one ```json ... ``` wrapper if the model added it
2. strict json.loads; anything that is not a JSON object goes to the fallback
3. walk the fixed top-level fields, replacing absent or wrong-shaped fields
   with their neutral defaults (sub-fields are coerced by the schema models)
4. unparseable output gets the pre-built fallback analysis (fallback=True)
5. every result is stamped with _metadata (idea, model, timestamp, fallback)
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ValidationError

from schemas import (
    AnalysisMetadata,
    BusinessAnalysis,
    CompetitorLandscape,
    FinancialProjection,
    License,
    NextSteps,
    RiskAssessment,
    RoadmapPhase,
    Scheme,
    TargetAudience,
    ViabilityScore,
    coerce_object_list,
)

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r"^```[A-Za-z0-9_+-]*[ \t]*\r?\n(.*?)\r?\n?```$", re.DOTALL)

# (wire name, python field, model, is list)
ANALYSIS_FIELDS: List[Tuple[str, str, type, bool]] = [
    ("viabilityScore", "viability_score", ViabilityScore, False),
    ("targetAudience", "target_audience", TargetAudience, False),
    ("competitorLandscape", "competitor_landscape", CompetitorLandscape, False),
    ("mandatoryLicenses", "mandatory_licenses", License, True),
    ("roadmap", "roadmap", RoadmapPhase, True),
    ("financialProjection", "financial_projection", FinancialProjection, False),
    ("riskAssessment", "risk_assessment", RiskAssessment, False),
    ("governmentSchemes", "government_schemes", Scheme, True),
    ("nextSteps", "next_steps", NextSteps, False),
]

FALLBACK_ANALYSIS: Dict[str, Any] = {
    "viabilityScore": {
        "overall": 60,
        "market": 65,
        "financial": 55,
        "regulatory": 60,
        "explanation": "Analysis requires more specific information about the business model and target market.",
    },
    "targetAudience": {
        "primary": "General consumers",
        "secondary": "Small businesses",
        "marketSize": "To be determined based on specific market research",
        "demographics": ["Urban middle class", "Tech-savvy consumers"],
    },
    "competitorLandscape": {
        "directCompetitors": ["To be identified through market research"],
        "indirectCompetitors": ["Traditional alternatives"],
        "marketGap": "Requires detailed market analysis",
        "competitiveAdvantage": "To be defined based on unique value proposition",
    },
    "mandatoryLicenses": [
        {
            "name": "Business Registration",
            "authority": "Registrar of Companies / Local Authority",
            "timeline": "15-30 days",
            "cost": "₹5,000 - ₹25,000",
            "priority": "High",
            "description": "Basic business entity registration",
        },
        {
            "name": "GST Registration",
            "authority": "GST Department",
            "timeline": "7-15 days",
            "cost": "Free (if eligible)",
            "priority": "High",
            "description": "Goods and Services Tax registration if turnover exceeds threshold",
        },
    ],
    "roadmap": [
        {
            "phase": "Phase 1: Planning & Research",
            "duration": "1-2 months",
            "tasks": ["Market research", "Business plan development", "Legal structure setup"],
            "milestones": ["Completed market analysis", "Finalized business model"],
            "estimatedCost": "₹50,000 - ₹1,00,000",
        },
        {
            "phase": "Phase 2: Setup & Launch",
            "duration": "2-3 months",
            "tasks": ["Obtain licenses", "Setup operations", "Initial marketing"],
            "milestones": ["All licenses obtained", "Operations ready"],
            "estimatedCost": "₹2,00,000 - ₹5,00,000",
        },
    ],
    "financialProjection": {
        "initialInvestment": "₹2,00,000 - ₹10,00,000",
        "monthlyOperatingCost": "₹50,000 - ₹2,00,000",
        "breakEvenTimeline": "12-18 months",
        "revenueStreams": ["Primary service/product sales", "Secondary revenue streams"],
    },
    "riskAssessment": {
        "high": ["Market competition", "Regulatory changes"],
        "medium": ["Economic fluctuations", "Technology disruption"],
        "low": ["Seasonal variations"],
        "mitigation": "Diversify revenue streams, maintain regulatory compliance, continuous market monitoring",
    },
    "governmentSchemes": [
        {
            "name": "MUDRA Loan",
            "type": "Government",
            "eligibility": "Micro and small enterprises",
            "benefits": "Collateral-free loans up to ₹10 lakhs",
            "applicationProcess": "Apply through participating banks",
        },
        {
            "name": "Startup India",
            "type": "Government",
            "eligibility": "Innovative startups",
            "benefits": "Tax exemptions, easier compliance, funding opportunities",
            "applicationProcess": "Register on Startup India portal",
        },
    ],
    "nextSteps": {
        "immediate": "Conduct detailed market research and validate the business concept",
        "shortTerm": "Develop a comprehensive business plan and identify funding sources",
        "longTerm": "Build a strong team and establish market presence",
    },
}


def strip_code_fence(text: str) -> str:
    """Remove a single ```lang ... ``` wrapper around the whole response"""
    text = text.strip()
    match = FENCE_PATTERN.match(text)
    if match:
        return match.group(1).strip()
    return text


def parse_model_output(raw_text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Strict parse. Returns None unless the text is exactly one JSON object."""
    if not isinstance(raw_text, str):
        return None
    text = strip_code_fence(raw_text)
    if not text:
        return None
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        logger.warning(f"Model output is not valid JSON: {str(e)[:120]}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Model output parsed to {type(data).__name__}, expected an object")
        return None
    return data


def _repair_object(value: Any, model: type) -> Optional[BaseModel]:
    if not isinstance(value, dict):
        return None
    try:
        return model.model_validate(value)
    except ValidationError:
        return None


def _repair_list(value: Any, model: type) -> Optional[List[BaseModel]]:
    if not isinstance(value, list):
        return None
    items = []
    for item in coerce_object_list(value):
        repaired = _repair_object(item, model)
        if repaired is not None:
            items.append(repaired)
    return items


def _default_for(model: type, is_list: bool):
    if is_list:
        return []
    return model()


def repair_analysis(data: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """
    Field-by-field repair of a parsed (but untrusted) analysis object.
    Returns python-named fields ready for BusinessAnalysis plus the wire names
    of the top-level fields that had to be replaced by defaults.
    """
    fields: Dict[str, Any] = {}
    replaced: List[str] = []
    for wire_name, field_name, model, is_list in ANALYSIS_FIELDS:
        raw_value = data.get(wire_name)
        if raw_value is None:
            raw_value = data.get(field_name)

        repair: Callable[[Any, type], Any] = _repair_list if is_list else _repair_object
        value = repair(raw_value, model)
        if value is None:
            value = _default_for(model, is_list)
            replaced.append(wire_name)
        fields[field_name] = value
    return fields, replaced


def _metadata(business_idea: str, model_version: str, fallback: bool, now: Optional[datetime]) -> AnalysisMetadata:
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    return AnalysisMetadata(
        model=model_version,
        timestamp=timestamp,
        business_idea=business_idea,
        fallback=fallback,
    )


def fallback_analysis(business_idea: str, model_version: str, now: Optional[datetime] = None) -> BusinessAnalysis:
    fields, _ = repair_analysis(FALLBACK_ANALYSIS)
    return BusinessAnalysis(
        **fields,
        metadata=_metadata(business_idea, model_version, True, now),
    )


def validate_analysis(
    raw_text: Optional[str],
    business_idea: str,
    model_version: str,
    now: Optional[datetime] = None,
) -> BusinessAnalysis:
    """Coerce raw model text into a schema-conformant BusinessAnalysis. Never raises."""
    data = parse_model_output(raw_text)
    if data is None:
        logger.warning("Using fallback analysis, model output could not be parsed")
        return fallback_analysis(business_idea, model_version, now)

    try:
        fields, replaced = repair_analysis(data)
        if replaced:
            logger.info(f"Repaired analysis fields with defaults: {', '.join(replaced)}")
        return BusinessAnalysis(
            **fields,
            metadata=_metadata(business_idea, model_version, False, now),
        )
    except Exception:
        logger.exception("Unexpected error while repairing analysis, using fallback")
        return fallback_analysis(business_idea, model_version, now)
