from pydantic import BaseModel, Field, ConfigDict, EmailStr, field_validator, ValidationInfo
from pydantic.alias_generators import to_camel
from typing import List, Optional, Dict, Any
import math

SCORE_MIN = 0
SCORE_MAX = 100

LICENSE_PRIORITIES = ("High", "Medium", "Low")
SCHEME_TYPES = ("Government", "Private")


# ============ LOOSE VALUE COERCION ============

def coerce_text(v, default: str) -> str:
    """Strings are trimmed, numbers stringified, anything else (or blank) falls back"""
    if isinstance(v, bool):
        return default
    if isinstance(v, (int, float)):
        return str(v)
    if isinstance(v, str) and v.strip():
        return v.strip()
    return default


def coerce_score(v, default: int) -> int:
    """Accepts 72, 72.4, "72", "72%"; clamps to 0-100. Anything else falls back."""
    if isinstance(v, bool) or v is None:
        return default
    if isinstance(v, str):
        v = v.strip().rstrip("%").strip()
        try:
            v = float(v)
        except ValueError:
            return default
    if isinstance(v, int):
        # JSON integers can exceed float range
        return max(SCORE_MIN, min(SCORE_MAX, v))
    if not isinstance(v, float) or math.isnan(v) or math.isinf(v):
        return default
    return int(max(SCORE_MIN, min(SCORE_MAX, round(v))))


def coerce_text_list(v) -> List[str]:
    if not isinstance(v, list):
        return []
    result = []
    for item in v:
        if isinstance(item, bool):
            continue
        if isinstance(item, (int, float)):
            result.append(str(item))
        elif isinstance(item, str) and item.strip():
            result.append(item.strip())
    return result


def coerce_object_list(v) -> List[Any]:
    """Keep only object entries; the item model fills in their missing fields"""
    if not isinstance(v, list):
        return []
    return [item for item in v if isinstance(item, (dict, BaseModel))]


def coerce_choice(v, choices: tuple, default: str) -> str:
    if isinstance(v, str):
        for choice in choices:
            if v.strip().lower() == choice.lower():
                return choice
    return default


# ============ ANALYSIS SCHEMA ============

class AnalysisPart(BaseModel):
    """
    Base for every object inside an analysis. Sub-fields never fail validation:
    wrong-typed values are coerced or replaced by the field's default.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def coerce_loose_values(cls, v, info: ValidationInfo):
        field = cls.model_fields[info.field_name]
        default = field.get_default(call_default_factory=True)
        if field.annotation is str:
            return coerce_text(v, default)
        if field.annotation is int:
            return coerce_score(v, default)
        if field.annotation == List[str]:
            return coerce_text_list(v)
        return v


class ViabilityScore(AnalysisPart):
    overall: int = Field(default=50)
    market: int = Field(default=50)
    financial: int = Field(default=50)
    regulatory: int = Field(default=50)
    explanation: str = Field(default="Insufficient data for detailed analysis")


class TargetAudience(AnalysisPart):
    primary: str = Field(default="To be determined")
    secondary: str = Field(default="To be determined")
    market_size: str = Field(default="Unknown")
    demographics: List[str] = Field(default_factory=list)


class CompetitorLandscape(AnalysisPart):
    direct_competitors: List[str] = Field(default_factory=list)
    indirect_competitors: List[str] = Field(default_factory=list)
    market_gap: str = Field(default="Requires detailed market analysis")
    competitive_advantage: str = Field(default="Requires detailed market analysis")


class License(AnalysisPart):
    name: str = Field(default="Unnamed license")
    authority: str = Field(default="To be confirmed")
    timeline: str = Field(default="To be confirmed")
    cost: str = Field(default="To be confirmed")
    priority: str = Field(default="Medium", description="High | Medium | Low")
    description: str = Field(default="")

    @field_validator("priority", mode="after")
    @classmethod
    def normalize_priority(cls, v):
        return coerce_choice(v, LICENSE_PRIORITIES, "Medium")


class RoadmapPhase(AnalysisPart):
    phase: str = Field(default="Unnamed phase")
    duration: str = Field(default="To be determined")
    tasks: List[str] = Field(default_factory=list)
    milestones: List[str] = Field(default_factory=list)
    estimated_cost: str = Field(default="To be determined")


class FinancialProjection(AnalysisPart):
    initial_investment: str = Field(default="To be determined")
    monthly_operating_cost: str = Field(default="To be determined")
    break_even_timeline: str = Field(default="To be determined")
    revenue_streams: List[str] = Field(default_factory=list)


class RiskAssessment(AnalysisPart):
    high: List[str] = Field(default_factory=list)
    medium: List[str] = Field(default_factory=list)
    low: List[str] = Field(default_factory=list)
    mitigation: str = Field(default="To be determined")


class Scheme(AnalysisPart):
    name: str = Field(default="Unnamed scheme")
    type: str = Field(default="Government", description="Government | Private")
    eligibility: str = Field(default="To be confirmed")
    benefits: str = Field(default="To be confirmed")
    application_process: str = Field(default="To be confirmed")

    @field_validator("type", mode="after")
    @classmethod
    def normalize_type(cls, v):
        return coerce_choice(v, SCHEME_TYPES, "Government")


class NextSteps(AnalysisPart):
    immediate: str = Field(default="To be determined")
    short_term: str = Field(default="To be determined")
    long_term: str = Field(default="To be determined")


class AnalysisMetadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    model: str
    timestamp: str
    business_idea: str
    fallback: bool = False


class BusinessAnalysis(BaseModel):
    """The complete, application-trusted analysis. Every field is always present."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    viability_score: ViabilityScore
    target_audience: TargetAudience
    competitor_landscape: CompetitorLandscape
    mandatory_licenses: List[License]
    roadmap: List[RoadmapPhase]
    financial_projection: FinancialProjection
    risk_assessment: RiskAssessment
    government_schemes: List[Scheme]
    next_steps: NextSteps
    metadata: AnalysisMetadata = Field(alias="_metadata")

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# ============ API MODELS ============

class Identity(BaseModel):
    """The authenticated caller attached to a request"""
    user_id: str
    email: str
    name: str


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignupRequest(ApiModel):
    email: EmailStr
    password: str
    name: str


class LoginRequest(ApiModel):
    # plain str: a malformed email must fail exactly like an unknown one
    email: str
    password: str


class ClaimRequest(ApiModel):
    session_id: Optional[str] = Field(default=None, max_length=200)


class AnalyzeRequest(ApiModel):
    business_idea: Optional[str] = None
    session_id: Optional[str] = Field(default=None, max_length=200)


class UserPublic(ApiModel):
    id: str = Field(validation_alias="user_id")
    email: str
    name: str
    auth_type: str = "email"
    created_at: Optional[str] = None


class AnalysisRecordOut(ApiModel):
    id: str = Field(validation_alias="record_id")
    business_idea: str
    analysis: Dict[str, Any]
    created_at: str
    user_id: Optional[str] = None
    session_id: Optional[str] = None


class Pagination(ApiModel):
    current_page: int
    total_pages: int
    total_count: int
    has_next_page: bool
    has_prev_page: bool
