# pagespeed_api/models.py
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Strategy = Literal["mobile", "desktop"]


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Requests ---

class AnalysisInput(BaseModel):
    # Raw JSON values; the validation service decides what is missing or invalid
    url: Any = None
    strategy: Any = None
    categories: Optional[List[str]] = None


class CompareInput(BaseModel):
    url: Any = None


class AnalysisRequest(BaseModel):
    url: str
    strategy: Strategy = "mobile"
    categories: List[str] = Field(default_factory=lambda: ["performance"], min_length=1)


# --- Report ---

class MetricSample(CamelModel):
    score: Optional[float] = None
    display_value: Optional[str] = None
    numeric_value: Optional[float] = None


class CoreWebVitals(CamelModel):
    first_contentful_paint: MetricSample
    largest_contentful_paint: MetricSample
    speed_index: MetricSample
    total_blocking_time: MetricSample
    cumulative_layout_shift: MetricSample


class Opportunity(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    savings_ms: float
    display_value: Optional[str] = None


class AnalysisReport(CamelModel):
    url: str
    strategy: Strategy
    timestamp: datetime
    performance_score: int
    category_scores: Dict[str, int] = Field(default_factory=dict)
    metrics: CoreWebVitals
    opportunities: List[Opportunity] = Field(default_factory=list, max_length=5)
    field_data: Optional[Dict[str, Any]] = None
    screenshot: Optional[str] = None


# --- Comparison ---

class StrategySuccess(BaseModel):
    status: Literal["success"] = "success"
    score: int


class StrategyFailure(BaseModel):
    status: Literal["failed"] = "failed"
    score: None = None
    error: str


StrategyOutcome = Annotated[Union[StrategySuccess, StrategyFailure], Field(discriminator="status")]


class ComparisonResult(BaseModel):
    url: str
    timestamp: datetime
    mobile: StrategyOutcome
    desktop: StrategyOutcome


# --- Response envelopes ---

class AnalysisResponse(BaseModel):
    success: bool = True
    data: AnalysisReport


class ComparisonResponse(BaseModel):
    success: bool = True
    url: str
    timestamp: datetime
    data: ComparisonResult


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: datetime
    service: str
