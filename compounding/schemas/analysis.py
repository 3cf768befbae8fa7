"""
API Schemas — Request and Response Models

Pydantic models for the Compounding API. Wire keys are camelCase
for the existing demo client; Python attribute names stay snake_case.
"""

from __future__ import annotations

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, StrictStr


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ============================================================
# ANALYZE
# ============================================================

class AnalyzeRequest(BaseModel):
    """POST /api/analyze-text request body."""
    text: StrictStr = Field(..., description="The text to score for frustration.")

    model_config = {"json_schema_extra": {"examples": [
        {"text": "WHY DOES THIS KEEP BREAKING?!"},
    ]}}


class AnalysisResponse(_CamelModel):
    """POST /api/analyze-text response body."""
    text: str
    score: int
    indicators: list[str]
    level: str = Field(..., alias="frustrationLevel")
    explanation: str = Field(..., alias="reasoning")
    timestamp: str


# ============================================================
# FEEDBACK
# ============================================================

class FeedbackRequest(_CamelModel):
    """POST /api/feedback request body. Scores are not range-checked."""
    text: str = ""
    expected_score: float = Field(..., alias="expectedScore")
    actual_score: float = Field(..., alias="actualScore")


class FeedbackResponse(BaseModel):
    message: str


# ============================================================
# STATS / EVOLUTION
# ============================================================

class StatsResponse(_CamelModel):
    """GET /api/stats response body."""
    total_analyses: int = Field(..., alias="totalAnalyses")
    average_score: float = Field(..., alias="averageScore")
    common_indicators: list[str] = Field(..., alias="commonIndicators")
    last_updated: str = Field(..., alias="lastUpdated")
    patterns_count: dict[str, int] = Field(..., alias="patternsCount")
    learning_data_points: int = Field(..., alias="learningDataPoints")
    feedback_count: int = Field(..., alias="feedbackCount")


class EvolutionResponse(_CamelModel):
    """GET /api/evolution response body."""
    initial_pattern_count: int = Field(..., alias="initialPatternCount")
    current_pattern_count: int = Field(..., alias="currentPatternCount")
    learned_pattern_count: int = Field(..., alias="learnedPatternCount")
    learning_iterations: int = Field(..., alias="learningIterations")
    improvement_cycles: int = Field(..., alias="improvementCycles")
    accuracy: Optional[float] = None


class RuleResponse(BaseModel):
    regex: str
    weight: int
    source: str


class PatternsResponse(_CamelModel):
    """GET /api/patterns response body."""
    total_patterns: int = Field(..., alias="totalPatterns")
    groups: dict[str, list[RuleResponse]]


# ============================================================
# REVIEW
# ============================================================

class ReviewRequest(BaseModel):
    """POST /api/review request body."""
    code: StrictStr = Field(..., min_length=1, max_length=200_000)
    context: dict[str, Any] = Field(default_factory=dict)


class IssueResponse(_CamelModel):
    type: str
    severity: str
    count: int
    suggestion: str
    examples: list[str]
    resolved: bool = False
    resolved_at: Optional[str] = Field(None, alias="resolvedAt")


class PositiveResponse(BaseModel):
    type: str
    count: int
    points: int


class RecommendationResponse(BaseModel):
    priority: str
    action: str
    details: list[str]


class ReviewResponse(BaseModel):
    """POST /api/review response body."""
    id: str
    timestamp: str
    code: str
    context: dict[str, Any]
    issues: list[IssueResponse]
    positives: list[PositiveResponse]
    score: int
    recommendations: list[RecommendationResponse]


class ResolveRequest(_CamelModel):
    """POST /api/review/{review_id}/resolve request body."""
    issue_types: list[str] = Field(..., alias="issueTypes")


class ResolveResponse(BaseModel):
    review_id: str
    resolved: int


class IssueCount(BaseModel):
    type: str
    count: int


class Improvement(_CamelModel):
    score_improvement: float = Field(..., alias="scoreImprovement")
    percent_improvement: Optional[float] = Field(None, alias="percentImprovement")


class InsightsResponse(_CamelModel):
    """GET /api/review/insights response body."""
    total_reviews: int = Field(..., alias="totalReviews")
    issues_found: int = Field(..., alias="issuesFound")
    issues_resolved: int = Field(..., alias="issuesResolved")
    resolution_rate: float = Field(..., alias="resolutionRate")
    average_score: float = Field(..., alias="averageScore")
    average_severity: float = Field(..., alias="averageSeverity")
    trend: str
    top_issues: list[IssueCount] = Field(..., alias="topIssues")
    improvement: Optional[Improvement] = None


# ============================================================
# HEALTH
# ============================================================

class HealthResponse(BaseModel):
    status: str
    version: str
    patterns_count: dict[str, int]
    learned_patterns: int
    total_analyses: int
    total_reviews: int
