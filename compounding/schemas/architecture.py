"""
API Schemas — Architecture Capturer

Wire keys follow the demo client's camelCase (filePath, changeType,
discoveredAt, ...); Python attribute names stay snake_case.
"""

from __future__ import annotations

from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, StrictStr


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ============================================================
# ANALYZE CHANGE
# ============================================================

class ChangeRequest(_CamelModel):
    """POST /api/architecture/analyze request body."""
    code: StrictStr = Field(..., max_length=200_000)
    file_path: StrictStr = Field(..., alias="filePath", min_length=1)
    change_type: Literal["create", "modify", "delete"] = Field("modify", alias="changeType")

    model_config = {"json_schema_extra": {"examples": [
        {
            "code": "class UserService {\n  constructor(db) { this.db = db; }\n}",
            "filePath": "src/services/userService.js",
            "changeType": "create",
        },
    ]}}


class ChangeResponse(_CamelModel):
    code: str
    file_path: str = Field(..., alias="filePath")
    change_type: str = Field(..., alias="changeType")


class DecisionResponse(BaseModel):
    type: str
    decision: str
    rationale: str
    impact: str
    considerations: list[str]


class PatternUsageResponse(BaseModel):
    name: str
    usage: str
    pros: list[str]
    cons: list[str]
    alternatives: list[str]


class DebtItemResponse(_CamelModel):
    type: str
    description: str
    file: str
    severity: str
    category: str
    discovered_at: Optional[str] = Field(None, alias="discoveredAt")
    analysis_id: Optional[str] = Field(None, alias="analysisId")


class SuggestionResponse(BaseModel):
    type: str
    priority: str
    suggestion: str
    rationale: str
    actions: list[str]


class ArchitectureAnalysisResponse(BaseModel):
    """POST /api/architecture/analyze response body."""
    id: str
    timestamp: str
    change: ChangeResponse
    decisions: list[DecisionResponse]
    patterns: list[PatternUsageResponse]
    debt: list[DebtItemResponse]
    suggestions: list[SuggestionResponse]


# ============================================================
# INSIGHTS
# ============================================================

class ArchitectureSummary(_CamelModel):
    total_decisions: int = Field(..., alias="totalDecisions")
    recent_decisions: int = Field(..., alias="recentDecisions")
    patterns: list[str]
    debt_items: int = Field(..., alias="debtItems")


class ArchitectureTrends(_CamelModel):
    patterns: dict[str, int]
    debt: dict[str, int]
    last_updated: Optional[str] = Field(None, alias="lastUpdated")


class ArchitectureRecommendationResponse(BaseModel):
    type: str
    priority: str
    title: str
    description: str
    action: str


class ArchitectureMetricsResponse(_CamelModel):
    decisions_recorded: int = Field(..., alias="decisionsRecorded")
    patterns_identified: int = Field(..., alias="patternsIdentified")
    debt_items: int = Field(..., alias="debtItems")
    last_analysis: Optional[str] = Field(None, alias="lastAnalysis")


class PatternCount(BaseModel):
    name: str
    count: int


class ArchitectureEvolution(_CamelModel):
    most_used_patterns: list[PatternCount] = Field(..., alias="mostUsedPatterns")
    debt_by_category: dict[str, int] = Field(..., alias="debtByCategory")
    decision_types: dict[str, int] = Field(..., alias="decisionTypes")


class ArchitectureInsightsResponse(BaseModel):
    """GET /api/architecture/insights response body."""
    summary: ArchitectureSummary
    trends: ArchitectureTrends
    recommendations: list[ArchitectureRecommendationResponse]
    metrics: ArchitectureMetricsResponse
    evolution: ArchitectureEvolution


# ============================================================
# KNOWLEDGE BASE
# ============================================================

class PatternRecord(BaseModel):
    count: int
    contexts: list[dict[str, Any]]


class KnowledgeBaseResponse(_CamelModel):
    """GET /api/architecture/knowledge-base response body."""
    decisions: list[ArchitectureAnalysisResponse]
    patterns: dict[str, PatternRecord]
    debt: list[DebtItemResponse]
    trends: Optional[ArchitectureTrends] = None
    metrics: ArchitectureMetricsResponse
    exported_at: str = Field(..., alias="exportedAt")
