"""
Code Reviewer — Smell Detection with Severity Promotion

The same shape as the frustration scorer (pattern groups + running
metrics + heuristic mutation), applied to JavaScript snippets.

Score = 50 + positive points - smell penalties, clamped to [0, 100].
  Smell penalties:  high=-10, medium=-5, low=-2 (per occurrence)
  Positive points:  fixed per rule (per occurrence)

Promotion step: once enough reviews exist, any smell seen in more
than half of the recent reviews is promoted from low to medium.
Severities are only ever raised.
"""

from __future__ import annotations

import re
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from compounding.config import settings
from compounding.logging import get_logger, log_fields
from compounding.scorer import InvalidInput

logger = get_logger("reviewer")

BASE_SCORE = 50
SEVERITY_PENALTIES = {"high": 10, "medium": 5, "low": 2}
SEVERITY_VALUES = {"high": 3, "medium": 2, "low": 1}
SNIPPET_LENGTH = 200


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass
class SmellRule:
    name: str
    pattern: re.Pattern
    severity: str          # "low", "medium", "high"
    suggestion: str


@dataclass
class PositiveRule:
    name: str
    pattern: re.Pattern
    points: int


@dataclass
class Issue:
    type: str
    severity: str
    count: int
    suggestion: str
    examples: list[str]
    resolved: bool = False
    resolved_at: Optional[str] = None


@dataclass
class PositiveMatch:
    type: str
    count: int
    points: int


@dataclass
class Recommendation:
    priority: str
    action: str
    details: list[str]


@dataclass
class Review:
    id: str
    timestamp: str
    code: str              # Truncated snippet
    context: dict
    issues: list[Issue] = field(default_factory=list)
    positives: list[PositiveMatch] = field(default_factory=list)
    score: int = 0
    recommendations: list[Recommendation] = field(default_factory=list)


@dataclass
class ReviewMetrics:
    total_reviews: int = 0
    issues_found: int = 0
    issues_resolved: int = 0
    average_severity: float = 0.0
    quality_trend: list[dict] = field(default_factory=list)


def default_smells() -> list[SmellRule]:
    return [
        SmellRule(
            name="Long Function",
            pattern=re.compile(r"function\s+\w+\([^)]*\)\s*\{[\s\S]{500,}\}"),
            severity="medium",
            suggestion="Consider breaking this function into smaller, focused functions",
        ),
        SmellRule(
            name="Magic Numbers",
            pattern=re.compile(r"\b(?!0|1)\d{2,}\b"),
            severity="low",
            suggestion="Replace magic numbers with named constants",
        ),
        SmellRule(
            name="Console Logs",
            pattern=re.compile(r"console\.(?:log|debug|info)"),
            severity="low",
            suggestion="Remove console logs before production or use proper logging",
        ),
        SmellRule(
            name="No Error Handling",
            pattern=re.compile(r"await\s+[^;]+;(?!\s*\}?\s*catch)"),
            severity="high",
            suggestion="Add try-catch block for async operations",
        ),
    ]


def default_positives() -> list[PositiveRule]:
    return [
        PositiveRule("JSDoc Comments", re.compile(r"/\*\*[\s\S]*?\*/"), 2),
        PositiveRule("Error Handling", re.compile(r"try\s*\{[\s\S]*?\}\s*catch"), 3),
        PositiveRule(
            "Descriptive Names",
            re.compile(r"(?:function|const|let|var)\s+[a-z][a-zA-Z]{8,}"),
            1,
        ),
    ]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


# ============================================================
# REVIEWER
# ============================================================

class CodeReviewer:
    """Reviews code snippets and learns which smells keep coming back."""

    def __init__(
        self,
        history_cap: int = settings.REVIEW_HISTORY_CAP,
        history_keep: int = settings.REVIEW_HISTORY_KEEP,
        promotion_min_reviews: int = settings.PROMOTION_MIN_REVIEWS,
        promotion_window: int = settings.PROMOTION_WINDOW,
    ):
        self.smells = default_smells()
        self.positives = default_positives()
        self.history: list[Review] = []
        self.metrics = ReviewMetrics()
        self.history_cap = history_cap
        self.history_keep = history_keep
        self.promotion_min_reviews = promotion_min_reviews
        self.promotion_window = promotion_window

    def review(self, code: str, context: Optional[dict[str, Any]] = None) -> Review:
        """
        Review a snippet and return structured feedback.

        Raises:
            InvalidInput: if code is not a str.
        """
        if not isinstance(code, str):
            raise InvalidInput(f"code must be a string, got {type(code).__name__}")

        review = Review(
            id=f"review_{uuid.uuid4().hex[:12]}",
            timestamp=_now(),
            code=code[:SNIPPET_LENGTH] + "...",
            context=dict(context or {}),
        )

        for smell in self.smells:
            matches = [m.group(0) for m in smell.pattern.finditer(code)]
            if matches:
                review.issues.append(Issue(
                    type=smell.name,
                    severity=smell.severity,
                    count=len(matches),
                    suggestion=smell.suggestion,
                    examples=matches[:3],
                ))

        score = BASE_SCORE
        for positive in self.positives:
            count = sum(1 for _ in positive.pattern.finditer(code))
            if count:
                points = positive.points * count
                review.positives.append(
                    PositiveMatch(type=positive.name, count=count, points=points)
                )
                score += points

        for issue in review.issues:
            score -= SEVERITY_PENALTIES[issue.severity] * issue.count

        review.score = max(0, min(100, score))
        review.recommendations = self._recommend(review)

        self._remember(review)
        self._update_metrics(review)

        logger.debug(
            f"Review complete: score={review.score} issues={len(review.issues)}",
            extra=log_fields(review_id=review.id, score=review.score),
        )
        return review

    def promote_severities(self) -> list[str]:
        """
        Promote low-severity smells that appear in more than half of the
        recent reviews. Returns the promoted smell names.
        """
        recent = self.history[-self.promotion_window:]
        frequency: Counter[str] = Counter()
        for review in recent:
            frequency.update({issue.type for issue in review.issues})

        promoted = []
        for smell in self.smells:
            if smell.severity != "low":
                continue
            if frequency[smell.name] > len(recent) * 0.5:
                smell.severity = "medium"
                promoted.append(smell.name)
                logger.info(
                    f"Upgraded {smell.name} from low to medium severity due to frequency",
                    extra=log_fields(issue_type=smell.name, severity=smell.severity),
                )
        return promoted

    def mark_resolved(self, review_id: str, issue_types: list[str]) -> int:
        """Mark issues of a past review as resolved. Returns how many changed."""
        review = next((r for r in self.history if r.id == review_id), None)
        if review is None:
            return 0

        resolved = 0
        for issue in review.issues:
            if issue.type in issue_types and not issue.resolved:
                issue.resolved = True
                issue.resolved_at = _now()
                resolved += 1
        self.metrics.issues_resolved += resolved
        return resolved

    def get_insights(self) -> dict:
        recent = self.history[-10:]
        found = self.metrics.issues_found
        return {
            "total_reviews": self.metrics.total_reviews,
            "issues_found": found,
            "issues_resolved": self.metrics.issues_resolved,
            "resolution_rate": (
                round(self.metrics.issues_resolved / found * 100, 1) if found else 0.0
            ),
            "average_score": round(_mean([r.score for r in recent]), 1),
            "average_severity": round(self.metrics.average_severity, 2),
            "trend": self.calculate_trend(),
            "top_issues": self.top_issues(),
            "improvement": self.calculate_improvement(),
        }

    def calculate_trend(self) -> str:
        trend = self.metrics.quality_trend
        if len(trend) < 5:
            return "insufficient_data"

        recent_avg = _mean([t["score"] for t in trend[-5:]])
        older = trend[-10:-5]
        if not older:
            return "stable"
        older_avg = _mean([t["score"] for t in older])

        if recent_avg > older_avg + 5:
            return "improving"
        if recent_avg < older_avg - 5:
            return "declining"
        return "stable"

    def top_issues(self, limit: int = 5) -> list[dict]:
        counts: Counter[str] = Counter()
        for review in self.history:
            for issue in review.issues:
                counts[issue.type] += issue.count
        return [{"type": t, "count": c} for t, c in counts.most_common(limit)]

    def calculate_improvement(self) -> Optional[dict]:
        if len(self.history) < 5:
            return None

        first_avg = _mean([r.score for r in self.history[:5]])
        last_avg = _mean([r.score for r in self.history[-5:]])
        delta = last_avg - first_avg
        return {
            "score_improvement": round(delta, 1),
            "percent_improvement": (
                round(delta / first_avg * 100, 1) if first_avg else None
            ),
        }

    # --- internals ---

    def _recommend(self, review: Review) -> list[Recommendation]:
        recommendations = []

        high = [i for i in review.issues if i.severity == "high"]
        if high:
            recommendations.append(Recommendation(
                priority="high",
                action="Fix critical issues first",
                details=[i.suggestion for i in high],
            ))

        if review.score < 40:
            recommendations.append(Recommendation(
                priority="medium",
                action="Focus on code quality fundamentals",
                details=[
                    "Add error handling for async operations",
                    "Use descriptive variable and function names",
                    "Add JSDoc comments for functions",
                ],
            ))

        current_types = {i.type for i in review.issues}
        similar = [
            r for r in self.history
            if any(i.type in current_types for i in r.issues)
        ]
        if len(similar) > 2:
            counts: Counter[str] = Counter()
            for r in similar:
                counts.update(i.type for i in r.issues)
            common = [t for t, _ in counts.most_common(3)]
            if common:
                recommendations.append(Recommendation(
                    priority="low",
                    action="Address recurring patterns",
                    details=[f"You often have {common[0]} - consider creating a checklist"],
                ))

        return recommendations

    def _remember(self, review: Review) -> None:
        self.history.append(review)
        if len(self.history) > self.history_cap:
            self.history = self.history[-self.history_keep:]

        if len(self.history) >= self.promotion_min_reviews:
            self.promote_severities()

    def _update_metrics(self, review: Review) -> None:
        m = self.metrics
        m.total_reviews += 1
        m.issues_found += len(review.issues)

        severity = sum(SEVERITY_VALUES[i.severity] for i in review.issues)
        severity /= max(len(review.issues), 1)
        m.average_severity = (
            m.average_severity * (m.total_reviews - 1) + severity
        ) / m.total_reviews

        m.quality_trend.append({
            "timestamp": review.timestamp,
            "score": review.score,
            "issue_count": len(review.issues),
        })
