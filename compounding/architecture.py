"""
Architecture Capturer — Decisions, Patterns and Debt from Code Changes

Each change (code + file path + change type) is scanned for:
  - Structural decisions:  new services, schema changes, API surface,
                           constructor injection
  - Design patterns:       Singleton, Observer, Factory, Strategy
  - Architectural debt:    TODO / FIXME / HACK comments, long functions,
                           piles of hardcoded strings

The capturer remembers every analysis (bounded), counts pattern usage and
debt per category, derives trends once enough history exists, and turns
all of it into suggestions, recommendations and an exportable knowledge
base. Like the code reviewer, it only ever accumulates.
"""

from __future__ import annotations

import posixpath
import re
import uuid
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from compounding.config import settings
from compounding.logging import get_logger, log_fields
from compounding.scorer import InvalidInput

logger = get_logger("architecture")

CHANGE_TYPES = ("create", "modify", "delete")
SERVICE_MARKERS = ("service", "controller", "repository", "handler")
LONG_FUNCTION_LINES = 50
HARDCODED_LIMIT = 5
RELATED_DECISION_LIMIT = 2
DECISION_DENSITY_LIMIT = 3


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass
class CodeChange:
    code: str
    file_path: str
    change_type: str = "modify"     # "create", "modify", "delete"


@dataclass
class Decision:
    type: str
    decision: str
    rationale: str
    impact: str                     # "low", "medium", "high"
    considerations: list[str] = field(default_factory=list)


@dataclass
class PatternUsage:
    name: str
    usage: str
    pros: list[str]
    cons: list[str]
    alternatives: list[str]


@dataclass
class DebtItem:
    type: str
    description: str
    file: str
    severity: str
    category: str
    discovered_at: Optional[str] = None
    analysis_id: Optional[str] = None


@dataclass
class Suggestion:
    type: str
    priority: str
    suggestion: str
    rationale: str = ""
    actions: list[str] = field(default_factory=list)


@dataclass
class ArchitectureAnalysis:
    id: str
    timestamp: str
    change: CodeChange
    decisions: list[Decision] = field(default_factory=list)
    patterns: list[PatternUsage] = field(default_factory=list)
    debt: list[DebtItem] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)


@dataclass
class ArchitectureRecommendation:
    type: str
    priority: str
    title: str
    description: str
    action: str


@dataclass
class ArchitectureMetrics:
    decisions_recorded: int = 0
    patterns_identified: int = 0
    debt_items: int = 0
    last_analysis: Optional[str] = None


@dataclass
class DecisionRule:
    """A structural decision, recognized by a predicate over the change."""
    type: str
    matches: Callable[[CodeChange], bool]
    decision: str
    rationale: str
    impact: str
    considerations: list[str]


@dataclass
class PatternRule:
    name: str
    matches: Callable[[str], bool]
    usage: str
    pros: list[str]
    cons: list[str]
    alternatives: list[str]


@dataclass
class DebtRule:
    """Each match of the pattern becomes one debt item."""
    type: str
    pattern: re.Pattern
    severity: str
    category: str


def _is_service_file(file_path: str) -> bool:
    return any(marker in file_path for marker in SERVICE_MARKERS)


def service_name(file_path: str) -> str:
    return re.sub(r"\.(?:js|ts|py)$", "", posixpath.basename(file_path))


def default_decision_rules() -> list[DecisionRule]:
    return [
        DecisionRule(
            type="service_creation",
            matches=lambda c: c.change_type == "create" and _is_service_file(c.file_path),
            decision="New service created",
            rationale="Extracted functionality into dedicated service",
            impact="medium",
            considerations=[
                "Could have extended existing service",
                "Could have used utility functions",
            ],
        ),
        DecisionRule(
            type="schema_change",
            matches=lambda c: "CREATE TABLE" in c.code or "ALTER TABLE" in c.code,
            decision="Database schema modification detected",
            rationale="Data model evolution",
            impact="high",
            considerations=["Migration strategy", "Backward compatibility", "Performance impact"],
        ),
        DecisionRule(
            type="api_design",
            matches=lambda c: any(s in c.code for s in ("app.get(", "app.post(", "router.")),
            decision="API endpoint modification",
            rationale="Interface contract change",
            impact="medium",
            considerations=["Breaking changes", "Versioning strategy", "Client impact"],
        ),
        DecisionRule(
            type="dependency_pattern",
            matches=lambda c: (
                ("constructor(" in c.code and "this." in c.code)
                or ("def __init__(" in c.code and "self." in c.code)
            ),
            decision="Dependency injection implementation",
            rationale="Improving testability and modularity",
            impact="low",
            considerations=["Better testing", "Loose coupling", "Easier mocking"],
        ),
    ]


def default_pattern_rules() -> list[PatternRule]:
    return [
        PatternRule(
            name="Singleton",
            matches=lambda code: "getInstance()" in code and "static" in code,
            usage="Ensuring single instance of class",
            pros=["Controlled instantiation", "Global access"],
            cons=["Hard to test", "Tight coupling"],
            alternatives=["Dependency injection", "Factory pattern"],
        ),
        PatternRule(
            name="Observer",
            matches=lambda code: re.search(r"addEventListener|\.on\(|\bemit\(", code) is not None,
            usage="Event-driven communication",
            pros=["Loose coupling", "Dynamic relationships"],
            cons=["Hard to debug", "Memory leaks possible"],
            alternatives=["Direct method calls", "Message queues"],
        ),
        PatternRule(
            name="Factory",
            matches=lambda code: "createInstance" in code or "factory" in code,
            usage="Object creation abstraction",
            pros=["Flexible creation", "Type safety"],
            cons=["Added complexity", "Indirection"],
            alternatives=["Direct instantiation", "Dependency injection"],
        ),
        PatternRule(
            name="Strategy",
            matches=lambda code: "strategy" in code or ("interface" in code and "implement" in code),
            usage="Algorithm encapsulation",
            pros=["Runtime algorithm switching", "Clean separation"],
            cons=["Increased number of classes", "Client awareness"],
            alternatives=["Function parameters", "Configuration-driven"],
        ),
    ]


def default_debt_rules() -> list[DebtRule]:
    return [
        DebtRule(
            type="todo",
            pattern=re.compile(r"(?://|#)\s*TODO:?\s*.+", re.IGNORECASE),
            severity="low",
            category="documentation",
        ),
        DebtRule(
            type="technical_debt",
            pattern=re.compile(r"(?://|#)\s*(?:FIXME|HACK):?\s*.+", re.IGNORECASE),
            severity="medium",
            category="code_quality",
        ),
    ]


FUNCTION_RE = re.compile(r"function\s+\w+\([^)]*\)\s*\{[\s\S]*?\}")
STRING_LITERAL_RE = re.compile(r"([\"'])[^\"']*\1")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================
# CAPTURER
# ============================================================

class ArchitectureCapturer:
    """Captures architectural decisions, pattern usage and debt from changes."""

    def __init__(
        self,
        debt_rules: Optional[list[DebtRule]] = None,
        history_cap: int = settings.ARCH_HISTORY_CAP,
        history_keep: int = settings.ARCH_HISTORY_KEEP,
        trend_min: int = settings.ARCH_TREND_MIN,
        trend_window: int = settings.ARCH_TREND_WINDOW,
        pattern_limit: int = 8,
    ):
        self.decision_rules = default_decision_rules()
        self.pattern_rules = default_pattern_rules()
        self.debt_rules = debt_rules if debt_rules is not None else default_debt_rules()
        self.decisions: list[ArchitectureAnalysis] = []
        self.patterns: dict[str, dict] = {}
        self.debt: list[DebtItem] = []
        self.metrics = ArchitectureMetrics()
        self.trends: Optional[dict] = None
        self.history_cap = history_cap
        self.history_keep = history_keep
        self.trend_min = trend_min
        self.trend_window = trend_window
        self.pattern_limit = pattern_limit

    def analyze_change(
        self, code: str, file_path: str, change_type: str = "modify",
    ) -> ArchitectureAnalysis:
        """
        Analyze one code change and remember what it taught us.

        Raises:
            InvalidInput: if code or file_path is not a str, or change_type
                is not one of "create", "modify", "delete".
        """
        if not isinstance(code, str):
            raise InvalidInput(f"code must be a string, got {type(code).__name__}")
        if not isinstance(file_path, str):
            raise InvalidInput(f"file_path must be a string, got {type(file_path).__name__}")
        if change_type not in CHANGE_TYPES:
            raise InvalidInput(f"change_type must be one of {', '.join(CHANGE_TYPES)}")

        change = CodeChange(code=code, file_path=file_path, change_type=change_type)
        analysis = ArchitectureAnalysis(
            id=f"arch_{uuid.uuid4().hex[:12]}",
            timestamp=_now(),
            change=change,
        )

        analysis.decisions = self.detect_structural_changes(change)
        analysis.patterns = self.detect_pattern_usage(code)
        analysis.debt = self.detect_debt(code, file_path)
        analysis.suggestions = self._suggest(analysis)

        self._learn(analysis)
        self._update_metrics(analysis)

        logger.debug(
            f"Architecture analysis complete: decisions={len(analysis.decisions)} "
            f"patterns={len(analysis.patterns)} debt={len(analysis.debt)}",
            extra=log_fields(analysis_id=analysis.id, file_path=file_path),
        )
        return analysis

    def detect_structural_changes(self, change: CodeChange) -> list[Decision]:
        decisions = []
        for rule in self.decision_rules:
            if not rule.matches(change):
                continue
            text = rule.decision
            if rule.type == "service_creation":
                text = f"{text}: {service_name(change.file_path)}"
            decisions.append(Decision(
                type=rule.type,
                decision=text,
                rationale=rule.rationale,
                impact=rule.impact,
                considerations=list(rule.considerations),
            ))
        return decisions

    def detect_pattern_usage(self, code: str) -> list[PatternUsage]:
        return [
            PatternUsage(
                name=rule.name,
                usage=rule.usage,
                pros=list(rule.pros),
                cons=list(rule.cons),
                alternatives=list(rule.alternatives),
            )
            for rule in self.pattern_rules
            if rule.matches(code)
        ]

    def detect_debt(self, code: str, file_path: str) -> list[DebtItem]:
        debt = []
        for rule in self.debt_rules:
            for match in rule.pattern.finditer(code):
                debt.append(DebtItem(
                    type=rule.type,
                    description=match.group(0).strip(),
                    file=file_path,
                    severity=rule.severity,
                    category=rule.category,
                ))

        for func in FUNCTION_RE.findall(code):
            if len(func.split("\n")) > LONG_FUNCTION_LINES:
                debt.append(DebtItem(
                    type="code_smell",
                    description=f"Long function detected (>{LONG_FUNCTION_LINES} lines)",
                    file=file_path,
                    severity="medium",
                    category="maintainability",
                ))

        if sum(1 for _ in STRING_LITERAL_RE.finditer(code)) > HARDCODED_LIMIT:
            debt.append(DebtItem(
                type="configuration",
                description="Multiple hardcoded values detected",
                file=file_path,
                severity="low",
                category="configuration",
            ))
        return debt

    def find_related(self, analysis: ArchitectureAnalysis) -> list[ArchitectureAnalysis]:
        """Past analyses in the same directory tree or sharing a decision type."""
        directory = posixpath.dirname(analysis.change.file_path)
        current_types = {d.type for d in analysis.decisions}

        def same_area(path: str) -> bool:
            if not directory:
                return posixpath.dirname(path) == ""
            return path == directory or path.startswith(directory + "/")

        return [
            past for past in self.decisions
            if same_area(past.change.file_path)
            or any(d.type in current_types for d in past.decisions)
        ]

    def get_insights(self) -> dict:
        """Summary, trends, recommendations, metrics and evolution counters."""
        return {
            "summary": {
                "total_decisions": len(self.decisions),
                "recent_decisions": len(self.decisions[-10:]),
                "patterns": list(self.patterns),
                "debt_items": len(self.debt),
            },
            "trends": self.trends or {"patterns": {}, "debt": {}, "last_updated": None},
            "recommendations": [asdict(r) for r in self.recommend()],
            "metrics": asdict(self.metrics),
            "evolution": {
                "most_used_patterns": self.most_used_patterns(),
                "debt_by_category": dict(Counter(d.category for d in self.debt)),
                "decision_types": dict(Counter(
                    d.type for a in self.decisions for d in a.decisions
                )),
            },
        }

    def recommend(self) -> list[ArchitectureRecommendation]:
        recommendations = []

        high = [d for d in self.debt if d.severity == "high"]
        if high:
            recommendations.append(ArchitectureRecommendation(
                type="debt_management",
                priority="high",
                title="Address Critical Technical Debt",
                description=f"{len(high)} high-priority debt items need attention",
                action="Schedule debt reduction sprint",
            ))

        if len(self.patterns) > self.pattern_limit:
            recommendations.append(ArchitectureRecommendation(
                type="pattern_standardization",
                priority="medium",
                title="Standardize Design Patterns",
                description=(
                    f"{len(self.patterns)} different patterns in use. Consider standardizing"
                ),
                action="Create architectural guidelines",
            ))

        files = {a.change.file_path for a in self.decisions}
        if len(self.decisions) / max(1, len(files)) > DECISION_DENSITY_LIMIT:
            recommendations.append(ArchitectureRecommendation(
                type="architecture_review",
                priority="medium",
                title="Architecture Review Recommended",
                description="High decision density indicates complex evolution",
                action="Schedule architecture review session",
            ))

        return recommendations

    def most_used_patterns(self, limit: int = 5) -> list[dict]:
        ranked = sorted(self.patterns.items(), key=lambda kv: kv[1]["count"], reverse=True)
        return [{"name": name, "count": data["count"]} for name, data in ranked[:limit]]

    def export_knowledge_base(self) -> dict:
        """Everything the capturer has learned, as plain JSON-ready data."""
        return {
            "decisions": [asdict(a) for a in self.decisions],
            "patterns": {
                name: {"count": data["count"], "contexts": list(data["contexts"])}
                for name, data in self.patterns.items()
            },
            "debt": [asdict(d) for d in self.debt],
            "trends": self.trends,
            "metrics": asdict(self.metrics),
            "exported_at": _now(),
        }

    # --- internals ---

    def _suggest(self, analysis: ArchitectureAnalysis) -> list[Suggestion]:
        suggestions = []

        high = [d for d in analysis.debt if d.severity == "high"]
        if high:
            suggestions.append(Suggestion(
                type="debt_reduction",
                priority="high",
                suggestion="Address critical technical debt items",
                actions=[f"Fix: {d.description}" for d in high],
            ))

        if any(p.name == "Singleton" for p in analysis.patterns):
            suggestions.append(Suggestion(
                type="pattern_improvement",
                priority="medium",
                suggestion="Consider dependency injection instead of Singleton",
                rationale="Improves testability and reduces coupling",
                actions=["Pass dependencies through constructor or method parameters"],
            ))

        related = self.find_related(analysis)
        if len(related) > RELATED_DECISION_LIMIT:
            suggestions.append(Suggestion(
                type="architecture_evolution",
                priority="low",
                suggestion="Consider architectural refactoring",
                rationale=f"Found {len(related)} related decisions in this area",
                actions=[
                    "Review current architecture",
                    "Plan consolidation",
                    "Create migration strategy",
                ],
            ))

        return suggestions

    def _learn(self, analysis: ArchitectureAnalysis) -> None:
        self.decisions.append(analysis)

        for pattern in analysis.patterns:
            record = self.patterns.setdefault(pattern.name, {"count": 0, "contexts": []})
            record["count"] += 1
            record["contexts"].append({
                "file": analysis.change.file_path,
                "timestamp": analysis.timestamp,
                "usage": pattern.usage,
            })

        for item in analysis.debt:
            item.discovered_at = analysis.timestamp
            item.analysis_id = analysis.id
            self.debt.append(item)
            if item.severity == "high":
                logger.info(
                    f"High-severity debt introduced: {item.type}",
                    extra=log_fields(
                        analysis_id=analysis.id, file_path=item.file, severity=item.severity,
                    ),
                )

        if len(self.decisions) > self.history_cap:
            self.decisions = self.decisions[-self.history_keep:]

        self._identify_trends()

    def _identify_trends(self) -> None:
        if len(self.decisions) < self.trend_min:
            return

        recent = self.decisions[-self.trend_window:]
        self.trends = {
            "patterns": dict(Counter(p.name for a in recent for p in a.patterns)),
            "debt": dict(Counter(d.category for a in recent for d in a.debt)),
            "last_updated": _now(),
        }

    def _update_metrics(self, analysis: ArchitectureAnalysis) -> None:
        m = self.metrics
        m.decisions_recorded += len(analysis.decisions)
        m.patterns_identified += len(analysis.patterns)
        m.debt_items += len(analysis.debt)
        m.last_analysis = analysis.timestamp
