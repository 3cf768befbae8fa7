"""
Compounding — Heuristic Scoring Engine That Learns

A pattern-based frustration detector whose rule set grows from
what it sees, plus a code reviewer built on the same shape.

Public API:
  - HeuristicScorer: weighted pattern groups, bounded 0-10 score,
                     running stats, append-only learning step
  - AnalysisResult:  immutable result of a single analysis
  - CodeReviewer:    smell detection with severity promotion
  - ArchitectureCapturer: decisions, design patterns and debt from
                     code changes, exported as a knowledge base
  - InvalidInput:    raised for non-string input

Usage:
    from compounding import HeuristicScorer
    scorer = HeuristicScorer()
    result = scorer.analyze("WHY DOES THIS KEEP BREAKING?!")
"""

__version__ = "1.0.0"

from compounding.patterns import (
    Rule,
    PatternGroup,
    default_frustration_groups,
)
from compounding.scorer import (
    HeuristicScorer,
    AnalysisResult,
    FeedbackEntry,
    RunningStats,
    InvalidInput,
    classify,
)
from compounding.reviewer import CodeReviewer, Review
from compounding.architecture import ArchitectureCapturer, ArchitectureAnalysis

__all__ = [
    "Rule",
    "PatternGroup",
    "default_frustration_groups",
    "HeuristicScorer",
    "AnalysisResult",
    "FeedbackEntry",
    "RunningStats",
    "InvalidInput",
    "classify",
    "CodeReviewer",
    "Review",
    "ArchitectureCapturer",
    "ArchitectureAnalysis",
]
