"""
Heuristic Scorer — Frustration Score from Weighted Pattern Groups

Maps free text to a bounded 0-10 frustration score, a discrete level and
human-readable indicators, and keeps running statistics about everything
it has seen.

Scoring:
  Start at 0.
  Positive rule match:  -2 each
  Medium rule match:    +1 each
  High rule match:      +2 each
  Floor at 0, cap at 10.
  Mixed signals (positive AND frustration evidence): clamped into [3, 5],
  so mixed input is always "medium".

Levels:
  score >= 6  -> high
  score >= 3  -> medium
  otherwise   -> low

The scorer owns its pattern groups and statistics. It is synchronous and
assumes a single caller at a time; hosts serving concurrent requests must
serialize access to an instance.
"""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from compounding.config import settings
from compounding.learning import LearningSample, learn_from_samples
from compounding.logging import get_logger, log_fields
from compounding.patterns import PatternGroup, Rule, default_frustration_groups

logger = get_logger("scorer")

MIN_SCORE = 0
MAX_SCORE = 10
MIXED_SIGNAL_FLOOR = 3
MIXED_SIGNAL_CAP = 5
HIGH_LEVEL = 6
MEDIUM_LEVEL = 3


class InvalidInput(TypeError):
    """Raised when the input to score or review is not a string."""


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class AnalysisResult:
    """Result of a single analysis. Never mutated after it is returned."""
    text: str
    score: int
    indicators: tuple[str, ...]
    level: str               # "low", "medium", "high"
    explanation: str
    timestamp: str


@dataclass
class FeedbackEntry:
    """A human correction: what the score should have been vs. what it was."""
    text: str
    expected_score: float
    actual_score: float
    difference: float
    timestamp: str


@dataclass
class RunningStats:
    """Aggregate statistics, owned by one scorer instance."""
    total_analyses: int = 0
    scores: list[int] = field(default_factory=list)
    indicators: Counter = field(default_factory=Counter)
    feedback: list[FeedbackEntry] = field(default_factory=list)
    last_updated: str = field(default_factory=lambda: _now())


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def classify(score: int) -> str:
    """Map a clamped score to its level."""
    if score >= HIGH_LEVEL:
        return "high"
    if score >= MEDIUM_LEVEL:
        return "medium"
    return "low"


# ============================================================
# SCORER
# ============================================================

class HeuristicScorer:
    """
    Frustration scorer with an append-only learning step.

    Each instance gets its own copy of the default tables, so scorers
    never contaminate one another.
    """

    def __init__(
        self,
        groups: Optional[dict[str, PatternGroup]] = None,
        learning_min_samples: int = settings.LEARNING_MIN_SAMPLES,
        learning_window: int = settings.LEARNING_WINDOW,
        high_score_threshold: int = settings.HIGH_SCORE_THRESHOLD,
        min_word_length: int = settings.MIN_WORD_LENGTH,
        min_word_count: int = settings.MIN_WORD_COUNT,
    ):
        self.groups = groups if groups is not None else default_frustration_groups()
        self.stats = RunningStats()
        self.learning_min_samples = learning_min_samples
        self.learning_window = learning_window
        self.high_score_threshold = high_score_threshold
        self.min_word_length = min_word_length
        self.min_word_count = min_word_count
        # Only the most recent high-scoring samples are ever mined
        self.recent_high: deque[LearningSample] = deque(maxlen=learning_window)
        self._initial_rule_count = self.rule_count()

    def analyze(self, text: str) -> AnalysisResult:
        """
        Score text against every group, record it, then run the learning step.

        Raises:
            InvalidInput: if text is not a str.
        """
        if not isinstance(text, str):
            raise InvalidInput(
                f"text must be a string, got {type(text).__name__}"
            )

        total = 0
        indicators: list[str] = []
        matched: set[str] = set()

        for name, group in self.groups.items():
            hits = [rule for rule in group.rules if self._rule_matches(rule, text)]
            if not hits:
                continue
            total += sum(rule.weight for rule in hits)
            indicators.append(group.label)
            matched.add(name)

        positive = "positive" in matched
        negative = bool(matched - {"positive"})

        score = max(MIN_SCORE, min(MAX_SCORE, total))
        if positive and negative:
            score = max(MIXED_SIGNAL_FLOOR, min(score, MIXED_SIGNAL_CAP))

        level = classify(score)
        explanation = self._explain(level, positive, negative)
        timestamp = _now()

        result = AnalysisResult(
            text=text,
            score=score,
            indicators=tuple(indicators),
            level=level,
            explanation=explanation,
            timestamp=timestamp,
        )

        self._record(result)
        self.improve_patterns()

        logger.debug(
            f"Analysis complete: score={score} level={level}",
            extra=log_fields(score=score, level=level),
        )
        return result

    def add_feedback(
        self, text: str, expected_score: float, actual_score: float,
    ) -> FeedbackEntry:
        """
        Record a correction. Scores are stored as given, with no range check.

        Feedback only feeds the accuracy figure in the evolution report;
        it never changes the pattern groups.
        """
        difference = abs(expected_score - actual_score)
        entry = FeedbackEntry(
            text=text,
            expected_score=expected_score,
            actual_score=actual_score,
            difference=difference,
            timestamp=_now(),
        )
        self.stats.feedback.append(entry)
        self.stats.last_updated = entry.timestamp

        if difference > 2:
            logger.info(
                f"Learning opportunity: expected {expected_score}, got {actual_score}",
                extra=log_fields(expected_score=expected_score, actual_score=actual_score),
            )
        return entry

    def improve_patterns(self) -> list[Rule]:
        """Run the learning step. Returns any rules it appended."""
        return learn_from_samples(
            self.recent_high,
            self.groups,
            total_samples=self.stats.total_analyses,
            target="medium",
            min_samples=self.learning_min_samples,
            window=self.learning_window,
            threshold=self.high_score_threshold,
            min_length=self.min_word_length,
            min_count=self.min_word_count,
        )

    def rule_count(self) -> int:
        return sum(len(group) for group in self.groups.values())

    def get_stats(self) -> dict:
        """Summary of everything this scorer has seen."""
        scores = self.stats.scores
        average = sum(scores) / len(scores) if scores else 0.0
        return {
            "total_analyses": self.stats.total_analyses,
            "average_score": average,
            "common_indicators": [
                label for label, _ in self.stats.indicators.most_common(5)
            ],
            "last_updated": self.stats.last_updated,
            "patterns_count": {
                name: len(group) for name, group in self.groups.items()
            },
            "learning_data_points": self.stats.total_analyses,
            "feedback_count": len(self.stats.feedback),
        }

    def get_evolution_report(self) -> dict:
        """How far the rule set has grown and how accurate feedback says we are."""
        current = self.rule_count()
        learned = sum(
            1
            for group in self.groups.values()
            for rule in group.rules
            if rule.source == "learned"
        )
        return {
            "initial_pattern_count": self._initial_rule_count,
            "current_pattern_count": current,
            "learned_pattern_count": learned,
            "learning_iterations": self.stats.total_analyses,
            "improvement_cycles": self.stats.total_analyses // 5,
            "accuracy": self.calculate_accuracy(),
        }

    def calculate_accuracy(self) -> Optional[float]:
        """Percentage of feedback entries within one point. None without feedback."""
        feedback = self.stats.feedback
        if not feedback:
            return None
        accurate = sum(1 for f in feedback if f.difference <= 1)
        return accurate / len(feedback) * 100

    # --- internals ---

    def _rule_matches(self, rule: Rule, text: str) -> bool:
        # Learned rules come from user text; a failing rule must not fail the analysis
        try:
            return rule.pattern.search(text) is not None
        except Exception as exc:
            logger.warning(
                "Rule raised during evaluation; treated as no match",
                extra=log_fields(rule=str(rule.pattern), group=rule.category, error=str(exc)),
            )
            return False

    def _explain(self, level: str, positive: bool, negative: bool) -> str:
        if level == "high":
            return "Multiple strong frustration indicators detected"
        if level == "medium":
            if positive and negative:
                return "Mixed signals: positive language alongside frustration indicators"
            return "Some frustration indicators present"
        if positive and not negative:
            return "Positive sentiment detected"
        return "No significant frustration indicators"

    def _record(self, result: AnalysisResult) -> None:
        self.stats.total_analyses += 1
        self.stats.last_updated = result.timestamp
        self.stats.scores.append(result.score)
        self.stats.indicators.update(result.indicators)
        if result.score < self.high_score_threshold:
            return
        self.recent_high.append(
            LearningSample(
                text=result.text,
                score=result.score,
                level=result.level,
                indicators=result.indicators,
                timestamp=result.timestamp,
            )
        )
