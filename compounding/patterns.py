"""
Pattern Tables — Weighted Rule Groups

Defines the data the scorer evaluates against:
  1. Rule: one compiled regex with a weight and a category
  2. PatternGroup: an ordered, append-only bucket of rules that
     contributes to the score in one direction
  3. The default frustration tables (high, medium, positive)

Groups are built fresh by a factory for every scorer instance.
Learned rules are appended to an instance's groups and never leak
into another instance.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass
class Rule:
    """A single weighted match rule."""
    pattern: re.Pattern
    weight: int            # Signed contribution when the rule matches
    category: str          # Owning group name: "high", "medium", "positive"
    source: str = "builtin"  # "builtin" or "learned"

    @property
    def regex(self) -> str:
        return self.pattern.pattern


@dataclass
class PatternGroup:
    """
    A named category of rules.

    Every matching rule adds its weight to the running total. The group
    label is emitted as an indicator once per analysis, however many of
    its rules matched.
    """
    name: str
    label: str
    weight: int
    rules: list[Rule] = field(default_factory=list)

    def add_rule(
        self, regex: str, flags: int = 0, source: str = "builtin",
    ) -> Rule:
        """Compile and append a rule. Raises re.error on a bad regex."""
        rule = Rule(
            pattern=re.compile(regex, flags),
            weight=self.weight,
            category=self.name,
            source=source,
        )
        self.rules.append(rule)
        return rule

    def __len__(self) -> int:
        return len(self.rules)


# ============================================================
# DEFAULT FRUSTRATION TABLES
# ============================================================

# Group order is evaluation order, which is also indicator order.
GROUP_ORDER = ("positive", "medium", "high")

GROUP_LABELS = {
    "high": "strong frustration",
    "medium": "mild frustration",
    "positive": "positive language",
}

GROUP_WEIGHTS = {
    "high": 2,
    "medium": 1,
    "positive": -2,
}

_I = re.IGNORECASE

HIGH_RULES: list[tuple[str, int]] = [
    (r"why.*(?:doesn't|don't|won't|can't|isn't).*work", _I),
    (r"\b(?:argh+|ugh+|grr+|damn|wtf|omg)\b", _I),
    (r"\b(?:hate|stupid|ridiculous|terrible|horrible|useless)\b", _I),
    (r"\b(?:again|still|keeps?)\b.*\b(?:failing|breaking|crashing|not working)\b", _I),
    # Interrobangs and doubled punctuation: "?!", "!!"
    (r"[?!]{2,}", 0),
    (r"!{3,}", 0),
    # Case-sensitive: a single all-caps word, then a run of four shouted words
    (r"\b[A-Z]{4,}\b", 0),
    (r"\b[A-Z]{2,}(?:\s+[A-Z]{2,}){3,}\b", 0),
    (r"\b(?:broken|nothing\s+works)\b", _I),
]

MEDIUM_RULES: list[tuple[str, int]] = [
    (r"\b(?:confusing|unclear|difficult|frustrating|annoying)\b", _I),
    (r"\b(?:should|supposed to)\b.*\bwork(?:ing)?\b", _I),
    (r"\b(?:tried|trying)\b.*\b(?:everything|multiple|several)\b", _I),
    (r"\b(?:documentation|docs)\b.*\b(?:bad|poor|lacking|confusing|unclear)\b", _I),
    (r"\btaking\b.*\b(?:too long|forever|ages)\b", _I),
]

POSITIVE_RULES: list[tuple[str, int]] = [
    (r"\b(?:love|like|enjoy|great|awesome|excellent)\b", _I),
    (r"\b(?:excited|happy|pleased|satisfied)\b", _I),
    # "not working" / "not fixed" are not positive
    (r"(?<!not )\b(?:working|solved|fixed|success(?:ful)?)\b", _I),
    (r"\b(?:easy|simple|clear|straightforward)\b", _I),
]

_DEFAULT_RULES = {
    "high": HIGH_RULES,
    "medium": MEDIUM_RULES,
    "positive": POSITIVE_RULES,
}


def default_frustration_groups() -> dict[str, PatternGroup]:
    """Build a fresh, independently mutable set of frustration groups."""
    groups: dict[str, PatternGroup] = {}
    for name in GROUP_ORDER:
        group = PatternGroup(
            name=name,
            label=GROUP_LABELS[name],
            weight=GROUP_WEIGHTS[name],
        )
        for regex, flags in _DEFAULT_RULES[name]:
            group.add_rule(regex, flags)
        groups[name] = group
    return groups
