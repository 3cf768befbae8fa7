"""
Learning Step — Append-Only Rule Expansion

This is where the "compounding" happens. After enough analyses have
accumulated, recent high-scoring inputs are mined for words that keep
recurring, and each new word becomes a medium-weight exact-word rule.

Governance:
  1. Only runs once a minimum number of samples exist
  2. Only looks at the most recent high-scoring samples
  3. A word already matched by any rule in any group is skipped
  4. Candidate rules are validated before they are appended
  5. Rules are only ever appended, never removed or re-weighted

Tokens come from user text, so rule construction is guarded:
a candidate that fails to compile or validate is logged and dropped.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

from compounding.logging import get_logger, log_fields
from compounding.patterns import PatternGroup, Rule

logger = get_logger("learning")

WORD_RE = re.compile(r"\b\w+\b")


@dataclass(frozen=True)
class LearningSample:
    """One analyzed input, kept for the learning step."""
    text: str
    score: int
    level: str
    indicators: tuple[str, ...]
    timestamp: str


def extract_common_words(
    texts: Iterable[str], min_length: int = 4, min_count: int = 2,
) -> list[str]:
    """
    Count lowercase words across all texts and return the ones that
    are at least min_length long and appear at least min_count times.

    Order follows first appearance.
    """
    counts: Counter[str] = Counter()
    for text in texts:
        for word in WORD_RE.findall(text.lower()):
            if len(word) >= min_length:
                counts[word] += 1
    return [word for word, count in counts.items() if count >= min_count]


def compile_word_rule(word: str) -> Optional[re.Pattern]:
    """
    Compile a case-insensitive exact-word pattern for a learned word.

    Returns None if the candidate is not a usable rule.
    """
    regex = rf"\b{re.escape(word)}\b"
    try:
        compiled = re.compile(regex, re.IGNORECASE)
    except re.error as exc:
        logger.warning(
            "Discarded learned rule: regex failed to compile",
            extra=log_fields(word=word, rule=regex, error=str(exc)),
        )
        return None

    # It must not match everything
    if compiled.search(""):
        logger.warning(
            "Discarded learned rule: matches empty text",
            extra=log_fields(word=word, rule=regex),
        )
        return None
    return compiled


def is_covered(word: str, groups: Iterable[PatternGroup]) -> bool:
    """True if any existing rule in any group already matches the word."""
    for group in groups:
        for rule in group.rules:
            try:
                if rule.pattern.search(word):
                    return True
            except Exception as exc:
                logger.warning(
                    "Rule raised while checking coverage; treated as no match",
                    extra=log_fields(word=word, rule=str(rule.pattern), error=str(exc)),
                )
    return False


def learn_from_samples(
    samples: Iterable[LearningSample],
    groups: dict[str, PatternGroup],
    total_samples: Optional[int] = None,
    target: str = "medium",
    min_samples: int = 5,
    window: int = 10,
    threshold: int = 6,
    min_length: int = 4,
    min_count: int = 2,
) -> list[Rule]:
    """
    Run one learning step over recent samples.

    samples may be the full history or an already-windowed buffer of
    high scorers; total_samples is the number of analyses seen so far
    and defaults to len(samples).

    Appends new rules to groups[target] and returns the rules added.
    Idempotent: a word that is already covered never yields a second rule.
    """
    samples = list(samples)
    if total_samples is None:
        total_samples = len(samples)
    if total_samples < min_samples:
        return []

    recent_high = [s for s in samples if s.score >= threshold][-window:]
    if not recent_high:
        return []

    words = extract_common_words(
        (s.text for s in recent_high),
        min_length=min_length,
        min_count=min_count,
    )

    added: list[Rule] = []
    group = groups[target]
    for word in words:
        if is_covered(word, groups.values()):
            continue

        compiled = compile_word_rule(word)
        if compiled is None:
            continue

        rule = Rule(
            pattern=compiled,
            weight=group.weight,
            category=group.name,
            source="learned",
        )
        group.rules.append(rule)
        added.append(rule)
        logger.info(
            f"Learned rule for '{word}'",
            extra=log_fields(word=word, group=group.name, rule=compiled.pattern),
        )

    return added
