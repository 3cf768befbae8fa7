"""
Tests for the Heuristic Scorer — scoring, classification, stats, feedback.

If the score or level is wrong, nothing downstream is worth looking at.
"""

import dataclasses

import pytest
from compounding.scorer import HeuristicScorer, InvalidInput, classify
from compounding.patterns import Rule


@pytest.fixture
def scorer():
    return HeuristicScorer()


class TestEmptyAndNeutral:

    def test_empty_text(self, scorer):
        result = scorer.analyze("")
        assert result.score == 0
        assert result.level == "low"
        assert result.indicators == ()

    def test_neutral_statement(self, scorer):
        result = scorer.analyze("The meeting is scheduled for 3pm Tuesday.")
        assert result.score == 0
        assert result.explanation == "No significant frustration indicators"

    def test_timestamp_stamped(self, scorer):
        result = scorer.analyze("hello")
        assert result.timestamp


class TestHighFrustration:

    def test_interrobang_and_caps(self, scorer):
        result = scorer.analyze("WHY DOES THIS KEEP BREAKING?!")
        assert result.level == "high"
        assert result.score >= 6
        assert "strong frustration" in result.indicators

    def test_triple_exclamation_and_caps_word(self, scorer):
        result = scorer.analyze("FIX THIS NOW!!!")
        assert result.level == "high"
        assert result.score >= 6

    def test_sustained_caps(self, scorer):
        result = scorer.analyze("EVERYTHING IS BROKEN AND NOTHING WORKS")
        assert result.level == "high"
        assert "strong frustration" in result.indicators

    def test_multiple_exclamation_marks(self, scorer):
        result = scorer.analyze("This is not working!!!")
        assert result.score > 0
        assert "strong frustration" in result.indicators

    def test_score_clamped_at_ten(self, scorer):
        result = scorer.analyze(
            "ARGH WHY DOESN'T THIS WORK AGAIN, STILL FAILING!!! "
            "I HATE THIS STUPID BROKEN THING?!"
        )
        assert result.score == 10
        assert result.level == "high"


class TestMediumFrustration:

    def test_confusing_docs(self, scorer):
        result = scorer.analyze(
            "This documentation is confusing and taking too long to understand."
        )
        assert result.level == "medium"
        assert 3 <= result.score < 6
        assert result.indicators == ("mild frustration",)

    def test_long_text(self, scorer):
        result = scorer.analyze("This is getting really frustrating. " * 100)
        assert result.score > 0
        assert isinstance(result.level, str)


class TestPositive:

    def test_positive_only(self, scorer):
        result = scorer.analyze("I love working with this new framework!")
        assert result.level == "low"
        assert result.score <= 3
        assert result.explanation == "Positive sentiment detected"

    def test_positive_indicator(self, scorer):
        result = scorer.analyze("I am excited about this awesome new feature!")
        assert result.level == "low"
        assert "positive language" in result.indicators

    def test_not_working_is_not_positive(self, scorer):
        result = scorer.analyze("It is not working")
        assert "positive language" not in result.indicators


class TestMixedSignals:

    def test_mixed_is_medium(self, scorer):
        result = scorer.analyze("I love this but WHY IS IT SO CONFUSING?!")
        assert result.level == "medium"
        assert len(result.indicators) > 0

    def test_mixed_never_escalates_to_high(self, scorer):
        result = scorer.analyze("I love it but ARGH this is TERRIBLE and STUPID!!!")
        assert result.level == "medium"
        assert result.score <= 5

    def test_weak_mixed_raised_to_medium(self, scorer):
        # positive -2 and broken +2 cancel out; mixed evidence is still medium
        result = scorer.analyze("Great, it is broken")
        assert result.level == "medium"
        assert 3 <= result.score <= 5
        assert result.indicators == ("positive language", "strong frustration")
        assert result.explanation != "Positive sentiment detected"
        assert result.explanation.startswith("Mixed signals")

    def test_indicator_order_follows_groups(self, scorer):
        result = scorer.analyze("I love this but WHY IS IT SO CONFUSING?!")
        assert result.indicators == (
            "positive language", "mild frustration", "strong frustration",
        )


class TestIndicators:

    def test_one_label_per_group(self, scorer):
        # Three high rules match, one label
        result = scorer.analyze("ARGH! This is terrible!")
        assert result.indicators == ("strong frustration",)
        assert result.score == 6


class TestBounds:

    @pytest.mark.parametrize("text", [
        "",
        "ok",
        "!!!!!!!!!!!!!!!!!!!!",
        "I love love love great awesome easy happy fixed",
        "WHY WHY WHY?! ARGH!!! DAMN WTF OMG HATE STUPID BROKEN " * 20,
        "\n\t  ",
        "naïve café — 日本語のテキスト",
    ])
    def test_score_within_range(self, scorer, text):
        result = scorer.analyze(text)
        assert 0 <= result.score <= 10

    @pytest.mark.parametrize("score,level", [
        (0, "low"), (2, "low"), (3, "medium"), (5, "medium"), (6, "high"), (10, "high"),
    ])
    def test_classify(self, score, level):
        assert classify(score) == level


class TestInvalidInput:

    @pytest.mark.parametrize("value", [None, 42, b"bytes", ["list"]])
    def test_non_string_rejected(self, scorer, value):
        with pytest.raises(InvalidInput):
            scorer.analyze(value)

    def test_invalid_input_is_type_error(self, scorer):
        with pytest.raises(TypeError):
            scorer.analyze(3.14)

    def test_rejected_input_not_recorded(self, scorer):
        with pytest.raises(InvalidInput):
            scorer.analyze(None)
        assert scorer.get_stats()["total_analyses"] == 0


class TestResultImmutability:

    def test_result_is_frozen(self, scorer):
        result = scorer.analyze("ugh")
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.score = 0


class TestRuleGuard:

    def test_raising_rule_treated_as_no_match(self, scorer):
        class ExplodingPattern:
            pattern = "boom"

            def search(self, text):
                raise RuntimeError("boom")

        scorer.groups["medium"].rules.append(
            Rule(pattern=ExplodingPattern(), weight=1, category="medium", source="learned")
        )
        result = scorer.analyze("calm text")
        assert result.score == 0
        assert result.level == "low"


class TestStats:

    def test_tracks_multiple_analyses(self, scorer):
        scorer.analyze("This is great!")
        scorer.analyze("ARGH! This is terrible!")
        scorer.analyze("Hmm, this is confusing.")

        stats = scorer.get_stats()
        assert stats["total_analyses"] == 3
        assert stats["average_score"] == pytest.approx(7 / 3)
        assert set(stats["common_indicators"]) == {
            "positive language", "strong frustration", "mild frustration",
        }
        assert stats["learning_data_points"] == 3

    def test_empty_stats(self, scorer):
        stats = scorer.get_stats()
        assert stats["total_analyses"] == 0
        assert stats["average_score"] == 0.0
        assert stats["common_indicators"] == []

    def test_patterns_count(self, scorer):
        counts = scorer.get_stats()["patterns_count"]
        assert counts == {"positive": 4, "medium": 5, "high": 9}

    def test_top_five_indicators_most_frequent_first(self, scorer):
        scorer.analyze("ugh")
        scorer.analyze("ugh")
        scorer.analyze("great")
        assert scorer.get_stats()["common_indicators"][0] == "strong frustration"


class TestFeedback:

    def test_feedback_counted(self, scorer):
        text = "This is somewhat annoying."
        result = scorer.analyze(text)
        scorer.add_feedback(text, 7, result.score)
        assert scorer.get_stats()["feedback_count"] == 1

    def test_out_of_range_accepted(self, scorer):
        entry = scorer.add_feedback("whatever", 42, -3)
        assert entry.expected_score == 42
        assert entry.actual_score == -3
        assert entry.difference == 45

    def test_feedback_does_not_change_rules(self, scorer):
        before = scorer.rule_count()
        scorer.add_feedback("ugh", 0, 10)
        assert scorer.rule_count() == before


class TestEvolutionReport:

    def test_report_fields(self, scorer):
        for i in range(10):
            scorer.analyze(f"Test frustration text {i}")

        report = scorer.get_evolution_report()
        assert report["initial_pattern_count"] == 18
        assert report["current_pattern_count"] == 18
        assert report["learning_iterations"] == 10
        assert report["improvement_cycles"] == 2
        assert report["learned_pattern_count"] == 0

    def test_accuracy_none_without_feedback(self, scorer):
        assert scorer.get_evolution_report()["accuracy"] is None

    def test_accuracy_with_feedback(self, scorer):
        scorer.add_feedback("test1", 5, 5)  # exact
        scorer.add_feedback("test2", 7, 6)  # within one
        scorer.add_feedback("test3", 3, 8)  # off
        accuracy = scorer.get_evolution_report()["accuracy"]
        assert accuracy == pytest.approx(200 / 3)
        assert 0 <= accuracy <= 100


class TestIsolation:

    def test_instances_do_not_share_rules(self):
        a = HeuristicScorer()
        b = HeuristicScorer()
        for _ in range(5):
            a.analyze("WHY DOES THIS FLAKY PIPELINE KEEP BREAKING?!")
        assert len(a.groups["medium"]) > 5
        assert len(b.groups["medium"]) == 5

    def test_instances_do_not_share_stats(self):
        a = HeuristicScorer()
        b = HeuristicScorer()
        a.analyze("ugh")
        assert b.get_stats()["total_analyses"] == 0


class TestLearningWindow:

    def test_only_high_scores_buffered(self, scorer):
        scorer.analyze("calm text")
        scorer.analyze("Hmm, this is confusing.")
        assert len(scorer.recent_high) == 0

        scorer.analyze("ARGH! This is terrible!")
        assert len(scorer.recent_high) == 1

    def test_buffer_bounded_by_window(self):
        scorer = HeuristicScorer(learning_window=3)
        for i in range(20):
            scorer.analyze(f"ARGH! This is terrible! take {i}")
        assert len(scorer.recent_high) == 3
        assert scorer.recent_high[-1].text.endswith("take 19")
        assert scorer.get_stats()["learning_data_points"] == 20
