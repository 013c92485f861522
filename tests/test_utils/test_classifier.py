"""Unit tests for the rule-table classifier."""
from sportsfeed.utils.classifier import Rule, classify, keyword_rule


class TestClassifier:

    def test_first_matching_rule_wins(self):
        """Should return the tag of the earliest matching rule."""
        rules = [keyword_rule("first", ["yard"]), keyword_rule("second", ["yards"])]

        assert classify(rules, "Passing Yards") == "first"

    def test_default_when_nothing_matches(self):
        """Should return the default for unmatched or empty text."""
        rules = [keyword_rule("sacks", ["sack"])]

        assert classify(rules, "Longest Punt", default="All Props") == "All Props"
        assert classify(rules, "", default="All Props") == "All Props"
        assert classify(rules, None) is None

    def test_case_sensitive_rules(self):
        """Should respect case when asked to."""
        rules = [keyword_rule("ko", ["KO"], case_sensitive=True)]

        assert classify(rules, "R1 KO") == "ko"
        assert classify(rules, "knockout") is None

    def test_custom_predicate(self):
        """Should accept any predicate, not only keyword lists."""
        rules = [Rule(tag="numeric", predicate=str.isdigit)]

        assert classify(rules, "123") == "numeric"
        assert classify(rules, "12a") is None
