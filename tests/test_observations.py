"""Tests for observation parsing helpers."""

from qualigraph.observations import (
    matching_observations,
    mentions_any,
    observation_status,
    prefixed_value,
    untagged,
)


class TestPrefixedValue:
    def test_first_match_wins(self):
        observations = ["note", "Created: 2024-03-01", "Date: 2024-01-05"]
        assert prefixed_value(observations, ("Date:", "Created:")) == "2024-03-01"

    def test_value_stripped(self):
        assert prefixed_value(["Date:   2024-01-05  "], "Date:") == "2024-01-05"

    def test_keeps_text_after_first_colon(self):
        assert prefixed_value(["Date: 2024-01-05 10:30"], "Date:") == "2024-01-05 10:30"

    def test_case_sensitive_by_default(self):
        assert prefixed_value(["date: 2024-01-05"], "Date:") is None

    def test_case_insensitive(self):
        assert prefixed_value(["STATUS: final"], "Status:", case_sensitive=False) == "final"

    def test_absent(self):
        assert prefixed_value([], "Date:") is None


class TestUntagged:
    def test_skips_tagged(self):
        assert untagged(["source: X", "The actual text"], ("source:",)) == "The actual text"

    def test_none_when_all_tagged(self):
        assert untagged(["source: X"], ("source:",)) is None


class TestKeywords:
    def test_mentions_any(self):
        assert mentions_any("Sampling Strategy", ("sampling",))
        assert not mentions_any("Budget", ("method",))

    def test_matching_observations_order(self):
        observations = ["Approach: grounded theory", "Budget", "Method: interviews"]
        assert matching_observations(observations, ("method", "approach")) == [
            "Approach: grounded theory",
            "Method: interviews",
        ]


class TestObservationStatus:
    def test_status(self):
        assert observation_status(["Theme text", "Status: developing"]) == "developing"

    def test_lowercase_prefix(self):
        assert observation_status(["status: established"]) == "established"

    def test_absent(self):
        assert observation_status(["Theme text"]) is None
