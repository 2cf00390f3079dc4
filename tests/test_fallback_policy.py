"""
Tests for the fallback policy.
"""

import pytest

from aether.core.fallback_policy import FallbackPolicy, ensure_non_empty
from aether.models.records import Condition, Level, MedicalTest


@pytest.fixture
def policy():
    return FallbackPolicy()


class TestEnsureNonEmpty:
    """Test the non-empty guarantee."""

    def test_items_returned_unchanged(self):
        assert ensure_non_empty(["a", "b"], lambda: "sentinel") == ["a", "b"]

    def test_empty_list_gets_exactly_one_sentinel(self):
        assert ensure_non_empty([], lambda: "sentinel") == ["sentinel"]


class TestSentinels:
    """Test domain sentinels."""

    def test_condition_sentinel(self, policy):
        sentinel = policy.sentinel("diagnosis.conditions")

        assert isinstance(sentinel, Condition)
        assert sentinel.name == "Further evaluation needed"
        assert sentinel.confidence.level == Level.LOW
        assert sentinel.reasoning == "Unable to determine specific condition from provided symptoms"
        assert sentinel.is_fallback is True

    def test_test_sentinel_has_medium_urgency(self, policy):
        sentinel = policy.sentinel("diagnosis.tests")

        assert isinstance(sentinel, MedicalTest)
        assert sentinel.urgency == Level.MEDIUM
        assert sentinel.is_fallback is True

    def test_every_sentinel_builds(self, policy):
        for field in FallbackPolicy.SENTINELS:
            assert policy.sentinel(field)

    def test_sentinels_are_fresh_instances(self, policy):
        assert policy.sentinel("diagnosis.conditions") == policy.sentinel("diagnosis.conditions")


class TestBackfill:
    """Test backfill bookkeeping."""

    def test_backfilled_field_is_recorded(self, policy):
        backfilled = []
        result = policy.backfill("radiology.findings", [], backfilled)

        assert result == ["No significant abnormalities detected on initial review"]
        assert backfilled == ["findings"]

    def test_populated_field_is_not_recorded(self, policy):
        backfilled = []
        assert policy.backfill("radiology.findings", ["Clear lungs"], backfilled) == ["Clear lungs"]
        assert backfilled == []

    def test_value_or_default(self, policy):
        backfilled = []

        assert policy.value_or_default("prescription.diagnosis", "Flu", backfilled) == "Flu"
        assert policy.value_or_default("prescription.diagnosis", "", backfilled) == (
            "Not specified in the prescription"
        )
        assert backfilled == ["diagnosis"]
