import pytest

from insights.analysis.recommendations import (
    Condition, DEFAULT_RULES, build_metric_context, rule, select_recommendations
)
from insights.analysis.statistics import compute_group_statistics
from insights.models.insight import Score


def test_condition_rejects_unknown_operator():
    with pytest.raises(ValueError):
        Condition("confidence", "~=", 0.5)


@pytest.mark.parametrize("operator,threshold,expected", [
    (">", 0.5, True),
    ("<=", 0.5, False),
    ("==", 0.7, True),
    ("contains", "7", True),
])
def test_condition_operators(operator, threshold, expected):
    assert Condition("confidence", operator, threshold).evaluate({"confidence": 0.7}) is expected


def test_condition_on_missing_metric_is_false():
    assert not Condition("time_in_range", "<", 70).evaluate({"confidence": 0.9})


def test_device_rules_fire_on_poor_control():
    context = {"pattern": "Omnipod 5", "time_in_range": 55.0, "hypoglycemia_risk": 12.0, "complaint_count": 0}

    recommendations = select_recommendations("device_glucose", context)

    assert recommendations == [
        "Consider adjusting Omnipod 5 settings for better glucose control",
        "Review Omnipod 5 safety settings to reduce hypoglycemia risk",
    ]


def test_rules_are_scoped_to_analysis_type():
    context = {"pattern": "Omnipod 5", "time_in_range": 55.0}
    assert select_recommendations("temporal_patterns", context) == []


def test_increased_monitoring_applies_to_every_type():
    context = {"pattern": "night", "confidence": 0.85, "hypoglycemia_ratio": 0.2}

    assert "Increase glucose monitoring frequency while this pattern persists" in \
        select_recommendations("temporal_patterns", context)


def test_custom_rule_table_and_deduplication():
    rules = [
        rule("first", ["keyword_correlation"], [("record_count", ">=", 2)], "Track {pattern}"),
        rule("second", [], [("record_count", ">=", 1)], "Track {pattern}"),
        rule("unrenderable", [], [], "Uses {missing_metric}"),
    ]

    assert select_recommendations("keyword_correlation", {"pattern": "lemon", "record_count": 3}, rules) == [
        "Track lemon"
    ]


def test_default_rule_names_are_unique():
    names = [candidate.name for candidate in DEFAULT_RULES]
    assert len(names) == len(set(names))


def test_metric_context_for_device_medication_group(glucose_records):
    records = glucose_records([100.0, 120.0, 60.0, 140.0], device="Omnipod 5", insulin="Humalog")
    statistics = compute_group_statistics("Omnipod 5+Humalog", records)
    score = Score(strength=0.6, confidence=0.5, direction="neutral")

    context = build_metric_context("Omnipod 5+Humalog", statistics, score)

    assert context["device"] == "Omnipod 5"
    assert context["medication"] == "Humalog"
    assert context["record_count"] == 4
    assert context["device_diversity"] == 1
    assert context["time_in_range"] == 75.0
    assert context["hypoglycemia_ratio"] == 0.25
    assert 0.0 <= context["effectiveness"] <= 10.0
    assert 0.0 <= context["interaction_score"] <= 10.0
    assert context["lifestyle_impact"] in ("high", "medium", "low")


def test_metric_context_without_series(lemon_records):
    statistics = compute_group_statistics("lemon", lemon_records)
    context = build_metric_context("lemon", statistics, Score(0.4, 0.6, "positive"))

    assert context["platform_count"] == 2
    assert context["medication"] == "lemon"
    assert "time_in_range" not in context
    assert "mean_severity" not in context


def test_metric_context_exposes_trend_and_severity(glucose_records):
    records = glucose_records([35.0, 100.0, 140.0, 180.0, 220.0])
    statistics = compute_group_statistics("night", records)

    context = build_metric_context("night", statistics, Score(0.5, 0.5, "neutral"))

    assert context["hypoglycemia_severity"] == "severe"
    assert context["glucose_trend"] == "increasing"
    assert context["anomaly_count"] == 0
    assert "Readings below 40 mg/dL were recorded - review the hypoglycemia treatment plan " \
        "with a healthcare provider" in select_recommendations("temporal_patterns", context)


def test_outlier_and_rising_rules():
    context = {"pattern": "afternoon", "anomaly_count": 2, "glucose_trend": "increasing", "time_in_range": 40.0}

    assert select_recommendations("temporal_patterns", context) == [
        "Outlying glucose readings detected - check sensor accuracy and note what preceded them",
        "Glucose is trending upward while out of range - review recent changes in routine",
    ]
