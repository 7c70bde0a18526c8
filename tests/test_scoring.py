import logging
from datetime import timedelta

import pytest

from insights.analysis.scoring import (
    clamp_component, support, sentiment_direction, mean_severity, score_group
)
from insights.analysis.statistics import compute_group_statistics
from insights.config import AnalysisConfig


def test_support_saturates():
    assert support(0, 5) == 0.0
    assert support(5, 5) == 0.5
    assert support(95, 5) == pytest.approx(0.95)


@pytest.mark.parametrize("counts,expected", [
    ({"positive": 3}, "positive"),
    ({"positive": 3, "negative": 2}, "neutral"),
    ({"positive": 1, "negative": 2}, "negative"),
    ({"neutral": 4}, "neutral"),
    ({}, "neutral"),
])
def test_sentiment_direction(counts, expected):
    assert sentiment_direction(counts) == expected


def test_clamp_component_logs_and_clamps(caplog):
    caplog.set_level(logging.WARNING, logger="insights.analysis.scoring")

    assert clamp_component("confidence", 0.4) == 0.4
    assert clamp_component("confidence", 1.5) == 1.0
    assert clamp_component("confidence", -0.2) == 0.0
    assert clamp_component("confidence", float("nan")) == 0.0
    assert clamp_component("confidence", float("inf")) == 1.0
    assert "Score component confidence out of bounds" in caplog.text


def test_lemon_scenario_text_score(lemon_records):
    statistics = compute_group_statistics("lemon", lemon_records)

    score = score_group(statistics, min_group_size=1)

    # support 3/8, diversity 2/3, agreement 1
    assert score.confidence == pytest.approx(0.5 * 3 / 8 + 0.3 * 2 / 3 + 0.2)
    assert score.strength == pytest.approx(3 / 8)
    assert score.direction == "positive"
    assert score.reportable


def test_metric_group_score(glucose_records):
    statistics = compute_group_statistics("Dexcom G7", glucose_records([120.0] * 10))

    score = score_group(statistics, min_group_size=10)

    assert score.strength == pytest.approx(1.0)
    assert score.confidence == pytest.approx(0.5 + 0.5 * 10 / 15)
    assert score.direction == "positive"
    assert score.reportable


def test_poorly_controlled_series_is_negative(glucose_records):
    values = [40.0, 350.0, 40.0, 350.0]
    score = score_group(compute_group_statistics("bad", glucose_records(values)))

    assert score.direction == "negative"
    assert 0.0 <= score.confidence < score.strength


def test_complaint_group_uses_severity(make_record):
    records = [
        make_record(f"report {index}", "FDA MAUDE", kind="complaint", record_id=f"c{index}",
                    tags={"device": "Pump X", "severity": severity}, sentiment="negative")
        for index, severity in enumerate(["high", "high", "critical"])
    ]
    statistics = compute_group_statistics("Pump X", records)

    score = score_group(statistics)

    assert mean_severity(statistics) == pytest.approx(10 / 3)
    assert score.strength == pytest.approx(10 / 12)
    assert score.confidence == pytest.approx(10 / 12 * (0.5 + 0.5 * 3 / 8))
    assert score.direction == "negative"


def test_reportable_requires_min_group_size(lemon_records):
    statistics = compute_group_statistics("lemon", lemon_records)

    assert not score_group(statistics, min_group_size=4).reportable


def test_reportable_requires_confidence_above_threshold(make_record):
    statistics = compute_group_statistics("rare", [make_record("one-off", keywords=["rare"])])
    config = AnalysisConfig(min_confidence=0.6)

    score = score_group(statistics, config=config)

    assert score.confidence <= 0.6
    assert not score.reportable


def test_scores_are_deterministic(lemon_records):
    statistics = compute_group_statistics("lemon", lemon_records)
    assert score_group(statistics) == score_group(statistics)


def test_confidence_bounds_hold_across_group_shapes(make_record, glucose_records):
    groups = [
        [make_record(f"post {i}", platform=f"p{i}", keywords=["k"], sentiment="negative",
                     timestamp=make_record().timestamp + timedelta(hours=i)) for i in range(40)],
        glucose_records([float(v) for v in range(40, 400, 7)]),
        glucose_records([0.0, 0.0, 0.0]),
    ]
    for records in groups:
        score = score_group(compute_group_statistics("k", records))
        assert 0.0 <= score.confidence <= 1.0
        assert 0.0 <= score.strength <= 1.0
