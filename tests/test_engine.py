import time
from dataclasses import replace

import pytest

from insights.analysis import pipeline as pipeline_module
from insights.analysis.engine import InsightEngine
from insights.analysis.pipeline import AnalysisPipeline, AnalysisStage
from insights.analysis.recommendations import rule
from insights.config import AnalysisConfig
from insights.sources.sample_data import sample_records_data


def test_lemon_scenario(lemon_records):
    report = InsightEngine().analyze(lemon_records, ["keyword_correlation"])

    assert len(report.insights) == 1
    insight = report.insights[0]
    assert insight.pattern == "lemon"
    assert insight.evidence.record_count == 3
    assert insight.evidence.platforms == ["reddit", "twitter"]
    assert insight.confidence > 0
    assert insight.direction == "positive"
    assert insight.title == "Lemon for Hypoglycemic Confusion Relief"
    assert insight.mechanism
    assert insight.evidence_level == "emerging"
    assert "Keep fresh lemons available during activities" in insight.recommendations
    assert insight.evidence.temporal_trend == "stable"
    assert report.records_analyzed == 3
    assert report.success


def test_empty_input_gives_empty_report():
    report = InsightEngine().analyze([])

    assert report.insights == []
    assert report.records_received == 0
    assert report.errors == []
    assert not report.timed_out


def test_runs_are_idempotent():
    engine = InsightEngine()
    records = sample_records_data()

    first = engine.analyze(records)
    second = engine.analyze(records)

    assert [insight.to_dict() for insight in first.insights] == [insight.to_dict() for insight in second.insights]
    assert first.run_id != second.run_id


def test_insights_are_ranked_by_confidence_then_id():
    report = InsightEngine().analyze(sample_records_data())

    keys = [(-insight.confidence, insight.insight_id) for insight in report.insights]
    assert keys == sorted(keys)
    assert len({insight.insight_id for insight in report.insights}) == len(report.insights)


def test_sample_data_covers_device_complaints():
    report = InsightEngine().analyze(sample_records_data(), ["device_complaints"])
    by_pattern = {insight.pattern: insight for insight in report.insights}

    assert set(by_pattern) == {"Omnipod 5", "Dexcom G7", "Tandem t:slim X2"}
    assert by_pattern["Tandem t:slim X2"].direction == "negative"
    assert by_pattern["Omnipod 5"].evidence.record_count == 3
    assert by_pattern["Omnipod 5"].title == "Device Complaints: Omnipod 5"


def test_every_insight_respects_bounds_and_group_sizes():
    config = AnalysisConfig()
    report = InsightEngine(config).analyze(sample_records_data())

    assert report.insights
    for insight in report.insights:
        assert 0.0 <= insight.confidence <= 1.0
        assert insight.confidence > config.min_confidence
        assert insight.evidence.record_count >= config.min_group_size(insight.analysis_type)
        assert insight.evidence.record_count == insight.statistics.count


def test_malformed_records_are_skipped_and_reported():
    records = [
        {"id": "ok", "content": "Lemon works", "timestamp": "2024-01-15T00:00:00Z", "keywords": ["lemon"]},
        {"id": "no_text", "content": "", "timestamp": "2024-01-15T00:00:00Z"},
        {"id": "no_time", "content": "Missing timestamp"},
    ]

    report = InsightEngine().analyze(records, ["keyword_correlation"])

    assert report.records_received == 3
    assert report.records_analyzed == 1
    assert report.records_skipped == 2
    assert [error["error_type"] for error in report.errors] == ["MalformedRecordError"] * 2
    assert report.errors[0]["context"]["index"] == 1


def test_record_with_bad_engagement_does_not_drop_batch(lemon_records):
    bad = {"id": "bad", "content": "Lemon again", "timestamp": "2024-01-18T00:00:00Z",
           "keywords": ["lemon"], "engagement": {"likes": "many"}}

    report = InsightEngine().analyze(lemon_records + [bad], ["keyword_correlation"])

    assert len(report.insights) == 1
    assert report.insights[0].evidence.record_count == 3
    assert report.records_skipped == 1
    assert report.errors[0]["error_type"] == "MalformedRecordError"
    assert report.errors[0]["context"]["field"] == "engagement"


def test_statistics_failure_skips_only_that_group(monkeypatch, lemon_records, make_record):
    original = pipeline_module.compute_group_statistics

    def failing_statistics(key, members, config):
        if key == "ginger":
            raise RuntimeError("statistics exploded")
        return original(key, members, config)

    monkeypatch.setattr(pipeline_module, "compute_group_statistics", failing_statistics)
    ginger = [make_record("Ginger tea for nausea", record_id=f"gi{index}", keywords=["ginger"])
              for index in range(3)]

    report = InsightEngine().analyze(lemon_records + ginger, ["keyword_correlation"])

    assert [insight.pattern for insight in report.insights] == ["lemon"]
    assert report.errors == [{
        "error_type": "RuntimeError",
        "error_code": "StatisticsError",
        "message": "statistics exploded",
        "context": {"dimension": "keyword_correlation", "key": "ginger"},
    }]


def test_unknown_dimension_raises():
    with pytest.raises(ValueError):
        InsightEngine().analyze(sample_records_data(), ["astrology"])


def test_custom_rules_replace_default_table(lemon_records):
    rules = [rule("always", [], [], "Reviewed: {pattern}")]

    report = InsightEngine(rules=rules).analyze(lemon_records, ["keyword_correlation"])

    assert report.insights[0].recommendations[-1] == "Reviewed: lemon"


def test_stage_durations_are_reported(lemon_records):
    report = InsightEngine().analyze(lemon_records)

    assert set(report.stage_durations) == {
        "ValidationStage", "GroupingStage", "StatisticsStage", "ScoringStage", "AssemblyStage"
    }


def test_timeout_is_fail_closed(monkeypatch, lemon_records):
    original = pipeline_module.compute_group_statistics

    def slow_statistics(*args, **kwargs):
        time.sleep(0.5)
        return original(*args, **kwargs)

    monkeypatch.setattr(pipeline_module, "compute_group_statistics", slow_statistics)
    config = replace(AnalysisConfig(), analysis_timeout_seconds=0.05)

    report = InsightEngine(config).analyze(lemon_records)

    assert report.timed_out
    assert not report.success
    assert report.insights == []
    assert report.errors[0]["error_type"] == "AnalysisTimeoutError"


class RecordingStage(AnalysisStage):
    def __init__(self, label, dependencies=None, fail=False, critical=False):
        super().__init__()
        self.label = label
        self.dependencies = dependencies or []
        self.fail = fail
        self.critical = critical

    def get_dependencies(self):
        return self.dependencies

    def process(self, records, context):
        if self.fail:
            raise RuntimeError(f"{self.label} failed")
        return {"order": context.get("order", []) + [self.label]}


def test_pipeline_orders_stages_by_dependency():
    pipeline = (AnalysisPipeline()
                .add_stage(RecordingStage("second", ["first"]), "second")
                .add_stage(RecordingStage("first"), "first"))

    context = pipeline.run(["record"])

    assert context["order"] == ["first", "second"]
    assert pipeline.get_stage_info()["second"]["dependencies"] == ["first"]


def test_pipeline_rejects_circular_dependencies():
    pipeline = AnalysisPipeline().add_stage(RecordingStage("a", ["b"]), "a")

    with pytest.raises(ValueError):
        pipeline.add_stage(RecordingStage("b", ["a"]), "b")

    assert list(pipeline.stages) == ["a"]


def test_non_critical_stage_failure_is_recorded():
    pipeline = (AnalysisPipeline()
                .add_stage(RecordingStage("broken", fail=True), "broken")
                .add_stage(RecordingStage("after", ["broken"]), "after"))

    context = pipeline.run(["record"])

    assert context["stage_errors"] == {"broken": "broken failed"}
    assert context["order"] == ["after"]


def test_critical_stage_failure_propagates():
    pipeline = AnalysisPipeline().add_stage(RecordingStage("broken", fail=True, critical=True), "broken")

    with pytest.raises(RuntimeError):
        pipeline.run(["record"])


def test_pipeline_with_no_records_returns_empty_context():
    assert AnalysisPipeline().add_stage(RecordingStage("a"), "a").run([]) == {}
