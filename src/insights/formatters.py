#!/usr/bin/env python3
"""
Formatting utilities for insight reports and trend listings.
"""

from typing import Any, Dict, List, Sequence

from .models.insight import (
    EmergingTrend, Insight, InsightReport, KeywordAssociation, PlatformActivity
)


def format_insight(insight: Insight, index: int = 0) -> str:
    """Format a single insight for display."""
    prefix = f"{index}. " if index else ""
    evidence = insight.evidence
    lines = [
        f"{prefix}{insight.title}",
        f"   🎯 Confidence: {insight.confidence:.2f} ({insight.direction})",
        f"   📊 Evidence: {evidence.record_count} records, "
        f"{len(evidence.platforms)} platform(s), {len(evidence.regions)} region(s), "
        f"trend {evidence.temporal_trend}",
        f"   💡 {insight.description}",
    ]

    if insight.mechanism:
        lines.append(f"   🔬 Mechanism ({insight.evidence_level}): {insight.mechanism}")
    if insight.risk_factors:
        lines.append(f"   ⚠️ Risk factors: {', '.join(insight.risk_factors)}")

    for recommendation in insight.recommendations:
        lines.append(f"   • {recommendation}")

    return "\n".join(lines)


def format_report(report: InsightReport, limit: int = 0) -> str:
    """Format a full report, optionally showing only the top insights."""
    lines = [
        "\n=== Insight Report ===",
        f"Run: {report.run_id}  Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M:%S %Z')}",
        f"Records: {report.records_analyzed} analyzed, {report.records_skipped} skipped "
        f"of {report.records_received} received",
    ]

    if report.timed_out:
        lines.append("⏱️ Analysis timed out - no insights reported")

    insights = report.insights[:limit] if limit else report.insights
    if not insights:
        lines.append("No reportable insights.")
    else:
        lines.append(f"Insights: {len(report.insights)}")
        lines.append("")
        for position, insight in enumerate(insights, 1):
            lines.append(format_insight(insight, position))
            lines.append("")

    if report.errors:
        lines.append(f"⚠️ {len(report.errors)} issue(s) recorded during the run")

    lines.append("=" * 50)
    return "\n".join(lines)


def format_emerging_trends(trends: Sequence[EmergingTrend]) -> str:
    if not trends:
        return "No emerging trends found."
    lines = ["📈 Emerging trends:"]
    for trend in trends:
        lines.append(f"  • {trend.keyword}: {trend.recent_mentions} recent vs "
                     f"{trend.previous_mentions} earlier (x{trend.growth_rate:.1f}) "
                     f"on {', '.join(trend.platforms)}")
    return "\n".join(lines)


def format_keyword_associations(associations: Sequence[KeywordAssociation]) -> str:
    if not associations:
        return "No keyword associations found."
    lines = ["🔗 Keyword associations:"]
    for association in associations:
        lines.append(f"  • {association.first} ↔ {association.second}: "
                     f"{association.similarity:.2f} ({association.shared_records} shared)")
    return "\n".join(lines)


def format_platform_activity(activity: Sequence[PlatformActivity]) -> str:
    if not activity:
        return "No platform activity."
    lines = ["📱 Platform activity:"]
    for item in activity:
        lines.append(f"  • {item.platform}: {item.record_count} records, "
                     f"{item.engagement_total} engagement (avg {item.average_engagement:.1f})")
    return "\n".join(lines)


def format_source_status(status: Dict[str, Dict[str, Any]]) -> str:
    lines = ["🩺 Source health:"]
    for name, result in status.items():
        icon = "✅" if result.get('available') else "❌"
        detail = result.get('error') or (
            f"HTTP {result['status_code']}" if 'status_code' in result else ''
        )
        lines.append(f"  {icon} {name} {detail}".rstrip())
    return "\n".join(lines)


def insights_to_dict(insights: List[Insight]) -> List[dict]:
    """Convert insights to dictionaries for JSON output."""
    return [insight.to_dict() for insight in insights]
