"""Zone risk scoring across the issue sheets."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from fleet_core.filters import DashboardFilters
from fleet_core.sheets import (
    FUEL_STATION,
    GLITCH_PERCENTAGE,
    ISSUES_POST_0710,
    LESS_THAN_3_TRIPS,
    ON_BOARD_AFTER_3PM,
    POST_06AM_OPEN_ISSUES,
    VEHICLE_BREAKDOWN,
    VEHICLE_NUMBERS,
)
from fleet_core.values import is_positive_zone, parse_int, zone_number

RISK_WEIGHTS: Dict[str, float] = {
    VEHICLE_BREAKDOWN: 3.0,
    ISSUES_POST_0710: 2.5,
    POST_06AM_OPEN_ISSUES: 2.5,
    FUEL_STATION: 2.0,
    LESS_THAN_3_TRIPS: 1.5,
    ON_BOARD_AFTER_3PM: 1.0,
    GLITCH_PERCENTAGE: 0.5,
}
DEFAULT_RISK_WEIGHT = 1.0

CRITICAL_THRESHOLDS: Dict[str, float] = {
    VEHICLE_BREAKDOWN: 5,
    ISSUES_POST_0710: 8,
    POST_06AM_OPEN_ISSUES: 10,
    FUEL_STATION: 15,
    LESS_THAN_3_TRIPS: 20,
}
CRITICAL_RISK_SCORE = 50

ANALYSED_SOURCES: Dict[str, str] = {
    VEHICLE_BREAKDOWN: "Vehicle Breakdowns",
    ISSUES_POST_0710: "Late Arrivals (7:10 AM)",
    POST_06AM_OPEN_ISSUES: "Late Departures (6:00 AM)",
    FUEL_STATION: "Fuel Station Visits",
    LESS_THAN_3_TRIPS: "Low Trip Count",
    ON_BOARD_AFTER_3PM: "Late Boarding",
    VEHICLE_NUMBERS: "General Breakdowns",
}

# (source, minimum count, type, priority, action, reason template)
RECOMMENDATION_RULES = [
    (VEHICLE_BREAKDOWN, 3, "MAINTENANCE", "HIGH", "Increase preventive maintenance frequency", "{n} vehicle breakdowns detected"),
    (ISSUES_POST_0710, 5, "SCHEDULING", "HIGH", "Review driver schedules and route timing", "{n} late arrivals after 7:10 AM"),
    (POST_06AM_OPEN_ISSUES, 8, "OPERATIONS", "MEDIUM", "Monitor late departure patterns and adjust schedules", "{n} late departures after 6:00 AM"),
    (FUEL_STATION, 10, "EFFICIENCY", "MEDIUM", "Optimize routes to reduce fuel station visits", "{n} fuel station visits on route"),
    (LESS_THAN_3_TRIPS, 15, "UTILIZATION", "MEDIUM", "Increase vehicle utilization or redistribute fleet", "{n} vehicles with low trip counts"),
]

PRIORITIES = ["CRITICAL", "HIGH", "MEDIUM", "LOW"]


def priority_for(risk_score: float) -> str:
    if risk_score >= 50:
        return "CRITICAL"
    if risk_score >= 25:
        return "HIGH"
    if risk_score >= 10:
        return "MEDIUM"
    return "LOW"


def zone_issue_counts(filtered: Dict[str, List[Dict[str, Any]]]) -> pd.DataFrame:
    """Long frame of (source, zone, incidents) summed over positive counts in positive zones."""
    rows = []
    for source in ANALYSED_SOURCES:
        for record in filtered.get(source, []):
            zone = str(record.get("Zone") or "").strip()
            count = parse_int(record.get("Count", record.get("TotalVehicles", 1)), 0) or 0
            if zone and is_positive_zone(zone) and count > 0:
                rows.append({"source": source, "zone": zone, "incidents": count})
    if not rows:
        return pd.DataFrame(columns=["source", "zone", "incidents"])
    return pd.DataFrame(rows).groupby(["source", "zone"], as_index=False)["incidents"].sum()


def _critical_reasons(issues: Dict[str, Dict[str, Any]], risk_score: float) -> List[str]:
    reasons = []
    for source, threshold in CRITICAL_THRESHOLDS.items():
        if source in issues and issues[source]["count"] >= threshold:
            reasons.append(f"{issues[source]['displayName']}: {issues[source]['count']} incidents")
    if risk_score >= CRITICAL_RISK_SCORE:
        reasons.append(f"High overall risk score ({risk_score})")
    return reasons


def _recommendations(issues: Dict[str, Dict[str, Any]]) -> List[Dict[str, str]]:
    out = []
    for source, minimum, kind, priority, action, reason in RECOMMENDATION_RULES:
        if source in issues and issues[source]["count"] >= minimum:
            out.append({"type": kind, "priority": priority, "action": action, "reason": reason.format(n=issues[source]["count"])})
    return out


def compute_zone_analysis(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    counts = zone_issue_counts(ctx.get("filtered", {}))
    zones: Dict[str, Dict[str, Any]] = {}
    for row in counts.itertuples(index=False):
        info = zones.setdefault(row.zone, {"zone": row.zone, "issues": {}, "totalIssues": 0})
        info["issues"][row.source] = {
            "count": int(row.incidents),
            "displayName": ANALYSED_SOURCES[row.source],
            "weight": RISK_WEIGHTS.get(row.source, DEFAULT_RISK_WEIGHT),
        }
        info["totalIssues"] += int(row.incidents)

    critical: List[Dict[str, Any]] = []
    recommendations: List[Dict[str, str]] = []
    for info in zones.values():
        score = sum(i["count"] * i["weight"] for i in info["issues"].values())
        info["riskScore"] = round(score, 1)
        info["priority"] = priority_for(score)
        reasons = _critical_reasons(info["issues"], info["riskScore"])
        info["recommendations"] = _recommendations(info["issues"]) if reasons else []
        if reasons:
            critical.append(dict(info, criticalReasons=reasons))
            recommendations.extend(dict(rec, zone=info["zone"]) for rec in info["recommendations"])

    def by_risk(item: Dict[str, Any]) -> Any:
        return (-item["riskScore"], zone_number(item["zone"]) or 0.0)

    all_zones = sorted(zones.values(), key=by_risk)
    critical.sort(key=by_risk)
    distribution = {p: 0 for p in PRIORITIES}
    for info in all_zones:
        distribution[info["priority"]] += 1

    return {
        "filters": asdict(filters),
        "summary": {
            "totalZones": len(all_zones),
            "criticalZones": len(critical),
            "highRiskZones": distribution["HIGH"],
            "mediumRiskZones": distribution["MEDIUM"],
            "lowRiskZones": distribution["LOW"],
            "totalRecommendations": len(recommendations),
        },
        "criticalZones": critical,
        "allZones": all_zones,
        "recommendations": recommendations,
        "riskDistribution": distribution,
    }
