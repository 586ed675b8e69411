"""National-average cost bands used when the LLM runs in mock mode.

The bands mirror the guidance given to the estimating prompt so local
development produces numbers in the same ballpark as the live model.
"""

from __future__ import annotations

from typing import Any

# (keywords, low, high, typical timeline)
COST_BANDS: list[tuple[tuple[str, ...], int, int, str]] = [
    (("new home", "new construction", "custom home", "build a house"), 200_000, 500_000, "8-12 months"),
    (("addition", "major remodel", "extension", "add on"), 50_000, 200_000, "3-6 months"),
    (("garage", "carport"), 15_000, 40_000, "4-8 weeks"),
    (("kitchen", "cabinet", "countertop"), 25_000, 75_000, "6-10 weeks"),
    (("bathroom", "shower", "vanity", "bathtub"), 8_000, 25_000, "3-6 weeks"),
    (("roof", "roofing", "shingle"), 8_000, 30_000, "1-2 weeks"),
    (("deck", "patio"), 5_000, 25_000, "2-4 weeks"),
]
DEFAULT_BAND = (3_000, 15_000, "2-4 weeks")

CATEGORY_SPLIT = {
    "materials": 0.40,
    "labor": 0.45,
    "permits": 0.05,
    "contingency": 0.10,
}


def match_band(text: str) -> tuple[int, int, str]:
    haystack = text.lower()
    for keywords, low, high, timeline in COST_BANDS:
        if any(k in haystack for k in keywords):
            return low, high, timeline
    return DEFAULT_BAND


def baseline_estimate(project_data: dict[str, Any]) -> dict[str, Any]:
    """Build a cost breakdown from the keyword bands above."""
    text = " ".join(
        str(project_data.get(k) or "")
        for k in ("project_type", "title", "description")
    )
    low, high, timeline = match_band(text)

    result: dict[str, Any] = {
        "total_cost_min": float(low),
        "total_cost_max": float(high),
        "timeline": project_data.get("timeline") or timeline,
    }
    for category, share in CATEGORY_SPLIT.items():
        result[f"{category}_cost_min"] = round(low * share, 2)
        result[f"{category}_cost_max"] = round(high * share, 2)

    location = project_data.get("location") or "your area"
    result["analysis"] = {
        "factors": [
            f"Regional labor rates in {location}",
            "Scope and finish level described in the project",
        ],
        "assumptions": [
            "Standard-grade materials",
            "No structural surprises uncovered during demolition",
        ],
        "recommendations": [
            "Collect at least three contractor bids",
            "Hold the contingency in reserve until rough-in inspections pass",
        ],
        "risk_factors": [
            "Material price volatility",
            "Permit review delays",
        ],
    }
    result["trade_breakdowns"] = [
        {"trade": "General labor", "cost_min": result["labor_cost_min"], "cost_max": result["labor_cost_max"]},
        {"trade": "Materials", "cost_min": result["materials_cost_min"], "cost_max": result["materials_cost_max"]},
    ]
    return result
