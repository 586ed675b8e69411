import pytest

from terrin.core.estimating.baseline import DEFAULT_BAND, baseline_estimate, match_band
from terrin.core.estimating.titles import generate_smart_title, needs_smart_title


@pytest.mark.parametrize(
    "description, expected",
    [
        ("Update kitchen cabinets and countertops", "Kitchen Renovation"),
        ("Finish the basement, about 600 square feet", "Basement Renovation (600 sq ft)"),
        ("Replace roof shingles on a 1800 sf house", "Roofing Project (1800 sq ft)"),
        ("Install new hardwood flooring", "Flooring Project"),
        ("fix squeaky stairs near the front", "Fix squeaky stairs near"),
        ("hang shelves", "Hang shelves"),
    ],
)
def test_generate_smart_title(description, expected):
    assert generate_smart_title(description) == expected


def test_needs_smart_title():
    assert needs_smart_title(None, "Deck")
    assert needs_smart_title("   ", None)
    assert needs_smart_title("deck", "Deck")
    assert not needs_smart_title("Backyard deck", "Deck")
    assert not needs_smart_title("Backyard deck", None)


def test_match_band_defaults():
    assert match_band("hang a picture frame") == DEFAULT_BAND
    assert match_band("Kitchen refresh")[:2] == (25_000, 75_000)


def test_baseline_estimate_splits_categories():
    result = baseline_estimate(
        {"description": "New bathroom vanity", "location": "Reno, NV", "timeline": "ASAP"}
    )
    assert result["total_cost_min"] == 8_000
    assert result["total_cost_max"] == 25_000
    assert result["timeline"] == "ASAP"

    parts_min = sum(result[f"{c}_cost_min"] for c in ("materials", "labor", "permits", "contingency"))
    assert parts_min == pytest.approx(result["total_cost_min"])
    assert "Reno, NV" in result["analysis"]["factors"][0]
    assert {t["trade"] for t in result["trade_breakdowns"]} == {"General labor", "Materials"}
