"""
Measurement Aggregation & Technical Error of Measurement
==========================================================
Reduces repeated manual readings at one anatomical site to a single
representative value, and scores how consistent those readings were.

AGGREGATION (ISAK convention):
  - Non-positive readings are treated as absent and dropped.
  - 0 readings  -> 0
  - 1 reading   -> that reading
  - 2 readings  -> arithmetic mean
  - 3+ readings -> median (even counts average the middle pair)

  The median rejects a single outlier among three readings; with only two
  readings there is nothing to reject, so the mean is used.

TEM (Dahlberg, 1940):
  TEM = sqrt( sum(d_ij^2) / (2 * n_pairs) )     over every pair of readings
  %TEM = TEM / mean * 100

  %TEM is compared with ISAK intra-observer thresholds for the site category.
"""

import logging
import math
from statistics import mean, median

logger = logging.getLogger(__name__)


# ── ISAK intra-observer %TEM thresholds (excellent, acceptable) ──
TEM_THRESHOLDS = {
    "skinfolds": (2.5, 5.0),
    "girths": (0.5, 1.0),
    "breadths": (0.5, 1.0),
    "basic": (0.2, 0.5),
}

SITE_CATEGORIES = {
    # skinfolds
    "triceps": "skinfolds",
    "subscapular": "skinfolds",
    "biceps": "skinfolds",
    "iliac_crest": "skinfolds",
    "supraspinale": "skinfolds",
    "abdominal": "skinfolds",
    "thigh": "skinfolds",
    "calf": "skinfolds",
    # girths
    "arm_relaxed": "girths",
    "arm_flexed": "girths",
    "forearm": "girths",
    "waist": "girths",
    "hip": "girths",
    "mid_thigh": "girths",
    "calf_girth": "girths",
    "head": "girths",
    # breadths
    "humerus": "breadths",
    "femur": "breadths",
    "biacromial": "breadths",
    "biiliocristal": "breadths",
    "wrist": "breadths",
    "ankle": "breadths",
    # basic
    "weight": "basic",
    "height": "basic",
    "sitting_height": "basic",
}


def reduce_measurements(values: list[float]) -> float:
    """
    Reduce repeated readings at one site to a single value.

    Args:
        values: Raw readings; entries <= 0 are ignored.

    Returns:
        The representative value (0 when nothing valid was provided).
    """
    valid = [v for v in values if v is not None and v > 0]

    if not valid:
        return 0
    if len(valid) == 1:
        return valid[0]
    if len(valid) == 2:
        return (valid[0] + valid[1]) / 2
    return median(valid)


def aggregate_measurement_groups(replicates: dict[str, dict[str, list[float]]]) -> dict:
    """
    Reduce every site of every measurement group.

    Args:
        replicates: {"skinfolds": {"triceps": [10.1, 10.3, 10.2], ...}, ...}

    Returns:
        Same nesting with a single float per site.
    """
    return {
        group: {site: reduce_measurements(values) for site, values in sites.items()}
        for group, sites in replicates.items()
    }


def site_category(site: str, group: str | None = None) -> str:
    """Threshold category for a site; the measurement group wins when given."""
    if group in TEM_THRESHOLDS:
        return group
    if group == "bio_data":
        return "basic"
    return SITE_CATEGORIES.get(site, "skinfolds")


def calculate_tem(values: list[float]) -> float:
    """Dahlberg TEM over all pairwise differences of one site's readings."""
    if len(values) < 2:
        return 0.0

    squared = 0.0
    pairs = 0
    for i in range(len(values) - 1):
        for j in range(i + 1, len(values)):
            squared += (values[i] - values[j]) ** 2
            pairs += 1

    return math.sqrt(squared / (2 * pairs))


def calculate_site_tem(values: list[float], site: str, group: str | None = None) -> dict:
    """
    Score the reliability of repeated readings at one site.

    Returns:
        dict with keys: site, tem, tem_percent, mean, reliability
        ("excellent" | "acceptable" | "poor"), is_reliable, needs_remeasurement,
        needs_third_reading (two readings further apart than the acceptable %TEM).
    """
    valid = [v for v in values if v is not None and v > 0]

    if len(valid) < 2:
        return {
            "site": site,
            "tem": 0.0,
            "tem_percent": 0.0,
            "mean": round(valid[0], 2) if valid else 0.0,
            "reliability": "poor",
            "is_reliable": False,
            "needs_remeasurement": True,
            "needs_third_reading": False,
        }

    site_mean = mean(valid)
    tem = calculate_tem(valid)
    tem_percent = (tem / site_mean) * 100 if site_mean > 0 else 0.0

    excellent, acceptable = TEM_THRESHOLDS[site_category(site, group)]
    if tem_percent <= excellent:
        reliability = "excellent"
    elif tem_percent <= acceptable:
        reliability = "acceptable"
    else:
        reliability = "poor"

    if reliability == "poor":
        logger.warning(f"TEM for {site}: {tem_percent:.2f}% exceeds ISAK limit, re-measure")

    return {
        "site": site,
        "tem": round(tem, 2),
        "tem_percent": round(tem_percent, 2),
        "mean": round(site_mean, 2),
        "reliability": reliability,
        "is_reliable": reliability != "poor",
        "needs_remeasurement": reliability == "poor",
        "needs_third_reading": (
            len(valid) == 2 and needs_third_measurement(valid[0], valid[1], site, group)
        ),
    }


def calculate_overall_reliability(replicates: dict[str, dict[str, list[float]]]) -> dict:
    """
    Aggregate site-level TEM into an overall intra-observer assessment.

    Only sites with at least two readings are scored.
    """
    sites = []
    for group, group_sites in replicates.items():
        for site, values in group_sites.items():
            if len([v for v in values if v is not None and v > 0]) >= 2:
                sites.append(calculate_site_tem(values, site, group))

    scored = [s for s in sites if s["tem"] > 0]
    avg_tem = mean(s["tem"] for s in scored) if scored else 0.0
    avg_percent = mean(s["tem_percent"] for s in scored) if scored else 0.0

    poor = sum(1 for s in sites if s["reliability"] == "poor")
    acceptable = sum(1 for s in sites if s["reliability"] == "acceptable")

    if poor > 0:
        rating = "poor"
    elif acceptable > len(sites) / 2:
        rating = "acceptable"
    else:
        rating = "excellent"

    return {
        "intra_observer_tem": round(avg_tem, 2),
        "intra_observer_percent": round(avg_percent, 2),
        "meets_isak_standard": poor == 0,
        "overall_rating": rating,
        "sites": sites,
    }


def needs_third_measurement(first: float, second: float, site: str, group: str | None = None) -> bool:
    """ISAK: take a third reading when the first two differ by more than the acceptable %TEM."""
    site_mean = (first + second) / 2
    if site_mean <= 0:
        return False
    percent_diff = abs(first - second) / site_mean * 100
    _, acceptable = TEM_THRESHOLDS[site_category(site, group)]
    return percent_diff > acceptable
