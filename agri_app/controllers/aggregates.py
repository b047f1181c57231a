"""
Derived dashboard values
Pure functions of the record sequence; recomputed on every render, never cached
"""
from collections import Counter, OrderedDict
from datetime import tzinfo
from typing import Dict, List, Optional, Sequence

import pytz

from agri_app.models.dashboard import CHART_PALETTE, crop_color
from agri_app.models.models import PredictionRecord

RECENT_ACTIVITY_SIZE = 5
HIGH_YIELD_THRESHOLD = 30.0


def average_yield(records: Sequence[PredictionRecord]) -> float:
    """Mean yield rounded to 2 decimals, 0 for an empty sequence"""
    if not records:
        return 0
    return round(sum(r.yield_ for r in records) / len(records), 2)


def format_average_yield(records: Sequence[PredictionRecord]) -> str:
    if not records:
        return "0"
    return f"{average_yield(records):.2f}"


def crop_distribution(records: Sequence[PredictionRecord]) -> Dict[str, int]:
    """Record count per crop type, in first-seen order"""
    counts: Dict[str, int] = OrderedDict()
    for r in records:
        counts[r.crop_type] = counts.get(r.crop_type, 0) + 1
    return counts


def latest_record(records: Sequence[PredictionRecord]) -> Optional[PredictionRecord]:
    """Most recent record; the sequence is already created_at descending"""
    return records[0] if records else None


def most_frequent_crop(records: Sequence[PredictionRecord]) -> Optional[str]:
    """Most common crop type; ties go to the crop seen first"""
    if not records:
        return None
    counts = Counter(r.crop_type for r in records)
    best = max(counts.values())
    return next(crop for crop in crop_distribution(records) if counts[crop] == best)


def recent_activity(records: Sequence[PredictionRecord], size: int = RECENT_ACTIVITY_SIZE) -> List[PredictionRecord]:
    return list(records[:size])


def confidence_band(confidence: float) -> str:
    if confidence > 0.7:
        return "high"
    if confidence > 0.4:
        return "medium"
    return "low"


CONFIDENCE_COLORS = {"high": "green", "medium": "yellow", "low": "red"}


# =========================================================================
# CHART / TABLE ROWS
# =========================================================================

def display_timezone(name: Optional[str] = None) -> tzinfo:
    try:
        return pytz.timezone(name or "UTC")
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


def record_row(record: PredictionRecord, tz: Optional[tzinfo] = None) -> Dict:
    """Flat, pre-formatted dict for rx.foreach"""
    tz = tz or pytz.UTC
    local = record.created_at.astimezone(tz)
    band = confidence_band(record.confidence)
    return {
        "id": str(record.id),
        "crop_type": record.crop_type,
        "yield": record.yield_,
        "yield_s": f"{record.yield_:.2f} tons/ha",
        "high_yield": record.yield_ > HIGH_YIELD_THRESHOLD,
        "confidence": record.confidence,
        "confidence_pct": round(record.confidence * 100, 1),
        "confidence_s": f"{record.confidence * 100:.1f}%",
        "confidence_color": CONFIDENCE_COLORS[band],
        "created_at": local.isoformat(),
        "created_at_s": local.strftime("%Y-%m-%d %H:%M:%S"),
        "time_s": local.strftime("%H:%M:%S"),
        "crop_color": crop_color(record.crop_type),
    }


def yield_by_crop_rows(records: Sequence[PredictionRecord]) -> List[Dict]:
    """Bar chart rows: one bar per record, labelled by crop"""
    return [
        {"crop_type": r.crop_type, "yield": round(r.yield_, 2), "index": i}
        for i, r in enumerate(records)
    ]


def distribution_rows(records: Sequence[PredictionRecord]) -> List[Dict]:
    """Pie chart rows with a fill color per slice"""
    return [
        {"name": crop, "value": count, "fill": CHART_PALETTE[i % len(CHART_PALETTE)]}
        for i, (crop, count) in enumerate(crop_distribution(records).items())
    ]


def daily_yield_trend(records: Sequence[PredictionRecord], tz: Optional[tzinfo] = None) -> List[Dict]:
    """Average yield per calendar day, oldest day first"""
    tz = tz or pytz.UTC
    buckets: Dict[str, List[float]] = {}
    for r in records:
        day = r.created_at.astimezone(tz).strftime("%Y-%m-%d")
        buckets.setdefault(day, []).append(r.yield_)
    return [
        {"day": day, "yield": round(sum(values) / len(values), 2)}
        for day, values in sorted(buckets.items())
    ]
