"""
Derived dashboard values
average yield, crop distribution, latest record and the chart/table rows
"""
from datetime import datetime, timedelta, timezone

import pytz

from agri_app.controllers.aggregates import (
    average_yield,
    confidence_band,
    crop_distribution,
    daily_yield_trend,
    display_timezone,
    distribution_rows,
    format_average_yield,
    latest_record,
    most_frequent_crop,
    recent_activity,
    record_row,
    yield_by_crop_rows,
)
from agri_app.models.models import PredictionRecord

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_record(id, crop, yld, minutes=0, confidence=0.8):
    return PredictionRecord(
        id=id, crop_type=crop, yield_=yld, confidence=confidence,
        created_at=T0 + timedelta(minutes=minutes),
    )


def test_average_yield_two_decimals():
    records = [make_record(1, "Wheat", 10), make_record(2, "Maize", 20), make_record(3, "Rice", 25)]
    assert average_yield(records) == 18.33
    assert format_average_yield(records) == "18.33"


def test_average_yield_empty_is_zero():
    assert average_yield([]) == 0
    assert format_average_yield([]) == "0"


def test_crop_distribution_first_seen_order():
    records = [
        make_record(1, "Wheat", 10),
        make_record(2, "Maize", 20),
        make_record(3, "Wheat", 12),
        make_record(4, "Rice", 8),
    ]
    dist = crop_distribution(records)
    assert list(dist.items()) == [("Wheat", 2), ("Maize", 1), ("Rice", 1)]


def test_latest_record_is_first():
    records = [make_record(2, "Maize", 20, minutes=5), make_record(1, "Wheat", 10)]
    assert latest_record(records).id == 2
    assert latest_record([]) is None


def test_most_frequent_crop_tie_goes_to_first_seen():
    records = [make_record(1, "Rice", 1), make_record(2, "Wheat", 1), make_record(3, "Wheat", 1), make_record(4, "Rice", 1)]
    assert most_frequent_crop(records) == "Rice"
    assert most_frequent_crop([]) is None


def test_recent_activity_caps_at_five():
    records = [make_record(i, "Wheat", i) for i in range(8)]
    assert [r.id for r in recent_activity(records)] == [0, 1, 2, 3, 4]


def test_confidence_band():
    assert confidence_band(0.71) == "high"
    assert confidence_band(0.7) == "medium"
    assert confidence_band(0.41) == "medium"
    assert confidence_band(0.4) == "low"


def test_record_row_formats_in_display_timezone():
    row = record_row(make_record(7, "Wheat", 31.5, confidence=0.923), pytz.timezone("Africa/Kigali"))
    assert row["id"] == "7"
    assert row["yield_s"] == "31.50 tons/ha"
    assert row["high_yield"] is True
    assert row["confidence_s"] == "92.3%"
    assert row["confidence_color"] == "green"
    # Kigali is UTC+2
    assert row["created_at_s"] == "2024-03-01 14:00:00"
    assert row["time_s"] == "14:00:00"
    assert row["crop_color"] == "#f59e0b"


def test_display_timezone_unknown_falls_back_to_utc():
    assert display_timezone("Not/AZone") is pytz.UTC
    assert display_timezone(None) is pytz.UTC


def test_chart_rows():
    records = [make_record(1, "Wheat", 10.456), make_record(2, "Maize", 20), make_record(3, "Wheat", 5)]

    bars = yield_by_crop_rows(records)
    assert [b["crop_type"] for b in bars] == ["Wheat", "Maize", "Wheat"]
    assert bars[0]["yield"] == 10.46

    slices = distribution_rows(records)
    assert [(s["name"], s["value"]) for s in slices] == [("Wheat", 2), ("Maize", 1)]
    assert slices[0]["fill"] != slices[1]["fill"]


def test_daily_yield_trend_oldest_first():
    records = [
        make_record(1, "Wheat", 30, minutes=60 * 24),
        make_record(2, "Wheat", 10),
        make_record(3, "Maize", 20),
    ]
    assert daily_yield_trend(records) == [
        {"day": "2024-03-01", "yield": 15.0},
        {"day": "2024-03-02", "yield": 30.0},
    ]
