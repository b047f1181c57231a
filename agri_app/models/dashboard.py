"""Dashboard view model and fixed field/calendar data"""
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import List, Tuple

from .models import PredictionRecord


class Tab(str, Enum):
    OVERVIEW = "overview"
    PREDICTIONS = "predictions"
    ANALYTICS = "analytics"
    MAP = "map"
    CALENDAR = "calendar"

    @property
    def heading(self) -> str:
        return TAB_TITLES[self]


TAB_TITLES = {
    Tab.OVERVIEW: "Dashboard Overview",
    Tab.PREDICTIONS: "Crop Predictions",
    Tab.ANALYTICS: "Analytics",
    Tab.MAP: "Field Map",
    Tab.CALENDAR: "Crop Calendar",
}

DEFAULT_NOTIFICATIONS = 3


@dataclass
class DashboardViewState:
    """Per-page dashboard state, mutated only by DashboardController"""
    records: Tuple[PredictionRecord, ...] = ()
    loading: bool = False
    selected_tab: Tab = Tab.OVERVIEW
    notifications: int = DEFAULT_NOTIFICATIONS

    def snapshot(self) -> "DashboardViewState":
        return replace(self)


@dataclass(frozen=True)
class FieldLocation:
    id: int
    name: str
    lat: float
    lng: float
    crop: str
    area: str

    @property
    def coordinates_text(self) -> str:
        return f"{self.lat:.4f}, {self.lng:.4f}"


@dataclass(frozen=True)
class CalendarEvent:
    id: int
    title: str
    start: date
    end: date
    crop: str
    field: str

    @property
    def start_label(self) -> str:
        return f"{self.start:%b} {self.start.day}"

    @property
    def is_multi_day(self) -> bool:
        return self.end > self.start


MAP_CENTER = (-1.939, 30.044)
MAP_ZOOM = 13

FIELD_LOCATIONS: List[FieldLocation] = [
    FieldLocation(1, "North Field", -1.939826, 30.044542, "Wheat", "2.5 ha"),
    FieldLocation(2, "South Field", -1.936, 30.06, "Maize", "3.2 ha"),
    FieldLocation(3, "East Field", -1.95, 30.05, "Rice", "1.8 ha"),
]

CALENDAR_EVENTS: List[CalendarEvent] = [
    CalendarEvent(1, "Plant Wheat - North Field", date(2023, 10, 15), date(2023, 10, 15), "Wheat", "North Field"),
    CalendarEvent(2, "Fertilize Maize", date(2023, 10, 20), date(2023, 10, 20), "Maize", "South Field"),
    CalendarEvent(3, "Harvest Rice", date(2023, 11, 5), date(2023, 11, 7), "Rice", "East Field"),
]

# Static analytics panels (no backing table)
CROP_HEALTH = [
    {"name": "Soil Moisture", "value": 85},
    {"name": "Nutrients", "value": 78},
    {"name": "Pest Control", "value": 92},
    {"name": "Growth Rate", "value": 81},
]

RESOURCE_ALLOCATION = [
    {"name": "Water", "value": 35},
    {"name": "Fertilizer", "value": 25},
    {"name": "Labor", "value": 20},
    {"name": "Equipment", "value": 20},
]

SOIL_CONDITIONS = [
    {"name": "pH Level", "percent": 70, "label": "6.8 (Optimal)", "color": "green"},
    {"name": "Nitrogen", "percent": 45, "label": "45 ppm (Low)", "color": "yellow"},
    {"name": "Moisture", "percent": 82, "label": "82% (Good)", "color": "blue"},
]

WEATHER_FORECAST = [
    {"day": f"Day {d}", "temp": "24°C", "rain": "10% rain"} for d in range(1, 8)
]

CROP_COLORS = {
    "Wheat": "#f59e0b",
    "Maize": "#10b981",
    "Rice": "#3b82f6",
}
DEFAULT_CROP_COLOR = "#8b5cf6"

# Pie slice palette
CHART_PALETTE = ["#4bc0c0", "#36a2eb", "#ffce56", "#9966ff", "#ff9f40", "#ff6384"]


def crop_color(crop_type: str) -> str:
    return CROP_COLORS.get(crop_type, DEFAULT_CROP_COLOR)


def field_bounds(fields: List[FieldLocation], padding: float = 0.01) -> Tuple[float, float, float, float]:
    """(min_lng, min_lat, max_lng, max_lat) around all fields"""
    if not fields:
        lat, lng = MAP_CENTER
        return (lng - padding, lat - padding, lng + padding, lat + padding)
    lats = [f.lat for f in fields]
    lngs = [f.lng for f in fields]
    return (min(lngs) - padding, min(lats) - padding, max(lngs) + padding, max(lats) + padding)


def map_embed_url(fields: List[FieldLocation], marker: FieldLocation = None) -> str:
    """OpenStreetMap embed URL framing every field, marking one of them"""
    bbox = ",".join(f"{v:.6f}" for v in field_bounds(fields))
    url = f"https://www.openstreetmap.org/export/embed.html?bbox={bbox}&layer=mapnik"
    marker = marker or (fields[0] if fields else None)
    if marker is not None:
        url += f"&marker={marker.lat:.6f},{marker.lng:.6f}"
    return url


def calendar_months(events: List[CalendarEvent]) -> List[dict]:
    """Events grouped by the month they start in, chronological"""
    months: dict = {}
    for event in sorted(events, key=lambda e: (e.start, e.id)):
        key = f"{event.start:%B %Y}"
        months.setdefault(key, []).append({
            "id": event.id,
            "title": event.title,
            "field": event.field,
            "crop": event.crop,
            "start": event.start_label,
            "span": f"{event.start_label} - {event.end:%b} {event.end.day}" if event.is_multi_day else event.start_label,
            "color": crop_color(event.crop),
        })
    return [{"month": month, "events": items} for month, items in months.items()]
