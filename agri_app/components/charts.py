"""Chart cards for the overview and analytics tabs"""
import reflex as rx
from typing import Any, Dict, List

from ..models.dashboard import CHART_PALETTE, CROP_HEALTH, RESOURCE_ALLOCATION, SOIL_CONDITIONS, WEATHER_FORECAST
from ..states.dashboard_state import DashboardState as D


def chart_card(title: str, description: str, *children: rx.Component) -> rx.Component:
    return rx.el.div(
        rx.el.h3(title, class_name="font-medium text-gray-900"),
        rx.el.p(description, class_name="text-sm text-gray-500 mb-4"),
        rx.box(*children, height="300px", width="100%"),
        class_name="bg-white p-6 rounded-lg border border-gray-200",
    )


def yield_bar_chart() -> rx.Component:
    """One bar per loaded prediction, labelled by crop"""
    return rx.recharts.bar_chart(
        rx.recharts.cartesian_grid(stroke_dasharray="3 3", vertical=False),
        rx.recharts.bar(
            data_key="yield",
            name="Yield (tons/ha)",
            fill="rgba(75, 192, 192, 0.6)",
            stroke="rgba(75, 192, 192, 1)",
            is_animation_active=False,
        ),
        rx.recharts.x_axis(data_key="crop_type"),
        rx.recharts.y_axis(
            label={"value": "Tons per hectare", "angle": -90, "position": "insideLeft"},
        ),
        rx.recharts.graphing_tooltip(),
        data=D.yield_rows,
        width="100%",
        height=300,
    )


def distribution_pie(data: rx.Var | List[Dict[str, Any]]) -> rx.Component:
    """Pie of {name, value, fill} rows"""
    return rx.recharts.pie_chart(
        rx.recharts.pie(
            data=data,
            data_key="value",
            name_key="name",
            outer_radius="80%",
            label=True,
            is_animation_active=False,
        ),
        rx.recharts.legend(layout="vertical", align="right", vertical_align="middle"),
        rx.recharts.graphing_tooltip(),
        width="100%",
        height=300,
    )


def yield_trend_chart() -> rx.Component:
    """Average yield per day over the loaded window"""
    return rx.recharts.bar_chart(
        rx.recharts.cartesian_grid(stroke_dasharray="3 3", vertical=False),
        rx.recharts.bar(
            data_key="yield",
            name="Yield (tons/ha)",
            fill="rgba(54, 162, 235, 0.6)",
            is_animation_active=False,
        ),
        rx.recharts.x_axis(data_key="day"),
        rx.recharts.y_axis(),
        rx.recharts.graphing_tooltip(),
        data=D.trend_rows,
        width="100%",
        height=300,
    )


def _with_palette(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{**row, "fill": CHART_PALETTE[i % len(CHART_PALETTE)]} for i, row in enumerate(rows)]


def soil_conditions() -> rx.Component:
    return rx.vstack(
        *[
            rx.vstack(
                rx.text(item["name"], class_name="text-sm font-medium text-gray-500"),
                rx.hstack(
                    rx.progress(value=item["percent"], color_scheme=item["color"], width="100%"),
                    rx.text(item["label"], size="2", white_space="nowrap"),
                    align="center",
                    width="100%",
                ),
                spacing="1",
                width="100%",
            )
            for item in SOIL_CONDITIONS
        ],
        spacing="4",
        width="100%",
    )


def weather_forecast() -> rx.Component:
    return rx.vstack(
        *[
            rx.hstack(
                rx.text(day["day"], size="2"),
                rx.spacer(),
                rx.text(day["temp"], size="2"),
                rx.icon("sun", size=14, color="orange"),
                rx.text(day["rain"], size="2", color="gray"),
                align="center",
                width="100%",
            )
            for day in WEATHER_FORECAST
        ],
        spacing="3",
        width="100%",
    )


def overview_charts() -> rx.Component:
    return rx.grid(
        chart_card(
            "Yield by Crop Type",
            "Comparison of yield predictions across different crops",
            yield_bar_chart(),
        ),
        chart_card(
            "Crop Distribution",
            "Frequency of predicted crop types",
            distribution_pie(D.distribution_rows),
        ),
        columns=rx.breakpoints(initial="1", lg="2"),
        spacing="5",
        width="100%",
    )


def analytics_tab() -> rx.Component:
    return rx.vstack(
        rx.grid(
            chart_card("Yield Trend", "Average predicted yield per day", yield_trend_chart()),
            chart_card(
                "Crop Health Indicators",
                "Key metrics for crop health assessment",
                distribution_pie(_with_palette(CROP_HEALTH)),
            ),
            columns=rx.breakpoints(initial="1", lg="2"),
            spacing="5",
            width="100%",
        ),
        rx.grid(
            chart_card("Soil Conditions", "Current soil metrics across fields", soil_conditions()),
            chart_card("Weather Forecast", "7-day weather prediction", weather_forecast()),
            chart_card(
                "Resource Allocation",
                "Current resource distribution",
                distribution_pie(_with_palette(RESOURCE_ALLOCATION)),
            ),
            columns=rx.breakpoints(initial="1", lg="3"),
            spacing="5",
            width="100%",
        ),
        spacing="5",
        width="100%",
    )
