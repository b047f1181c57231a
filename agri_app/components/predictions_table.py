import reflex as rx
from typing import Dict

from ..states.dashboard_state import DashboardState as D


def crop_dot(color: rx.Var | str) -> rx.Component:
    return rx.box(class_name="w-3 h-3 rounded-full", bg=color)


def prediction_row(p: Dict) -> rx.Component:
    return rx.table.row(
        rx.table.cell(
            rx.hstack(crop_dot(p["crop_color"]), rx.text(p["crop_type"], weight="medium"), align="center"),
        ),
        rx.table.cell(
            rx.hstack(
                rx.icon("trending-up", size=14, color=rx.cond(p["high_yield"], "green", "orange")),
                rx.text(p["yield_s"]),
                align="center",
            ),
        ),
        rx.table.cell(
            rx.hstack(
                rx.progress(value=p["confidence_pct"], color_scheme=p["confidence_color"], width="120px"),
                rx.text(p["confidence_s"], size="2"),
                align="center",
            ),
        ),
        rx.table.cell(rx.text(p["created_at_s"], size="2", color="gray")),
    )


def predictions_table() -> rx.Component:
    return rx.vstack(
        rx.hstack(
            rx.heading("Recent Predictions", size="4"),
            rx.spacer(),
            rx.text(D.showing_text, size="2", color="gray"),
            width="100%",
            align="center",
        ),
        rx.table.root(
            rx.table.header(
                rx.table.row(
                    rx.table.column_header_cell("Crop"),
                    rx.table.column_header_cell("Yield"),
                    rx.table.column_header_cell("Confidence"),
                    rx.table.column_header_cell("Date"),
                ),
            ),
            rx.table.body(
                rx.foreach(D.predictions, prediction_row),
            ),
            variant="surface",
            width="100%",
        ),
        spacing="4",
        width="100%",
    )


def activity_item(p: Dict) -> rx.Component:
    return rx.hstack(
        rx.center(rx.icon("thermometer", size=16, color="green"), class_name="bg-green-100 p-2 rounded-full"),
        rx.vstack(
            rx.hstack(
                rx.text(f"{p['crop_type']} prediction recorded", weight="medium"),
                rx.spacer(),
                rx.text(p["time_s"], size="1", color="gray"),
                width="100%",
            ),
            rx.text(f"Yield: {p['yield_s']} • Confidence: {p['confidence_s']}", size="2", color="gray"),
            spacing="1",
            width="100%",
        ),
        align="start",
        width="100%",
        class_name="pb-4 border-b border-gray-100",
    )


def recent_activity() -> rx.Component:
    return rx.el.div(
        rx.hstack(rx.icon("calendar", size=16), rx.text("Recent Activity", weight="medium"), align="center"),
        rx.cond(
            D.recent_activity.length() > 0,
            rx.vstack(rx.foreach(D.recent_activity, activity_item), spacing="4", class_name="mt-4"),
            rx.text("No predictions yet", size="2", color="gray", class_name="mt-4"),
        ),
        class_name="bg-white p-6 rounded-lg border border-gray-200",
    )
