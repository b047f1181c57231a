"""Field map and crop calendar tabs (fixed data)"""
import reflex as rx

from ..models.dashboard import CALENDAR_EVENTS, FIELD_LOCATIONS, calendar_months, crop_color, map_embed_url


def field_card(field) -> rx.Component:
    return rx.el.div(
        rx.hstack(
            rx.box(class_name="w-3 h-3 rounded-full", bg=crop_color(field.crop)),
            rx.text(field.name, weight="medium"),
            align="center",
        ),
        rx.vstack(
            rx.text(f"Crop: {field.crop}", size="2", color="gray"),
            rx.text(f"Area: {field.area}", size="2", color="gray"),
            rx.text(f"Coordinates: {field.coordinates_text}", size="2", color="gray"),
            spacing="0",
            class_name="mt-2",
        ),
        class_name="border rounded-lg p-4 hover:shadow-md",
    )


def field_map_tab() -> rx.Component:
    return rx.vstack(
        rx.heading("Field Locations", size="4"),
        rx.el.iframe(
            src=map_embed_url(FIELD_LOCATIONS),
            width="100%",
            height="384px",
            class_name="rounded-lg border border-gray-200",
        ),
        rx.link(
            "Open larger map",
            href=f"https://www.openstreetmap.org/#map=13/{FIELD_LOCATIONS[0].lat}/{FIELD_LOCATIONS[0].lng}",
            is_external=True,
            size="2",
        ),
        rx.grid(
            *[field_card(f) for f in FIELD_LOCATIONS],
            columns=rx.breakpoints(initial="1", md="3"),
            spacing="4",
            width="100%",
        ),
        spacing="4",
        width="100%",
    )


def calendar_event_item(event: dict) -> rx.Component:
    return rx.el.div(
        rx.hstack(
            rx.text(event["title"], weight="medium"),
            rx.spacer(),
            rx.text(event["span"], size="2", color="gray"),
            width="100%",
        ),
        rx.text(event["field"], size="2", color="gray"),
        class_name="border-l-4 pl-3 py-1",
        style={"border_left_color": event["color"]},
    )


def crop_calendar_tab() -> rx.Component:
    months = calendar_months(CALENDAR_EVENTS)
    return rx.vstack(
        rx.heading("Crop Management Calendar", size="4"),
        *[
            rx.vstack(
                rx.text(month["month"], weight="bold", class_name="text-gray-700"),
                *[calendar_event_item(e) for e in month["events"]],
                spacing="3",
                width="100%",
                class_name="bg-white p-4 rounded-lg border border-gray-200",
            )
            for month in months
        ],
        rx.heading("Upcoming Activities", size="3"),
        rx.vstack(
            *[calendar_event_item(e) for month in months for e in month["events"]][:3],
            spacing="3",
            width="100%",
        ),
        spacing="4",
        width="100%",
    )
