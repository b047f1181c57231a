import reflex as rx
import reflex_chakra as rc

from ..states.dashboard_state import DashboardState as D


def stat_card(icon: str, title: str, value: rx.Var | str | int, trend: rx.Var | str = "", color: str = "blue") -> rx.Component:
    return rx.el.div(
        rx.hstack(
            rx.center(
                rx.icon(icon, size=20),
                class_name="w-10 h-10 rounded-lg",
                bg=rx.color(color, 3),
                color=rx.color(color, 11),
            ),
            rx.el.span(title, class_name="text-sm font-medium text-gray-500"),
            align="center",
            spacing="3",
        ),
        rx.el.div(
            rx.el.span(value, class_name="text-2xl font-semibold text-gray-900"),
            class_name="mt-3",
        ),
        rx.el.span(trend, class_name="text-xs text-gray-500 mt-1"),
        class_name="bg-white border border-gray-200 rounded-xl shadow-sm p-5"
    )


def confidence_gauge() -> rx.Component:
    """Latest prediction confidence as a circular gauge"""
    return rc.circular_progress(
        rc.circular_progress_label(
            D.latest["confidence_s"],
            font_size="sm",
            font_weight="bold",
        ),
        value=D.latest["confidence_pct"],
        color=rx.match(
            D.latest["confidence_color"],
            ("green", "green.400"),
            ("yellow", "yellow.400"),
            "red.400",
        ),
        size="64px",
        thickness="8px",
        track_color="gray.200",
    )


def overview_cards() -> rx.Component:
    return rx.grid(
        stat_card(
            "bar-chart",
            "Total Predictions",
            D.total_predictions,
            "Most recent 50 records",
            "blue",
        ),
        rx.el.div(
            rx.hstack(
                stat_card(
                    "droplet",
                    "Latest Yield",
                    rx.cond(D.has_latest, D.latest["yield_s"], "N/A"),
                    rx.cond(D.has_latest, f"{D.latest['confidence_s']} confidence", ""),
                    "green",
                ),
                rx.cond(D.has_latest, confidence_gauge(), rx.fragment()),
                align="center",
                justify="between",
            ),
        ),
        stat_card(
            "sun",
            "Latest Crop",
            rx.cond(D.has_latest, D.latest["crop_type"], "N/A"),
            f"Most frequent: {D.most_frequent_crop}",
            "yellow",
        ),
        stat_card(
            "trending-up",
            "Average Yield",
            f"{D.average_yield} tons/ha",
            "Across the loaded predictions",
            "purple",
        ),
        columns=rx.breakpoints(initial="1", md="4"),
        spacing="5",
        width="100%",
    )
