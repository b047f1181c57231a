"""Protected dashboard page - realtime predictions"""
import reflex as rx

from ..components.charts import analytics_tab, overview_charts
from ..components.field_views import crop_calendar_tab, field_map_tab
from ..components.layout import shell
from ..components.predictions_table import predictions_table, recent_activity
from ..components.stat_cards import overview_cards
from ..states.auth_state import AuthState
from ..states.dashboard_state import DashboardState as D


def loading_spinner() -> rx.Component:
    return rx.center(rx.spinner(size="3"), height="16rem", width="100%")


def overview_tab() -> rx.Component:
    return rx.vstack(
        overview_cards(),
        overview_charts(),
        recent_activity(),
        spacing="6",
        width="100%",
    )


def tab_content() -> rx.Component:
    return rx.el.div(
        rx.match(
            D.active_tab,
            ("predictions", predictions_table()),
            ("analytics", analytics_tab()),
            ("map", field_map_tab()),
            ("calendar", crop_calendar_tab()),
            overview_tab(),
        ),
        class_name="bg-white rounded-xl shadow-sm p-6",
    )


def dashboard_body() -> rx.Component:
    """Mounted only for an authenticated session"""
    return shell(
        rx.cond(
            D.loading & (D.total_predictions == 0),
            loading_spinner(),
            tab_content(),
        ),
        on_mount=D.start_realtime,
        on_unmount=D.stop_realtime,
    )


def dashboard_page() -> rx.Component:
    return rx.cond(
        AuthState.is_authenticated,
        dashboard_body(),
        loading_spinner(),
    )
