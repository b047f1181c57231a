"""
Dashboard State - realtime predictions view
- DashboardController (per client) does the fetching, subscription and
  stale-response handling; this state only mirrors its snapshots
- Every snapshot rewrites all derived vars at once from the same records
"""
import reflex as rx
from typing import Dict, List
from reflex.utils import console

from agri_app.controllers import aggregates
from agri_app.controllers.dashboard_controller import DashboardController
from agri_app.errors import AuthError
from agri_app.models.dashboard import DEFAULT_NOTIFICATIONS, DashboardViewState, Tab
from agri_app.states.base import BaseState
from agri_app.states.registry import (
    attach_controller,
    begin_mount,
    detach_controller,
    end_mount,
    get_controller,
    get_prediction_service,
    get_session_store,
    is_current_mount,
)
from agri_app.utils.secure_config import get_settings


class DashboardState(BaseState):
    """Predictions dashboard for one browser tab"""

    # Data (pre-formatted rows)
    predictions: List[Dict] = []
    recent_activity: List[Dict] = []
    yield_rows: List[Dict] = []
    distribution_rows: List[Dict] = []
    trend_rows: List[Dict] = []

    # Aggregates
    total_predictions: int = 0
    average_yield: str = "0"
    most_frequent_crop: str = "N/A"
    latest: Dict = {}
    has_latest: bool = False

    # UI state
    loading: bool = True
    active_tab: str = Tab.OVERVIEW.value
    notifications: int = DEFAULT_NOTIFICATIONS
    profile_open: bool = False
    realtime_connected: bool = False

    # =========================================================================
    # SNAPSHOT -> VARS
    # =========================================================================

    def _apply_view(self, view: DashboardViewState):
        tz = aggregates.display_timezone(get_settings().display_tz)
        records = view.records
        latest = aggregates.latest_record(records)

        self.loading = view.loading
        self.active_tab = view.selected_tab.value
        self.notifications = view.notifications

        self.predictions = [aggregates.record_row(r, tz) for r in records]
        self.recent_activity = [aggregates.record_row(r, tz) for r in aggregates.recent_activity(records)]
        self.yield_rows = aggregates.yield_by_crop_rows(records)
        self.distribution_rows = aggregates.distribution_rows(records)
        self.trend_rows = aggregates.daily_yield_trend(records, tz)

        self.total_predictions = len(records)
        self.average_yield = aggregates.format_average_yield(records)
        self.most_frequent_crop = aggregates.most_frequent_crop(records) or "N/A"
        self.latest = aggregates.record_row(latest, tz) if latest else {}
        self.has_latest = latest is not None
        self.update_last_update()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @rx.event
    def start_realtime(self):
        """on_mount of the protected dashboard body"""
        generation = begin_mount(self.router.session.client_token)
        return DashboardState.run_realtime(generation)

    @rx.event(background=True)
    async def run_realtime(self, generation: int):
        async with self:
            token = self.router.session.client_token
            selected_tab = self.active_tab

        try:
            store = get_session_store(token)
        except AuthError as e:
            console.error(f"Dashboard cannot check the session: {e}")
            return
        if not store.can_render_protected:
            console.warn("Dashboard mounted without a session; not subscribing")
            return

        async def publish(view: DashboardViewState):
            async with self:
                self._apply_view(view)

        controller = DashboardController(
            get_prediction_service(),
            on_update=publish,
            limit=get_settings().prediction_limit,
        )
        controller.select_tab(selected_tab)
        if not await attach_controller(token, controller, generation):
            console.info("Dashboard unmounted before realtime started")
            return

        console.info("Dashboard realtime starting...")
        await controller.on_mount()

        if not is_current_mount(token, generation):
            if get_controller(token) is controller:
                await detach_controller(token)
            return
        async with self:
            self.realtime_connected = controller.subscription is not None

    @rx.event
    async def stop_realtime(self):
        """on_unmount of the dashboard body"""
        await end_mount(self.router.session.client_token)
        self.realtime_connected = False
        console.info("Dashboard realtime stopped")

    @rx.event(background=True)
    async def refresh(self):
        async with self:
            token = self.router.session.client_token
        controller = get_controller(token)
        if controller is None:
            return
        await controller.refresh()

    # =========================================================================
    # UI EVENTS
    # =========================================================================

    @rx.event
    def select_tab(self, tab: str):
        controller = get_controller(self.router.session.client_token)
        try:
            selected = controller.select_tab(tab).selected_tab if controller else Tab(tab)
        except ValueError:
            console.warn(f"Unknown dashboard tab: {tab}")
            return
        self.active_tab = selected.value

    @rx.event
    def clear_notifications(self):
        controller = get_controller(self.router.session.client_token)
        if controller is not None:
            controller.clear_notifications()
        self.notifications = 0

    @rx.event
    def toggle_profile(self):
        self.profile_open = not self.profile_open

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================

    @rx.var
    def page_title(self) -> str:
        try:
            return Tab(self.active_tab).heading
        except ValueError:
            return ""

    @rx.var
    def showing_text(self) -> str:
        total = len(self.predictions)
        if total == 0:
            return "No predictions yet"
        return f"Showing 1 to {total} of {total} results"
