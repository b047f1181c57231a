"""Base state for common functionality across all states."""
import reflex as rx
from typing import Optional
from datetime import datetime

from agri_app.controllers.aggregates import display_timezone
from agri_app.utils.secure_config import get_settings


class BaseState(rx.State):
    """Base state with common functionality for all states."""

    error_message: str = ""
    last_update: str = ""

    # Sidebar state - shared across all pages
    sidebar_collapsed: bool = False

    def toggle_sidebar(self):
        """Toggle sidebar collapse state"""
        self.sidebar_collapsed = not self.sidebar_collapsed

    def update_last_update(self, timestamp: Optional[datetime] = None):
        """Stamp the last refresh in the display timezone."""
        tz = display_timezone(get_settings().display_tz)
        moment = timestamp.astimezone(tz) if timestamp else datetime.now(tz)
        self.last_update = moment.strftime("%H:%M:%S")

    def clear_error(self):
        """Clear error message."""
        self.error_message = ""
