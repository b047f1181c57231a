"""
AgriVision - crop yield prediction dashboard

Pages:
- /login, /register: identity service forms
- /: protected realtime dashboard (overview, predictions, analytics, map, calendar)
"""

import contextlib
import reflex as rx
from reflex.constants import Page404
from reflex.utils import console

from . import db
from .pages.auth_forms import login_page, register_page
from .pages.dashboard import dashboard_page
from .pages.not_found import not_found_page
from .states import registry
from .states.auth_state import AuthState
from .utils.logger import LogOperation, get_logger
from .utils.secure_config import get_settings

logger = get_logger(__name__)


@contextlib.asynccontextmanager
async def backend_lifespan():
    """Validate settings and probe the backend; release clients on shutdown"""
    settings = get_settings()
    console.log(f"🚀 AgriVision starting...\n{settings.get_status_report()}")

    validation = settings.validate()
    if not all(validation.values()):
        missing = ", ".join(k for k, ok in validation.items() if not ok)
        console.error(f"❌ Backend settings incomplete: {missing}")
    else:
        with LogOperation("backend connection probe", logger):
            reachable = await registry.get_prediction_service().test_connection()
        if reachable:
            console.log("✅ predictions table reachable")
        else:
            console.warn("⚠️ predictions table not reachable; dashboard will show stale data")

    try:
        yield
    finally:
        await registry.shutdown()
        await db.close_pool()
        console.log("🛑 AgriVision stopped")


app = rx.App(
    theme=rx.theme(
        appearance="light",
        has_background=True,
        radius="medium",
        accent_color="green",
    ),
)
app.register_lifespan_task(backend_lifespan)

app.add_page(
    dashboard_page,
    route="/",
    title="Dashboard - AgriVision",
    on_load=AuthState.restore,
)

app.add_page(
    login_page,
    route="/login",
    title="Sign in - AgriVision",
    on_load=AuthState.redirect_if_signed_in,
)

app.add_page(
    register_page,
    route="/register",
    title="Register - AgriVision",
    on_load=AuthState.redirect_if_signed_in,
)

app.add_page(
    not_found_page,
    route=Page404.SLUG,
    title="Not Found - AgriVision",
)
