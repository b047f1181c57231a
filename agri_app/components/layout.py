import reflex as rx

from ..states.auth_state import AuthState as A
from ..states.base import BaseState as B
from ..states.dashboard_state import DashboardState as D

# Dashboard tabs (sidebar order)
MENU_CONFIG = [
    {"icon": "bar-chart", "name": "Overview", "tab": "overview"},
    {"icon": "thermometer", "name": "Predictions", "tab": "predictions"},
    {"icon": "trending-up", "name": "Analytics", "tab": "analytics"},
    {"icon": "map", "name": "Field Map", "tab": "map"},
    {"icon": "calendar", "name": "Crop Calendar", "tab": "calendar"},
]


def brand() -> rx.Component:
    return rx.vstack(
        rx.hstack(
            rx.icon("award", size=20, color="green"),
            rx.text("AgriVision", class_name="text-xl font-bold text-green-600"),
            align="center",
            spacing="2",
        ),
        rx.text("Smart Agriculture Dashboard", class_name="text-sm text-gray-500"),
        spacing="0",
        class_name="p-4 border-b border-gray-200",
        width="100%",
    )


def profile_panel() -> rx.Component:
    """User chip with the sign-out menu"""
    return rx.box(
        rx.hstack(
            rx.center(rx.icon("user", size=18), class_name="w-10 h-10 rounded-full bg-green-100 text-green-600"),
            rx.vstack(
                rx.text(A.user_email, class_name="font-medium truncate"),
                rx.text("Administrator", class_name="text-xs text-gray-500"),
                spacing="0",
                class_name="flex-1 min-w-0",
            ),
            rx.icon("settings", size=16, color="gray"),
            align="center",
            class_name="p-3 rounded-lg bg-green-50 cursor-pointer hover:bg-green-100",
            on_click=D.toggle_profile,
        ),
        rx.cond(
            D.profile_open,
            rx.vstack(
                rx.link("Profile Settings", href="#", class_name="block px-4 py-2 text-sm text-gray-700"),
                rx.link("Account Security", href="#", class_name="block px-4 py-2 text-sm text-gray-700"),
                rx.button(
                    rx.icon("log-out", size=14),
                    "Sign Out",
                    variant="ghost",
                    color_scheme="red",
                    size="2",
                    on_click=A.sign_out,
                ),
                spacing="1",
                class_name="mt-2 bg-white rounded-md shadow-lg py-1",
            ),
            rx.fragment(),
        ),
        class_name="p-4 border-b border-gray-200",
        width="100%",
    )


def nav_button(menu: dict) -> rx.Component:
    active = D.active_tab == menu["tab"]
    return rx.button(
        rx.icon(menu["icon"], size=18),
        rx.text(menu["name"]),
        rx.spacer(),
        rx.cond(active, rx.box(class_name="w-2 h-2 bg-green-500 rounded-full"), rx.fragment()),
        variant="ghost",
        width="100%",
        justify="start",
        color_scheme=rx.cond(active, "green", "gray"),
        class_name="px-4 py-3",
        on_click=D.select_tab(menu["tab"]),
    )


def collapsed_sidebar() -> rx.Component:
    return rx.box(
        rx.button(
            rx.icon("panel-left-open", size=20),
            variant="ghost",
            size="2",
            on_click=B.toggle_sidebar,
        ),
        rx.vstack(
            *[
                rx.button(
                    rx.icon(menu["icon"], size=18),
                    variant="ghost",
                    size="3",
                    on_click=D.select_tab(menu["tab"]),
                )
                for menu in MENU_CONFIG
            ],
            spacing="2",
            class_name="pt-4",
        ),
        height="100vh",
        width="64px",
        flex_shrink="0",
        class_name="hidden lg:flex flex-col items-center border-r border-gray-200 bg-white shadow-lg sticky top-0",
    )


def sidebar() -> rx.Component:
    return rx.box(
        rx.hstack(
            brand(),
            rx.button(
                rx.icon("panel-left-close", size=18),
                variant="ghost",
                size="1",
                on_click=B.toggle_sidebar,
            ),
            align="center",
            width="100%",
        ),
        profile_panel(),
        rx.vstack(
            *[nav_button(menu) for menu in MENU_CONFIG],
            spacing="1",
            width="100%",
            class_name="flex-1 overflow-y-auto",
        ),
        rx.box(
            rx.button(
                rx.icon("info", size=16),
                "Help & Support",
                variant="ghost",
                color_scheme="gray",
                width="100%",
                justify="start",
            ),
            class_name="p-4 border-t border-gray-200",
            width="100%",
        ),
        height="100vh",
        width="256px",
        flex_shrink="0",
        class_name="hidden lg:flex flex-col border-r border-gray-200 bg-white shadow-lg sticky top-0",
    )


def header() -> rx.Component:
    return rx.el.header(
        rx.hstack(
            rx.heading(D.page_title, size="5"),
            rx.spacer(),
            rx.cond(
                D.realtime_connected,
                rx.badge("LIVE", color_scheme="green", variant="soft", radius="full"),
                rx.badge("OFFLINE", color_scheme="gray", variant="soft", radius="full"),
            ),
            rx.text(f"Updated {D.last_update}", size="1", color="gray"),
            rx.button(
                rx.icon("refresh-cw", size=16),
                variant="ghost",
                loading=D.loading,
                on_click=D.refresh,
            ),
            rx.box(
                rx.button(
                    rx.icon("bell", size=18),
                    variant="ghost",
                    color_scheme="gray",
                    on_click=D.clear_notifications,
                ),
                rx.cond(
                    D.notifications > 0,
                    rx.badge(D.notifications, color_scheme="red", variant="solid", radius="full",
                             class_name="absolute -top-1 -right-1"),
                    rx.fragment(),
                ),
                class_name="relative",
            ),
            rx.hstack(
                rx.center(rx.icon("user", size=16), class_name="w-8 h-8 rounded-full bg-green-100 text-green-600"),
                rx.text(A.display_name, size="2", weight="medium"),
                align="center",
                spacing="2",
            ),
            align="center",
            spacing="4",
            width="100%",
        ),
        class_name="w-full border-b border-gray-200 bg-white px-6 py-4 sticky top-0 z-10 shadow-sm",
    )


def shell(*children: rx.Component, on_mount=None, on_unmount=None) -> rx.Component:
    triggers = {}
    if on_mount is not None:
        triggers["on_mount"] = on_mount
    if on_unmount is not None:
        triggers["on_unmount"] = on_unmount

    return rx.el.div(
        rx.cond(
            B.sidebar_collapsed,
            collapsed_sidebar(),
            sidebar(),
        ),
        rx.el.div(
            header(),
            rx.el.div(
                *children,
                class_name="w-full p-6",
            ),
            class_name="flex-1 min-h-screen bg-gray-50",
        ),
        class_name="w-full min-h-screen flex",
        **triggers,
    )
