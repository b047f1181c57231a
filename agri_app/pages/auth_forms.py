"""Sign-in and registration pages"""
import reflex as rx

from ..states.auth_state import AuthState


def _feedback() -> rx.Component:
    return rx.fragment(
        rx.cond(
            AuthState.error_message != "",
            rx.callout(AuthState.error_message, icon="triangle-alert", color_scheme="red", width="100%"),
            rx.fragment(),
        ),
        rx.cond(
            AuthState.info_message != "",
            rx.callout(AuthState.info_message, icon="info", color_scheme="green", width="100%"),
            rx.fragment(),
        ),
    )


def _card(title: str, subtitle: str, form: rx.Component, footer: rx.Component) -> rx.Component:
    return rx.center(
        rx.card(
            rx.vstack(
                rx.hstack(
                    rx.icon("award", size=24, color="green"),
                    rx.heading("AgriVision", size="6", color_scheme="green"),
                    align="center",
                ),
                rx.heading(title, size="5"),
                rx.text(subtitle, size="2", color="gray"),
                _feedback(),
                form,
                footer,
                spacing="4",
                width="100%",
            ),
            size="4",
            width="100%",
            max_width="28rem",
        ),
        min_height="100vh",
        class_name="bg-gradient-to-br from-green-50 to-blue-50 p-4",
    )


def _field(label: str, name: str, type_: str, placeholder: str) -> rx.Component:
    return rx.vstack(
        rx.text(label, size="2", weight="medium"),
        rx.input(name=name, type=type_, placeholder=placeholder, required=True, width="100%"),
        spacing="1",
        width="100%",
    )


def login_page() -> rx.Component:
    form = rx.form(
        rx.vstack(
            _field("Email", "email", "email", "you@farm.com"),
            _field("Password", "password", "password", "••••••••"),
            rx.button("Sign In", type="submit", loading=AuthState.submitting, width="100%", color_scheme="green"),
            spacing="3",
            width="100%",
        ),
        on_submit=AuthState.sign_in,
        reset_on_submit=False,
        width="100%",
    )
    footer = rx.text(
        "Don't have an account? ",
        rx.link("Create one", href="/register"),
        size="2",
    )
    return _card("Sign in", "Welcome back to your farm dashboard", form, footer)


def register_page() -> rx.Component:
    form = rx.form(
        rx.vstack(
            _field("Email", "email", "email", "you@farm.com"),
            _field("Password", "password", "password", "At least 6 characters"),
            _field("Confirm password", "confirm_password", "password", "Repeat password"),
            rx.button("Create Account", type="submit", loading=AuthState.submitting, width="100%", color_scheme="green"),
            spacing="3",
            width="100%",
        ),
        on_submit=AuthState.sign_up,
        reset_on_submit=False,
        width="100%",
    )
    footer = rx.text(
        "Already registered? ",
        rx.link("Sign in", href="/login"),
        size="2",
    )
    return _card("Create an account", "Start tracking crop yield predictions", form, footer)
