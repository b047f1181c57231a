import reflex as rx


def not_found_page() -> rx.Component:
    return rx.center(
        rx.vstack(
            rx.text("404", class_name="text-9xl font-bold text-red-500"),
            rx.heading("Page Not Found", size="6"),
            rx.text("The page you're looking for doesn't exist or has been moved.", color="gray", max_width="28rem"),
            rx.link(
                rx.button(rx.icon("arrow-left", size=16), "Return to Dashboard", color_scheme="red"),
                href="/",
            ),
            align="center",
            spacing="4",
        ),
        min_height="100vh",
        class_name="bg-gradient-to-br from-red-50 to-orange-50 p-4",
    )
