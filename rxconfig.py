"""Reflex configuration file for the AgriVision dashboard"""

import reflex as rx
import os

config = rx.Config(
    app_name="agri_app",

    frontend_port=int(os.getenv("FRONTEND_PORT", "3000")),
    backend_port=int(os.getenv("BACKEND_PORT", "8000")),
    api_url=os.getenv("API_URL", "http://localhost:8000"),
    backend_host="0.0.0.0",

    env=rx.Env.DEV if os.getenv("ENVIRONMENT", "development") == "development" else rx.Env.PROD,

    telemetry_enabled=False,
)
