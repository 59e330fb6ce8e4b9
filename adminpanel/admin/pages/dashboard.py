"""
AdminPanel Console — Dashboard Page

Route: /dashboard
"""

import reflex as rx

from adminpanel.admin.components.layout import admin_layout
from adminpanel.admin.state import AdminState


def dashboard_page() -> rx.Component:
    return admin_layout(
        rx.vstack(
            rx.heading("Dashboard", size="6"),
            rx.text("Welcome, ", AdminState.full_name, color="gray"),
            rx.divider(),
            rx.grid(
                rx.foreach(AdminState.tiles, _tile),
                columns="4",
                spacing="4",
                width="100%",
            ),
            spacing="5",
            width="100%",
            padding="6",
        ),
    )


def _tile(tile: dict) -> rx.Component:
    return rx.link(
        rx.card(
            rx.hstack(
                rx.icon("layout-grid", size=20),
                rx.text(tile["label"], weight="bold", size="3"),
                spacing="3",
                align="center",
            ),
            custom_attrs={"data-testid": tile["test_id"]},
            _hover={"background": "var(--gray-3)"},
        ),
        href=tile["href"],
        underline="none",
    )
