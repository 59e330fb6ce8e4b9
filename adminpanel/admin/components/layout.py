"""
AdminPanel Console — Layout component (sidebar + header + flash area).
"""

import reflex as rx

from adminpanel.admin.state import AdminState
from adminpanel.engine.i18n import trans


def admin_layout(content: rx.Component) -> rx.Component:
    """Wrap content in the console layout with sidebar, header and flash messages."""
    return rx.hstack(
        _sidebar(),
        rx.box(
            _header(),
            rx.divider(),
            _flash_area(),
            content,
            flex="1",
            overflow_y="auto",
            height="100vh",
        ),
        spacing="0",
        width="100%",
        height="100vh",
        on_mount=AdminState.check_auth,
    )


def _sidebar() -> rx.Component:
    return rx.box(
        rx.vstack(
            rx.heading("AdminPanel", size="4", padding="4"),
            rx.divider(),
            _nav_item(trans("side_menu.dashboard"), "/dashboard", "layout-dashboard"),
            rx.foreach(AdminState.tiles, lambda tile: _nav_item(tile["label"], tile["href"], "chevron-right")),
            spacing="1",
            padding="3",
            width="100%",
        ),
        width="220px",
        min_width="220px",
        height="100vh",
        border_right="1px solid var(--gray-5)",
        background="var(--gray-2)",
    )


def _nav_item(label, href, icon: str) -> rx.Component:
    return rx.link(
        rx.hstack(
            rx.icon(icon, size=16),
            rx.text(label, size="2"),
            spacing="2",
            padding_x="3",
            padding_y="2",
            border_radius="6px",
            width="100%",
            _hover={"background": "var(--gray-4)"},
        ),
        href=href,
        width="100%",
        underline="none",
    )


def _header() -> rx.Component:
    return rx.hstack(
        rx.spacer(),
        rx.text(AdminState.full_name, size="2", color="gray"),
        rx.button(
            "Logout",
            size="1",
            variant="ghost",
            on_click=AdminState.logout,
        ),
        padding="3",
        width="100%",
        align="center",
    )


def _flash_area() -> rx.Component:
    return rx.vstack(
        rx.foreach(
            AdminState.flash_messages,
            lambda message, index: rx.callout(
                rx.hstack(
                    rx.text(message["message"], size="2"),
                    rx.spacer(),
                    rx.icon("x", size=14, cursor="pointer", on_click=AdminState.dismiss_flash(index)),
                    width="100%",
                ),
                color_scheme=rx.match(message["type"], ("success", "green"), ("error", "red"), "blue"),
                size="1",
                width="100%",
            ),
        ),
        spacing="2",
        padding_x="6",
        padding_top="3",
        width="100%",
    )
