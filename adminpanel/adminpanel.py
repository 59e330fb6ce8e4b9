"""
AdminPanel — Main Reflex application entry point.

Boot sequence:
    1. _init_panel()  — config, runtime.startup() (DB, logging, cache, auth, Celery)
    2. Create rx.App() and register the console routes
"""

import logging

import reflex as rx

from adminpanel.admin.pages.dashboard import dashboard_page
from adminpanel.admin.pages.login import login_page
from adminpanel.admin.pages.products import ProductPageState, product_page
from adminpanel.admin.state import AdminState

logger = logging.getLogger("adminpanel.startup")

# Guard: only initialize once, even if the module is re-imported
_panel_initialized = False


def _init_panel() -> None:
    """Load adminpanel.yaml and start the PanelRuntime."""
    global _panel_initialized
    if _panel_initialized:
        return
    _panel_initialized = True

    try:
        from adminpanel.admin.state import set_runtime
        from adminpanel.engine.config import load_panel_config
        from adminpanel.engine.runtime import init_runtime

        runtime = init_runtime(load_panel_config())
        runtime.startup()
        set_runtime(runtime)

        logger.info("AdminPanel runtime initialized successfully")

    except Exception as e:
        logger.error(f"Failed to initialize panel runtime: {e}", exc_info=True)


_init_panel()

app = rx.App()

app.add_page(login_page, route="/login", title="AdminPanel — Login")
app.add_page(
    dashboard_page,
    route="/dashboard",
    title="AdminPanel — Dashboard",
    on_load=AdminState.load_dashboard,
)
app.add_page(
    product_page,
    route="/product",
    title="AdminPanel — Products",
    on_load=ProductPageState.on_load,
)

# Redirect / → /dashboard
app.add_page(lambda: rx.fragment(), route="/", on_load=rx.redirect("/dashboard"))
