"""
AdminPanel — Reflex configuration.

Routes:
  /login      → Sign in
  /dashboard  → Capability-filtered tiles
  /product    → Product table, detail panel, delete confirmation, exports
"""

import reflex as rx

config = rx.Config(
    app_name="adminpanel",
    # Frontend port for dev server
    frontend_port=3000,
    # API / backend port
    backend_port=8000,
    # Telemetry
    telemetry_enabled=False,
    # Disable unused default plugins
    disable_plugins=["reflex.plugins.sitemap.SitemapPlugin"],
)
