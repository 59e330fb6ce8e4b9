"""AdminPanel console — Reflex state, layout and pages."""
