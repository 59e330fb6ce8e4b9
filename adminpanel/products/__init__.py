"""Product screens: listing table, detail panel, delete confirmation."""
