"""AdminPanel message catalogs."""
