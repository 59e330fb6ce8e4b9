"""Console pages, one module per route."""
