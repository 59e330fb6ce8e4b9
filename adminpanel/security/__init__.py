"""AdminPanel security — abilities, Gate, authentication."""
