"""Admin HTTP API."""
