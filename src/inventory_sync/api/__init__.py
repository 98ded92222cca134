"""HTTP API for the inventory dashboard."""
