"""Inventory sync engine for the small-business operations dashboard."""

__version__ = "0.1.0"
