"""Inventory snapshot synchronization and alerting."""
