"""Concrete adapters for the interfaces in :mod:`total_recall.interfaces`."""
