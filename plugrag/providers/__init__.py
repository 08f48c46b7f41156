"""Concrete implementations of the interfaces in :mod:`plugrag.interfaces`."""
