"""Concrete adapters for the interfaces in ``allknower.interfaces``."""
