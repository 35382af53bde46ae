"""Concrete package-manager backends."""
