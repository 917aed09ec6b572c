"""Dealers Plus: dealer directory with fuzzy search and reviews."""

__version__ = "0.1.0"
