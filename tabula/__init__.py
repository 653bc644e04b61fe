"""Tabula -- tabular data widget core for dashboard hosts."""

__version__ = "0.1.0"
