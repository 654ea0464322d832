"""Bracket referee: single elimination tournaments between HTTP player services."""

__version__ = "0.1.0"
