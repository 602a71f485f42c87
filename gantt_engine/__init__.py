"""Gantt timeline layout and interaction engine."""

__version__ = "0.1.0"
