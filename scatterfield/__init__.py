"""Procedural terrain and scenario token layouts for tabletop wargames."""

__version__ = "0.1.0"
