"""Synthetic offer/segment seeding for the location-based notification demo."""

__version__ = "0.1.0"
