"""Booking availability engine for car rentals and tours."""

__version__ = "1.0.0"
