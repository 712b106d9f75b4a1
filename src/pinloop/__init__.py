"""Realtime messaging and notification core for the pinloop pin-sharing app."""

__version__ = "0.1.0"
