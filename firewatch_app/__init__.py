"""Wildfire proximity and severity service."""

__version__ = "0.1.0"
