"""Fermentation dashboard service for Tilt hydrometers."""
