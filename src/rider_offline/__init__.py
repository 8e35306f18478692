"""Offline resilience engine for the rider field client."""

__version__ = "0.1.0"
