"""Gambler's-ruin simulation and risk statistics."""

__version__ = "0.3.0"
