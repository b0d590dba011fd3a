"""Aura phone verification and code delivery backend."""

__version__ = "1.0.0"
