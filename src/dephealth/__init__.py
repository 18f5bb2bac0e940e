"""Dependency health scoring and risk assessment."""

__version__ = "0.1.0"
