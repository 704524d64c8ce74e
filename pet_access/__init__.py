"""Delegated pet access: grant lifecycle and authorization core."""

__version__ = "0.1.0"
