"""Shared domain model, errors, settings and messaging for the order pipeline."""

__version__ = "0.1.0"
