"""Structured logging that writes one JSON object per line."""

__version__ = "0.1.0"