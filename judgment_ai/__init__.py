"""Structured extraction for legal judgment documents."""

__version__ = "0.1.0"
