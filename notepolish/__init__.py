"""Formalize and translate inspection notes, then merge approved results."""

__version__ = "0.1.0"
