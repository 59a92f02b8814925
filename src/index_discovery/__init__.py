"""Composite index discovery for the document-store backend."""

__version__ = "0.1.0"
