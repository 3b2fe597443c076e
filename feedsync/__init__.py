"""Catalog feed to relational database synchronization."""

__version__ = "0.1.0"
