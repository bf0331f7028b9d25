"""Dropbox team connector for enterprise search indexing."""

__version__ = "1.0.0"
