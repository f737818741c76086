"""Journal-entry workspace for a multi-tenant accounting application."""

__version__ = "0.1.0"
