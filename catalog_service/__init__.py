"""Catalog service: multi-tenant categories and products."""

__version__ = "0.1.0"
