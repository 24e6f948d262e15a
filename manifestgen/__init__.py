"""Inventory org metadata and build package manifests."""

__version__ = "0.1.0"
